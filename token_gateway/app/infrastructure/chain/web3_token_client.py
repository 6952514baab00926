from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiohttp import ClientError
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import AsyncWeb3, Web3
from web3.contract.async_contract import AsyncContract
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    TimeExhausted,
    Web3Exception,
)

from token_gateway.app.domain.errors import (
    ProviderError,
    TxConfirmationTimeoutError,
    TxFailedError,
)
from token_gateway.app.domain.models import Address, BaseUnits, TxSubmission
from token_gateway.app.domain.ports.out import TokenChainClient
from token_gateway.app.infrastructure.chain.nonce_manager import NonceManager

logger = logging.getLogger(__name__)

# Failures where the request never got an answer from the node.
# Safe to retry for reads, and for a broadcast we resend the identical signed payload.
_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    ClientError,
    asyncio.TimeoutError,
    OSError,
)

_BALANCE_OF_ABI = {
    "name": "balanceOf",
    "type": "function",
    "stateMutability": "view",
    "inputs": [{"name": "account", "type": "address"}],
    "outputs": [{"name": "", "type": "uint256"}],
}


def _write_fn_abi(name: str) -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    }


def build_token_abi(*, mint_function: str, transfer_function: str) -> list[dict[str, Any]]:
    """Minimal ABI: balanceOf plus the two (address, uint256) write entry points."""
    abi = [_BALANCE_OF_ABI, _write_fn_abi(mint_function)]
    if transfer_function != mint_function:
        abi.append(_write_fn_abi(transfer_function))
    return abi


def _error_message(err: BaseException) -> str:
    # ContractLogicError keeps the node message apart from its (message, data) args
    message = getattr(err, "message", None)
    return message if isinstance(message, str) and message else str(err)


def _is_already_known(err: BaseException) -> bool:
    msg = str(err).lower()
    return "already known" in msg or "known transaction" in msg


class Web3TokenChainClient(TokenChainClient):
    """
    Token contract client using AsyncWeb3 and a local signing key.

    Reads:
      - balanceOf(address), retried on transport errors only.

    Writes (mint / transfer):
      - nonce reserved through NonceManager (serialized per signer),
      - transaction built, signed locally and broadcast; transport failures
        resend the same signed payload, node rejections are not retried,
      - the request then waits for the receipt, outside the nonce lock,
        bounded by `confirmation_timeout`.
    """

    def __init__(
        self,
        *,
        w3: AsyncWeb3,
        token_address: str,
        account: LocalAccount,
        mint_function: str = "mint",
        transfer_function: str = "transfer",
        confirmation_timeout: float = 120.0,
        poll_interval: float = 1.0,
        broadcast_attempts: int = 3,
        read_attempts: int = 2,
        retry_delay: float = 0.5,
    ) -> None:
        if broadcast_attempts < 1 or read_attempts < 1:
            raise ValueError("attempt counts must be >= 1")

        self._w3 = w3
        self._account = account
        self._mint_function = mint_function
        self._transfer_function = transfer_function
        self._confirmation_timeout = confirmation_timeout
        self._poll_interval = poll_interval
        self._broadcast_attempts = broadcast_attempts
        self._read_attempts = read_attempts
        self._retry_delay = retry_delay

        self._contract: AsyncContract = w3.eth.contract(
            address=to_checksum_address(token_address),
            abi=build_token_abi(
                mint_function=mint_function,
                transfer_function=transfer_function,
            ),
        )
        self._nonces = NonceManager(self._fetch_pending_nonce)

    @property
    def signer_address(self) -> Address:
        return Address(self._account.address)

    async def get_balance(self, address: Address) -> BaseUnits:
        fn = self._contract.functions.balanceOf(to_checksum_address(address))

        last_error: BaseException | None = None
        for attempt in range(1, self._read_attempts + 1):
            try:
                return int(await fn.call())
            except _TRANSPORT_ERRORS as e:
                last_error = e
                logger.warning(
                    "balanceOf attempt %s/%s failed: %s",
                    attempt,
                    self._read_attempts,
                    e,
                )
                if attempt < self._read_attempts:
                    await asyncio.sleep(self._retry_delay * attempt)
            except (BadFunctionCallOutput, ContractLogicError, Web3Exception, ValueError) as e:
                raise ProviderError(f"balanceOf call failed: {_error_message(e)}") from e

        raise ProviderError(f"balanceOf call failed: {last_error}") from last_error

    async def mint(self, to: Address, amount: BaseUnits) -> TxSubmission:
        return await self._submit(self._mint_function, to, amount)

    async def transfer(self, to: Address, amount: BaseUnits) -> TxSubmission:
        return await self._submit(self._transfer_function, to, amount)

    async def close(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def _fetch_pending_nonce(self) -> int:
        try:
            return int(
                await self._w3.eth.get_transaction_count(self._account.address, "pending")
            )
        except (*_TRANSPORT_ERRORS, Web3Exception, ValueError) as e:
            raise ProviderError(f"Could not fetch signer nonce: {e}") from e

    async def _submit(self, fn_name: str, to: Address, amount: BaseUnits) -> TxSubmission:
        recipient = to_checksum_address(to)

        async with self._nonces.reserve() as nonce:
            tx = await self._build(fn_name, recipient, amount, nonce)
            tx_hash = await self._broadcast(tx, fn_name=fn_name)

        submission = TxSubmission(tx_hash=tx_hash, target=to, amount=amount, nonce=nonce)
        logger.info(
            "Broadcast %s transaction %s",
            fn_name,
            tx_hash,
            extra={"nonce": nonce, "to": recipient},
        )
        return await self._wait_for_receipt(submission, tx)

    async def _build(
        self,
        fn_name: str,
        recipient: str,
        amount: BaseUnits,
        nonce: int,
    ) -> dict[str, Any]:
        fn = getattr(self._contract.functions, fn_name)(recipient, amount)
        try:
            return dict(
                await fn.build_transaction(
                    {"from": self._account.address, "nonce": nonce}
                )
            )
        except ContractLogicError as e:
            raise ProviderError(f"{fn_name} rejected during gas estimation: {_error_message(e)}") from e
        except (*_TRANSPORT_ERRORS, Web3Exception, ValueError) as e:
            raise ProviderError(f"Could not build {fn_name} transaction: {e}") from e

    async def _broadcast(self, tx: dict[str, Any], *, fn_name: str) -> str:
        signed = self._account.sign_transaction(tx)
        tx_hash = Web3.to_hex(signed.hash)

        last_error: BaseException | None = None
        for attempt in range(1, self._broadcast_attempts + 1):
            try:
                await self._w3.eth.send_raw_transaction(signed.raw_transaction)
                return tx_hash
            except _TRANSPORT_ERRORS as e:
                last_error = e
                logger.warning(
                    "Broadcast attempt %s/%s for %s failed: %s",
                    attempt,
                    self._broadcast_attempts,
                    fn_name,
                    e,
                )
                if attempt < self._broadcast_attempts:
                    await asyncio.sleep(self._retry_delay * attempt)
            except (Web3Exception, ValueError) as e:
                # A previous attempt reached the node after all
                if _is_already_known(e):
                    return tx_hash
                raise ProviderError(f"{fn_name} broadcast rejected: {e}") from e

        raise ProviderError(
            f"{fn_name} broadcast failed after {self._broadcast_attempts} attempts: {last_error}"
        ) from last_error

    async def _wait_for_receipt(
        self,
        submission: TxSubmission,
        tx: dict[str, Any],
    ) -> TxSubmission:
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                submission.tx_hash,
                timeout=self._confirmation_timeout,
                poll_latency=self._poll_interval,
            )
        except TimeExhausted as e:
            raise TxConfirmationTimeoutError(
                f"Transaction not included within {self._confirmation_timeout:g}s",
                tx_hash=submission.tx_hash,
            ) from e
        except (*_TRANSPORT_ERRORS, Web3Exception, ValueError) as e:
            raise TxFailedError(
                f"Confirmation wait failed: {e}",
                tx_hash=submission.tx_hash,
            ) from e

        block_number = receipt.get("blockNumber")
        if receipt.get("status") != 1:
            reason = await self._revert_reason(tx, block_number) or "Transaction reverted"
            failed = submission.failed(reason)
            logger.warning(
                "Transaction %s reverted: %s",
                failed.tx_hash,
                reason,
                extra={"block_number": block_number},
            )
            raise TxFailedError(reason, tx_hash=failed.tx_hash)

        return submission.confirmed(block_number=block_number)

    async def _revert_reason(self, tx: dict[str, Any], block_number: int | None) -> str | None:
        """Replay the call at the receipt block to recover the revert message, if any."""
        call = {k: tx[k] for k in ("from", "to", "data", "value") if k in tx}
        try:
            await self._w3.eth.call(call, block_number)
        except ContractLogicError as e:
            return f"Transaction reverted: {_error_message(e)}"
        except (*_TRANSPORT_ERRORS, Web3Exception, ValueError) as e:
            logger.debug("Revert reason replay failed: %s", e)
        return None
