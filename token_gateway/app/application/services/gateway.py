from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from token_gateway.app.application.services.transfer_history import TransferHistoryService
from token_gateway.app.domain.addresses import validate_address
from token_gateway.app.domain.models import TransferRecord, TxSubmission
from token_gateway.app.domain.ports.out import TokenChainClient
from token_gateway.app.domain.units import DEFAULT_DECIMALS, to_base_units, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceResult:
    address: str
    balance: str


@dataclass(frozen=True)
class TxResult:
    tx_hash: str
    block_number: int | None
    success: bool = True


class TokenGatewayService:
    """
    Stateless entry point for the four gateway operations.

    Every input is validated before any external call, so a validation
    failure (InvalidInputError) never has side effects. Provider, tx and
    history errors propagate unchanged to the interface layer.
    """

    def __init__(
        self,
        *,
        chain: TokenChainClient,
        history: TransferHistoryService,
        decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        self._chain = chain
        self._history = history
        self._decimals = decimals

    async def get_balance(self, address: Any) -> BalanceResult:
        addr = validate_address(address)
        raw = await self._chain.get_balance(addr)
        return BalanceResult(address=addr, balance=to_decimal(raw, self._decimals))

    async def mint(self, address: Any, amount: Any) -> TxResult:
        addr = validate_address(address)
        base_units = to_base_units(amount, self._decimals, positive=True)

        submission = await self._chain.mint(addr, base_units)
        logger.info(
            "Minted %s tokens to %s, txHash: %s",
            to_decimal(base_units, self._decimals),
            addr,
            submission.tx_hash,
        )

        await self._history.invalidate(addr)
        return self._result(submission)

    async def transfer(self, to: Any, amount: Any) -> TxResult:
        addr = validate_address(to, field="recipient address")
        base_units = to_base_units(amount, self._decimals, positive=True)

        submission = await self._chain.transfer(addr, base_units)
        logger.info(
            "Transferred %s tokens to %s, txHash: %s",
            to_decimal(base_units, self._decimals),
            addr,
            submission.tx_hash,
        )

        await self._history.invalidate(addr)
        await self._history.invalidate(self._chain.signer_address)
        return self._result(submission)

    async def get_history(self, address: Any, limit: int | None = None) -> list[TransferRecord]:
        addr = validate_address(address)
        return await self._history.get_history(addr, limit)

    @staticmethod
    def _result(submission: TxSubmission) -> TxResult:
        return TxResult(tx_hash=submission.tx_hash, block_number=submission.block_number)
