from __future__ import annotations

from typing import Any, Protocol

from token_gateway.app.domain.models import Address, BaseUnits, TxSubmission


class TokenChainClient(Protocol):
    """
    Port for the ERC-20 token contract on chain.

    Implementations must:
    - raise ProviderError on read/network failures,
    - block write calls until the receipt is observed (bounded wait),
    - raise TxFailedError on revert or when the wait is exhausted,
    - never re-broadcast a write once a node has accepted it,
    - assign a unique, ordered nonce to every broadcast even under concurrent callers.
    """

    @property
    def signer_address(self) -> Address: ...

    async def get_balance(self, address: Address) -> BaseUnits: ...

    async def mint(self, to: Address, amount: BaseUnits) -> TxSubmission: ...

    async def transfer(self, to: Address, amount: BaseUnits) -> TxSubmission: ...


class TransferHistoryProvider(Protocol):
    """
    Port for the indexing API.

    Returns the newest `max_count` raw transfer events involving `address`,
    in chronological order, across the given asset categories.
    Raises HistoryUnavailableError on failure.
    """

    async def fetch_transfers(
        self,
        *,
        address: Address,
        categories: list[str],
        max_count: int,
    ) -> list[dict[str, Any]]:
        ...


class CacheStore(Protocol):
    """
    Key/value store with per-entry TTL.

    - get returns None on miss or after expiry,
    - set overwrites (last write wins),
    - must be safe under concurrent use from many in-flight requests.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, *, ttl_seconds: float) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def close(self) -> None: ...
