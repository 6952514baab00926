from __future__ import annotations

from typing import Any

import pytest

from token_gateway.app.application.services.gateway import TokenGatewayService
from token_gateway.app.application.services.transfer_history import TransferHistoryService
from token_gateway.app.domain.errors import HistoryUnavailableError
from token_gateway.app.domain.models import Address, TxSubmission
from token_gateway.app.infrastructure.cache.memory_cache import InMemoryCacheStore

ADDR = "0x" + "11" * 20
OTHER = "0x" + "22" * 20
SIGNER = "0x" + "aa" * 20


def make_raw_transfer(i: int, *, value_hex: str = "0xde0b6b3a7640000", asset: str = "MTK") -> dict[str, Any]:
    return {
        "uniqueId": f"0x{i:064x}:log:0",
        "hash": f"0x{i:064x}",
        "from": ADDR,
        "to": OTHER,
        "asset": asset,
        "category": "erc20",
        "blockNum": hex(1000 + i),
        "rawContract": {"value": value_hex, "address": "0x" + "33" * 20, "decimal": "0x12"},
        "metadata": {"blockTimestamp": f"2025-01-01T00:00:{i:02d}.000Z"},
    }


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChainClient:
    def __init__(self, *, balance: int = 0) -> None:
        self.balance = balance
        self.calls: list[tuple[str, str, int | None]] = []
        self.error: Exception | None = None

    @property
    def signer_address(self) -> Address:
        return Address(SIGNER)

    async def get_balance(self, address: Address) -> int:
        self.calls.append(("balance", address, None))
        if self.error:
            raise self.error
        return self.balance

    async def mint(self, to: Address, amount: int) -> TxSubmission:
        return self._write("mint", to, amount)

    async def transfer(self, to: Address, amount: int) -> TxSubmission:
        return self._write("transfer", to, amount)

    def _write(self, op: str, to: Address, amount: int) -> TxSubmission:
        self.calls.append((op, to, amount))
        if self.error:
            raise self.error
        nonce = len(self.calls)
        return TxSubmission(
            tx_hash=f"0x{nonce:064x}",
            target=to,
            amount=amount,
            nonce=nonce,
        ).confirmed(block_number=500 + nonce)


class FakeHistoryProvider:
    def __init__(self, transfers: list[dict[str, Any]] | None = None) -> None:
        self.transfers = transfers or []
        self.calls = 0
        self.max_counts: list[int] = []
        self.fail = False

    async def fetch_transfers(
        self,
        *,
        address: Address,
        categories: list[str],
        max_count: int,
    ) -> list[dict[str, Any]]:
        self.calls += 1
        self.max_counts.append(max_count)
        if self.fail:
            raise HistoryUnavailableError("indexer down")
        return list(self.transfers)[-max_count:]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def history_provider() -> FakeHistoryProvider:
    return FakeHistoryProvider([make_raw_transfer(i) for i in range(3)])


@pytest.fixture
def history(history_provider: FakeHistoryProvider, cache: InMemoryCacheStore) -> TransferHistoryService:
    return TransferHistoryService(provider=history_provider, cache=cache, ttl_seconds=20)


@pytest.fixture
def gateway(chain: FakeChainClient, history: TransferHistoryService) -> TokenGatewayService:
    return TokenGatewayService(chain=chain, history=history)
