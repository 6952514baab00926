from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, NewType

#: `0x` + 40 hex chars. Case is preserved, equality is case-insensitive.
Address = NewType("Address", str)

#: Integer token amount scaled by 10**decimals.
BaseUnits = int


@dataclass(frozen=True)
class TransferRecord:
    """One on-chain asset movement, normalized from indexing API data."""

    hash: str
    from_address: str
    to_address: str | None
    value: str | None  # decimal string, None when the asset has no fungible value
    asset: str | None
    category: str
    block_number: int
    timestamp: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "asset": self.asset,
            "category": self.category,
            "blockNum": self.block_number,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransferRecord":
        return cls(
            hash=data["hash"],
            from_address=data["from"],
            to_address=data.get("to"),
            value=data.get("value"),
            asset=data.get("asset"),
            category=data["category"],
            block_number=int(data["blockNum"]),
            timestamp=data.get("timestamp"),
        )


class TxState(str, Enum):
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class TxSubmission:
    """
    In-flight mint/transfer. Lives only for the duration of one request.

    State moves Submitted -> Confirmed | Failed; each transition yields a new instance.
    """

    tx_hash: str
    target: Address
    amount: BaseUnits
    nonce: int
    state: TxState = TxState.SUBMITTED
    block_number: int | None = None
    failure_reason: str | None = None

    def confirmed(self, *, block_number: int | None) -> "TxSubmission":
        return replace(self, state=TxState.CONFIRMED, block_number=block_number)

    def failed(self, reason: str) -> "TxSubmission":
        return replace(self, state=TxState.FAILED, failure_reason=reason)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
