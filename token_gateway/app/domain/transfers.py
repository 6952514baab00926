"""
Boundary normalization of raw transfer events returned by the indexing API.

The provider payload is untyped JSON. Each raw record is turned into either a
TransferRecord or a TransferParseError; nothing loosely typed goes further in.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from token_gateway.app.domain.models import TransferRecord
from token_gateway.app.domain.units import DEFAULT_DECIMALS, to_decimal

NATIVE_ASSET_DECIMALS = 18


@dataclass(frozen=True)
class TransferParseError:
    reason: str
    raw: Mapping[str, Any] | None = None


ParsedTransfer = TransferRecord | TransferParseError


def _parse_hex_int(value: Any, *, field: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str) or not value.lower().startswith("0x"):
        raise ValueError(f"{field} is not a hex quantity: {value!r}")
    return int(value, 16)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected string, got {type(value).__name__}")
    return value


def _decimals_for(raw_contract: Mapping[str, Any]) -> int:
    raw_decimal = raw_contract.get("decimal")
    if raw_decimal is None:
        # Native asset and our own token both use 18
        return DEFAULT_DECIMALS
    return _parse_hex_int(raw_decimal, field="rawContract.decimal")


def parse_transfer(raw: Any) -> ParsedTransfer:
    """
    Normalize one raw transfer record.

    Expected fields:
      hash, from, to, asset, category, blockNum (hex),
      rawContract.value (hex base units), rawContract.decimal (hex, optional),
      metadata.blockTimestamp (optional).
    """
    if not isinstance(raw, Mapping):
        return TransferParseError(reason="record is not an object")

    try:
        tx_hash = raw.get("hash")
        from_address = raw.get("from")
        category = raw.get("category")
        if not isinstance(tx_hash, str) or not tx_hash:
            raise ValueError("missing hash")
        if not isinstance(from_address, str) or not from_address:
            raise ValueError("missing from")
        if not isinstance(category, str) or not category:
            raise ValueError("missing category")

        block_number = _parse_hex_int(raw.get("blockNum"), field="blockNum")

        raw_contract = raw.get("rawContract") or {}
        if not isinstance(raw_contract, Mapping):
            raise ValueError("rawContract is not an object")

        raw_value = raw_contract.get("value")
        value: str | None = None
        if raw_value is not None:
            base_units = _parse_hex_int(raw_value, field="rawContract.value")
            value = to_decimal(base_units, _decimals_for(raw_contract))

        metadata = raw.get("metadata") or {}
        timestamp = metadata.get("blockTimestamp") if isinstance(metadata, Mapping) else None

        return TransferRecord(
            hash=tx_hash,
            from_address=from_address,
            to_address=_optional_str(raw.get("to")),
            value=value,
            asset=_optional_str(raw.get("asset")),
            category=category,
            block_number=block_number,
            timestamp=_optional_str(timestamp),
        )
    except ValueError as e:
        return TransferParseError(reason=str(e), raw=raw)
