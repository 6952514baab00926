from __future__ import annotations

from conftest import ADDR, OTHER, make_raw_transfer

from token_gateway.app.domain.models import TransferRecord
from token_gateway.app.domain.transfers import TransferParseError, parse_transfer


def test_normalizes_token_transfer() -> None:
    record = parse_transfer(make_raw_transfer(1, value_hex=hex(2_500_000_000_000_000_000)))

    assert isinstance(record, TransferRecord)
    assert record.hash == f"0x{1:064x}"
    assert record.from_address == ADDR
    assert record.to_address == OTHER
    assert record.value == "2.5"
    assert record.asset == "MTK"
    assert record.category == "erc20"
    assert record.block_number == 1001
    assert record.timestamp == "2025-01-01T00:00:01.000Z"


def test_native_asset_without_decimal_field_uses_18() -> None:
    raw = make_raw_transfer(2, asset="ETH")
    raw["category"] = "external"
    raw["rawContract"] = {"value": hex(10**17), "address": None, "decimal": None}

    record = parse_transfer(raw)

    assert isinstance(record, TransferRecord)
    assert record.value == "0.1"


def test_uses_provider_decimal_count() -> None:
    raw = make_raw_transfer(3, asset="USDC")
    raw["rawContract"] = {"value": hex(1_500_000), "decimal": "0x6"}

    record = parse_transfer(raw)

    assert isinstance(record, TransferRecord)
    assert record.value == "1.5"


def test_missing_value_and_timestamp_are_none() -> None:
    raw = make_raw_transfer(4)
    raw["rawContract"] = {"value": None}
    raw.pop("metadata")
    raw["to"] = None

    record = parse_transfer(raw)

    assert isinstance(record, TransferRecord)
    assert record.value is None
    assert record.timestamp is None
    assert record.to_address is None


def test_nft_transfer_has_no_fungible_value() -> None:
    raw = make_raw_transfer(6, asset="PUNK")
    raw["category"] = "erc721"
    raw["rawContract"] = {"value": None, "address": "0x" + "44" * 20, "decimal": None}
    raw["erc721TokenId"] = "0x1"

    record = parse_transfer(raw)

    assert isinstance(record, TransferRecord)
    assert record.category == "erc721"
    assert record.value is None


def test_malformed_records_become_parse_errors() -> None:
    bad_block = make_raw_transfer(5)
    bad_block["blockNum"] = "twelve"
    no_hash = make_raw_transfer(6)
    del no_hash["hash"]
    bad_value = make_raw_transfer(7, value_hex="0xzz")

    for raw in (bad_block, no_hash, bad_value, "not-a-dict", None):
        assert isinstance(parse_transfer(raw), TransferParseError)


def test_dict_round_trip_uses_api_field_names() -> None:
    record = parse_transfer(make_raw_transfer(8))
    assert isinstance(record, TransferRecord)

    data = record.to_dict()
    assert set(data) == {"hash", "from", "to", "value", "asset", "category", "blockNum", "timestamp"}
    assert TransferRecord.from_dict(data) == record
