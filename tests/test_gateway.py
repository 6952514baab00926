from __future__ import annotations

import pytest

from conftest import ADDR, OTHER, SIGNER, FakeChainClient, FakeHistoryProvider

from token_gateway.app.application.services.gateway import TokenGatewayService
from token_gateway.app.domain.errors import InvalidInputError, ProviderError, TxFailedError


@pytest.mark.asyncio
async def test_balance_is_converted_to_decimal(gateway: TokenGatewayService, chain: FakeChainClient) -> None:
    chain.balance = 2_500_000_000_000_000_000

    result = await gateway.get_balance(ADDR)

    assert result.balance == "2.5"
    assert chain.calls == [("balance", ADDR, None)]


@pytest.mark.asyncio
async def test_mint_converts_amount_and_returns_hash(gateway: TokenGatewayService, chain: FakeChainClient) -> None:
    result = await gateway.mint(ADDR, "1.5")

    assert chain.calls == [("mint", ADDR, 1_500_000_000_000_000_000)]
    assert result.success
    assert result.tx_hash.startswith("0x")
    assert result.block_number == 501


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-1", "abc", "", None, "0.0000000000000000001"])
async def test_mint_rejects_bad_amount_without_chain_call(
    gateway: TokenGatewayService,
    chain: FakeChainClient,
    amount: object,
) -> None:
    with pytest.raises(InvalidInputError):
        await gateway.mint(ADDR, amount)
    assert chain.calls == []


@pytest.mark.asyncio
async def test_transfer_rejects_bad_address_without_chain_call(
    gateway: TokenGatewayService,
    chain: FakeChainClient,
) -> None:
    with pytest.raises(InvalidInputError) as exc:
        await gateway.transfer("not-an-address", "5")
    assert exc.value.reason == "Invalid recipient address"
    assert chain.calls == []


@pytest.mark.asyncio
async def test_mint_invalidates_target_history(
    gateway: TokenGatewayService,
    history_provider: FakeHistoryProvider,
) -> None:
    await gateway.get_history(ADDR)
    await gateway.mint(ADDR, "1")
    await gateway.get_history(ADDR)

    assert history_provider.calls == 2


@pytest.mark.asyncio
async def test_transfer_invalidates_recipient_and_signer_history(
    gateway: TokenGatewayService,
    history_provider: FakeHistoryProvider,
) -> None:
    await gateway.get_history(OTHER)
    await gateway.get_history(SIGNER)
    await gateway.transfer(OTHER, "1")
    await gateway.get_history(OTHER)
    await gateway.get_history(SIGNER)

    assert history_provider.calls == 4


@pytest.mark.asyncio
async def test_failed_write_keeps_cached_history(
    gateway: TokenGatewayService,
    chain: FakeChainClient,
    history_provider: FakeHistoryProvider,
) -> None:
    await gateway.get_history(ADDR)
    chain.error = TxFailedError("Transaction reverted", tx_hash="0x01")

    with pytest.raises(TxFailedError):
        await gateway.mint(ADDR, "1")
    await gateway.get_history(ADDR)

    assert history_provider.calls == 1


@pytest.mark.asyncio
async def test_provider_errors_propagate(gateway: TokenGatewayService, chain: FakeChainClient) -> None:
    chain.error = ProviderError("node timeout")

    with pytest.raises(ProviderError):
        await gateway.get_balance(ADDR)


@pytest.mark.asyncio
async def test_history_validates_address(gateway: TokenGatewayService, history_provider: FakeHistoryProvider) -> None:
    with pytest.raises(InvalidInputError):
        await gateway.get_history("0x123")
    assert history_provider.calls == 0
