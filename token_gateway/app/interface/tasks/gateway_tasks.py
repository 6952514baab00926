from __future__ import annotations

import json
from typing import Any, Awaitable, Callable

import typer

from token_gateway.app.application.services.gateway import TokenGatewayService
from token_gateway.app.config import get_settings
from token_gateway.app.infrastructure.factories.gateway_factory import build_gateway


async def _with_gateway(fn: Callable[[TokenGatewayService], Awaitable[Any]]) -> Any:
    container = build_gateway(get_settings())
    try:
        return await fn(container.gateway)
    finally:
        await container.aclose()


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


async def balance_task(*, address: str) -> None:
    """Task: print the token balance of an address in decimal units."""
    result = await _with_gateway(lambda gw: gw.get_balance(address))
    _echo({"balance": result.balance})


async def mint_task(*, address: str, amount: str) -> None:
    """Task: mint `amount` tokens to `address` and wait for confirmation."""
    result = await _with_gateway(lambda gw: gw.mint(address, amount))
    _echo({"success": result.success, "txHash": result.tx_hash, "blockNumber": result.block_number})


async def transfer_task(*, to: str, amount: str) -> None:
    """Task: transfer `amount` tokens from the gateway signer to `to`."""
    result = await _with_gateway(lambda gw: gw.transfer(to, amount))
    _echo({"success": result.success, "txHash": result.tx_hash, "blockNumber": result.block_number})


async def history_task(*, address: str, limit: int | None = None) -> None:
    """Task: print the latest transfers involving an address."""
    records = await _with_gateway(lambda gw: gw.get_history(address, limit))
    _echo([r.to_dict() for r in records])
