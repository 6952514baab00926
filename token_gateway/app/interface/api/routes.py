from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from token_gateway.app.application.services.gateway import TokenGatewayService
from token_gateway.app.domain.errors import GatewayError, InvalidInputError, TxFailedError
from token_gateway.app.interface.api.schemas import (
    BalanceResponse,
    MintRequest,
    TransferRequest,
    TxResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_gateway(request: Request) -> TokenGatewayService:
    return request.app.state.gateway


def _error_response(message: str, err: GatewayError) -> JSONResponse:
    if isinstance(err, InvalidInputError):
        return JSONResponse(status_code=400, content={"error": err.reason})

    logger.error("%s %s", message, err.reason, exc_info=err)
    content: dict[str, Any] = {"error": message, "details": err.reason}
    if isinstance(err, TxFailedError) and err.tx_hash:
        content["txHash"] = err.tx_hash
    return JSONResponse(status_code=500, content=content)


@router.get("/balance/{address}", response_model=BalanceResponse)
async def get_balance(address: str, gateway: TokenGatewayService = Depends(get_gateway)):
    try:
        result = await gateway.get_balance(address)
    except GatewayError as e:
        return _error_response("Failed to fetch token balance.", e)

    logger.info("Token balance of %s: %s", result.address, result.balance)
    return BalanceResponse(balance=result.balance)


@router.post("/mint", response_model=TxResponse)
async def mint(body: MintRequest, gateway: TokenGatewayService = Depends(get_gateway)):
    try:
        result = await gateway.mint(body.address, body.amount)
    except GatewayError as e:
        return _error_response("Minting failed.", e)

    return TxResponse(txHash=result.tx_hash, blockNumber=result.block_number)


@router.post("/transfer", response_model=TxResponse)
async def transfer(body: TransferRequest, gateway: TokenGatewayService = Depends(get_gateway)):
    try:
        result = await gateway.transfer(body.to, body.amount)
    except GatewayError as e:
        return _error_response("Transfer failed.", e)

    return TxResponse(txHash=result.tx_hash, blockNumber=result.block_number)


@router.get("/transactions/{address}")
async def get_transactions(address: str, gateway: TokenGatewayService = Depends(get_gateway)):
    try:
        records = await gateway.get_history(address)
    except GatewayError as e:
        return _error_response("Failed to fetch transactions", e)

    return [r.to_dict() for r in records]
