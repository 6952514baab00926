from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


# Fields are loosely typed on purpose: the gateway validator owns the
# 400 responses, pydantic only parses the JSON body.
class MintRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: Any = None
    amount: Any = None


class TransferRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    to: Any = None
    amount: Any = None


class BalanceResponse(BaseModel):
    balance: str


class TxResponse(BaseModel):
    success: bool = True
    txHash: str
    blockNumber: int | None = None
