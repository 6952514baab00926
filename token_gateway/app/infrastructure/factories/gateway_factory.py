from __future__ import annotations

import logging
from dataclasses import dataclass

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3

from token_gateway.app.application.services.gateway import TokenGatewayService
from token_gateway.app.application.services.transfer_history import TransferHistoryService
from token_gateway.app.config import Settings
from token_gateway.app.domain.ports.out import CacheStore
from token_gateway.app.infrastructure.chain.web3_token_client import Web3TokenChainClient
from token_gateway.app.infrastructure.factories.cache_factory import cache_store_factory
from token_gateway.app.infrastructure.history.alchemy_transfers_client import (
    AlchemyTransfersClient,
)

logger = logging.getLogger(__name__)


@dataclass
class GatewayContainer:
    """Gateway service plus the resources it owns, closed together at shutdown."""

    gateway: TokenGatewayService
    chain: Web3TokenChainClient
    history_provider: AlchemyTransfersClient
    cache: CacheStore

    async def aclose(self) -> None:
        await self.history_provider.close()
        await self.cache.close()
        await self.chain.close()


def build_gateway(settings: Settings) -> GatewayContainer:
    """
    Wire dependencies from settings:
    - AsyncWeb3 provider and local signing account,
    - token contract client (balance / mint / transfer),
    - Alchemy transfers client for history,
    - cache backend selected by name.
    """
    if not settings.rpc_url or not settings.history_api_url or not settings.cache_backend:
        raise ValueError("Settings are missing rpc_url, history_api_url or cache_backend")

    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            settings.rpc_url,
            request_kwargs={"timeout": settings.rpc_timeout_seconds},
        )
    )
    account = Account.from_key(settings.private_key.get_secret_value())

    chain = Web3TokenChainClient(
        w3=w3,
        token_address=settings.token_address,
        account=account,
        mint_function=settings.token_mint_function,
        transfer_function=settings.token_transfer_function,
        confirmation_timeout=settings.confirmation_timeout_seconds,
        poll_interval=settings.confirmation_poll_seconds,
        broadcast_attempts=settings.broadcast_attempts,
        read_attempts=settings.read_attempts,
    )

    history_provider = AlchemyTransfersClient(
        url=settings.history_api_url,
        timeout_s=settings.rpc_timeout_seconds,
    )
    cache = cache_store_factory(backend=settings.cache_backend, settings=settings)

    history = TransferHistoryService(
        provider=history_provider,
        cache=cache,
        ttl_seconds=settings.history_cache_ttl_seconds,
        categories=settings.categories,
        default_limit=settings.history_limit,
    )

    logger.info(
        "Gateway wired",
        extra={
            "signer": account.address,
            "token": settings.token_address,
            "cache_backend": settings.cache_backend,
        },
    )

    return GatewayContainer(
        gateway=TokenGatewayService(
            chain=chain,
            history=history,
            decimals=settings.token_decimals,
        ),
        chain=chain,
        history_provider=history_provider,
        cache=cache,
    )
