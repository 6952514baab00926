from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from token_gateway.app.application.services.gateway import TokenGatewayService
from token_gateway.app.config import Settings, get_settings
from token_gateway.app.infrastructure.factories.gateway_factory import build_gateway
from token_gateway.app.interface.api.routes import router

logger = logging.getLogger(__name__)


def create_app(
    *,
    gateway: TokenGatewayService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Build the HTTP app.

    With an explicit `gateway` nothing is wired from settings (tests, embedding).
    Otherwise the gateway and its clients are built at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if gateway is not None:
            app.state.gateway = gateway
            yield
            return

        container = build_gateway(settings or get_settings())
        app.state.gateway = container.gateway
        try:
            yield
        finally:
            await container.aclose()
            logger.info("Gateway resources closed")

    app = FastAPI(title="Token Gateway", lifespan=lifespan)

    origins = settings.cors_origin_list if settings is not None else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(router)
    return app
