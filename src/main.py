"""FastAPI application entry point.

Run with: python -m src   (or: uvicorn src.main:app --no-proxy-headers --port 8080)

create_app() builds the whole site from an explicit Settings object; tests
call it with fake upstream transports.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import Settings, settings
from src.s256_common.errors import AppError
from src.s256_common.response import app_error_response, error_json
from src.s256_exchange.api.router import router as exchange_router
from src.s256_exchange.application.service import ExchangeProxy
from src.s256_gateway.middleware.cors import CorsPolicyMiddleware
from src.s256_gateway.middleware.rate_limit import RateLimitMiddleware, RateLimitRegistry
from src.s256_gateway.middleware.request_log import RequestLogMiddleware, request_id
from src.s256_gateway.middleware.security import (
    BlockedPathMiddleware,
    SecurityHeadersMiddleware,
)
from src.s256_rpc.api.router import router as rpc_router
from src.s256_rpc.application.schemas import RpcCredentials
from src.s256_rpc.application.service import RpcGateway

VERSION = "0.1.0"

logger = logging.getLogger("s256.app")

_HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(
    app_settings: Settings,
    *,
    rpc_transport: httpx.AsyncBaseTransport | None = None,
    exchange_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    configure_logging(app_settings.LOG_LEVEL)

    rpc_client = httpx.AsyncClient(transport=rpc_transport)
    exchange_client = httpx.AsyncClient(transport=exchange_transport, follow_redirects=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup: report RPC status. Shutdown: close upstream clients."""
        if not app_settings.rpc_configured:
            logger.warning("RPC_USER/RPC_PASSWORD not set; /rpc will answer 503")
        yield
        await rpc_client.aclose()
        await exchange_client.aclose()

    app = FastAPI(
        title=app_settings.APP_NAME,
        version=VERSION,
        lifespan=lifespan,
        debug=app_settings.DEBUG,
        docs_url="/docs" if app_settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if app_settings.DEBUG else None,
    )

    rate_limits = RateLimitRegistry.from_settings(app_settings)
    app.state.settings = app_settings
    app.state.rate_limits = rate_limits
    app.state.rpc_gateway = RpcGateway(
        rpc_client,
        RpcCredentials.from_settings(app_settings),
        timeout=app_settings.RPC_TIMEOUT_SECONDS,
        max_response_bytes=app_settings.RPC_MAX_RESPONSE_BYTES,
    )
    app.state.exchange_proxy = ExchangeProxy(
        exchange_client,
        timeout=app_settings.EXCHANGE_TIMEOUT_SECONDS,
        max_bytes=app_settings.EXCHANGE_MAX_RESPONSE_BYTES,
    )

    # Last added runs first: log → headers → rate limit → blocked paths → CORS
    app.add_middleware(CorsPolicyMiddleware, allowed_origins=app_settings.CORS_ALLOWED_ORIGINS)
    app.add_middleware(BlockedPathMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        registry=rate_limits,
        trusted_hops=app_settings.TRUSTED_PROXY_HOPS,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return app_error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = _HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
        return error_json(message, exc.status_code, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_json("Invalid request", 400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on [%s] %s %s", request.method, request.url.path, request_id(request)
        )
        return error_json("Internal server error", 500)

    app.include_router(exchange_router)
    app.include_router(rpc_router)

    @app.get("/health")
    async def health() -> dict[str, str | bool]:
        return {
            "status": "ok",
            "version": VERSION,
            "rpc_configured": app_settings.rpc_configured,
        }

    # Static site last so API routes win; index.html served for "/"
    static_root = Path(app_settings.STATIC_ROOT)
    if static_root.is_dir():
        app.mount("/", StaticFiles(directory=static_root, html=True), name="static")
    else:
        logger.info("Static root %s not found; serving API routes only", static_root)

    return app


app = create_app(settings)
