"""FastAPI application factories (create_app, create_gateway_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from digiscout.infrastructure.config import AppConfig
from digiscout.interfaces.app_state import AppState
from digiscout.interfaces.composition import gateway_lifespan, lifespan

log = structlog.get_logger(__name__)


def _install_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = response.status_code if response is not None else 500

            # Query strings may carry user config; log the path only.
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )


def create_app(config: AppConfig) -> FastAPI:
    """Create the addon app. Configuration ONLY, NO resource initialization.

    Resources (HTTP client, provider, use cases) are created in lifespan().
    """
    app = FastAPI(
        title="digiscout",
        description="Stremio addon resolving catalog titles to DigiMovie streams",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from digiscout.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stremio_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe; returns 200 as long as the process is running."""
        return {"status": "ok"}

    _install_request_logging(app)
    return app


def create_gateway_app(config: AppConfig) -> FastAPI:
    """Create the forwarding gateway app (runs as its own process)."""
    app = FastAPI(
        title="digiscout-gateway",
        description="Domain-restricted forwarding gateway",
        version="0.1.0",
        lifespan=gateway_lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from digiscout.interfaces.api.gateway.router import build_router

    app.include_router(build_router(config.relay.path))

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    _install_request_logging(app)
    return app
