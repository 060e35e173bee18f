"""Forwarding gateway endpoint."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse
from starlette.responses import Response

from digiscout.domain.entities.errors import GatewayError
from digiscout.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_router(path: str) -> APIRouter:
    """Router serving ``GET /{path}?url=...``; the path comes from config."""
    router = APIRouter(tags=["gateway"])

    @router.get(f"/{path.strip('/')}")
    async def relay(request: Request, url: str | None = Query(default=None)) -> Response:
        state = cast(AppState, request.app.state)
        try:
            content = await state.gateway.relay(url or "")
        except GatewayError as exc:
            log.info("relay_rejected", status_code=exc.status_code, reason=str(exc))
            return PlainTextResponse(str(exc), status_code=exc.status_code)

        return Response(
            content=content.body,
            media_type=content.content_type,
            headers={"Access-Control-Allow-Origin": "*"},
        )

    return router
