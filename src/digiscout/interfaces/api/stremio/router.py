"""Stremio addon API endpoints (manifest, validate, stream)."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from digiscout.domain.entities.stremio import Credentials, MediaKind, StreamLink
from digiscout.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/stremio", tags=["stremio"])

_ADDON_ID = "community.digiscout"
_ADDON_VERSION = "0.1.0"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}

CONFIGURE_HINT_TITLE = "Please configure the addon with your DigiMovie account first"
AUTH_FAILED_TITLE = "Login failed (check your DigiMovie account details)"


def _build_manifest(configured: bool) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    description = (
        "Your DigiMovie account is connected."
        if configured
        else "DigiMovie movie and series archive. Configure the addon to connect "
        "your subscription account."
    )
    return {
        "id": _ADDON_ID,
        "version": _ADDON_VERSION,
        "name": "DigiMovie",
        "description": description,
        "catalogs": [],
        "resources": [
            {
                "name": "stream",
                "types": ["movie", "series"],
                "idPrefixes": ["tt"],
            }
        ],
        "types": ["movie", "series"],
        "behaviorHints": {
            "configurable": True,
            "configurationRequired": not configured,
        },
    }


def _parse_user_config(raw: str | None) -> Credentials | None:
    """Decode the base64 JSON ``{digiUser, digiPass}`` path segment.

    Returns None for anything undecodable or incomplete.
    """
    if not raw:
        return None
    try:
        padded = raw + "=" * (-len(raw) % 4)
        decoded = base64.urlsafe_b64decode(padded.replace("+", "-").replace("/", "_"))
        data = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        log.warning("stremio_config_undecodable")
        return None

    if not isinstance(data, dict):
        return None
    user, password = data.get("digiUser"), data.get("digiPass")
    if not isinstance(user, str) or not isinstance(password, str):
        return None

    credentials = Credentials(username=user, password=password)
    return credentials if credentials.is_complete else None


def _format_stream(stream: StreamLink) -> dict[str, str]:
    return {"title": stream.title, "url": stream.url}


def _single_stream(title: str) -> JSONResponse:
    return JSONResponse(
        content={"streams": [{"title": title, "url": ""}]},
        headers=_CORS_HEADERS,
    )


@router.get("/manifest.json")
async def stremio_manifest() -> JSONResponse:
    """Serve the unconfigured manifest."""
    return JSONResponse(content=_build_manifest(False), headers=_CORS_HEADERS)


@router.get("/{config}/manifest.json")
async def stremio_configured_manifest(config: str) -> JSONResponse:
    """Serve the manifest for a user-configured install."""
    configured = _parse_user_config(config) is not None
    return JSONResponse(content=_build_manifest(configured), headers=_CORS_HEADERS)


@router.post("/validate")
async def stremio_validate(request: Request) -> JSONResponse:
    """Check DigiMovie credentials before the user installs the addon."""
    state = cast(AppState, request.app.state)
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    user, password = body.get("digiUser"), body.get("digiPass")
    if not user or not password or not isinstance(user, str) or not isinstance(password, str):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Username and password are required."},
            headers=_CORS_HEADERS,
        )

    ok = await state.provider_client.validate_credentials(
        Credentials(username=user, password=password)
    )
    if not ok:
        return JSONResponse(
            content={"success": False, "message": "Invalid username or password."},
            headers=_CORS_HEADERS,
        )
    return JSONResponse(content={"success": True}, headers=_CORS_HEADERS)


@router.get("/{config}/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    config: str,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams for a movie or series episode."""
    state = cast(AppState, request.app.state)

    if content_type not in ("movie", "series") or not stream_id.startswith("tt"):
        log.debug("stremio_stream_unsupported", content_type=content_type, id=stream_id)
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    credentials = _parse_user_config(config)
    if credentials is None:
        return _single_stream(CONFIGURE_HINT_TITLE)

    response = await state.stremio_stream_uc.execute(
        credentials, cast(MediaKind, content_type), stream_id
    )
    if response.auth_failed:
        return _single_stream(AUTH_FAILED_TITLE)

    log.info(
        "stremio_stream_served",
        content_type=content_type,
        id=stream_id,
        streams=len(response.streams),
    )
    return JSONResponse(
        content={"streams": [_format_stream(s) for s in response.streams]},
        headers=_CORS_HEADERS,
    )
