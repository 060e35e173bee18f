"""Cinemeta client: canonical titles for IMDb ids (no API key needed)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from digiscout.domain.entities.stremio import MediaKind

log = structlog.get_logger(__name__)

_DEFAULT_BASE_URL = "https://v3-cinemeta.strem.io"


class CinemetaClient:
    """Async Cinemeta lookup using httpx.

    Implements ``CatalogMetadataPort`` from domain.ports.metadata.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = _DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def _get_meta(self, media_kind: MediaKind, base_id: str) -> dict[str, Any] | None:
        url = f"{self._base_url}/meta/{media_kind}/{base_id}.json"
        try:
            resp = await self._http.get(url, timeout=self._timeout)
            if resp.status_code == 404:
                log.debug("cinemeta_not_found", base_id=base_id)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError:
            log.warning("cinemeta_http_error", base_id=base_id, exc_info=True)
            return None
        except ValueError:
            log.warning("cinemeta_invalid_json", base_id=base_id)
            return None

        meta = data.get("meta") if isinstance(data, dict) else None
        return meta if isinstance(meta, dict) else None

    async def get_title(self, media_kind: MediaKind, base_id: str) -> str | None:
        """Canonical display title, or None if Cinemeta has no entry."""
        meta = await self._get_meta(media_kind, base_id)
        if meta is None:
            return None
        name = meta.get("name")
        return str(name) if name else None
