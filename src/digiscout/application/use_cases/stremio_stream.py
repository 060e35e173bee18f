"""Stremio stream use case.

IMDb id -> Cinemeta title -> ProviderClient.resolve()
-> label + optional relay rewrite -> StremioStream list.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from digiscout.domain.entities.stremio import (
    Credentials,
    MediaKind,
    StreamLink,
    parse_external_id,
)
from digiscout.domain.ports.metadata import CatalogMetadataPort

from .provider_client import ProviderClient

log = structlog.get_logger(__name__)

_TitleCleanFn = Callable[[str], str]
_UrlRewriteFn = Callable[[str], str]

_DEFAULT_LINK_TITLE = "Stream"


@dataclass(frozen=True)
class StreamResponse:
    """Streams for the Stremio response plus an optional user-facing problem."""

    streams: list[StreamLink] = field(default_factory=list)
    auth_failed: bool = False


class StremioStreamUseCase:
    """Resolve a Stremio stream request into labelled stream links."""

    def __init__(
        self,
        *,
        metadata: CatalogMetadataPort,
        provider_client: ProviderClient,
        clean_title_fn: _TitleCleanFn,
        label_prefix: str = "",
        url_rewriter: _UrlRewriteFn | None = None,
    ) -> None:
        self._metadata = metadata
        self._provider_client = provider_client
        self._clean_title = clean_title_fn
        self._label_prefix = label_prefix
        self._rewrite_url = url_rewriter

    async def execute(
        self,
        credentials: Credentials,
        media_type: MediaKind,
        external_id: str,
    ) -> StreamResponse:
        try:
            request = parse_external_id(media_type, external_id)
        except ValueError:
            log.warning("stream_id_invalid", external_id=external_id)
            return StreamResponse()

        title = await self._metadata.get_title(media_type, request.base_id)
        if not title:
            log.warning("metadata_title_not_found", base_id=request.base_id)
            return StreamResponse()

        search_title = self._clean_title(title)
        log.info(
            "stream_target",
            title=search_title,
            kind=media_type,
            season=request.season,
            episode=request.episode,
        )

        result = await self._provider_client.resolve(
            credentials, media_type, search_title, external_id
        )
        if result.auth_failed:
            return StreamResponse(auth_failed=True)

        return StreamResponse(streams=[self._decorate(link) for link in result.streams])

    def _decorate(self, link: StreamLink) -> StreamLink:
        title = link.title or _DEFAULT_LINK_TITLE
        if self._label_prefix:
            title = f"{self._label_prefix} {title}"
        url = self._rewrite_url(link.url) if self._rewrite_url else link.url
        return StreamLink(title=title, url=url)
