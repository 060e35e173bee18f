"""Tests for StremioStreamUseCase."""

from __future__ import annotations

import functools
from unittest.mock import AsyncMock, MagicMock

import pytest

from digiscout.application.use_cases.provider_client import ResolveResult
from digiscout.application.use_cases.stremio_stream import StremioStreamUseCase
from digiscout.domain.entities.errors import (
    AuthenticationError,
    NoMatch,
)
from digiscout.domain.entities.stremio import Credentials, StreamLink
from digiscout.infrastructure.gateway.forwarding import build_relay_url
from digiscout.infrastructure.stremio.title_matcher import strip_year_suffix

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _metadata(title: str | None = "Inception (2010)") -> MagicMock:
    metadata = MagicMock()
    metadata.get_title = AsyncMock(return_value=title)
    return metadata


def _provider_client(result: ResolveResult) -> MagicMock:
    client = MagicMock()
    client.resolve = AsyncMock(return_value=result)
    return client


def _use_case(
    *,
    metadata: MagicMock,
    provider_client: MagicMock,
    label_prefix: str = "[DigiMovie]",
    url_rewriter=None,
) -> StremioStreamUseCase:
    return StremioStreamUseCase(
        metadata=metadata,
        provider_client=provider_client,
        clean_title_fn=strip_year_suffix,
        label_prefix=label_prefix,
        url_rewriter=url_rewriter,
    )


_LINKS = [
    StreamLink("1080p - 2.1 GB", "https://dl.cdn.test/a.mkv"),
    StreamLink("", "https://dl.cdn.test/b.mkv"),
]

# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestExecute:
    @pytest.mark.asyncio()
    async def test_labels_streams(self, credentials: Credentials) -> None:
        metadata = _metadata()
        client = _provider_client(ResolveResult(streams=_LINKS))
        uc = _use_case(metadata=metadata, provider_client=client)

        response = await uc.execute(credentials, "movie", "tt1375666")

        assert response.auth_failed is False
        assert response.streams == [
            StreamLink("[DigiMovie] 1080p - 2.1 GB", "https://dl.cdn.test/a.mkv"),
            StreamLink("[DigiMovie] Stream", "https://dl.cdn.test/b.mkv"),
        ]
        metadata.get_title.assert_awaited_once_with("movie", "tt1375666")
        client.resolve.assert_awaited_once_with(
            credentials, "movie", "Inception", "tt1375666"
        )

    @pytest.mark.asyncio()
    async def test_series_lookup_uses_base_id(self, credentials: Credentials) -> None:
        metadata = _metadata("Breaking Bad")
        client = _provider_client(ResolveResult())
        uc = _use_case(metadata=metadata, provider_client=client)

        await uc.execute(credentials, "series", "tt0903747:2:5")

        metadata.get_title.assert_awaited_once_with("series", "tt0903747")
        client.resolve.assert_awaited_once_with(
            credentials, "series", "Breaking Bad", "tt0903747:2:5"
        )

    @pytest.mark.asyncio()
    async def test_rewrites_urls_through_relay(self, credentials: Credentials) -> None:
        rewriter = functools.partial(
            build_relay_url, public_url="https://relay.test", path="proxy"
        )
        uc = _use_case(
            metadata=_metadata(),
            provider_client=_provider_client(ResolveResult(streams=_LINKS[:1])),
            url_rewriter=rewriter,
        )

        response = await uc.execute(credentials, "movie", "tt1375666")

        assert response.streams[0].url == (
            "https://relay.test/proxy?url=https%3A%2F%2Fdl.cdn.test%2Fa.mkv"
        )

    @pytest.mark.asyncio()
    async def test_no_prefix(self, credentials: Credentials) -> None:
        uc = _use_case(
            metadata=_metadata(),
            provider_client=_provider_client(ResolveResult(streams=_LINKS[:1])),
            label_prefix="",
        )
        response = await uc.execute(credentials, "movie", "tt1375666")
        assert response.streams[0].title == "1080p - 2.1 GB"

    @pytest.mark.asyncio()
    async def test_missing_metadata_skips_provider(self, credentials: Credentials) -> None:
        client = _provider_client(ResolveResult(streams=_LINKS))
        uc = _use_case(metadata=_metadata(None), provider_client=client)

        response = await uc.execute(credentials, "movie", "tt0")

        assert response.streams == []
        client.resolve.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_invalid_series_id(self, credentials: Credentials) -> None:
        metadata = _metadata()
        client = _provider_client(ResolveResult())
        uc = _use_case(metadata=metadata, provider_client=client)

        response = await uc.execute(credentials, "series", "tt1:x:1")

        assert response.streams == []
        metadata.get_title.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_auth_failure_flagged(self, credentials: Credentials) -> None:
        client = _provider_client(
            ResolveResult(failure=AuthenticationError("login failed"))
        )
        uc = _use_case(metadata=_metadata(), provider_client=client)

        response = await uc.execute(credentials, "movie", "tt1375666")

        assert response.auth_failed is True
        assert response.streams == []

    @pytest.mark.asyncio()
    async def test_no_match_is_empty_not_auth(self, credentials: Credentials) -> None:
        client = _provider_client(ResolveResult(failure=NoMatch("none")))
        uc = _use_case(metadata=_metadata(), provider_client=client)

        response = await uc.execute(credentials, "movie", "tt1375666")

        assert response.auth_failed is False
        assert response.streams == []
