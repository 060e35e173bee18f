"""Shared test fixtures for the digiscout test suite."""

from __future__ import annotations

import httpx
import pytest

from digiscout.domain.entities.stremio import (
    Credentials,
    MediaDetail,
    SearchCandidate,
    Session,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def credentials() -> Credentials:
    return Credentials(username="alice", password="s3cret")


@pytest.fixture()
def session() -> Session:
    return Session(auth_token="tok-abcdef123456", refresh_token="ref-1")


@pytest.fixture()
def inception_candidates() -> list[SearchCandidate]:
    """Search hits for "Inception": one exact movie, one near-miss series."""
    return [
        SearchCandidate(provider_id="11", name="Inception", media_kind="movie"),
        SearchCandidate(
            provider_id="12", name="Inception: The Cobol Job", media_kind="series"
        ),
    ]


@pytest.fixture()
def movie_detail() -> MediaDetail:
    return MediaDetail(
        provider_id="11",
        payload={
            "status": True,
            "movie_download_urls": [
                {
                    "file": "https://dl.cdn.test/inc-1080.mkv",
                    "quality": "1080p",
                    "size": "2.1 GB",
                },
                {"file": "https://dl.cdn.test/inc-720.mkv", "quality": "720p"},
            ],
        },
    )


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    return httpx.AsyncClient()
