"""Domain entities for Stremio stream resolution.

Pure value objects with no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

MediaKind = Literal["movie", "series"]


@dataclass(frozen=True)
class Credentials:
    """Provider account credentials supplied with a single request."""

    username: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.username) and bool(self.password)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password=***)"


@dataclass(frozen=True)
class Session:
    """Authenticated token pair returned by a provider login."""

    auth_token: str
    refresh_token: str = ""
    is_valid: bool = True

    @property
    def fingerprint(self) -> str:
        """Short, log-safe token prefix."""
        return f"{self.auth_token[:6]}…" if self.auth_token else ""

    def invalidated(self) -> Session:
        return Session(
            auth_token=self.auth_token,
            refresh_token=self.refresh_token,
            is_valid=False,
        )


@dataclass(frozen=True)
class SearchCandidate:
    """A single provider search hit, before selection."""

    provider_id: str
    name: str
    media_kind: MediaKind
    poster_url: str = ""


@dataclass(frozen=True)
class ScoredCandidate:
    """A search hit paired with its match score and original position."""

    candidate: SearchCandidate
    score: int
    index: int


@dataclass(frozen=True)
class MediaDetail:
    """Opaque provider detail payload for one catalog entry."""

    provider_id: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StreamLink:
    """Final output unit: a display title and a playable URL."""

    title: str
    url: str


@dataclass(frozen=True)
class StreamRequest:
    """Parsed external identifier.

    Created from ``tt1234567`` (movie) or ``tt1234567:2:5``
    (series, season 2, episode 5).  Series requests without a
    season/episode suffix default to S1E1.
    """

    base_id: str
    media_kind: MediaKind
    season: int | None = None
    episode: int | None = None


def parse_external_id(media_kind: MediaKind, external_id: str) -> StreamRequest:
    """Split ``base[:season:episode]`` into a StreamRequest.

    Raises ``ValueError`` when a season/episode suffix is present but
    not numeric or not positive.
    """
    parts = external_id.split(":")
    base_id = parts[0]
    if media_kind != "series":
        return StreamRequest(base_id=base_id, media_kind=media_kind)

    season, episode = 1, 1
    if len(parts) >= 3:
        season = int(parts[1])
        episode = int(parts[2])
        if season < 1 or episode < 1:
            raise ValueError(
                f"season/episode must be positive, got {season}:{episode}"
            )
    return StreamRequest(
        base_id=base_id,
        media_kind=media_kind,
        season=season,
        episode=episode,
    )
