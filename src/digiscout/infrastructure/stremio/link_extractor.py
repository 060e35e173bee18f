"""Build StreamLinks from a DigiMovie detail payload.

Movie payloads carry a flat ``movie_download_urls`` list; series
payloads carry ``serie_download_urls`` with one bucket per
season/quality combination, each holding an ordered list of episode
files.  Extraction never raises: malformed entries are skipped and
counted so the caller can log a degraded result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import structlog

from digiscout.domain.entities.stremio import (
    MediaDetail,
    MediaKind,
    StreamLink,
    parse_external_id,
)

log = structlog.get_logger(__name__)

_TITLE_SEPARATOR = " - "
_MOVIE_TITLE_FIELDS = ("quality", "size", "encode", "label")
_SERIES_TITLE_FIELDS = ("quality", "size")

# Season labels look like "فصل : 2" or "Season :2"; the number follows
# the colon.  Labels without a colon fall back to the last number.
_SEASON_AFTER_COLON_RE = re.compile(r":(\d+)")
_LAST_NUMBER_RE = re.compile(r"(\d+)(?!.*\d)")


@dataclass(frozen=True)
class Extraction:
    """Links built from a detail payload plus the count of skipped entries."""

    links: list[StreamLink] = field(default_factory=list)
    skipped: int = 0


def _join_title(entry: dict[str, Any], fields: tuple[str, ...]) -> str:
    parts = [
        str(entry[f]).strip()
        for f in fields
        if entry.get(f) is not None and str(entry[f]).strip()
    ]
    return _TITLE_SEPARATOR.join(parts)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _season_number(label: str) -> int | None:
    """Extract the season number from a bucket label, or None."""
    compact = "".join(label.split())
    m = _SEASON_AFTER_COLON_RE.search(compact)
    if m is None:
        m = _LAST_NUMBER_RE.search(compact)
    return int(m.group(1)) if m else None


def build_movie_links(payload: dict[str, Any]) -> Extraction:
    links: list[StreamLink] = []
    skipped = 0
    for entry in _as_list(payload.get("movie_download_urls")):
        if not isinstance(entry, dict) or not entry.get("file"):
            skipped += 1
            continue
        links.append(
            StreamLink(
                title=_join_title(entry, _MOVIE_TITLE_FIELDS),
                url=str(entry["file"]),
            )
        )
    return Extraction(links=links, skipped=skipped)


def build_series_links(
    payload: dict[str, Any],
    season: int,
    episode: int,
) -> Extraction:
    links: list[StreamLink] = []
    skipped = 0
    for bucket in _as_list(payload.get("serie_download_urls")):
        try:
            if _season_number(str(bucket.get("season_name", ""))) != season:
                continue
            episodes = _as_list(bucket.get("links"))
            if episode > len(episodes):
                skipped += 1
                continue
            url = episodes[episode - 1].get("movie")
            if not url:
                skipped += 1
                continue
            links.append(
                StreamLink(
                    title=_join_title(bucket, _SERIES_TITLE_FIELDS),
                    url=str(url),
                )
            )
        except (AttributeError, TypeError, ValueError, IndexError):
            log.debug("series_bucket_malformed", bucket=repr(bucket)[:200])
            skipped += 1
    return Extraction(links=links, skipped=skipped)


def build_links(
    media_kind: MediaKind,
    external_id: str,
    detail: MediaDetail | None,
) -> Extraction:
    """Convert a detail payload into an ordered list of StreamLinks.

    Provider order is preserved.  Series requests are addressed by the
    ``:season:episode`` suffix of *external_id* (default S1E1).
    """
    if detail is None or not isinstance(detail.payload, dict):
        return Extraction()

    if media_kind == "movie":
        return build_movie_links(detail.payload)

    if media_kind == "series":
        try:
            request = parse_external_id("series", external_id)
        except ValueError:
            log.warning("external_id_unparseable", external_id=external_id)
            return Extraction()
        return build_series_links(
            detail.payload, request.season or 1, request.episode or 1
        )

    return Extraction()
