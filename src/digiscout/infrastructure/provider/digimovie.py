"""DigiMovie provider backend (JSON app API over httpx).

Endpoints (all under ``https://{base_host}/api/app/v1``):
- ``POST /login``             → ``auth_token`` / ``refresh_token``
- ``POST /get_profile``       → session validity probe
- ``POST /adv_search_movies`` → catalog search (unauthenticated)
- ``GET  /get_movie_detail``  → download lists (authenticated)

Every response carries a truthy ``status`` field on success.
Implements ``AuthenticatedSearchProvider`` from domain.ports.provider.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from digiscout.domain.entities.errors import AuthRejected, UpstreamUnavailable
from digiscout.domain.entities.stremio import (
    Credentials,
    MediaDetail,
    MediaKind,
    SearchCandidate,
    Session,
)

log = structlog.get_logger(__name__)

_API_PREFIX = "/api/app/v1"
_AUTH_REJECTED_STATUSES = frozenset({401, 403})
_SEARCH_PAGE_SIZE = 30


def _search_body(query: str) -> dict[str, Any]:
    """Advanced-search payload with every filter left open."""
    return {
        "adv_s": query,
        "adv_movie_type": "all",
        "adv_director": "",
        "adv_cast": "",
        "adv_release_year": {"min": None, "max": None},
        "adv_imdb_rate": {"min": None, "max": None},
        "adv_country": "0",
        "adv_age": "0",
        "adv_genre": "0",
        "adv_quality": "0",
        "adv_network": "0",
        "adv_order": "publish_date",
        "adv_dubbed": "0",
        "adv_censorship": "0",
        "adv_subtitle": "0",
        "adv_online": "0",
        "per_page": _SEARCH_PAGE_SIZE,
        "paged": 1,
    }


def _is_redirect_or_success(status_code: int) -> bool:
    return 200 <= status_code < 400


class DigimovieProvider:
    """Async DigiMovie client using a shared httpx.AsyncClient.

    Holds no token state; every authenticated call takes a ``Session``.
    """

    name = "digimovie"

    def __init__(
        self,
        *,
        base_host: str,
        http_client: httpx.AsyncClient,
        timeout: float = 15.0,
    ) -> None:
        self._base_url = f"https://{base_host}{_API_PREFIX}"
        self._http = http_client
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path}"

    @staticmethod
    def _auth_headers(session: Session) -> dict[str, str]:
        return {"authorization": session.auth_token}

    @staticmethod
    def _json_or_none(resp: httpx.Response) -> dict[str, Any] | None:
        try:
            data = resp.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    # ------------------------------------------------------------------
    # Public API (AuthenticatedSearchProvider)
    # ------------------------------------------------------------------

    async def login(self, credentials: Credentials) -> Session | None:
        """POST credentials; returns a Session on ``status: true``."""
        try:
            resp = await self._http.post(
                self._url("login"),
                json={
                    "username": credentials.username,
                    "password": credentials.password,
                },
                follow_redirects=False,
                timeout=self._timeout,
            )
        except httpx.HTTPError:
            log.warning("digimovie_login_network_error", exc_info=True)
            return None

        if not _is_redirect_or_success(resp.status_code):
            log.warning("digimovie_login_http_error", status=resp.status_code)
            return None

        data = self._json_or_none(resp)
        if not data or not data.get("status") or not data.get("auth_token"):
            log.info("digimovie_login_rejected", username=credentials.username)
            return None

        session = Session(
            auth_token=str(data["auth_token"]),
            refresh_token=str(data.get("refresh_token") or ""),
        )
        log.info("digimovie_logged_in", token=session.fingerprint)
        return session

    async def probe(self, session: Session) -> bool:
        """Check the token against the profile endpoint. Never raises."""
        if not session.auth_token:
            return False
        try:
            resp = await self._http.post(
                self._url("get_profile"),
                headers=self._auth_headers(session),
                follow_redirects=False,
                timeout=self._timeout,
            )
        except httpx.HTTPError:
            log.debug("digimovie_probe_network_error", exc_info=True)
            return False

        if not _is_redirect_or_success(resp.status_code):
            return False
        data = self._json_or_none(resp)
        return bool(data and data.get("status"))

    async def search(self, query: str) -> list[SearchCandidate]:
        """Advanced search by English title."""
        log.debug("digimovie_search", query=query)
        try:
            resp = await self._http.post(
                self._url("adv_search_movies"),
                json=_search_body(query),
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"digimovie search failed: {exc}") from exc

        data = self._json_or_none(resp)
        if data is None:
            raise UpstreamUnavailable("digimovie search returned invalid JSON")

        result = data.get("result") or {}
        if not isinstance(result, dict):
            return []
        try:
            total = int(result.get("total_items") or 0)
        except (TypeError, ValueError):
            total = 0
        if total < 1:
            return []

        items = result.get("items")
        if not isinstance(items, list):
            return []

        candidates: list[SearchCandidate] = []
        for item in items:
            if not isinstance(item, dict) or item.get("id") is None:
                continue
            candidates.append(
                SearchCandidate(
                    provider_id=str(item["id"]),
                    name=str(item.get("title_en") or ""),
                    media_kind="movie" if item.get("type") == "movie" else "series",
                    poster_url=str(item.get("image_url") or ""),
                )
            )
        return candidates

    async def fetch_detail(
        self, session: Session, provider_id: str, media_kind: MediaKind
    ) -> MediaDetail:
        """Fetch download lists for a catalog entry."""
        log.debug("digimovie_get_detail", provider_id=provider_id, kind=media_kind)
        try:
            resp = await self._http.get(
                self._url("get_movie_detail"),
                params={"movie_id": provider_id},
                headers=self._auth_headers(session),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"digimovie detail failed: {exc}") from exc

        if resp.status_code in _AUTH_REJECTED_STATUSES:
            raise AuthRejected(
                "digimovie rejected the session token",
                status_code=resp.status_code,
            )
        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                f"digimovie detail returned HTTP {resp.status_code}"
            )

        data = self._json_or_none(resp)
        if not data or not data.get("status"):
            raise UpstreamUnavailable("digimovie detail payload missing status")
        return MediaDetail(provider_id=provider_id, payload=data)
