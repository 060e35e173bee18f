"""Provider resolution use case.

credentials + title -> login -> search -> rank -> detail -> links.

Every failure degrades to an empty (or partial) stream list; the
reason is carried on ``ResolveResult.failure`` for logging and user
messaging, never raised.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from digiscout.domain.entities.errors import (
    AuthenticationError,
    AuthRejected,
    ConfigurationError,
    DigiscoutError,
    ExtractionDegraded,
    NoMatch,
    UpstreamUnavailable,
)
from digiscout.domain.entities.stremio import (
    Credentials,
    MediaDetail,
    MediaKind,
    ScoredCandidate,
    SearchCandidate,
    Session,
    StreamLink,
)
from digiscout.domain.ports.provider import AuthenticatedSearchProvider

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its dependencies.
# ---------------------------------------------------------------------------


class _SessionManager(Protocol):
    @property
    def session(self) -> Session | None: ...

    async def login(self, credentials: Credentials) -> bool: ...

    async def reauthenticate(self, credentials: Credentials) -> bool: ...


class _Extraction(Protocol):
    links: list[StreamLink]
    skipped: int


_SessionFactory = Callable[[AuthenticatedSearchProvider], _SessionManager]
_RankFn = Callable[[Iterable[SearchCandidate], str, MediaKind], list[ScoredCandidate]]
_SelectFn = Callable[[list[ScoredCandidate]], ScoredCandidate | None]
_ExtractFn = Callable[[MediaKind, str, MediaDetail | None], _Extraction]


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of one resolution: links in provider order plus the failure, if any."""

    streams: list[StreamLink] = field(default_factory=list)
    failure: DigiscoutError | None = None

    @property
    def auth_failed(self) -> bool:
        return isinstance(self.failure, (ConfigurationError, AuthenticationError))


class ProviderClient:
    """Resolve a canonical title to stream links on one provider.

    A fresh SessionManager is created per ``resolve()`` call, so
    concurrent resolutions never share token state.
    """

    def __init__(
        self,
        *,
        provider: AuthenticatedSearchProvider,
        session_factory: _SessionFactory,
        rank_fn: _RankFn,
        select_fn: _SelectFn,
        extract_fn: _ExtractFn,
    ) -> None:
        self._provider = provider
        self._session_factory = session_factory
        self._rank = rank_fn
        self._select = select_fn
        self._extract = extract_fn

    async def validate_credentials(self, credentials: Credentials) -> bool:
        """Log in once and report whether the provider accepted *credentials*."""
        if not credentials.is_complete:
            return False
        ok = await self._session_factory(self._provider).login(credentials)
        log.info("credentials_validated", provider=self._provider.name, ok=ok)
        return ok

    async def resolve(
        self,
        credentials: Credentials,
        media_type: MediaKind,
        title: str,
        external_id: str,
    ) -> ResolveResult:
        if not credentials.is_complete:
            log.warning("resolve_missing_credentials", provider=self._provider.name)
            return ResolveResult(
                failure=ConfigurationError("username and password are required")
            )

        sessions = self._session_factory(self._provider)

        # 1) Authenticate
        if not await sessions.login(credentials):
            return ResolveResult(
                failure=AuthenticationError(f"{self._provider.name} login failed")
            )

        # 2) Search
        try:
            candidates = await self._provider.search(title)
        except UpstreamUnavailable as exc:
            log.warning(
                "resolve_search_failed",
                provider=self._provider.name,
                query=title,
                error=str(exc),
            )
            return ResolveResult(failure=exc)
        log.debug("resolve_search_results", query=title, count=len(candidates))

        # 3) Rank + select
        best = self._select(self._rank(candidates, title, media_type))
        if best is None:
            log.info("resolve_no_match", query=title, kind=media_type)
            return ResolveResult(failure=NoMatch(f"no candidate matched {title!r}"))

        # 4) Detail (one re-login + one retry on auth rejection)
        detail_or_error = await self._fetch_detail(
            sessions, credentials, best.candidate.provider_id, media_type
        )
        if isinstance(detail_or_error, DigiscoutError):
            return ResolveResult(failure=detail_or_error)

        # 5) Extract
        extraction = self._extract(media_type, external_id, detail_or_error)
        failure: DigiscoutError | None = None
        if extraction.skipped:
            failure = ExtractionDegraded(
                f"{extraction.skipped} entries skipped",
                built=len(extraction.links),
                skipped=extraction.skipped,
            )
            log.warning(
                "resolve_extraction_degraded",
                provider_id=best.candidate.provider_id,
                built=len(extraction.links),
                skipped=extraction.skipped,
            )

        log.info(
            "resolve_done",
            provider=self._provider.name,
            query=title,
            winner=best.candidate.name,
            streams=len(extraction.links),
        )
        return ResolveResult(streams=list(extraction.links), failure=failure)

    async def _fetch_detail(
        self,
        sessions: _SessionManager,
        credentials: Credentials,
        provider_id: str,
        media_type: MediaKind,
    ) -> MediaDetail | DigiscoutError:
        session = sessions.session
        if session is None:
            return AuthenticationError("no session after login")
        try:
            return await self._provider.fetch_detail(session, provider_id, media_type)
        except AuthRejected as exc:
            log.info("resolve_detail_auth_rejected", status=exc.status_code)
        except UpstreamUnavailable as exc:
            log.warning("resolve_detail_failed", provider_id=provider_id, error=str(exc))
            return exc

        if not await sessions.reauthenticate(credentials) or sessions.session is None:
            return AuthenticationError("re-login after auth rejection failed")

        try:
            return await self._provider.fetch_detail(
                sessions.session, provider_id, media_type
            )
        except AuthRejected as exc:
            log.warning("resolve_detail_auth_rejected_twice", status=exc.status_code)
            return AuthenticationError("session rejected after re-login")
        except UpstreamUnavailable as exc:
            log.warning("resolve_detail_retry_failed", provider_id=provider_id, error=str(exc))
            return exc
