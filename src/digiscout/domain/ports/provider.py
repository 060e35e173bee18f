"""Port for authenticated, session-based content providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from digiscout.domain.entities.stremio import (
    Credentials,
    MediaDetail,
    MediaKind,
    SearchCandidate,
    Session,
)


@runtime_checkable
class AuthenticatedSearchProvider(Protocol):
    """Capability interface for one provider backend.

    Implementations are stateless with respect to authentication:
    token state lives in the ``Session`` value they return from
    ``login()`` and is passed back into every authenticated call.
    """

    @property
    def name(self) -> str:
        """Provider name (e.g. 'digimovie')."""
        ...

    async def login(self, credentials: Credentials) -> Session | None:
        """Authenticate. None when rejected or on any failure."""
        ...

    async def probe(self, session: Session) -> bool:
        """Lightweight authenticated call. False on any failure, never raises."""
        ...

    async def search(self, query: str) -> list[SearchCandidate]:
        """Search the provider catalog.

        Raises ``UpstreamUnavailable`` on transport failure.
        """
        ...

    async def fetch_detail(
        self, session: Session, provider_id: str, media_kind: MediaKind
    ) -> MediaDetail:
        """Fetch the download detail payload for a catalog entry.

        Raises ``AuthRejected`` on 401/403 and ``UpstreamUnavailable``
        on any other failure.
        """
        ...
