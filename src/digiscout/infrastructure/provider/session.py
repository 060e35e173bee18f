"""Request-scoped provider session lifecycle.

One SessionManager per resolution, never shared across requests,
never persisted.  Token state is an immutable ``Session`` value that
is replaced (not mutated) on every successful login.

State machine::

    UNAUTHENTICATED ──login()──▶ AUTHENTICATING ──ok──▶ AUTHENTICATED
           ▲                           │                      │
           └─────────── fail ──────────┘           reauthenticate()
                                                              │
                        FAILED ◀── fail ── AUTHENTICATING ◀───┘
"""

from __future__ import annotations

import enum

import structlog

from digiscout.domain.entities.stremio import Credentials, Session
from digiscout.domain.ports.provider import AuthenticatedSearchProvider

log = structlog.get_logger(__name__)


class SessionState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class SessionManager:
    """Owns the Session for a single resolution against one provider."""

    def __init__(self, provider: AuthenticatedSearchProvider) -> None:
        self._provider = provider
        self._session: Session | None = None
        self._state = SessionState.UNAUTHENTICATED
        self._reauthenticated = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    async def is_valid(self) -> bool:
        """Probe the provider with the current token.

        False without I/O when no token is held.  Never raises and
        never touches token state.
        """
        if self._session is None or not self._session.auth_token:
            return False
        try:
            valid = await self._provider.probe(self._session)
        except Exception:  # noqa: BLE001
            log.debug("session_probe_failed", exc_info=True)
            return False
        if valid:
            log.debug("session_still_valid", token=self._session.fingerprint)
        else:
            log.info("session_not_valid", provider=self._provider.name)
        return valid

    async def login(self, credentials: Credentials) -> bool:
        """Ensure an authenticated session.

        Returns False without any network call when credentials are
        incomplete or the session already ended in FAILED.
        """
        if not credentials.is_complete:
            log.error(
                "login_credentials_missing",
                provider=self._provider.name,
                has_username=bool(credentials.username),
                has_password=bool(credentials.password),
            )
            return False

        if self._state is SessionState.FAILED:
            log.warning("login_refused_session_failed", provider=self._provider.name)
            return False

        if await self.is_valid():
            self._state = SessionState.AUTHENTICATED
            return True

        return await self._authenticate(credentials)

    async def reauthenticate(self, credentials: Credentials) -> bool:
        """Replace a token the provider rejected (401/403).

        Allowed once per SessionManager.  A failed re-login is terminal:
        the manager moves to FAILED and refuses all further attempts.
        """
        if self._state is SessionState.FAILED or self._reauthenticated:
            log.warning("reauth_refused", provider=self._provider.name)
            self._state = SessionState.FAILED
            return False
        if not credentials.is_complete:
            self._state = SessionState.FAILED
            return False

        self._reauthenticated = True
        if self._session is not None:
            self._session = self._session.invalidated()
        log.info("session_rejected_reauthenticating", provider=self._provider.name)

        ok = await self._authenticate(credentials)
        if not ok:
            self._state = SessionState.FAILED
        return ok

    async def _authenticate(self, credentials: Credentials) -> bool:
        self._state = SessionState.AUTHENTICATING
        try:
            session = await self._provider.login(credentials)
        except Exception:  # noqa: BLE001
            log.warning("login_error", provider=self._provider.name, exc_info=True)
            session = None

        if session is None:
            self._state = SessionState.UNAUTHENTICATED
            log.warning("login_failed", provider=self._provider.name)
            return False

        self._session = session
        self._state = SessionState.AUTHENTICATED
        log.info(
            "login_succeeded",
            provider=self._provider.name,
            token=session.fingerprint,
        )
        return True
