"""Error taxonomy for stream resolution and the forwarding gateway."""

from __future__ import annotations


class DigiscoutError(Exception):
    """Base error for digiscout domain/use cases."""


# --- Resolution -----------------------------------------------------------
# Never propagated past ProviderClient.resolve(); carried on ResolveResult
# for logging and user messaging only.


class ConfigurationError(DigiscoutError):
    """Credentials missing or incomplete; no network I/O attempted."""


class AuthenticationError(DigiscoutError):
    """Login rejected, or re-login after an auth rejection also failed."""


class AuthRejected(AuthenticationError):
    """A single authenticated call was answered with 401/403."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailable(DigiscoutError):
    """Transport-level failure (timeout, connection, bad payload) talking to the provider."""


class NoMatch(DigiscoutError):
    """Search succeeded but no candidate scored above zero."""


class ExtractionDegraded(DigiscoutError):
    """Some links were built, some entries were skipped as malformed."""

    def __init__(self, message: str = "", *, built: int = 0, skipped: int = 0) -> None:
        super().__init__(message)
        self.built = built
        self.skipped = skipped


# --- Forwarding gateway ---------------------------------------------------
# Each maps to a distinct HTTP status at the gateway boundary.


class GatewayError(DigiscoutError):
    status_code: int = 500


class InvalidTargetUrl(GatewayError):
    status_code = 400


class DisallowedHost(GatewayError):
    status_code = 403

    def __init__(self, host: str, *, after_redirect: bool = False) -> None:
        where = "redirected hostname" if after_redirect else "hostname"
        super().__init__(f"Access denied for {where}: {host}")
        self.host = host
        self.after_redirect = after_redirect


class PayloadTooLarge(GatewayError):
    status_code = 413

    def __init__(self, limit: int, *, observed: int | None = None) -> None:
        super().__init__(f"Payload exceeds the allowed limit of {limit} bytes")
        self.limit = limit
        self.observed = observed


class UpstreamFetchError(GatewayError):
    status_code = 500
