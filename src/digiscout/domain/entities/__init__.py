from .errors import (
    AuthenticationError,
    AuthRejected,
    ConfigurationError,
    DigiscoutError,
    DisallowedHost,
    ExtractionDegraded,
    GatewayError,
    InvalidTargetUrl,
    NoMatch,
    PayloadTooLarge,
    UpstreamFetchError,
    UpstreamUnavailable,
)
from .stremio import (
    Credentials,
    MediaDetail,
    MediaKind,
    ScoredCandidate,
    SearchCandidate,
    Session,
    StreamLink,
    StreamRequest,
    parse_external_id,
)

__all__ = [
    "AuthRejected",
    "AuthenticationError",
    "ConfigurationError",
    "Credentials",
    "DigiscoutError",
    "DisallowedHost",
    "ExtractionDegraded",
    "GatewayError",
    "InvalidTargetUrl",
    "MediaDetail",
    "MediaKind",
    "NoMatch",
    "PayloadTooLarge",
    "ScoredCandidate",
    "SearchCandidate",
    "Session",
    "StreamLink",
    "StreamRequest",
    "UpstreamFetchError",
    "UpstreamUnavailable",
    "parse_external_id",
]
