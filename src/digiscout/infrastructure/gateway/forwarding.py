"""Domain-restricted forwarding gateway.

Relays provider content so clients never receive provider URLs
directly.  It is a security control, not a best-effort lookup: the
host is checked against the allowlist before any I/O, and again after
redirects have been followed, before a single body byte is read.
Bodies are buffered in full (no partial relay) and capped in size;
the cap is enforced while reading so an oversized transfer is aborted
instead of downloaded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

import httpx
import structlog

from digiscout.domain.entities.errors import (
    DisallowedHost,
    InvalidTargetUrl,
    PayloadTooLarge,
    UpstreamFetchError,
)

log = structlog.get_logger(__name__)

MAX_PAYLOAD_BYTES = 10 * 1024 * 1024
FETCH_TIMEOUT_SECONDS = 30.0
MAX_REDIRECTS = 5
_DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class RelayedContent:
    content_type: str
    body: bytes


def normalize_allowlist(domains: Iterable[str]) -> frozenset[str]:
    """Lowercase, strip whitespace/leading dots, drop empties."""
    return frozenset(d.strip().lower().lstrip(".") for d in domains if d and d.strip())


def host_allowed(host: str | None, allowlist: frozenset[str]) -> bool:
    """True if *host* equals an entry or is a dot-suffixed subdomain of one."""
    if not host:
        return False
    host = host.lower().rstrip(".")
    return any(host == d or host.endswith(f".{d}") for d in allowlist)


def parse_target_url(target_url: str | None) -> str:
    """Validate *target_url* and return its hostname.

    Raises ``InvalidTargetUrl`` for anything that is not an absolute
    http(s) URL with a host.
    """
    if not target_url:
        raise InvalidTargetUrl("URL parameter is required")
    try:
        parts = urlsplit(target_url)
        host = parts.hostname
        # Raises ValueError for a non-numeric or out-of-range port.
        _ = parts.port
    except ValueError as exc:
        raise InvalidTargetUrl(f"Invalid URL: {target_url}") from exc
    if parts.scheme not in ("http", "https") or not host:
        raise InvalidTargetUrl(f"Invalid URL: {target_url}")
    return host


def build_relay_url(target_url: str, *, public_url: str, path: str) -> str:
    """Rewrite a provider URL so it is fetched through the gateway."""
    base = public_url.rstrip("/")
    path = path.strip("/")
    return f"{base}/{path}?url={quote(target_url, safe='')}"


def create_gateway_client(
    *,
    timeout: float = FETCH_TIMEOUT_SECONDS,
    max_redirects: int = MAX_REDIRECTS,
    user_agent: str | None = None,
) -> httpx.AsyncClient:
    """httpx client with the gateway's redirect hop limit and timeout."""
    headers = {"User-Agent": user_agent} if user_agent else None
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=max_redirects,
        headers=headers,
    )


class ForwardingGateway:
    """Validate, fetch, and relay a single allowlisted URL."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        allowed_domains: Iterable[str],
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
        timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._http = http_client
        self._allowlist = normalize_allowlist(allowed_domains)
        self._max_bytes = max_payload_bytes
        self._timeout = timeout_seconds

    @property
    def allowlist(self) -> frozenset[str]:
        return self._allowlist

    async def relay(self, target_url: str) -> RelayedContent:
        host = parse_target_url(target_url)

        if not host_allowed(host, self._allowlist):
            log.warning("relay_host_denied", host=host)
            raise DisallowedHost(host)

        # The client timeout bounds each I/O step; this bounds the whole fetch.
        try:
            content_type, body = await asyncio.wait_for(
                self._fetch(target_url, host), timeout=self._timeout
            )
        except httpx.TooManyRedirects as exc:
            log.warning("relay_too_many_redirects", host=host)
            raise UpstreamFetchError("Too many redirects") from exc
        except (httpx.TimeoutException, TimeoutError) as exc:
            log.warning("relay_timeout", host=host)
            raise UpstreamFetchError("Upstream timed out") from exc
        except httpx.InvalidURL as exc:
            log.warning("relay_invalid_url", host=host, error=str(exc))
            raise InvalidTargetUrl(f"Invalid URL: {target_url}") from exc
        except httpx.HTTPError as exc:
            log.warning("relay_fetch_error", host=host, error=str(exc))
            raise UpstreamFetchError("Error fetching the resource") from exc

        log.debug("relay_ok", host=host, size=len(body), content_type=content_type)
        return RelayedContent(content_type=content_type, body=body)

    async def _fetch(self, target_url: str, host: str) -> tuple[str, bytes]:
        async with self._http.stream("GET", target_url) as resp:
            final_host = resp.url.host
            if not host_allowed(final_host, self._allowlist):
                log.warning(
                    "relay_redirect_host_denied",
                    host=host,
                    final_host=final_host,
                )
                raise DisallowedHost(final_host, after_redirect=True)

            if not 200 <= resp.status_code < 400:
                raise UpstreamFetchError(f"Upstream returned HTTP {resp.status_code}")

            declared = resp.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self._max_bytes:
                log.warning("relay_payload_too_large", declared=int(declared))
                raise PayloadTooLarge(self._max_bytes, observed=int(declared))

            body = await self._read_capped(resp)
            return resp.headers.get("content-type", _DEFAULT_CONTENT_TYPE), body

    async def _read_capped(self, resp: httpx.Response) -> bytes:
        buf = bytearray()
        async for chunk in resp.aiter_bytes():
            buf.extend(chunk)
            if len(buf) > self._max_bytes:
                observed = len(buf)
                buf.clear()
                log.warning("relay_payload_too_large", observed=observed)
                raise PayloadTooLarge(self._max_bytes, observed=observed)
        return bytes(buf)
