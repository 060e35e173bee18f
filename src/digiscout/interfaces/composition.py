"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from digiscout.application.use_cases import ProviderClient, StremioStreamUseCase
from digiscout.infrastructure.gateway.forwarding import (
    ForwardingGateway,
    build_relay_url,
    create_gateway_client,
)
from digiscout.infrastructure.metadata.cinemeta import CinemetaClient
from digiscout.infrastructure.provider.digimovie import DigimovieProvider
from digiscout.infrastructure.provider.session import SessionManager
from digiscout.infrastructure.stremio.link_extractor import build_links
from digiscout.infrastructure.stremio.title_matcher import (
    rank_candidates,
    select_best,
    strip_year_suffix,
)
from digiscout.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Addon lifespan: shared HTTP client, provider, metadata, use cases.

    Order matters:
        1. HTTP client (shared by provider + metadata)
        2. Catalog metadata client
        3. Provider adapter + ProviderClient
        4. Stremio stream use case (optionally rewriting through the relay)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 2) Catalog metadata
    state.metadata = CinemetaClient(
        http_client=state.http_client,
        base_url=config.metadata.base_url,
        timeout=config.metadata.timeout_seconds,
    )

    # 3) Provider
    provider = DigimovieProvider(
        base_host=config.provider.base_host,
        http_client=state.http_client,
        timeout=config.provider.timeout_seconds,
    )
    state.provider_client = ProviderClient(
        provider=provider,
        session_factory=SessionManager,
        rank_fn=rank_candidates,
        select_fn=select_best,
        extract_fn=build_links,
    )
    log.info("provider_initialized", provider=provider.name, host=config.provider.base_host)

    # 4) Stream use case
    url_rewriter = None
    if config.relay.enabled:
        url_rewriter = functools.partial(
            build_relay_url,
            public_url=config.relay.public_url,
            path=config.relay.path,
        )
        log.info("relay_rewrite_enabled", public_url=config.relay.public_url)

    state.stremio_stream_uc = StremioStreamUseCase(
        metadata=state.metadata,
        provider_client=state.provider_client,
        clean_title_fn=strip_year_suffix,
        label_prefix=config.provider.label_prefix,
        url_rewriter=url_rewriter,
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")
        log.info("app_shutdown_complete")


@asynccontextmanager
async def gateway_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Gateway lifespan: redirect-limited HTTP client + ForwardingGateway."""
    state = cast(AppState, app.state)
    relay = state.config.relay

    state.http_client = create_gateway_client(
        timeout=relay.timeout_seconds,
        max_redirects=relay.max_redirects,
        user_agent=state.config.http_user_agent,
    )
    state.gateway = ForwardingGateway(
        http_client=state.http_client,
        allowed_domains=relay.allowed_domains,
        max_payload_bytes=relay.max_payload_bytes,
        timeout_seconds=relay.timeout_seconds,
    )
    if not state.gateway.allowlist:
        log.warning("gateway_allowlist_empty")
    log.info(
        "gateway_startup_complete",
        path=relay.path,
        allowed_domains=sorted(state.gateway.allowlist),
    )

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("gateway_shutdown_complete")
