"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from digiscout.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from digiscout.application.use_cases import (
        ProviderClient,
        StremioStreamUseCase,
    )
    from digiscout.domain.ports import CatalogMetadataPort
    from digiscout.infrastructure.gateway.forwarding import ForwardingGateway


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py (``lifespan`` for the addon,
    ``gateway_lifespan`` for the forwarding gateway).
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Addon
    metadata: CatalogMetadataPort
    provider_client: ProviderClient
    stremio_stream_uc: StremioStreamUseCase

    # Gateway (separate process)
    gateway: ForwardingGateway
