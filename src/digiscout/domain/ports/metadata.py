"""Port for the external catalog-metadata service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from digiscout.domain.entities.stremio import MediaKind


@runtime_checkable
class CatalogMetadataPort(Protocol):
    """Async interface for canonical title lookups."""

    async def get_title(self, media_kind: MediaKind, base_id: str) -> str | None:
        """Canonical display title for an external id, or None if not found."""
        ...
