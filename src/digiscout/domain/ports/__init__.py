from .metadata import CatalogMetadataPort
from .provider import AuthenticatedSearchProvider

__all__ = [
    "AuthenticatedSearchProvider",
    "CatalogMetadataPort",
]
