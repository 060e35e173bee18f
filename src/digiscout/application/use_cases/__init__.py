from .provider_client import ProviderClient, ResolveResult
from .stremio_stream import StreamResponse, StremioStreamUseCase

__all__ = ["ProviderClient", "ResolveResult", "StreamResponse", "StremioStreamUseCase"]
