"""Chat-platform clients."""

from .base import DestinationHandle, PlatformClient
from .discord import DiscordClient
from .factory import available_platforms, create_client, create_clients

__all__ = [
    "DestinationHandle",
    "DiscordClient",
    "PlatformClient",
    "available_platforms",
    "create_client",
    "create_clients",
]
