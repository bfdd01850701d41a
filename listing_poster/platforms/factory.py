"""Platform client factory and registry."""

from __future__ import annotations

from typing import Callable

from ..config import PlatformsConfig
from .base import PlatformClient
from .discord import DiscordClient


ClientBuilder = Callable[[PlatformsConfig], PlatformClient]

_PLATFORM_REGISTRY: dict[str, ClientBuilder] = {
    "discord": lambda cfg: DiscordClient(cfg.discord),
}


def available_platforms() -> list[str]:
    """Return the set of registered platform names."""
    return sorted(_PLATFORM_REGISTRY.keys())


def create_client(name: str, cfg: PlatformsConfig) -> PlatformClient:
    """Build one platform client by name."""
    builder = _PLATFORM_REGISTRY.get(name.lower().strip())
    if builder is None:
        supported = ", ".join(available_platforms())
        raise ValueError(f"Unsupported platform: {name}. Supported: {supported}")
    return builder(cfg)


def create_clients(cfg: PlatformsConfig) -> dict[str, PlatformClient]:
    """Build clients for every enabled platform."""
    clients: dict[str, PlatformClient] = {}
    if cfg.discord.enabled:
        clients["discord"] = create_client("discord", cfg)
    return clients
