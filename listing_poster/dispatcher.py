"""
Fan-out of a composed message to routed destinations.

Sends are strictly sequential with a cooldown after each one, so no two
sends ever overlap. Every send is isolated: a missing channel, a missing
permission or a transport error becomes a failed DispatchResult and the
remaining destinations are still attempted. Platforms whose client is
absent or not ready are skipped without producing results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping

from .config import DispatchConfig
from .core.types import DispatchResult
from .errors import PlatformError
from .logging_utils import log_event
from .platforms.base import PlatformClient


Sleep = Callable[[float], Awaitable[None]]


async def client_ready(client: PlatformClient | None, logger: logging.Logger | None = None) -> bool:
    """Return the client's readiness; a readiness check that raises counts as not ready."""
    if client is None:
        return False
    try:
        return bool(await client.is_ready())
    except Exception as exc:  # noqa: BLE001
        log_event(
            logger,
            f"Readiness check for {client.name} failed: {type(exc).__name__}: {exc}",
            level=logging.ERROR,
            event="platform_connect_failed",
            platform=client.name,
            error=f"{type(exc).__name__}: {exc}",
        )
        return False


class Dispatcher:
    """Sequential, failure-isolated message fan-out."""

    def __init__(
        self,
        cfg: DispatchConfig,
        logger: logging.Logger | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.cfg = cfg
        self.logger = logger
        self._sleep = sleep

    async def dispatch(
        self,
        message: str,
        destinations: Mapping[str, list[str]],
        clients: Mapping[str, PlatformClient],
    ) -> list[DispatchResult]:
        """Send message to every destination of every ready platform.

        Args:
            message: The composed message text
            destinations: Platform name -> ordered destination names
            clients: Platform name -> client

        Returns:
            One DispatchResult per attempted destination, in attempt order
        """
        results: list[DispatchResult] = []
        for platform, names in destinations.items():
            client = clients.get(platform)
            if not await client_ready(client, self.logger):
                log_event(
                    self.logger,
                    f"Skipping {platform}: not ready",
                    level=logging.DEBUG,
                    event="platform_skipped",
                    platform=platform,
                )
                continue
            for name in names:
                results.append(await self._send_one(platform, client, name, message))
                await self._sleep(self.cfg.cooldown_seconds)
        return results

    async def _send_one(
        self,
        platform: str,
        client: PlatformClient,
        name: str,
        message: str,
    ) -> DispatchResult:
        try:
            handle = await client.find_destination(name)
            if handle is None:
                raise PlatformError(f"{platform} destination '{name}' not found")
            if not await client.has_send_permission(handle):
                raise PlatformError(f"No permission to send messages in #{name}")
            delivery_id = await client.send(handle, message)
        except PlatformError as exc:
            log_event(
                self.logger,
                f"Failed to post to {platform} #{name}: {exc}",
                level=logging.ERROR,
                event="dispatch_failed",
                platform=platform,
                destination=name,
                error=str(exc),
            )
            return DispatchResult(platform=platform, destination=name, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            error = f"{type(exc).__name__}: {exc}"
            log_event(
                self.logger,
                f"Failed to post to {platform} #{name}: {error}",
                level=logging.ERROR,
                event="dispatch_failed",
                platform=platform,
                destination=name,
                error=error,
            )
            return DispatchResult(platform=platform, destination=name, error=error)

        log_event(
            self.logger,
            f"Posted to {platform} #{name}",
            event="dispatch_sent",
            platform=platform,
            destination=name,
            delivery_id=delivery_id,
        )
        return DispatchResult(platform=platform, destination=name, delivery_id=delivery_id)
