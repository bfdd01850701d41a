"""Abstract interface for chat-platform clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DestinationHandle:
    """A resolved destination on a platform.

    Attributes:
        id: Platform identifier of the channel/group/board
        name: Name the destination was looked up by
        parent_id: Identifier of the containing server/guild, if any
    """

    id: str
    name: str
    parent_id: str | None = None


class PlatformClient(ABC):
    """Capability surface the dispatcher needs from a platform."""

    name: str = "platform"

    @abstractmethod
    async def is_ready(self) -> bool:
        """Return True once the client is logged in and can send."""
        raise NotImplementedError

    @abstractmethod
    async def find_destination(self, name: str) -> DestinationHandle | None:
        """Resolve a destination by name, or None if it does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def has_send_permission(self, handle: DestinationHandle) -> bool:
        """Return True if the client may post to the destination."""
        raise NotImplementedError

    @abstractmethod
    async def send(self, handle: DestinationHandle, text: str) -> str:
        """Post text and return the platform delivery id.

        Raises:
            PlatformError: If the platform rejects the message or the
                transport fails.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources."""
        return None
