"""
Discord bot client over the Discord REST API.

Connecting identifies the bot user, lists its guilds and caches every text
channel by name together with the data needed to compute channel
permissions (guild roles, the bot's member roles and channel overwrites).
Readiness is decided once, on the first ``is_ready()`` call, within a
bounded login timeout.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any

import httpx

from ..config import DiscordConfig, get_discord_token
from ..errors import PlatformError
from ..logging_utils import get_logger, log_event
from .base import DestinationHandle, PlatformClient


GUILD_TEXT_CHANNEL = 0

ADMINISTRATOR = 1 << 3
VIEW_CHANNEL = 1 << 10
SEND_MESSAGES = 1 << 11
ALL_PERMISSIONS = (1 << 53) - 1

OVERWRITE_ROLE = 0
OVERWRITE_MEMBER = 1


@dataclass
class GuildState:
    """Permission inputs for one guild."""

    id: str
    is_owner: bool = False
    role_permissions: dict[str, int] = field(default_factory=dict)
    member_role_ids: list[str] = field(default_factory=list)


def compute_permissions(
    guild: GuildState,
    member_id: str,
    overwrites: list[dict[str, Any]],
) -> int:
    """Compute a member's effective permissions in a channel.

    Base permissions are the @everyone role (whose id equals the guild id)
    OR'ed with the member's roles; administrators and the guild owner get
    everything. Channel overwrites then apply in order: @everyone, the
    member's roles (denies before allows), the member itself.
    """
    if guild.is_owner:
        return ALL_PERMISSIONS

    perms = guild.role_permissions.get(guild.id, 0)
    for role_id in guild.member_role_ids:
        perms |= guild.role_permissions.get(role_id, 0)
    if perms & ADMINISTRATOR:
        return ALL_PERMISSIONS

    by_id = {str(ow.get("id")): ow for ow in overwrites}

    everyone = by_id.get(guild.id)
    if everyone is not None:
        perms &= ~int(everyone.get("deny", 0))
        perms |= int(everyone.get("allow", 0))

    allow = deny = 0
    for role_id in guild.member_role_ids:
        ow = by_id.get(role_id)
        if ow is not None and int(ow.get("type", OVERWRITE_ROLE)) == OVERWRITE_ROLE:
            allow |= int(ow.get("allow", 0))
            deny |= int(ow.get("deny", 0))
    perms &= ~deny
    perms |= allow

    member = by_id.get(member_id)
    if member is not None and int(member.get("type", OVERWRITE_ROLE)) == OVERWRITE_MEMBER:
        perms &= ~int(member.get("deny", 0))
        perms |= int(member.get("allow", 0))

    return perms


class DiscordClient(PlatformClient):
    """Discord platform client authenticated with a bot token."""

    name = "discord"

    def __init__(
        self,
        cfg: DiscordConfig,
        token: str | None = None,
        logger: logging.Logger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cfg = cfg
        self._token = token if token is not None else get_discord_token(cfg)
        self._logger = logger or get_logger("discord")
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._ready: bool | None = None
        self._user_id: str | None = None
        self._guilds: dict[str, GuildState] = {}
        self._channels: dict[str, dict[str, Any]] = {}

    async def is_ready(self) -> bool:
        if self._ready is None:
            self._ready = await self._connect_with_timeout()
        return self._ready

    async def find_destination(self, name: str) -> DestinationHandle | None:
        channel = self._channels.get(name)
        if channel is None:
            return None
        return DestinationHandle(id=str(channel["id"]), name=name, parent_id=str(channel.get("guild_id")))

    async def has_send_permission(self, handle: DestinationHandle) -> bool:
        channel = self._channels.get(handle.name)
        guild = self._guilds.get(handle.parent_id or "")
        if channel is None or guild is None or self._user_id is None:
            return False
        perms = compute_permissions(guild, self._user_id, channel.get("permission_overwrites") or [])
        required = VIEW_CHANNEL | SEND_MESSAGES
        return perms & required == required

    async def send(self, handle: DestinationHandle, text: str) -> str:
        if not self._ready:
            raise PlatformError("Discord client not ready")
        data = await self._request("POST", f"/channels/{handle.id}/messages", json={"content": text})
        return str(data["id"])

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _connect_with_timeout(self) -> bool:
        if not self._token:
            log_event(
                self._logger,
                "Discord bot token not configured",
                level=logging.WARNING,
                event="platform_not_configured",
                platform=self.name,
            )
            return False
        try:
            await asyncio.wait_for(self._connect(), timeout=self.cfg.ready_timeout_seconds)
        except asyncio.TimeoutError:
            log_event(
                self._logger,
                "Discord login timeout, continuing without Discord",
                level=logging.WARNING,
                event="platform_timeout",
                platform=self.name,
            )
            return False
        except (PlatformError, httpx.HTTPError, KeyError, TypeError, ValueError, AttributeError) as exc:
            log_event(
                self._logger,
                f"Discord connection failed: {exc}",
                level=logging.ERROR,
                event="platform_connect_failed",
                platform=self.name,
                error=str(exc),
            )
            return False
        log_event(
            self._logger,
            f"Discord bot connected ({len(self._channels)} text channels)",
            event="platform_ready",
            platform=self.name,
            guilds=len(self._guilds),
        )
        return True

    async def _connect(self) -> None:
        me = await self._request("GET", "/users/@me")
        self._user_id = str(me["id"])
        guilds = await self._request("GET", "/users/@me/guilds")
        for guild in guilds:
            guild_id = str(guild["id"])
            state = GuildState(id=guild_id, is_owner=bool(guild.get("owner")))
            roles = await self._request("GET", f"/guilds/{guild_id}/roles")
            state.role_permissions = {str(role["id"]): int(role.get("permissions", 0)) for role in roles}
            member = await self._request("GET", f"/guilds/{guild_id}/members/{self._user_id}")
            state.member_role_ids = [str(role_id) for role_id in member.get("roles", [])]
            self._guilds[guild_id] = state

            channels = await self._request("GET", f"/guilds/{guild_id}/channels")
            for channel in channels:
                if channel.get("type") != GUILD_TEXT_CHANNEL:
                    continue
                channel.setdefault("guild_id", guild_id)
                # First guild wins on duplicate names.
                self._channels.setdefault(channel["name"], channel)

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.cfg.api_base_url,
                headers={"Authorization": f"Bot {self._token}"},
                timeout=self.cfg.request_timeout_seconds,
                transport=self._transport,
            )
        return self._http

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client().request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise PlatformError(f"{type(exc).__name__}: {exc}") from exc
        if resp.status_code >= 400:
            raise PlatformError(f"Discord API {resp.status_code} on {method} {path}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as exc:
            raise PlatformError(f"Discord API returned non-JSON body on {method} {path}: {resp.text[:200]}") from exc
