"""
HTTP fetching of listing pages with header-profile fallbacks.

Marketplace sites frequently reject automated requests, so a page is
requested with several browser-like header profiles in turn, and finally
with a minimal-header profile, before the caller gives up and falls back
to a placeholder listing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

import httpx

from ..config import FetchConfig
from ..logging_utils import log_event


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
        profile: Name of the header profile that produced the result
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None
    profile: str | None = None


@dataclass
class FetchProfile:
    """One set of request options to try.

    Attributes:
        name: Label used in logs
        headers: Request headers
        timeout: Request timeout in seconds
        max_redirects: Redirect limit
        min_length: Bodies not longer than this count as a failure (0 disables)
    """
    name: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 15.0
    max_redirects: int = 5
    min_length: int = 0


def build_profiles(cfg: FetchConfig) -> list[FetchProfile]:
    """Build the ordered profile list: browsers first, minimal headers last."""
    profiles = []
    for user_agent in cfg.user_agents:
        headers = {"User-Agent": user_agent}
        headers.update(cfg.browser_headers)
        profiles.append(
            FetchProfile(
                name=user_agent.split(" ")[0] + " " + _platform_hint(user_agent),
                headers=headers,
                timeout=cfg.browser_timeout_seconds,
                max_redirects=cfg.max_redirects,
                min_length=cfg.min_markup_length,
            )
        )
    profiles.append(
        FetchProfile(
            name="basic",
            headers={"User-Agent": cfg.basic_user_agent},
            timeout=cfg.basic_timeout_seconds,
            max_redirects=cfg.max_redirects,
        )
    )
    return profiles


async def fetch_with_profile(
    url: str,
    profile: FetchProfile,
    trust_env: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResult:
    """Fetch a URL once with the given profile.

    Redirects are followed up to the profile's limit. Any status >= 400
    and any body not longer than ``profile.min_length`` is a failure.
    """
    try:
        async with httpx.AsyncClient(
            timeout=profile.timeout,
            headers=profile.headers,
            follow_redirects=True,
            max_redirects=profile.max_redirects,
            trust_env=trust_env,
            transport=transport,
        ) as client:
            resp = await client.get(url)
    except Exception as exc:  # noqa: BLE001
        return FetchResult(
            url=url, status_code=None, text=None, error=f"{type(exc).__name__}: {exc}", profile=profile.name
        )

    if resp.status_code >= 400:
        return FetchResult(
            url=url, status_code=resp.status_code, text=None, error=f"HTTP {resp.status_code}", profile=profile.name
        )
    text = resp.text
    if profile.min_length and len(text) <= profile.min_length:
        return FetchResult(
            url=url,
            status_code=resp.status_code,
            text=None,
            error=f"Response too short ({len(text)} chars)",
            profile=profile.name,
        )
    return FetchResult(url=url, status_code=resp.status_code, text=text, error=None, profile=profile.name)


async def fetch_listing_page(
    url: str,
    cfg: FetchConfig,
    logger: logging.Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResult:
    """Fetch a listing page, trying each header profile in order.

    Args:
        url: The listing URL
        cfg: Fetch configuration
        logger: Optional logger for per-attempt events
        transport: Optional httpx transport (used by tests)

    Returns:
        The first successful FetchResult, or the last failure
    """
    last: FetchResult | None = None
    for profile in build_profiles(cfg):
        log_event(logger, f"Fetching with profile {profile.name}", event="fetch_attempt", url=url, profile=profile.name)
        result = await fetch_with_profile(url, profile, trust_env=cfg.trust_env, transport=transport)
        if result.text is not None:
            log_event(
                logger,
                "Fetched listing page",
                event="fetch_success",
                url=url,
                profile=profile.name,
                status_code=result.status_code,
                length=len(result.text),
            )
            return result
        log_event(
            logger,
            f"Profile {profile.name} failed: {result.error}",
            level=logging.WARNING,
            event="fetch_failed",
            url=url,
            profile=profile.name,
            error=result.error,
        )
        last = result
    if last is None:
        return FetchResult(url=url, status_code=None, text=None, error="No fetch profiles configured")
    return last


def _platform_hint(user_agent: str) -> str:
    if "(" not in user_agent:
        return ""
    inner = user_agent.split("(", 1)[1].split(")", 1)[0]
    return f"({inner.split(';')[0]})"
