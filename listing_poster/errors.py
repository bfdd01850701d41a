"""Exceptions raised across the listing poster."""

from __future__ import annotations


class FetchError(Exception):
    """Listing page could not be fetched and the caller asked to propagate."""

    def __init__(self, url: str, reason: str | None) -> None:
        super().__init__(f"Failed to fetch {url}: {reason or 'unknown error'}")
        self.url = url
        self.reason = reason


class PlatformError(Exception):
    """A platform client could not complete an operation."""
