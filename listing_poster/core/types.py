"""
Core data types for the listing poster.

This module defines the fundamental data structures used throughout the pipeline:
- Category: The closed set of product categories that drive routing
- ListingRecord: Structured listing data extracted from a product page
- DispatchResult: Outcome of one send attempt to one destination
- PostResult: Envelope returned by a full pipeline run
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class Category(str, Enum):
    """Product categories, in classifier priority order."""

    TRADING_CARDS = "trading-cards"
    PAINTINGS = "paintings"
    HANDMADE = "handmade"
    COLLECTIBLES = "collectibles"
    GENERAL = "general"


@dataclass(frozen=True)
class ListingRecord:
    """Represents one product listing.

    Attributes:
        title: Listing headline, never empty
        description: Free-text description, may be empty
        price: Price text as shown on the page, may be empty
        images: Absolute http(s) image URLs in page order
        seller: Seller display name, never empty
        category: Category text scraped from the page, may be empty
        source_url: The listing page URL
    """

    title: str
    description: str
    price: str
    seller: str
    source_url: str
    images: tuple[str, ...] = ()
    category: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["images"] = list(self.images)
        return data


@dataclass(frozen=True)
class CategoryRule:
    """Keyword set for one category. Keywords are lowercase substrings."""

    category: Category
    keywords: frozenset[str]


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a single send attempt.

    Exactly one of delivery_id or error is set.

    Attributes:
        platform: Platform name (e.g. "discord")
        destination: Channel/group/board name as configured
        delivery_id: Platform message id on success
        error: Failure reason on failure
    """

    platform: str
    destination: str
    delivery_id: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def outcome(self) -> str:
        return "sent" if self.success else "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "destination": self.destination,
            "success": self.success,
            "delivery_id": self.delivery_id,
            "error": self.error,
        }


@dataclass
class PostResult:
    """Envelope returned by a pipeline run.

    Attributes:
        listing: The (possibly enhanced) listing record
        category: Category derived from the listing text
        destinations: Platform name to ordered destination names
        message: The composed promotional message
        results: One DispatchResult per attempted destination, in attempt order
    """

    listing: ListingRecord
    category: Category
    destinations: dict[str, list[str]]
    message: str
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def sent_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "listing": self.listing.to_dict(),
            "category": self.category.value,
            "destinations": {name: list(items) for name, items in self.destinations.items()},
            "message": self.message,
            "results": [result.to_dict() for result in self.results],
        }
