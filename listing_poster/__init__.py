"""
Listing Poster - category-aware promotion of marketplace listings.

This package scrapes a product-listing page, classifies the product with
keyword rules, composes a promotional message and posts it to the chat
channels configured for that category.

Main entry point is the CLI via the `listing-poster` command.

Example:
    $ listing-poster post https://www.whatnot.com/listing/... -m "Live tonight!"
"""

__all__ = [
    "__version__",
    "Category",
    "ListingRecord",
    "DispatchResult",
    "PostResult",
    "process_listing",
    "process_manual",
]
__version__ = "0.1.0"

from .core.types import Category, DispatchResult, ListingRecord, PostResult
from .runner import process_listing, process_manual
