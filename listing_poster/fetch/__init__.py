"""
Listing page fetching and extraction.

This package handles HTTP fetching with header-profile fallbacks,
selector-based listing extraction, and URL-based enrichment.
"""

from .enhancer import enhance_from_url
from .extractor import extract_listing, fallback_record
from .fetcher import FetchProfile, FetchResult, build_profiles, fetch_listing_page

__all__ = [
    "FetchProfile",
    "FetchResult",
    "build_profiles",
    "enhance_from_url",
    "extract_listing",
    "fallback_record",
    "fetch_listing_page",
]
