"""
Core domain models.

This package contains data types that are independent of any
specific pipeline stage.
"""

from .types import Category, CategoryRule, DispatchResult, ListingRecord, PostResult

__all__ = [
    "Category",
    "CategoryRule",
    "DispatchResult",
    "ListingRecord",
    "PostResult",
]
