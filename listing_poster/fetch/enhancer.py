"""URL-based enrichment for placeholder listings."""

from __future__ import annotations

from dataclasses import replace
import logging

from ..config import EnhancerConfig
from ..core.types import ListingRecord
from ..logging_utils import log_event


def enhance_from_url(
    record: ListingRecord,
    source_url: str,
    cfg: EnhancerConfig,
    logger: logging.Logger | None = None,
) -> ListingRecord:
    """Replace placeholder title/description using substrings of the URL.

    Rules are tested in order against the lower-cased URL; the first rule
    with a matching pattern supplies the new title and description. With
    no match the record is returned unchanged.
    """
    url_lower = source_url.lower()
    for rule in cfg.rules:
        if any(pattern in url_lower for pattern in rule.patterns):
            log_event(logger, f"Enhanced listing from URL: {rule.title}", event="enhance_applied", url=source_url)
            return replace(record, title=rule.title, description=rule.description)
    return record
