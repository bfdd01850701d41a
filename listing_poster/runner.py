"""
Main pipeline orchestration for the listing poster.

This module coordinates the entire workflow:
1. Fetch the listing page (header-profile fallbacks)
2. Extract listing data, or build the fallback listing
3. Enrich placeholder listings from the URL
4. Classify the listing into a category
5. Route the category to destination channels
6. Compose the promotional message
7. Dispatch to every ready platform

Fetch problems never abort a run unless ``fetch.propagate_errors`` is set;
dispatch problems are recorded per destination.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

import httpx

from .classifier import classify
from .composer import compose_message
from .config import AppConfig
from .core.types import ListingRecord, PostResult
from .dispatcher import Dispatcher, Sleep, client_ready
from .errors import FetchError
from .fetch.enhancer import enhance_from_url
from .fetch.extractor import extract_listing
from .fetch.fetcher import FetchResult, fetch_listing_page
from .logging_utils import get_logger, log_event
from .platforms.base import PlatformClient
from .routing import route


MANUAL_DEFAULT_TITLE = "Manual Listing"


async def _fetch_markup(
    source_url: str,
    cfg: AppConfig,
    logger: logging.Logger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | None:
    """Fetch page markup within the caller-imposed timeout.

    Returns None when every profile failed or the timeout elapsed, unless
    ``fetch.propagate_errors`` is set, in which case FetchError is raised.
    """
    try:
        result = await asyncio.wait_for(
            fetch_listing_page(source_url, cfg.fetch, logger=logger, transport=transport),
            timeout=cfg.fetch.total_timeout_seconds,
        )
    except asyncio.TimeoutError:
        result = FetchResult(
            url=source_url,
            status_code=None,
            text=None,
            error=f"Fetch timed out after {cfg.fetch.total_timeout_seconds}s",
        )

    if result.text is None:
        log_event(
            logger,
            f"Could not fetch listing page: {result.error}",
            level=logging.WARNING,
            event="fetch_failed",
            url=source_url,
            error=result.error,
        )
        if cfg.fetch.propagate_errors:
            raise FetchError(source_url, result.error)
        return None
    return result.text


async def build_listing(
    source_url: str,
    cfg: AppConfig,
    logger: logging.Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ListingRecord:
    """Fetch and extract a listing, enriching placeholder results from the URL."""
    logger = logger or get_logger("runner")
    markup = await _fetch_markup(source_url, cfg, logger, transport=transport)
    record = extract_listing(
        markup, source_url, cfg.extract, logger=logger, min_markup_length=cfg.fetch.min_markup_length
    )
    if record.title == cfg.extract.fallback_title:
        record = enhance_from_url(record, source_url, cfg.enhancer, logger=logger)
    return record


def manual_listing(
    source_url: str,
    title: str | None,
    description: str | None,
    price: str | None,
    cfg: AppConfig,
) -> ListingRecord:
    """Build a listing from user-supplied fields, skipping the fetch."""
    return ListingRecord(
        title=(title or "").strip() or MANUAL_DEFAULT_TITLE,
        description=(description or "").strip(),
        price=(price or "").strip(),
        seller=cfg.extract.default_seller,
        source_url=source_url,
    )


async def post_listing(
    record: ListingRecord,
    custom_message: str | None,
    cfg: AppConfig,
    clients: Mapping[str, PlatformClient],
    logger: logging.Logger | None = None,
    sleep: Sleep = asyncio.sleep,
    dry_run: bool = False,
) -> PostResult:
    """Classify, route, compose and dispatch an already-built listing."""
    logger = logger or get_logger("runner")
    category = classify(record, cfg.classifier)
    destinations = route(category, cfg.routing)
    log_event(
        logger,
        f"Classified '{record.title}' as {category.value}",
        event="classified",
        category=category.value,
        platforms=sorted(destinations),
    )
    message = compose_message(record, custom_message, category, cfg.compose)

    results = []
    if not dry_run:
        dispatcher = Dispatcher(cfg.dispatch, logger=logger, sleep=sleep)
        results = await dispatcher.dispatch(message, destinations, clients)

    result = PostResult(
        listing=record,
        category=category,
        destinations=destinations,
        message=message,
        results=results,
    )
    log_event(
        logger,
        f"Posted to {result.sent_count}/{len(results)} destination(s)",
        event="pipeline_done",
        url=record.source_url,
        category=category.value,
        sent=result.sent_count,
        attempted=len(results),
    )
    return result


async def process_listing(
    source_url: str,
    custom_message: str | None,
    cfg: AppConfig,
    clients: Mapping[str, PlatformClient],
    logger: logging.Logger | None = None,
    sleep: Sleep = asyncio.sleep,
    dry_run: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PostResult:
    """Run the full pipeline for a listing URL.

    Raises:
        FetchError: Only when ``cfg.fetch.propagate_errors`` is set and the
            page could not be fetched.
    """
    logger = logger or get_logger("runner")
    log_event(logger, "Processing listing", event="pipeline_start", url=source_url)
    record = await build_listing(source_url, cfg, logger=logger, transport=transport)
    return await post_listing(record, custom_message, cfg, clients, logger=logger, sleep=sleep, dry_run=dry_run)


async def process_manual(
    source_url: str,
    title: str | None,
    description: str | None,
    price: str | None,
    custom_message: str | None,
    cfg: AppConfig,
    clients: Mapping[str, PlatformClient],
    logger: logging.Logger | None = None,
    sleep: Sleep = asyncio.sleep,
    dry_run: bool = False,
) -> PostResult:
    """Run the pipeline for manually entered listing details."""
    record = manual_listing(source_url, title, description, price, cfg)
    return await post_listing(record, custom_message, cfg, clients, logger=logger, sleep=sleep, dry_run=dry_run)


async def platform_status(clients: Mapping[str, PlatformClient]) -> dict[str, bool]:
    """Report readiness per platform."""
    return {name: await client_ready(client) for name, client in clients.items()}


async def close_clients(clients: Mapping[str, PlatformClient]) -> None:
    for client in clients.values():
        await client.aclose()
