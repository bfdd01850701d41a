"""
Listing extraction from product-page HTML with ordered fallback probes.

Every field has an ordered list of probes. A probe is a pure function
taking the parsed document and returning a candidate string (or None).
Probes are evaluated in order and the first candidate that passes the
field's quality check wins. Adding a new source means appending a probe
to the list; the control flow does not change.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

from bs4 import BeautifulSoup

from ..config import ExtractConfig
from ..core.types import ListingRecord
from ..logging_utils import log_event, truncate_text


Probe = Callable[[BeautifulSoup], "str | None"]
Check = Callable[[str], bool]


@dataclass
class FieldSpec:
    """Ordered probes for one field plus its acceptance check."""

    name: str
    probes: list[Probe]
    accept: Check


def text_probe(selector: str) -> Probe:
    """Probe returning the stripped text of the first element matching selector."""

    def probe(soup: BeautifulSoup) -> str | None:
        element = soup.select_one(selector)
        if element is None:
            return None
        return element.get_text().strip()

    return probe


def attr_probe(selector: str, attr: str) -> Probe:
    """Probe returning an attribute of the first element matching selector."""

    def probe(soup: BeautifulSoup) -> str | None:
        element = soup.select_one(selector)
        if element is None:
            return None
        value = element.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        return value.strip() if value else None

    return probe


def selector_probe(selector: str) -> Probe:
    """Build a probe for a configured selector.

    ``meta`` elements carry their value in the ``content`` attribute
    rather than in element text.
    """
    if selector.strip().lower().startswith("meta"):
        return attr_probe(selector, "content")
    return text_probe(selector)


def first_match(soup: BeautifulSoup, spec: FieldSpec) -> str | None:
    """Return the first probe value accepted by the field's check."""
    for probe in spec.probes:
        value = probe(soup)
        if value and spec.accept(value):
            return value
    return None


def build_field_specs(cfg: ExtractConfig) -> dict[str, FieldSpec]:
    """Build the probe lists and quality checks for every text field."""
    return {
        "title": FieldSpec(
            name="title",
            probes=[selector_probe(s) for s in cfg.title_selectors],
            accept=lambda value: len(value) > cfg.min_title_length,
        ),
        "description": FieldSpec(
            name="description",
            probes=[selector_probe(s) for s in cfg.description_selectors],
            accept=lambda value: len(value) > cfg.min_description_length,
        ),
        "price": FieldSpec(
            name="price",
            probes=[selector_probe(s) for s in cfg.price_selectors],
            accept=lambda value: any(marker in value for marker in cfg.currency_markers),
        ),
        "seller": FieldSpec(
            name="seller",
            probes=[selector_probe(s) for s in cfg.seller_selectors],
            accept=lambda value: len(value) > 0,
        ),
    }


def normalize_image_url(src: str | None) -> str | None:
    """Return an absolute http(s) image URL, or None if src is not one.

    Protocol-relative references (``//host/path``) become https.
    """
    if not src:
        return None
    src = src.strip()
    if src.startswith("//"):
        src = "https:" + src
    if src.startswith("http://") or src.startswith("https://"):
        return src
    return None


def extract_images(soup: BeautifulSoup) -> tuple[str, ...]:
    """Collect absolute image URLs in document order."""
    images = []
    for img in soup.find_all("img"):
        url = normalize_image_url(img.get("src"))
        if url:
            images.append(url)
    return tuple(images)


def fallback_record(source_url: str, cfg: ExtractConfig) -> ListingRecord:
    """Placeholder listing used when nothing usable could be extracted."""
    return ListingRecord(
        title=cfg.fallback_title,
        description=cfg.fallback_description,
        price="",
        seller=cfg.default_seller,
        source_url=source_url,
    )


def extract_listing(
    markup: str | None,
    source_url: str,
    cfg: ExtractConfig,
    logger: logging.Logger | None = None,
    min_markup_length: int = 0,
) -> ListingRecord:
    """Extract a ListingRecord from raw HTML.

    Never raises. Missing markup, or markup not longer than
    ``min_markup_length``, produces the fallback record. When the page
    parses but no title probe succeeds, only the title and description
    fall back (sentinel title, generic description); price, seller and
    images are still taken from the page.

    Args:
        markup: Raw HTML, or None when the fetch failed
        source_url: The listing page URL
        cfg: Extraction configuration
        logger: Optional logger
        min_markup_length: Markup not longer than this is treated as missing

    Returns:
        A populated ListingRecord
    """
    if not markup or len(markup) <= min_markup_length:
        log_event(
            logger,
            "Markup missing or too short, using fallback listing",
            event="extract_fallback",
            url=source_url,
            length=len(markup or ""),
        )
        return fallback_record(source_url, cfg)

    soup = BeautifulSoup(markup, "html.parser")
    specs = build_field_specs(cfg)

    title = first_match(soup, specs["title"])
    description = first_match(soup, specs["description"]) or ""
    if title is None:
        log_event(logger, "No title found, using sentinel title", event="extract_fallback", url=source_url)
        title = cfg.fallback_title
        description = cfg.fallback_description

    record = ListingRecord(
        title=title,
        description=description,
        price=first_match(soup, specs["price"]) or "",
        seller=first_match(soup, specs["seller"]) or cfg.default_seller,
        source_url=source_url,
        images=extract_images(soup),
    )
    log_event(
        logger,
        f"Extracted listing: {record.title}",
        event="extract_success",
        url=source_url,
        description=truncate_text(record.description),
        price=record.price,
        seller=record.seller,
        images=len(record.images),
    )
    return record
