"""
Promotional message rendering.

Messages use chat-platform markdown (``**bold**``) and are laid out as:

    <emoji> **<title>** <emoji>

    <custom message>

    <description, cut to max_description_chars>

    💰 **Price:** <price>
    🔗 **Check it out:** <url>

    🎨 **Artist:** <seller>
    #Hashtags

Optional sections (custom message, description, price) are omitted when
empty. The description cut is a hard character cut, not word-aware.
"""

from __future__ import annotations

from .config import ComposeConfig
from .core.types import Category, ListingRecord


def pick_emoji(record: ListingRecord, category: Category | str | None, cfg: ComposeConfig) -> str:
    """Pick the header emoji from the title and category text."""
    title = record.title.lower()
    category_value = category.value if isinstance(category, Category) else (category or "")
    category_text = f"{record.category} {category_value}".lower()
    for rule in cfg.emoji_rules:
        if any(k in title for k in rule.title_keywords):
            return rule.emoji
        if any(k in category_text for k in rule.category_keywords):
            return rule.emoji
    return cfg.default_emoji


def truncate_description(description: str, cfg: ComposeConfig) -> str:
    if len(description) > cfg.max_description_chars:
        return description[: cfg.max_description_chars] + cfg.ellipsis
    return description


def compose_message(
    record: ListingRecord,
    custom_message: str | None,
    category: Category | str | None,
    cfg: ComposeConfig,
) -> str:
    """Render the promotional message for a listing."""
    emoji = pick_emoji(record, category, cfg)

    post = f"{emoji} **{record.title}** {emoji}\n\n"
    if custom_message:
        post += f"{custom_message}\n\n"
    if record.description:
        post += f"{truncate_description(record.description, cfg)}\n\n"
    if record.price:
        post += f"{cfg.price_label} {record.price}\n"
    post += f"{cfg.link_label} {record.source_url}\n\n"
    post += f"{cfg.seller_label} {record.seller}\n"
    post += cfg.hashtags
    return post
