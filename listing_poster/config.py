"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: Listing page fetch profiles and timeouts
- ExtractConfig: Selector lists, quality thresholds and fallback values
- EnhancerConfig: URL substring rules for placeholder listings
- ClassifierConfig: Ordered category keyword rules
- ComposeConfig: Message layout settings
- RoutingConfig: Category to platform channel mapping
- DispatchConfig: Send cooldown
- PlatformsConfig: Chat platform credentials
- ServerConfig: HTTP service settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


CATEGORY_NAMES = ("trading-cards", "paintings", "handmade", "collectibles", "general")

_BROWSER_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) Gecko/20100101 Firefox/120.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
]


@dataclass
class FetchConfig:
    """Configuration for fetching listing pages.

    Attributes:
        user_agents: Browser user agents, tried in order
        browser_headers: Extra headers sent with every browser profile
        browser_timeout_seconds: Per-request timeout for browser profiles
        max_redirects: Redirect limit for browser profiles
        basic_user_agent: User agent of the minimal-header last attempt
        basic_timeout_seconds: Timeout of the minimal-header attempt
        min_markup_length: Markup not longer than this is treated as a failed fetch
        total_timeout_seconds: Caller-imposed limit on the whole fetch step
        propagate_errors: Raise FetchError instead of using the fallback listing
        trust_env: Whether to respect system proxy settings
    """

    user_agents: list[str] = field(default_factory=lambda: list(_BROWSER_USER_AGENTS))
    browser_headers: dict[str, str] = field(
        default_factory=lambda: {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Cache-Control": "max-age=0",
        }
    )
    browser_timeout_seconds: float = 15.0
    max_redirects: int = 5
    basic_user_agent: str = "PostmanRuntime/7.32.0"
    basic_timeout_seconds: float = 10.0
    min_markup_length: int = 100
    total_timeout_seconds: float | None = 60.0
    propagate_errors: bool = False
    trust_env: bool = True


@dataclass
class ExtractConfig:
    """Configuration for listing extraction from HTML.

    Selector lists are tried in order; the first element whose text passes
    the field's quality check wins.

    Attributes:
        title_selectors: CSS selectors for the listing title
        description_selectors: CSS selectors for the description
        price_selectors: CSS selectors for the price
        seller_selectors: CSS selectors for the seller name
        min_title_length: Titles must be longer than this
        min_description_length: Descriptions must be longer than this
        currency_markers: Substrings that mark a candidate as a price
        fallback_title: Sentinel title used when no title could be found
        fallback_description: Generic description paired with the sentinel
        default_seller: Seller used when no seller element is present
    """

    title_selectors: list[str] = field(
        default_factory=lambda: [
            "h1",
            '[data-testid="title"]',
            ".listing-title",
            ".title",
            "title",
            '[class*="title"]',
            '[class*="heading"]',
        ]
    )
    description_selectors: list[str] = field(
        default_factory=lambda: [
            ".description",
            '[data-testid="description"]',
            ".listing-description",
            '[class*="description"]',
            'meta[name="description"]',
            ".content",
            ".details",
        ]
    )
    price_selectors: list[str] = field(
        default_factory=lambda: [
            ".price",
            '[data-testid="price"]',
            ".listing-price",
            '[class*="price"]',
            ".cost",
            ".amount",
        ]
    )
    seller_selectors: list[str] = field(
        default_factory=lambda: [
            ".seller-name",
            '[data-testid="seller"]',
            ".username",
            ".host",
            '[class*="seller"]',
            '[class*="user"]',
        ]
    )
    min_title_length: int = 3
    min_description_length: int = 10
    currency_markers: list[str] = field(default_factory=lambda: ["$", "€", "£", "¥", "฿", "price"])
    fallback_title: str = "Featured Listing"
    fallback_description: str = "Check out this awesome item! Visit the link to see more details."
    default_seller: str = "Independent Seller"


@dataclass
class UrlRule:
    """One URL substring rule for the enhancer."""

    patterns: list[str]
    title: str
    description: str


@dataclass
class EnhancerConfig:
    """Configuration for URL-based enrichment of placeholder listings."""

    rules: list[UrlRule] = field(
        default_factory=lambda: [
            UrlRule(["pokemon"], "Pokemon TCG Cards", "Check out these amazing Pokemon trading cards!"),
            UrlRule(["yugioh", "yu-gi-oh"], "Yu-Gi-Oh Trading Cards", "Rare Yu-Gi-Oh cards and collectibles!"),
            UrlRule(["mtg", "magic"], "Magic The Gathering Cards", "MTG cards and booster packs!"),
            UrlRule(["art", "painting"], "Original Artwork", "Beautiful original art pieces!"),
            UrlRule(["vintage", "collectible"], "Vintage Collectibles", "Rare vintage collectible items!"),
            UrlRule(["handmade", "craft"], "Handmade Crafts", "Beautiful handcrafted items!"),
        ]
    )


@dataclass
class CategoryRuleConfig:
    """Keyword set for one category."""

    category: str
    keywords: list[str]


@dataclass
class ClassifierConfig:
    """Ordered category rules. The first rule with a matching keyword wins."""

    rules: list[CategoryRuleConfig] = field(
        default_factory=lambda: [
            CategoryRuleConfig(
                "trading-cards",
                [
                    "pokemon", "yugioh", "mtg", "magic the gathering", "card", "tcg",
                    "baseball", "football", "basketball", "sports card", "booster", "pack",
                ],
            ),
            CategoryRuleConfig(
                "paintings",
                [
                    "painting", "canvas", "artwork", "acrylic", "watercolor",
                    "oil painting", "art", "original art", "hand painted",
                ],
            ),
            CategoryRuleConfig(
                "handmade",
                ["handmade", "custom", "craft", "diy", "artisan", "handcrafted", "made to order"],
            ),
            CategoryRuleConfig(
                "collectibles",
                ["vintage", "collectible", "rare", "antique", "limited edition", "exclusive"],
            ),
        ]
    )


@dataclass
class EmojiRule:
    """Emoji picked when the title or category text contains a keyword."""

    emoji: str
    title_keywords: list[str]
    category_keywords: list[str] = field(default_factory=list)


@dataclass
class ComposeConfig:
    """Configuration for promotional message layout.

    Attributes:
        max_description_chars: Descriptions longer than this are hard-cut
        ellipsis: Suffix appended to a cut description
        price_label: Price line prefix
        link_label: Link line prefix
        seller_label: Seller attribution line prefix
        hashtags: Fixed hashtag suffix closing every message
        default_emoji: Emoji used when no rule matches
        emoji_rules: Ordered emoji rules
    """

    max_description_chars: int = 200
    ellipsis: str = "..."
    price_label: str = "💰 **Price:**"
    link_label: str = "🔗 **Check it out:**"
    seller_label: str = "🎨 **Artist:**"
    hashtags: str = "#ShopSmall #WhatnotFinds #Art"
    default_emoji: str = "✨"
    emoji_rules: list[EmojiRule] = field(
        default_factory=lambda: [
            EmojiRule("⚡", ["pokemon"], ["pokemon"]),
            EmojiRule("🃏", ["yugioh"], ["yugioh"]),
            EmojiRule("🎭", ["mtg", "magic"]),
            EmojiRule("🎨", ["painting"], ["art"]),
            EmojiRule("🎯", ["card"], ["card"]),
            EmojiRule("🏆", ["vintage", "collectible"]),
            EmojiRule("✋", ["handmade", "custom"]),
        ]
    )


@dataclass
class RoutingConfig:
    """Category to platform to channel-name table. Must contain "general"."""

    mappings: dict[str, dict[str, list[str]]] = field(
        default_factory=lambda: {
            "trading-cards": {
                "discord": ["pokemon-tcg", "yugioh", "mtg", "sports-cards"],
                "facebook": ["pokemon-card-collectors", "trading-card-marketplace"],
                "reddit": ["PokemonTCG", "YuGiOhTCG", "magicTCG", "sportscards"],
            },
            "paintings": {
                "discord": ["art-community", "original-art"],
                "facebook": ["art-for-sale", "local-artists"],
                "reddit": ["Art", "painting", "ArtForSale"],
            },
            "collectibles": {
                "discord": ["collectibles", "vintage-items"],
                "facebook": ["collectors-marketplace"],
                "reddit": ["collectibles", "vintage"],
            },
            "handmade": {
                "discord": ["handmade-crafts", "art-community"],
                "facebook": ["handmade-marketplace", "local-crafters"],
                "reddit": ["handmade", "crafts", "ArtisanGifts"],
            },
            "general": {
                "discord": ["general", "marketplace"],
                "facebook": ["general-marketplace"],
                "reddit": ["Art", "crafts"],
            },
        }
    )


@dataclass
class DispatchConfig:
    """Configuration for message dispatch.

    Attributes:
        cooldown_seconds: Delay after every send, successful or not
    """

    cooldown_seconds: float = 2.0


@dataclass
class DiscordConfig:
    """Configuration for the Discord bot client.

    Attributes:
        enabled: Whether to build a Discord client at all
        token: Inline bot token (overrides the env var)
        token_env: Environment variable holding the bot token
        api_base_url: Discord REST API root
        ready_timeout_seconds: Limit on the login/channel discovery step
        request_timeout_seconds: Per-request HTTP timeout
    """

    enabled: bool = True
    token: str | None = None
    token_env: str = "DISCORD_BOT_TOKEN"
    api_base_url: str = "https://discord.com/api/v10"
    ready_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 15.0


@dataclass
class PlatformsConfig:
    """Per-platform client configuration."""

    discord: DiscordConfig = field(default_factory=DiscordConfig)


@dataclass
class ServerConfig:
    """Configuration for the HTTP service."""

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Path of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "listing-poster.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    enhancer: EnhancerConfig = field(default_factory=EnhancerConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    compose: ComposeConfig = field(default_factory=ComposeConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    platforms: PlatformsConfig = field(default_factory=PlatformsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    cfg = _fromdict(data)
    validate_config(cfg)
    return cfg


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    enhancer = data["enhancer"]
    classifier = data["classifier"]
    compose = dict(data["compose"])
    compose["emoji_rules"] = [EmojiRule(**rule) for rule in compose.get("emoji_rules", [])]
    platforms = data["platforms"]
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        enhancer=EnhancerConfig(rules=[UrlRule(**rule) for rule in enhancer.get("rules", [])]),
        classifier=ClassifierConfig(
            rules=[CategoryRuleConfig(**rule) for rule in classifier.get("rules", [])]
        ),
        compose=ComposeConfig(**compose),
        routing=RoutingConfig(**data["routing"]),
        dispatch=DispatchConfig(**data["dispatch"]),
        platforms=PlatformsConfig(discord=DiscordConfig(**platforms.get("discord", {}))),
        server=ServerConfig(**data["server"]),
        logging=LoggingConfig(**data["logging"]),
    )


def validate_config(cfg: AppConfig) -> None:
    """Reject category names outside the closed set and a missing general mapping."""
    if "general" not in cfg.routing.mappings:
        raise ValueError("routing.mappings must contain a 'general' entry")
    for name in cfg.routing.mappings:
        if name not in CATEGORY_NAMES:
            raise ValueError(f"Unknown category in routing.mappings: {name}")
    for rule in cfg.classifier.rules:
        if rule.category not in CATEGORY_NAMES:
            raise ValueError(f"Unknown category in classifier.rules: {rule.category}")


def get_discord_token(cfg: DiscordConfig) -> str | None:
    """Get the bot token from inline config or environment variable."""
    if cfg.token:
        return cfg.token
    return os.getenv(cfg.token_env)
