"""Tests for selector-based listing extraction and URL enrichment."""

from __future__ import annotations

from listing_poster.config import EnhancerConfig, ExtractConfig, FetchConfig
from listing_poster.fetch.enhancer import enhance_from_url
from listing_poster.fetch.extractor import extract_listing, fallback_record, normalize_image_url


URL = "https://www.whatnot.com/listing/abc123"
PADDING = "<!-- " + "padding " * 20 + "-->"


def _page(body: str, head: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}{PADDING}</body></html>"


def test_extracts_all_fields_from_first_matching_selectors():
    html = _page(
        """
        <h1>Charizard Holo 1st Edition</h1>
        <div class="description">Near mint condition, stored in a sleeve since 1999.</div>
        <span class="price">$450.00</span>
        <a class="seller-name">cardshark</a>
        <img src="https://images.whatnot.com/a.jpg">
        """
    )

    record = extract_listing(html, URL, ExtractConfig())

    assert record.title == "Charizard Holo 1st Edition"
    assert record.description == "Near mint condition, stored in a sleeve since 1999."
    assert record.price == "$450.00"
    assert record.seller == "cardshark"
    assert record.images == ("https://images.whatnot.com/a.jpg",)
    assert record.source_url == URL


def test_short_candidates_fall_through_to_later_selectors():
    html = _page(
        """
        <h1>Hi</h1>
        <div class="listing-title">Vintage Brass Compass</div>
        <div class="description">Old</div>
        <div class="details">Working brass compass from the 1940s.</div>
        """
    )

    record = extract_listing(html, URL, ExtractConfig())

    assert record.title == "Vintage Brass Compass"
    assert record.description == "Working brass compass from the 1940s."


def test_meta_description_reads_content_attribute():
    html = _page(
        "<h1>Watercolor Harbor Scene</h1>",
        head='<meta name="description" content="Original watercolor of a harbor at dusk.">',
    )

    record = extract_listing(html, URL, ExtractConfig())

    assert record.description == "Original watercolor of a harbor at dusk."


def test_price_requires_currency_marker():
    html = _page(
        """
        <h1>Handmade Ceramic Mug</h1>
        <div class="price">Ask me</div>
        <div class="cost">€25</div>
        """
    )

    record = extract_listing(html, URL, ExtractConfig())

    assert record.price == "€25"


def test_missing_price_and_seller_use_defaults():
    cfg = ExtractConfig(default_seller="Shop Owner")
    record = extract_listing(_page("<h1>Handmade Ceramic Mug</h1>"), URL, cfg)

    assert record.price == ""
    assert record.description == ""
    assert record.seller == "Shop Owner"


def test_images_are_normalized_and_filtered():
    html = _page(
        """
        <h1>Booster Box</h1>
        <img src="//cdn.example.com/one.png">
        <img src="/relative/two.png">
        <img src="data:image/png;base64,AAAA">
        <img>
        <img src="http://cdn.example.com/three.png">
        """
    )

    record = extract_listing(html, URL, ExtractConfig())

    assert record.images == ("https://cdn.example.com/one.png", "http://cdn.example.com/three.png")


def test_normalize_image_url():
    assert normalize_image_url("//host/x.jpg") == "https://host/x.jpg"
    assert normalize_image_url("https://host/x.jpg") == "https://host/x.jpg"
    assert normalize_image_url("x.jpg") is None
    assert normalize_image_url(None) is None


def test_no_title_yields_sentinel_record():
    cfg = ExtractConfig()
    html = _page("<p>nothing useful here</p><img src='https://cdn.example.com/x.png'>")

    record = extract_listing(html, URL, cfg)

    assert record.title == cfg.fallback_title
    assert record.description == cfg.fallback_description
    assert record.seller == cfg.default_seller


def test_no_title_keeps_price_seller_and_images():
    cfg = ExtractConfig()
    html = _page(
        """
        <h1>Hi</h1>
        <span class="price">$45</span>
        <span class="seller-name">foxbreaks</span>
        <img src="//images.whatnot.com/box.jpg">
        """
    )

    record = extract_listing(html, URL, cfg)

    assert record.title == cfg.fallback_title
    assert record.description == cfg.fallback_description
    assert record.price == "$45"
    assert record.seller == "foxbreaks"
    assert record.images == ("https://images.whatnot.com/box.jpg",)


def test_empty_or_short_markup_yields_fallback_record():
    cfg = ExtractConfig()
    min_length = FetchConfig().min_markup_length

    for markup in (None, "", "<html><h1>Short page title</h1></html>"):
        record = extract_listing(markup, URL, cfg, min_markup_length=min_length)
        assert record == fallback_record(URL, cfg)
        assert record.images == ()


def test_enhancer_uses_first_matching_url_rule():
    cfg = ExtractConfig()
    base = fallback_record("https://whatnot.com/live/yu-gi-oh-magic-night", cfg)

    enhanced = enhance_from_url(base, base.source_url, EnhancerConfig())

    assert enhanced.title == "Yu-Gi-Oh Trading Cards"
    assert enhanced.description == "Rare Yu-Gi-Oh cards and collectibles!"
    assert enhanced.seller == base.seller
    assert base.title == cfg.fallback_title


def test_enhancer_is_case_insensitive():
    base = fallback_record("https://whatnot.com/live/POKEMON-Night", ExtractConfig())

    enhanced = enhance_from_url(base, base.source_url, EnhancerConfig())

    assert enhanced.title == "Pokemon TCG Cards"


def test_enhancer_without_match_returns_record_unchanged():
    base = fallback_record("https://whatnot.com/live/xyz", ExtractConfig())

    assert enhance_from_url(base, base.source_url, EnhancerConfig()) is base
