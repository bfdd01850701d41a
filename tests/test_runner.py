"""End-to-end pipeline tests with fake fetch and platform collaborators."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from listing_poster import runner
from listing_poster.config import AppConfig
from listing_poster.core.types import Category
from listing_poster.errors import FetchError
from listing_poster.fetch.fetcher import FetchResult
from listing_poster.platforms.base import DestinationHandle, PlatformClient


LISTING_HTML = """
<html><head><title>Whatnot</title></head><body>
<h1>Pokemon Booster Box Opening Live</h1>
<div class="description">Opening rare Pokemon TCG booster packs all night long.</div>
<span class="price">$25</span>
<span class="seller-name">foxbreaks</span>
<img src="//images.whatnot.com/box.jpg">
</body></html>
"""


class _RecordingClient(PlatformClient):
    """Platform client that knows every channel and records sends."""

    name = "discord"

    def __init__(self, ready=True, missing=()):
        self._ready = ready
        self._missing = set(missing)
        self.sent: list[tuple[str, str]] = []

    async def is_ready(self) -> bool:
        return self._ready

    async def find_destination(self, name):
        if name in self._missing:
            return None
        return DestinationHandle(id=name, name=name)

    async def has_send_permission(self, handle):
        return True

    async def send(self, handle, text):
        self.sent.append((handle.name, text))
        return f"m-{len(self.sent)}"


async def _no_sleep(seconds):
    return None


def _fake_fetch(text=None, error=None):
    async def fake(url, cfg, logger=None, transport=None):
        return FetchResult(url=url, status_code=200 if text else None, text=text, error=error)

    return fake


def test_process_listing_end_to_end(monkeypatch):
    monkeypatch.setattr(runner, "fetch_listing_page", _fake_fetch(text=LISTING_HTML))
    client = _RecordingClient(missing=["yugioh"])
    cfg = AppConfig()

    result = asyncio.run(
        runner.process_listing(
            "https://www.whatnot.com/listing/1", "Live at 8!", cfg, {"discord": client}, sleep=_no_sleep
        )
    )

    assert result.listing.title == "Pokemon Booster Box Opening Live"
    assert result.listing.seller == "foxbreaks"
    assert result.listing.images == ("https://images.whatnot.com/box.jpg",)
    assert result.category == Category.TRADING_CARDS
    assert result.destinations == cfg.routing.mappings["trading-cards"]
    assert result.message.startswith("⚡ **Pokemon Booster Box Opening Live** ⚡\n\nLive at 8!")
    assert [(r.destination, r.success) for r in result.results] == [
        ("pokemon-tcg", True),
        ("yugioh", False),
        ("mtg", True),
        ("sports-cards", True),
    ]
    assert [name for name, _ in client.sent] == ["pokemon-tcg", "mtg", "sports-cards"]
    assert result.sent_count == 3


def test_fetch_failure_uses_fallback_and_url_enhancement(monkeypatch):
    monkeypatch.setattr(runner, "fetch_listing_page", _fake_fetch(error="HTTP 403"))
    cfg = AppConfig()

    result = asyncio.run(
        runner.process_listing(
            "https://www.whatnot.com/live/vintage-toys", "", cfg, {}, sleep=_no_sleep
        )
    )

    assert result.listing.title == "Vintage Collectibles"
    assert result.listing.description == "Rare vintage collectible items!"
    assert result.listing.seller == cfg.extract.default_seller
    assert result.category == Category.COLLECTIBLES
    assert result.results == []


def test_fetch_failure_without_url_match_keeps_sentinel(monkeypatch):
    monkeypatch.setattr(runner, "fetch_listing_page", _fake_fetch(error="HTTP 403"))
    cfg = AppConfig()

    result = asyncio.run(runner.process_listing("https://www.whatnot.com/live/xyz", "", cfg, {}, sleep=_no_sleep))

    assert result.listing.title == cfg.extract.fallback_title
    assert result.category == Category.GENERAL


def test_fetch_failure_propagates_when_requested(monkeypatch):
    monkeypatch.setattr(runner, "fetch_listing_page", _fake_fetch(error="HTTP 403"))
    cfg = AppConfig()
    cfg.fetch.propagate_errors = True

    with pytest.raises(FetchError, match="HTTP 403"):
        asyncio.run(runner.process_listing("https://www.whatnot.com/live/xyz", "", cfg, {}, sleep=_no_sleep))


def test_fetch_timeout_resolves_to_fallback(monkeypatch):
    async def slow_fetch(url, cfg, logger=None, transport=None):
        await asyncio.sleep(5)
        return FetchResult(url=url, status_code=200, text=LISTING_HTML, error=None)

    monkeypatch.setattr(runner, "fetch_listing_page", slow_fetch)
    cfg = AppConfig()
    cfg.fetch.total_timeout_seconds = 0.01

    result = asyncio.run(runner.process_listing("https://www.whatnot.com/live/handmade-soap", "", cfg, {}, sleep=_no_sleep))

    assert result.listing.title == "Handmade Crafts"
    assert result.category == Category.HANDMADE


def test_process_listing_with_real_fetcher_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=LISTING_HTML)

    result = asyncio.run(
        runner.process_listing(
            "https://www.whatnot.com/listing/1",
            "",
            AppConfig(),
            {},
            sleep=_no_sleep,
            transport=httpx.MockTransport(handler),
        )
    )

    assert result.listing.price == "$25"
    assert result.category == Category.TRADING_CARDS


def test_process_manual_skips_fetch_and_defaults_title():
    client = _RecordingClient()
    cfg = AppConfig()

    result = asyncio.run(
        runner.process_manual(
            "https://www.whatnot.com/listing/2", "", "Just some random stuff", "", "", cfg, {"discord": client},
            sleep=_no_sleep,
        )
    )

    assert result.listing.title == runner.MANUAL_DEFAULT_TITLE
    assert result.category == Category.GENERAL
    assert [r.destination for r in result.results] == ["general", "marketplace"]


def test_dry_run_composes_without_sending():
    client = _RecordingClient()

    result = asyncio.run(
        runner.process_manual(
            "https://www.whatnot.com/listing/3",
            "Original Landscape Painting",
            "Beautiful acrylic painting on canvas",
            "$300",
            "",
            AppConfig(),
            {"discord": client},
            dry_run=True,
        )
    )

    assert result.category == Category.PAINTINGS
    assert result.results == []
    assert client.sent == []
    assert "$300" in result.message


def test_not_ready_platform_yields_empty_results():
    result = asyncio.run(
        runner.process_manual(
            "https://www.whatnot.com/listing/4", "Random Item", "", "", "", AppConfig(),
            {"discord": _RecordingClient(ready=False)}, sleep=_no_sleep,
        )
    )

    assert result.results == []


def test_post_result_to_dict_envelope():
    result = asyncio.run(
        runner.process_manual(
            "https://www.whatnot.com/listing/5", "Random Item", "", "", "", AppConfig(),
            {"discord": _RecordingClient()}, sleep=_no_sleep,
        )
    )
    payload = result.to_dict()

    assert set(payload) == {"listing", "category", "destinations", "results", "message"}
    assert payload["category"] == "general"
    assert payload["listing"]["images"] == []
    assert payload["results"][0] == {
        "platform": "discord",
        "destination": "general",
        "success": True,
        "delivery_id": "m-1",
        "error": None,
    }


def test_platform_status_reports_each_client():
    clients = {"discord": _RecordingClient(), "reddit": _RecordingClient(ready=False)}

    assert asyncio.run(runner.platform_status(clients)) == {"discord": True, "reddit": False}


def test_platform_status_treats_failing_readiness_as_not_ready():
    class _BrokenClient(_RecordingClient):
        async def is_ready(self) -> bool:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")

    clients = {"discord": _BrokenClient()}

    assert asyncio.run(runner.platform_status(clients)) == {"discord": False}
