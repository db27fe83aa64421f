import json
from datetime import datetime, timedelta, timezone

import pytest

from live.polymarket_client import (
    BookTop,
    PolymarketClient,
    build_slug,
    merge_markets,
    parse_event,
    parse_orderbook,
    parse_strike,
    window_start,
)
from strategy.models import Market

START = datetime(2024, 1, 1, 10, 30, tzinfo=timezone.utc)


def _event(outcomes='["Up", "Down"]', tokens='["111", "222"]', meta=None) -> dict:
    market = {
        "conditionId": "0xcond",
        "question": "Bitcoin Up or Down?",
        "clobTokenIds": tokens,
        "outcomes": outcomes,
    }
    event = {"title": "Bitcoin Up or Down - 10:30AM", "markets": [market]}
    if meta is not None:
        event["eventMetadata"] = meta
    return event


def test_window_start_aligns_to_grid() -> None:
    now = datetime(2024, 1, 1, 10, 37, 12, tzinfo=timezone.utc)
    assert window_start(now, 15) == START
    assert window_start(now, 5) == datetime(2024, 1, 1, 10, 35, tzinfo=timezone.utc)


def test_build_slug() -> None:
    assert build_slug("BTC", 15, START) == "btc-updown-15m-1704105000"


def test_parse_event() -> None:
    slug = build_slug("BTC", 15, START)
    market = parse_event(_event(meta={"priceToBeat": 95000.5}), "btc", 15, START, slug)

    assert market.condition_id == "0xcond"
    assert market.up_token_id == "111"
    assert market.down_token_id == "222"
    assert market.asset == "BTC"
    assert market.market_type == "15-MIN"
    assert market.end_time == datetime(2024, 1, 1, 10, 45, tzinfo=timezone.utc)
    assert market.strike_price == 95000.5
    assert market.position_key == "BTC-15-MIN-0xcond"


def test_parse_event_reversed_outcomes() -> None:
    market = parse_event(_event(outcomes=["Down", "Up"]), "ETH", 15, START, "s")
    assert market.up_token_id == "222"
    assert market.down_token_id == "111"
    assert market.strike_price is None


def test_parse_event_rejects_incomplete() -> None:
    assert parse_event({"markets": []}, "BTC", 15, START, "s") is None
    assert parse_event(_event(outcomes='["Yes", "No"]'), "BTC", 15, START, "s") is None
    assert parse_event(_event(tokens='["111"]'), "BTC", 15, START, "s") is None


def test_parse_strike_variants() -> None:
    assert parse_strike({"eventMetadata": json.dumps({"priceToBeat": "3100.25"})}) == 3100.25
    assert parse_strike({}, {"eventMetadata": {"priceToBeat": 150}}) == 150.0
    assert parse_strike({"eventMetadata": {"priceToBeat": 0}}) is None
    assert parse_strike({"eventMetadata": "not json"}) is None


def test_parse_orderbook() -> None:
    book = parse_orderbook({
        "bids": [{"price": "0.48", "size": "100"}, {"price": "0.50", "size": "10"}],
        "asks": [{"price": "0.55", "size": "20"}, {"price": "0.52", "size": "50"}],
    })
    assert book.bid == 0.50
    assert book.ask == 0.52
    assert book.ask_depth == pytest.approx(0.52 * 50 + 0.55 * 20)


def test_parse_orderbook_depth_levels() -> None:
    asks = [{"price": str(0.50 + i / 100), "size": "10"} for i in range(8)]
    book = parse_orderbook({"asks": asks}, depth_levels=2)
    assert book.ask_depth == pytest.approx(0.50 * 10 + 0.51 * 10)


def test_parse_empty_orderbook() -> None:
    book = parse_orderbook({"bids": [], "asks": [{"price": "bad", "size": "1"}]})
    assert book.bid == 0.0
    assert book.ask == 1.0
    assert book.ask_depth == 0.0


# ------------------------------------------------------------------
# Strike fill, price cache, rediscovery
# ------------------------------------------------------------------

OPEN_TS = START.timestamp()


class FakeFeed:
    def __init__(self, price):
        self.price = price
        self.calls = []

    def fetch_price_at_market_start(self, asset, start):
        self.calls.append((asset, start))
        return self.price


def _market(cid="0xcond", strike=None) -> Market:
    return Market(
        condition_id=cid,
        up_token_id=f"{cid}-up",
        down_token_id=f"{cid}-down",
        end_time=START + timedelta(minutes=15),
        asset="BTC",
        slug=build_slug("BTC", 15, START),
        start_time=START,
        strike_price=strike,
    )


def _client(monkeypatch, event=None) -> tuple:
    client = PolymarketClient()
    slugs = []

    def fake_fetch_event(slug):
        slugs.append(slug)
        return event

    monkeypatch.setattr(client, "_fetch_event", fake_fetch_event)
    return client, slugs


def test_strike_from_price_to_beat(monkeypatch) -> None:
    client, slugs = _client(monkeypatch, _event(meta={"priceToBeat": 95000.5}))
    feed = FakeFeed(94_000.0)

    (market,) = client.fill_missing_strikes([_market()], feed, now=OPEN_TS + 60)

    assert market.strike_price == 95000.5
    assert slugs == ["btc-updown-15m-1704105000"]
    assert feed.calls == []


def test_strike_falls_back_to_kline_open(monkeypatch) -> None:
    client, _ = _client(monkeypatch, _event())
    feed = FakeFeed(94_321.0)

    (market,) = client.fill_missing_strikes([_market()], feed, now=OPEN_TS + 60)

    assert market.strike_price == 94_321.0
    assert feed.calls == [("BTC", START)]


def test_strike_waits_for_window_start(monkeypatch) -> None:
    client, slugs = _client(monkeypatch, _event())
    feed = FakeFeed(94_321.0)

    (market,) = client.fill_missing_strikes([_market()], feed, now=OPEN_TS - 30)

    assert market.strike_price is None
    assert slugs == []
    assert feed.calls == []


def test_existing_strike_is_kept(monkeypatch) -> None:
    client, slugs = _client(monkeypatch, _event(meta={"priceToBeat": 1.0}))
    original = _market(strike=95_000.0)

    (market,) = client.fill_missing_strikes([original], FakeFeed(1.0), now=OPEN_TS + 60)

    assert market is original
    assert slugs == []


def test_strike_retry_is_throttled(monkeypatch) -> None:
    client, slugs = _client(monkeypatch, None)
    feed = FakeFeed(None)
    markets = [_market()]

    client.fill_missing_strikes(markets, feed, now=OPEN_TS + 60)
    client.fill_missing_strikes(markets, feed, now=OPEN_TS + 61)
    assert len(slugs) == 1
    assert len(feed.calls) == 1

    client.fill_missing_strikes(markets, feed, now=OPEN_TS + 60 + client.strike_retry)
    assert len(slugs) == 2


def test_market_prices_are_cached(monkeypatch) -> None:
    client = PolymarketClient(cache_ttl=5.0)
    requested = []

    def fake_orderbook(token_id):
        requested.append(token_id)
        return BookTop(bid=0.48, ask=0.50, ask_depth=120.0)

    monkeypatch.setattr(client, "fetch_orderbook", fake_orderbook)
    market = _market()

    first = client.fetch_market_prices(market, now=1000.0)
    assert requested == ["0xcond-up", "0xcond-down"]
    assert first.up_ask == 0.50
    assert first.down_ask_depth == 120.0

    assert client.fetch_market_prices(market, now=1004.0) is first
    assert len(requested) == 2

    client.fetch_market_prices(market, now=1005.5)
    assert len(requested) == 4


def test_failed_orderbook_is_not_cached(monkeypatch) -> None:
    client = PolymarketClient()
    monkeypatch.setattr(client, "fetch_orderbook", lambda token_id: None)
    assert client.fetch_market_prices(_market(), now=1000.0) is None
    assert client._price_cache == {}


def test_merge_markets_keeps_filled_strikes() -> None:
    known = [_market("a", strike=95_000.0), _market("b")]
    found = [_market("a"), _market("b", strike=96_000.0), _market("c")]

    merged = merge_markets(known, found)

    assert [m.condition_id for m in merged] == ["a", "b", "c"]
    assert merged[0].strike_price == 95_000.0
    assert merged[1].strike_price == 96_000.0
    assert merged[2].strike_price is None
