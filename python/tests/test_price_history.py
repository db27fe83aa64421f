from strategy.price_history import PriceHistory, normalize_asset


def test_normalize_asset() -> None:
    assert normalize_asset("btcusdt") == "BTC"
    assert normalize_asset("ETHUSDT") == "ETH"
    assert normalize_asset(" sol ") == "SOL"


def test_latest_price_and_staleness() -> None:
    h = PriceHistory(max_age=10.0)
    h.record("BTC", 95_000.0, 100.0)
    h.record("btcusdt", 95_100.0, 105.0)

    assert h.get_price("BTC", 110.0) == 95_100.0
    assert h.get_price("BTC", 116.0) is None
    assert h.get_price("ETH", 110.0) is None


def test_age_based_eviction() -> None:
    h = PriceHistory(window_seconds=60.0)
    for t in range(0, 120, 10):
        h.record("ETH", 3000.0 + t, float(t))

    ticks = h.samples("ETH")
    assert ticks[0][0] > 110 - 60
    assert ticks[-1] == (110.0, 3110.0)


def test_capacity_bound() -> None:
    h = PriceHistory(capacity=5)
    for t in range(20):
        h.record("SOL", 150.0, float(t))
    assert len(h.samples("SOL")) == 5


def test_ignores_invalid_prices() -> None:
    h = PriceHistory()
    h.record("BTC", 0.0, 1.0)
    h.record("BTC", float("nan"), 2.0)
    assert len(h) == 0


def test_samples_since() -> None:
    h = PriceHistory()
    for t in range(10):
        h.record("BTC", 100.0, float(t))
    assert [ts for ts, _ in h.samples("BTC", since=6.0)] == [7.0, 8.0, 9.0]
