import numpy as np
import pytest

from strategy.price_history import PriceHistory
from strategy.volatility import default_volatility, estimate_volatility, sampled_returns

T0 = 1_700_000_000.0


def _history(prices, step=10.0, connected=True) -> PriceHistory:
    h = PriceHistory()
    for i, p in enumerate(prices):
        h.record("BTC", p, T0 + i * step)
    h.connected = connected
    return h


def test_defaults_per_asset() -> None:
    assert default_volatility("BTC") == 1.5
    assert default_volatility("eth") == 2.0
    assert default_volatility("SOLUSDT") == 3.5
    assert default_volatility("DOGE") == 2.5


def test_no_history_uses_default() -> None:
    assert estimate_volatility(None, "ETH", now=T0) == 2.0


def test_disconnected_feed_uses_default() -> None:
    h = _history([100.0, 101.0] * 15, connected=False)
    assert estimate_volatility(h, "BTC", now=T0 + 295) == 1.5


def test_too_few_samples_uses_default() -> None:
    h = _history([100.0, 101.0, 100.0, 101.0, 100.0])
    assert estimate_volatility(h, "BTC", now=T0 + 50) == 1.5


def test_flat_prices_use_default() -> None:
    h = _history([100.0] * 30)
    assert estimate_volatility(h, "BTC", now=T0 + 295) == 1.5


def test_live_volatility_from_ten_second_steps() -> None:
    prices = [100.0, 101.0] * 15
    h = _history(prices)

    returns = [(b - a) / a for a, b in zip(prices, prices[1:])]
    expected = np.std(returns) * np.sqrt(6) * 100

    assert estimate_volatility(h, "BTC", now=T0 + 295) == pytest.approx(expected)


def test_short_window_ignores_older_ticks() -> None:
    h = _history([100.0, 101.0] * 15)
    # 30s de ventana -> 3 ticks, insuficiente
    assert estimate_volatility(h, "BTC", window_minutes=0.5, now=T0 + 295) == 1.5


def test_sampled_returns_skip_close_ticks() -> None:
    ticks = [(0, 100.0), (3, 150.0), (6, 90.0), (10, 110.0), (13, 50.0), (20, 121.0)]
    returns = sampled_returns(ticks)
    assert returns == pytest.approx([0.10, 0.10])
