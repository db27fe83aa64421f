import numpy as np
import pytest
from scipy.stats import norm

from strategy.probability import (
    compute_edges,
    estimate_probability_up,
    normal_cdf,
)


def test_normal_cdf_matches_reference() -> None:
    for z in np.linspace(-6.0, 6.0, 241):
        assert normal_cdf(z) == pytest.approx(norm.cdf(z), abs=1.5e-7)


def test_normal_cdf_is_symmetric() -> None:
    for z in np.linspace(-5.0, 5.0, 101):
        assert normal_cdf(z) + normal_cdf(-z) == pytest.approx(1.0, abs=1.5e-7)


def test_normal_cdf_at_zero() -> None:
    assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-8)


def test_no_time_left_is_decided() -> None:
    assert estimate_probability_up(0.5, 0, 1.5) == 0.999
    assert estimate_probability_up(-0.5, 0, 1.5) == 0.001
    assert estimate_probability_up(0.0, 0, 1.5) == 0.001


def test_zero_volatility_is_decided() -> None:
    assert estimate_probability_up(0.2, 120, 0.0) == 0.999


def test_tails_are_clamped() -> None:
    assert estimate_probability_up(10.0, 60, 1.0) == 0.9999
    assert estimate_probability_up(-10.0, 60, 1.0) == 0.0001


def test_scenario_btc_above_strike() -> None:
    delta = (95_300 - 95_000) / 95_000 * 100
    p = estimate_probability_up(delta, 120, 1.5)
    assert p == pytest.approx(0.559, abs=1e-3)


def test_monotonic_in_delta() -> None:
    probs = [estimate_probability_up(d, 120, 1.5) for d in np.linspace(-5, 5, 201)]
    assert all(b >= a for a, b in zip(probs, probs[1:]))


def test_monotonic_across_tail_clamp() -> None:
    # Phi(3.9) ya supera el clamp de 0.9999
    probs = [estimate_probability_up(d, 60, 1.0) for d in np.linspace(3.5, 4.5, 101)]
    assert all(b >= a for a, b in zip(probs, probs[1:]))


def test_non_increasing_in_volatility() -> None:
    probs = [estimate_probability_up(0.3, 120, v) for v in np.linspace(0.1, 5.0, 50)]
    assert all(b <= a for a, b in zip(probs, probs[1:]))


def test_edges_against_ask() -> None:
    edge_up, edge_down = compute_edges(0.6, 0.5, 0.45)
    assert edge_up == pytest.approx(0.1)
    assert edge_down == pytest.approx(-0.05)
