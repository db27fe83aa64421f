import live.settings as settings
from strategy.latency import LatencyConfig


def test_latency_config_from_settings() -> None:
    cfg = settings.get_latency_config()
    assert cfg.min_edge == settings.MIN_EDGE
    assert cfg.min_time_remaining == settings.MIN_TIME_REMAINING
    assert cfg.max_time_remaining == settings.MAX_TIME_REMAINING
    assert cfg.kelly_fraction == settings.KELLY_FRACTION
    assert cfg.max_position_size == settings.MAX_POSITION_SIZE
    assert cfg.min_position_size == settings.MIN_POSITION_SIZE
    assert cfg.bankroll == 1000.0


def test_defaults_match_evaluator_defaults() -> None:
    assert settings.get_latency_config() == LatencyConfig()
