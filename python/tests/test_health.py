from live.health import ComponentHealth, HealthMonitor


def test_component_status() -> None:
    comp = ComponentHealth(name="x")
    assert comp.status_str(now=0) == "WAITING"

    comp.record_success(now=100.0)
    assert comp.is_healthy(now=110.0)
    assert comp.status_str(now=200.0) == "DEGRADED"

    for _ in range(5):
        comp.record_error("boom", now=120.0)
    assert comp.status_str(now=121.0) == "ERROR (x5)"


def test_should_rediscover() -> None:
    monitor = HealthMonitor()
    assert monitor.should_rediscover()

    monitor.record("polymarket_discovery", True)
    assert not monitor.should_rediscover()

    for _ in range(3):
        monitor.record("polymarket_discovery", False, "no markets")
    assert monitor.should_rediscover()


def test_wait_recommendation_backoff() -> None:
    monitor = HealthMonitor()
    assert monitor.get_wait_recommendation(0.5) == 0.5

    monitor.record("binance", False, "timeout")
    assert monitor.get_wait_recommendation(0.5) == 2.0

    for _ in range(2):
        monitor.record("binance", False, "timeout")
    assert monitor.get_wait_recommendation(0.5) == 5.0

    monitor.record("binance", True)
    assert monitor.get_wait_recommendation(0.5) == 0.5


def test_status_summary_lists_components() -> None:
    summary = HealthMonitor().get_status_summary()
    assert "Binance Feed" in summary
    assert "Polymarket Prices" in summary
