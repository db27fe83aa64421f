import pandas as pd
import pytest

from live.session_report import load_trades, render, session_report, summarize


def _write(path, rows) -> str:
    pd.DataFrame(rows, columns=["asset", "side", "size_usd", "result", "pnl"]).to_csv(path, index=False)
    return str(path)


def test_missing_file_has_no_trades(tmp_path) -> None:
    assert load_trades(str(tmp_path / "nope.csv")).empty
    assert session_report(str(tmp_path / "nope.csv")) == "  Sin trades liquidados."


def test_summary_per_asset_and_total(tmp_path) -> None:
    path = _write(tmp_path / "trades.csv", [
        ("BTC", "UP", 20.0, "WIN", 20.0),
        ("BTC", "DOWN", 10.0, "LOSS", -10.0),
        ("ETH", "UP", 30.0, "WIN", 15.0),
    ])
    summary = summarize(load_trades(path))

    btc = summary.loc["BTC"]
    assert btc["trades"] == 2
    assert btc["wins"] == 1
    assert btc["losses"] == 1
    assert btc["win_rate"] == pytest.approx(0.5)
    assert btc["roi"] == pytest.approx(10.0 / 30.0)

    total = summary.loc["TOTAL"]
    assert total["trades"] == 3
    assert total["pnl"] == pytest.approx(25.0)
    assert total["volume"] == pytest.approx(60.0)


def test_render_table(tmp_path) -> None:
    path = _write(tmp_path / "trades.csv", [("SOL", "UP", 10.0, "WIN", 5.0)])
    text = render(summarize(load_trades(path)))
    assert "SOL" in text
    assert "TOTAL" in text
    assert "+50.0%" in text
