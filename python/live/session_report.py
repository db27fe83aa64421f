"""
Resumen de sesion a partir de latency_trades.csv.
Estadisticas por asset y totales para imprimir en consola.
"""

import os

import numpy as np
import pandas as pd

COLUMNS = ["asset", "side", "size_usd", "result", "pnl"]


def load_trades(trades_file: str) -> pd.DataFrame:
    """Lee el CSV de trades; DataFrame vacio si no existe o no tiene filas."""
    if not os.path.exists(trades_file):
        return pd.DataFrame(columns=COLUMNS)
    df = pd.read_csv(trades_file)
    if df.empty:
        return pd.DataFrame(columns=COLUMNS)
    df["pnl"] = pd.to_numeric(df["pnl"], errors="coerce").fillna(0.0)
    df["size_usd"] = pd.to_numeric(df["size_usd"], errors="coerce").fillna(0.0)
    return df


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """
    Una fila por asset + fila TOTAL con:
      trades, wins, losses, win_rate, pnl, volume, roi
    """
    cols = ["trades", "wins", "losses", "win_rate", "pnl", "volume", "roi"]
    if df.empty:
        return pd.DataFrame(columns=cols)

    df = df.assign(win=(df["result"] == "WIN").astype(int))
    grouped = df.groupby("asset").agg(
        trades=("win", "size"),
        wins=("win", "sum"),
        pnl=("pnl", "sum"),
        volume=("size_usd", "sum"),
    )
    total = pd.DataFrame(
        {
            "trades": [len(df)],
            "wins": [int(df["win"].sum())],
            "pnl": [float(df["pnl"].sum())],
            "volume": [float(df["size_usd"].sum())],
        },
        index=["TOTAL"],
    )
    out = pd.concat([grouped, total])
    out["losses"] = out["trades"] - out["wins"]
    out["win_rate"] = out["wins"] / out["trades"]
    out["roi"] = np.where(out["volume"] > 0, out["pnl"] / out["volume"], 0.0)
    return out[cols]


def render(summary: pd.DataFrame) -> str:
    """Tabla de texto para consola."""
    if summary.empty:
        return "  Sin trades liquidados."
    lines = [f"  {'ASSET':6s} {'TRADES':>6s} {'W/L':>7s} {'WR':>6s} {'PNL':>10s} {'ROI':>7s}"]
    for asset, row in summary.iterrows():
        lines.append(
            f"  {asset:6s} {int(row['trades']):6d} "
            f"{int(row['wins']):3d}/{int(row['losses']):<3d} "
            f"{row['win_rate'] * 100:5.1f}% "
            f"${row['pnl']:+9.2f} "
            f"{row['roi'] * 100:+6.1f}%"
        )
    return "\n".join(lines)


def session_report(trades_file: str) -> str:
    return render(summarize(load_trades(trades_file)))
