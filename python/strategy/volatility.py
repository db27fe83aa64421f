"""
Estimador de volatilidad por minuto (en %).

Usa el historial rolling de precios si hay datos suficientes:
  - muestrea cada ~10s dentro de la ventana
  - std de los cambios porcentuales entre muestras
  - escala a por-minuto con sqrt(6) (6 pasos de 10s = 1 min)
Si no hay datos suficientes, o el feed esta desconectado, o la vol sale 0,
usa defaults estaticos por asset.
"""

import time
from typing import List, Optional

import numpy as np

from config import (
    DEFAULT_VOLATILITY,
    DEFAULT_VOLATILITY_OTHER,
    MIN_HISTORY_SAMPLES,
    MIN_VOLATILITY_STEPS,
    VOLATILITY_SAMPLE_SECONDS,
    VOLATILITY_WINDOW_MINUTES,
)
from strategy.price_history import PriceHistory, normalize_asset


def default_volatility(asset: str) -> float:
    """Vol estatica por asset (% por minuto)."""
    return DEFAULT_VOLATILITY.get(normalize_asset(asset), DEFAULT_VOLATILITY_OTHER)


def sampled_returns(ticks, sample_seconds: float = VOLATILITY_SAMPLE_SECONDS) -> List[float]:
    """
    Cambios porcentuales entre ticks separados al menos sample_seconds.
    ticks: lista de (timestamp, price) ordenada por tiempo.
    """
    returns = []
    if not ticks:
        return returns
    last_ts, last_price = ticks[0]
    for ts, price in ticks[1:]:
        if ts - last_ts >= sample_seconds:
            returns.append((price - last_price) / last_price)
            last_ts, last_price = ts, price
    return returns


def estimate_volatility(
    history: Optional[PriceHistory],
    asset: str,
    window_minutes: float = VOLATILITY_WINDOW_MINUTES,
    now: Optional[float] = None,
) -> float:
    """
    Volatilidad por minuto en % para el asset.
    Lectura pura del historial compartido; no lo modifica.
    """
    fallback = default_volatility(asset)

    if history is None or not history.connected:
        return fallback

    if now is None:
        now = time.time()

    recent = history.samples(asset, since=now - window_minutes * 60.0)
    if len(recent) < MIN_HISTORY_SAMPLES:
        return fallback

    returns = sampled_returns(recent)
    if len(returns) < MIN_VOLATILITY_STEPS:
        return fallback

    # ddof=0 (divide por n), igual que el feed original
    vol = float(np.std(returns)) * np.sqrt(6) * 100.0
    if not np.isfinite(vol) or vol <= 0:
        return fallback

    return float(vol)
