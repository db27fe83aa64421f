"""
Historial rolling de precios por asset.

Ring buffer de capacidad fija con eviccion por edad (ventana de 5 min).
Lo escribe el feed de Binance; el core de evaluacion solo lo lee.
Thread-safe para uso concurrente.
"""

import math
import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from config import HISTORY_CAPACITY, HISTORY_WINDOW_SECONDS, PRICE_MAX_AGE


def normalize_asset(asset: str) -> str:
    """'btcusdt', 'BTCUSDT' o 'btc' -> 'BTC'."""
    key = asset.strip().upper()
    if key.endswith("USDT") and len(key) > 4:
        key = key[:-4]
    return key


class PriceHistory:
    """
    Precios recientes por asset como tuplas (timestamp, price).
    Timestamps en segundos epoch.
    """

    def __init__(
        self,
        window_seconds: float = HISTORY_WINDOW_SECONDS,
        capacity: int = HISTORY_CAPACITY,
        max_age: float = PRICE_MAX_AGE,
    ):
        self.window_seconds = window_seconds
        self.capacity = capacity
        self.max_age = max_age
        self._ticks: Dict[str, Deque[Tuple[float, float]]] = {}
        self._last_update: Dict[str, float] = {}
        self._connected = False
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._connected

    @connected.setter
    def connected(self, value: bool):
        with self._lock:
            self._connected = bool(value)

    def record(self, asset: str, price: float, timestamp: float):
        """Agrega un tick y descarta los que salen de la ventana."""
        if not math.isfinite(price) or price <= 0:
            return
        key = normalize_asset(asset)
        with self._lock:
            ticks = self._ticks.get(key)
            if ticks is None:
                ticks = deque(maxlen=self.capacity)
                self._ticks[key] = ticks
            ticks.append((timestamp, price))
            self._last_update[key] = timestamp

            cutoff = timestamp - self.window_seconds
            while ticks and ticks[0][0] <= cutoff:
                ticks.popleft()

    def get_price(self, asset: str, now: float) -> Optional[float]:
        """Ultimo precio, o None si no hay o esta stale (> max_age)."""
        key = normalize_asset(asset)
        with self._lock:
            ticks = self._ticks.get(key)
            if not ticks:
                return None
            if now - self._last_update[key] > self.max_age:
                return None
            return ticks[-1][1]

    def age_seconds(self, asset: str, now: float) -> float:
        key = normalize_asset(asset)
        with self._lock:
            last = self._last_update.get(key)
        if last is None:
            return float("inf")
        return now - last

    def samples(self, asset: str, since: Optional[float] = None) -> List[Tuple[float, float]]:
        """Copia de los ticks con timestamp > since (todos si since es None)."""
        key = normalize_asset(asset)
        with self._lock:
            ticks = list(self._ticks.get(key, ()))
        if since is None:
            return ticks
        return [t for t in ticks if t[0] > since]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(t) for t in self._ticks.values())

    def clear(self):
        with self._lock:
            self._ticks.clear()
            self._last_update.clear()
