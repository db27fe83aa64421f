"""
Binance spot price feed (BTC/ETH/SOL).
Usa REST API para maxima fiabilidad (polling en cada iteracion del loop).
Cada precio obtenido se registra en el PriceHistory compartido, que es lo
que lee el evaluador (precio actual + volatilidad).
"""

import json
import time
import threading
import requests
from typing import Dict, Iterable, Optional

from config import ASSETS, BINANCE_REST_URL, BINANCE_SYMBOLS
from strategy.price_history import PriceHistory, normalize_asset


MAX_CONSECUTIVE_ERRORS = 5


def parse_ticker_prices(data) -> Dict[str, float]:
    """
    Respuesta de /api/v3/ticker/price (lista o dict unico) -> {asset: precio}.
    Ignora entradas mal formadas.
    """
    if isinstance(data, dict):
        data = [data]

    prices = {}
    for item in data or []:
        try:
            asset = normalize_asset(item["symbol"])
            price = float(item["price"])
        except (KeyError, TypeError, ValueError):
            continue
        if price > 0:
            prices[asset] = price
    return prices


class BinanceFeed:
    """
    Obtiene precios spot desde Binance y alimenta el historial.
    Thread-safe para uso concurrente.
    """

    def __init__(
        self,
        history: Optional[PriceHistory] = None,
        assets: Iterable[str] = ASSETS,
    ):
        self.history = history if history is not None else PriceHistory()
        self.assets = tuple(normalize_asset(a) for a in assets)
        self._lock = threading.Lock()
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._consecutive_errors = 0
        self._last_update: float = 0.0

    @property
    def symbols(self):
        return [BINANCE_SYMBOLS.get(a, f"{a}USDT") for a in self.assets]

    @property
    def age_seconds(self) -> float:
        with self._lock:
            if self._last_update == 0:
                return float("inf")
            return time.time() - self._last_update

    def fetch_prices(self) -> Dict[str, float]:
        """
        Obtiene el precio actual de todos los assets en una sola request.
        Retorna {asset: precio}; vacio si falla.
        """
        try:
            resp = self._session.get(
                f"{BINANCE_REST_URL}/api/v3/ticker/price",
                params={"symbols": json.dumps(self.symbols, separators=(",", ":"))},
                timeout=5,
            )
            resp.raise_for_status()
            prices = parse_ticker_prices(resp.json())
        except (requests.RequestException, ValueError):
            self._record_error()
            return {}

        if not prices:
            self._record_error()
            return {}

        now = time.time()
        for asset, price in prices.items():
            self.history.record(asset, price, now)

        with self._lock:
            self._last_update = now
            self._consecutive_errors = 0
        self.history.connected = True

        return prices

    def _record_error(self):
        with self._lock:
            self._consecutive_errors += 1
            errors = self._consecutive_errors
        if errors >= MAX_CONSECUTIVE_ERRORS:
            self.history.connected = False

    def get_price(self, asset: str) -> Optional[float]:
        """Ultimo precio fresco del historial (None si stale)."""
        return self.history.get_price(asset, time.time())

    def fetch_kline_open(self, asset: str, timestamp_ms: int) -> Optional[float]:
        """
        Obtiene el precio de apertura de la vela de 1 minuto que contiene
        el timestamp dado. Al inicio de la ventana es el strike de referencia.
        """
        symbol = BINANCE_SYMBOLS.get(normalize_asset(asset), f"{normalize_asset(asset)}USDT")
        try:
            resp = self._session.get(
                f"{BINANCE_REST_URL}/api/v3/klines",
                params={
                    "symbol": symbol,
                    "interval": "1m",
                    "startTime": timestamp_ms,
                    "limit": 1,
                },
                timeout=5,
            )
            resp.raise_for_status()
            data = resp.json()
            if data and len(data) > 0:
                # kline format: [open_time, open, high, low, close, ...]
                return float(data[0][1])  # open price
            return None
        except (requests.RequestException, ValueError, IndexError, TypeError):
            return None

    def fetch_price_at_market_start(self, asset: str, market_start_utc) -> Optional[float]:
        """
        Precio del asset al inicio exacto del mercado.
        market_start_utc: datetime UTC del inicio del mercado.
        """
        ts_ms = int(market_start_utc.timestamp() * 1000)
        return self.fetch_kline_open(asset, ts_ms)

    def is_healthy(self) -> bool:
        """Retorna True si el feed esta funcionando."""
        return self.age_seconds < 10.0 and self._consecutive_errors < MAX_CONSECUTIVE_ERRORS
