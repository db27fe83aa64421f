"""
Polymarket API client para descubrimiento y precios de mercados
'Up or Down' de BTC/ETH/SOL.

APIs:
  - Gamma: https://gamma-api.polymarket.com  (descubrimiento de mercados)
  - CLOB:  https://clob.polymarket.com       (order book)
"""

import time
import json
import requests
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass

from config import ASSETS, CLOB_API, GAMMA_API, PRICE_CACHE_TTL, STRIKE_RETRY_INTERVAL
from strategy.models import Market, MarketPrices

# Niveles del book que cuentan como liquidez visible
DEPTH_LEVELS = 5


@dataclass(frozen=True)
class BookTop:
    """Mejor bid/ask de un token + profundidad ask en USD."""
    bid: float
    ask: float
    ask_depth: float


# ------------------------------------------------------------------
# Parsing (funciones puras)
# ------------------------------------------------------------------

def window_start(now: datetime, window_minutes: int) -> datetime:
    """Inicio de la ventana que contiene `now` (alineada a la hora UTC)."""
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed_min = int((now - day_start).total_seconds() // 60)
    start_min = (elapsed_min // window_minutes) * window_minutes
    return day_start + timedelta(minutes=start_min)


def build_slug(asset: str, window_minutes: int, start: datetime) -> str:
    """Slug format: {asset}-updown-{N}m-{unix_timestamp}"""
    return f"{asset.lower()}-updown-{window_minutes}m-{int(start.timestamp())}"


def _json_list(value) -> list:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    return value if isinstance(value, list) else []


def parse_strike(event: dict, market: Optional[dict] = None) -> Optional[float]:
    """'priceToBeat' del eventMetadata, si ya fue publicado."""
    for source in (event, market or {}):
        meta = source.get("eventMetadata") or {}
        if isinstance(meta, str):
            try:
                meta = json.loads(meta)
            except ValueError:
                meta = {}
        raw = meta.get("priceToBeat") if isinstance(meta, dict) else None
        if raw is None:
            continue
        try:
            strike = float(raw)
        except (TypeError, ValueError):
            continue
        if strike > 0:
            return strike
    return None


def parse_event(
    event: dict,
    asset: str,
    window_minutes: int,
    start: datetime,
    slug: str,
) -> Optional[Market]:
    """Evento de Gamma -> Market, o None si faltan tokens/outcomes."""
    markets = event.get("markets") or []
    if not markets:
        return None
    raw = markets[0]

    token_ids = _json_list(raw.get("clobTokenIds"))
    outcomes = _json_list(raw.get("outcomes"))

    up_idx = None
    down_idx = None
    for i, o in enumerate(outcomes):
        if str(o).lower() == "up":
            up_idx = i
        elif str(o).lower() == "down":
            down_idx = i

    if up_idx is None or down_idx is None:
        return None
    if len(token_ids) <= max(up_idx, down_idx):
        return None

    return Market(
        condition_id=raw.get("conditionId", ""),
        up_token_id=str(token_ids[up_idx]),
        down_token_id=str(token_ids[down_idx]),
        end_time=start + timedelta(minutes=window_minutes),
        asset=asset.upper(),
        market_type=f"{window_minutes}-MIN",
        slug=slug,
        title=event.get("title", raw.get("question", f"Market {slug}")),
        start_time=start,
        strike_price=parse_strike(event, raw),
    )


def parse_orderbook(data: dict, depth_levels: int = DEPTH_LEVELS) -> BookTop:
    """
    Respuesta de /book -> mejor bid/ask + profundidad ask (USD) en los
    `depth_levels` mejores niveles. Sin bids: bid=0. Sin asks: ask=1.
    """
    def levels(key):
        out = []
        for lvl in data.get(key) or []:
            try:
                out.append((float(lvl["price"]), float(lvl["size"])))
            except (KeyError, TypeError, ValueError):
                continue
        return out

    bids = levels("bids")
    asks = sorted(levels("asks"))

    best_bid = max((p for p, _ in bids), default=0.0)
    best_ask = asks[0][0] if asks else 1.0
    ask_depth = sum(p * s for p, s in asks[:depth_levels])

    return BookTop(bid=best_bid, ask=best_ask, ask_depth=ask_depth)


def merge_markets(known: List[Market], found: List[Market]) -> List[Market]:
    """Mercados redescubiertos, conservando los strikes ya completados."""
    strikes = {
        m.position_key: m.strike_price for m in known if m.strike_price is not None
    }
    merged = []
    for market in found:
        strike = strikes.get(market.position_key)
        if market.strike_price is None and strike is not None:
            market = market.with_strike(strike)
        merged.append(market)
    return merged


# ------------------------------------------------------------------
# Cliente
# ------------------------------------------------------------------

class PolymarketClient:
    """
    Cliente para Polymarket APIs.
    Descubre mercados Up/Down activos y obtiene precios del orderbook.
    """

    def __init__(
        self,
        cache_ttl: float = PRICE_CACHE_TTL,
        strike_retry: float = STRIKE_RETRY_INTERVAL,
    ):
        self._session = requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        self.cache_ttl = cache_ttl
        self._price_cache: Dict[str, Tuple[MarketPrices, float]] = {}
        self.strike_retry = strike_retry
        self._strike_attempts: Dict[str, float] = {}
        self._consecutive_errors = 0

    # ------------------------------------------------------------------
    # Market discovery
    # ------------------------------------------------------------------

    def _fetch_event(self, slug: str) -> Optional[dict]:
        try:
            resp = self._session.get(
                f"{GAMMA_API}/events",
                params={"slug": slug},
                timeout=10,
            )
            resp.raise_for_status()
            events = resp.json()
        except (requests.RequestException, ValueError):
            self._consecutive_errors += 1
            return None

        self._consecutive_errors = 0
        if not events:
            return None
        return events[0]

    def find_market(
        self,
        asset: str,
        window_minutes: int,
        now: Optional[datetime] = None,
    ) -> Optional[Market]:
        """Mercado activo del asset para la ventana actual."""
        if now is None:
            now = datetime.now(timezone.utc)
        start = window_start(now, window_minutes)
        slug = build_slug(asset, window_minutes, start)

        event = self._fetch_event(slug)
        if event is None:
            return None
        return parse_event(event, asset, window_minutes, start, slug)

    def find_current_markets(
        self,
        assets: Iterable[str] = ASSETS,
        windows: Iterable[int] = (15,),
    ) -> List[Market]:
        """Todos los mercados activos (asset x ventana) encontrados."""
        now = datetime.now(timezone.utc)
        markets = []
        for window in windows:
            for asset in assets:
                market = self.find_market(asset, window, now)
                if market is not None:
                    markets.append(market)
        return markets

    def fill_missing_strikes(
        self,
        markets: List[Market],
        feed,
        now: Optional[float] = None,
    ) -> List[Market]:
        """
        Completa el strike de los mercados que ya empezaron y aun no lo tienen:
        primero el priceToBeat de Gamma, si no la vela de 1m de Binance
        al inicio de la ventana. Cada mercado se reintenta como mucho una
        vez cada `strike_retry` segundos.
        """
        if now is None:
            now = time.time()
        result = []
        for market in markets:
            if market.strike_price is not None or not market.has_started(now):
                result.append(market)
                continue

            key = market.position_key
            last = self._strike_attempts.get(key)
            if last is not None and now - last < self.strike_retry:
                result.append(market)
                continue
            self._strike_attempts[key] = now

            strike = None
            event = self._fetch_event(market.slug) if market.slug else None
            if event is not None:
                strike = parse_strike(event, (event.get("markets") or [{}])[0])

            if strike is None and market.start_time is not None:
                strike = feed.fetch_price_at_market_start(market.asset, market.start_time)

            result.append(market.with_strike(strike) if strike else market)

        pending = {m.position_key for m in result if m.strike_price is None}
        self._strike_attempts = {
            k: v for k, v in self._strike_attempts.items() if k in pending
        }
        return result

    # ------------------------------------------------------------------
    # Price fetching
    # ------------------------------------------------------------------

    def fetch_orderbook(self, token_id: str) -> Optional[BookTop]:
        """Mejor bid/ask de un token via CLOB /book."""
        try:
            resp = self._session.get(
                f"{CLOB_API}/book",
                params={"token_id": token_id},
                timeout=5,
            )
            resp.raise_for_status()
            book = parse_orderbook(resp.json())
        except (requests.RequestException, ValueError):
            self._consecutive_errors += 1
            return None

        self._consecutive_errors = 0
        return book

    def fetch_market_prices(
        self,
        market: Market,
        now: Optional[float] = None,
    ) -> Optional[MarketPrices]:
        """
        Snapshot de precios UP/DOWN del mercado.
        Cacheado `cache_ttl` segundos por par de tokens.
        """
        key = f"{market.up_token_id}-{market.down_token_id}"
        if now is None:
            now = time.time()

        cached = self._price_cache.get(key)
        if cached is not None and cached[1] > now:
            return cached[0]

        up = self.fetch_orderbook(market.up_token_id)
        down = self.fetch_orderbook(market.down_token_id)
        if up is None or down is None:
            return None

        prices = MarketPrices(
            up_bid=up.bid,
            up_ask=up.ask,
            down_bid=down.bid,
            down_ask=down.ask,
            timestamp=now,
            up_ask_depth=up.ask_depth,
            down_ask_depth=down.ask_depth,
        )
        self._price_cache[key] = (prices, now + self.cache_ttl)
        return prices

    def prune_cache(self, now: Optional[float] = None):
        """Descarta snapshots expirados."""
        if now is None:
            now = time.time()
        self._price_cache = {
            k: v for k, v in self._price_cache.items() if v[1] > now
        }

    def is_healthy(self) -> bool:
        return self._consecutive_errors < 10

    @staticmethod
    def seconds_until_next_window(window_minutes: int = 15) -> float:
        """Segundos hasta que empiece la proxima ventana."""
        now = datetime.now(timezone.utc)
        next_start = window_start(now, window_minutes) + timedelta(minutes=window_minutes)
        return (next_start - now).total_seconds()
