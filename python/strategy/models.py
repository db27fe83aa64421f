"""
Tipos de datos compartidos entre el core de evaluacion y los colaboradores.

Market y MarketPrices son inmutables: un strike publicado o un snapshot
nuevo produce un objeto nuevo, nunca se muta el existente.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class Side(str, Enum):
    """Lado de una apuesta binaria."""
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class Market:
    """Ventana binaria 'Up or Down' de Polymarket."""
    condition_id: str
    up_token_id: str
    down_token_id: str
    end_time: datetime          # UTC, resolucion
    asset: str                  # BTC, ETH, SOL
    market_type: str = "15-MIN"
    slug: str = ""
    title: str = ""
    start_time: Optional[datetime] = None
    strike_price: Optional[float] = None   # "price to beat", None hasta que abre

    @property
    def position_key(self) -> str:
        return f"{self.asset}-{self.market_type}-{self.condition_id}"

    def seconds_remaining(self, now: float) -> float:
        return max(0.0, self.end_time.timestamp() - now)

    def has_started(self, now: float) -> bool:
        if self.start_time is None:
            return True
        return now >= self.start_time.timestamp()

    def with_strike(self, strike_price: float) -> "Market":
        return replace(self, strike_price=strike_price)

    def token_for(self, side: Side) -> str:
        return self.up_token_id if side == Side.UP else self.down_token_id


@dataclass(frozen=True)
class MarketPrices:
    """Snapshot de best bid/ask para ambos tokens."""
    up_bid: float
    up_ask: float
    down_bid: float
    down_ask: float
    timestamp: float = 0.0
    # Profundidad visible del lado ask en USD (None = desconocida)
    up_ask_depth: Optional[float] = None
    down_ask_depth: Optional[float] = None

    @property
    def up_mid(self) -> float:
        return (self.up_bid + self.up_ask) / 2.0

    @property
    def down_mid(self) -> float:
        return (self.down_bid + self.down_ask) / 2.0

    def ask(self, side: Side) -> float:
        return self.up_ask if side == Side.UP else self.down_ask

    def ask_depth(self, side: Side) -> Optional[float]:
        return self.up_ask_depth if side == Side.UP else self.down_ask_depth

    @property
    def is_valid(self) -> bool:
        return all(
            math.isfinite(p) and 0.0 <= p <= 1.0
            for p in (self.up_bid, self.up_ask, self.down_bid, self.down_ask)
        )
