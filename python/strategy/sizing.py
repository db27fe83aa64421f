"""
Position sizing con Kelly fraccional.

  full_kelly = edge / (1 - price)
  size = bankroll * full_kelly * kelly_fraction

Despues se recorta, en este orden:
  1. cap absoluto (max_position_size)
  2. liquidez (liquidity * max_liquidity_percent)
  3. correlacion (x0.5 si ya hay >= 2 posiciones en la misma direccion)
y por ultimo se descarta si queda por debajo del minimo.
El reason refleja solo la ultima restriccion aplicada.
"""

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from strategy.models import Side

CORRELATION_LIMIT = 2
CORRELATION_FACTOR = 0.5


class SizingConstraint(str, Enum):
    """Restriccion que determino el tamano final."""
    NO_EDGE = "no_edge"
    INVALID_PRICE = "invalid_price"
    BELOW_MINIMUM = "below_minimum"
    KELLY = "kelly"
    CAP = "cap"
    LIQUIDITY = "liquidity"
    CORRELATION = "correlation"


@dataclass(frozen=True)
class SizingConfig:
    kelly_fraction: float = 0.25
    max_position_size: float = 50.0
    max_liquidity_percent: float = 0.5
    min_position_size: float = 5.0


@dataclass(frozen=True)
class PositionSizeResult:
    size_usd: float             # 0 = no operar
    kelly_fraction: float       # Kelly fraccional aplicado
    constraint: SizingConstraint
    reason: str

    @property
    def is_zero(self) -> bool:
        return self.size_usd <= 0


class PositionRegistry:
    """
    Posiciones activas: key -> (asset, direction).
    Solo se usa para el throttle de correlacion. Lo escribe el trader al
    abrir/cerrar; el sizer solo lo lee.
    """

    def __init__(self):
        self._positions: Dict[str, Tuple[str, Side]] = {}
        self._lock = threading.Lock()

    def register(self, key: str, asset: str, direction: Side):
        with self._lock:
            self._positions[key] = (asset, Side(direction))

    def remove(self, key: str):
        with self._lock:
            self._positions.pop(key, None)

    def count_direction(self, direction: Side) -> int:
        direction = Side(direction)
        with self._lock:
            return sum(1 for _, d in self._positions.values() if d == direction)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._positions

    def __len__(self) -> int:
        with self._lock:
            return len(self._positions)

    def clear(self):
        with self._lock:
            self._positions.clear()


@dataclass(frozen=True)
class CorrelationLimit:
    reduce: bool
    factor: float
    reason: str


def check_correlation_limits(
    asset: str,
    direction: Side,
    registry: PositionRegistry,
) -> CorrelationLimit:
    """
    BTC, ETH y SOL se tratan como correlacionados: cuenta posiciones en la
    misma direccion sin importar el asset. Proxy grosero, no covarianza.
    """
    direction = Side(direction)
    same_direction = registry.count_direction(direction)

    if same_direction >= CORRELATION_LIMIT:
        return CorrelationLimit(
            reduce=True,
            factor=CORRELATION_FACTOR,
            reason=f"{same_direction} existing {direction.value} positions",
        )

    return CorrelationLimit(reduce=False, factor=1.0, reason="")


def calculate_position_size(
    edge: float,
    price: float,
    liquidity: float,
    asset: str,
    direction: Side,
    bankroll: float,
    config: SizingConfig,
    registry: PositionRegistry,
) -> PositionSizeResult:
    """Tamano de la posicion en USD (redondeado a centavos)."""
    if not math.isfinite(edge) or edge <= 0:
        return PositionSizeResult(0.0, 0.0, SizingConstraint.NO_EDGE, "No edge")

    if not math.isfinite(price) or price <= 0 or price >= 1:
        return PositionSizeResult(0.0, 0.0, SizingConstraint.INVALID_PRICE, "Invalid price")

    full_kelly = edge / (1.0 - price)
    fractional_kelly = full_kelly * config.kelly_fraction

    size_usd = bankroll * fractional_kelly
    constraint = SizingConstraint.KELLY
    reason = f"Kelly: {fractional_kelly * 100:.1f}%"

    # Un Kelly exactamente igual al cap cuenta como capado
    if size_usd >= config.max_position_size:
        size_usd = config.max_position_size
        constraint = SizingConstraint.CAP
        reason = f"Capped at max: ${config.max_position_size:g}"

    # Liquidez <= 0 = profundidad desconocida, no se aplica
    max_by_liquidity = liquidity * config.max_liquidity_percent
    if max_by_liquidity > 0 and size_usd > max_by_liquidity:
        size_usd = max_by_liquidity
        constraint = SizingConstraint.LIQUIDITY
        reason = f"Limited by liquidity: ${max_by_liquidity:.2f}"

    correlation = check_correlation_limits(asset, direction, registry)
    if correlation.reduce:
        size_usd = size_usd * correlation.factor
        constraint = SizingConstraint.CORRELATION
        reason = f"Reduced for correlation: {correlation.reason}"

    if size_usd < config.min_position_size:
        return PositionSizeResult(
            0.0,
            fractional_kelly,
            SizingConstraint.BELOW_MINIMUM,
            f"Below minimum: ${config.min_position_size:g}",
        )

    return PositionSizeResult(
        size_usd=round(size_usd, 2),
        kelly_fraction=fractional_kelly,
        constraint=constraint,
        reason=reason,
    )
