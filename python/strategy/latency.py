"""
Latency Arbitrage - evaluador de mercados.

Idea: cuando el precio real (Binance) esta claramente arriba/abajo del
strike y queda poco tiempo, la probabilidad real del resultado es casi
segura, pero las cuotas de Polymarket van con retraso.

Por cada mercado y tick:
  1. tiempo restante (clamp >= 0)
  2. precio actual + strike (si falta alguno -> MISSING_DATA)
  3. ventana temporal [min_time_remaining, max_time_remaining]
  4. delta% vs strike, volatilidad, P(UP)/P(DOWN), edges contra el ask
  5. lado con edge > min_edge (UP solo si su edge es estrictamente mayor)
  6. sizing Kelly; tamano 0 -> BELOW_MINIMUM con el reason del sizer

No hace I/O ni guarda estado entre llamadas: mismo input (incluido `now`)
produce la misma Evaluation.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from config import (
    BANKROLL_MULTIPLIER,
    DEFAULT_LIQUIDITY,
    TRADE_SIZE_USD,
    VOLATILITY_WINDOW_MINUTES,
)
from strategy.models import Market, MarketPrices, Side
from strategy.price_history import PriceHistory
from strategy.probability import compute_edges, estimate_probability_up
from strategy.sizing import (
    PositionRegistry,
    PositionSizeResult,
    SizingConfig,
    calculate_position_size,
)
from strategy.volatility import estimate_volatility


@dataclass(frozen=True)
class LatencyConfig:
    # Edge minimo para operar
    min_edge: float = 0.05

    # Ventana temporal (segundos hasta el cierre)
    min_time_remaining: float = 30.0
    max_time_remaining: float = 300.0

    # Position sizing
    kelly_fraction: float = 0.25
    max_position_size: float = 50.0
    min_position_size: float = 5.0
    max_liquidity_percent: float = 0.5

    # Proxy de bankroll: multiplo del trade base, no el balance real
    bankroll: float = TRADE_SIZE_USD * BANKROLL_MULTIPLIER
    default_liquidity: float = DEFAULT_LIQUIDITY

    volatility_window_minutes: float = VOLATILITY_WINDOW_MINUTES

    def sizing_config(self) -> SizingConfig:
        return SizingConfig(
            kelly_fraction=self.kelly_fraction,
            max_position_size=self.max_position_size,
            max_liquidity_percent=self.max_liquidity_percent,
            min_position_size=self.min_position_size,
        )


class Outcome(str, Enum):
    """Estado terminal de una evaluacion (mutuamente excluyentes)."""
    MISSING_DATA = "missing_data"
    TOO_LATE = "too_late"
    TOO_EARLY = "too_early"
    NO_EDGE = "no_edge"
    BELOW_MINIMUM = "below_minimum"
    ACTIONABLE = "actionable"


@dataclass(frozen=True)
class Evaluation:
    """Resultado de evaluar un mercado en un instante."""
    market: Market
    outcome: Outcome
    current_price: Optional[float]
    strike_price: Optional[float]
    seconds_remaining: float
    market_price_up: float          # ask UP
    market_price_down: float        # ask DOWN
    price_delta: float = 0.0
    delta_percent: float = 0.0
    true_probability_up: float = 0.5
    true_probability_down: float = 0.5
    edge_up: float = 0.0
    edge_down: float = 0.0
    volatility: Optional[float] = None
    recommended_side: Optional[Side] = None
    recommended_edge: float = 0.0
    sizing: Optional[PositionSizeResult] = field(default=None)

    @property
    def recommended_size(self) -> Optional[PositionSizeResult]:
        """Sizing solo si hay tamano > 0."""
        if self.sizing is None or self.sizing.is_zero:
            return None
        return self.sizing

    @property
    def reason(self) -> str:
        """Explicacion legible. Solo para logs: la fuente de verdad es outcome."""
        if self.outcome == Outcome.MISSING_DATA:
            return f"Missing data: price={self.current_price}, strike={self.strike_price}"
        if self.outcome == Outcome.TOO_LATE:
            return f"Too late: {self.seconds_remaining:.0f}s remaining"
        if self.outcome == Outcome.TOO_EARLY:
            return f"Too early: {self.seconds_remaining:.0f}s remaining"
        if self.outcome == Outcome.NO_EDGE:
            return (
                f"No edge: UP={self.edge_up * 100:.1f}%, "
                f"DOWN={self.edge_down * 100:.1f}%"
            )
        if self.outcome == Outcome.BELOW_MINIMUM:
            return self.sizing.reason if self.sizing else "Zero size"
        side = self.recommended_side.value if self.recommended_side else "?"
        size = self.recommended_size.size_usd if self.recommended_size else 0.0
        return f"{side} edge={self.recommended_edge * 100:.1f}%, size=${size:.2f}"


def _is_usable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def evaluate_market(
    market: Market,
    prices: MarketPrices,
    history: PriceHistory,
    registry: PositionRegistry,
    config: Optional[LatencyConfig] = None,
    now: Optional[float] = None,
    liquidity: Optional[float] = None,
    bankroll: Optional[float] = None,
) -> Evaluation:
    """
    Evalua un mercado para arbitraje de latencia.

    history: historial de precios compartido (precio actual + volatilidad)
    registry: posiciones activas (throttle de correlacion)
    liquidity: profundidad en USD; si es None se usa la del snapshot o el default
    bankroll: si es None se usa config.bankroll
    """
    if config is None:
        config = LatencyConfig()
    if now is None:
        now = time.time()

    seconds_remaining = market.seconds_remaining(now)
    current_price = history.get_price(market.asset, now)
    strike_price = market.strike_price

    base = dict(
        market=market,
        current_price=current_price,
        strike_price=strike_price,
        seconds_remaining=seconds_remaining,
        market_price_up=prices.up_ask,
        market_price_down=prices.down_ask,
    )

    if not _is_usable(current_price) or not _is_usable(strike_price):
        return Evaluation(outcome=Outcome.MISSING_DATA, **base)

    if seconds_remaining < config.min_time_remaining:
        return Evaluation(outcome=Outcome.TOO_LATE, **base)

    if seconds_remaining > config.max_time_remaining:
        return Evaluation(outcome=Outcome.TOO_EARLY, **base)

    price_delta = current_price - strike_price
    delta_percent = price_delta / strike_price * 100.0

    volatility = estimate_volatility(
        history, market.asset,
        window_minutes=config.volatility_window_minutes,
        now=now,
    )

    prob_up = estimate_probability_up(delta_percent, seconds_remaining, volatility)
    prob_down = 1.0 - prob_up
    edge_up, edge_down = compute_edges(prob_up, prices.up_ask, prices.down_ask)

    scored = dict(
        base,
        price_delta=price_delta,
        delta_percent=delta_percent,
        true_probability_up=prob_up,
        true_probability_down=prob_down,
        edge_up=edge_up,
        edge_down=edge_down,
        volatility=volatility,
    )

    side = None
    edge = 0.0
    if edge_up > edge_down and edge_up > config.min_edge:
        side, edge = Side.UP, edge_up
    elif edge_down > config.min_edge:
        side, edge = Side.DOWN, edge_down

    if side is None:
        return Evaluation(outcome=Outcome.NO_EDGE, **scored)

    if liquidity is None:
        depth = prices.ask_depth(side)
        liquidity = depth if depth is not None and depth > 0 else config.default_liquidity

    sizing = calculate_position_size(
        edge=edge,
        price=prices.ask(side),
        liquidity=liquidity,
        asset=market.asset,
        direction=side,
        bankroll=config.bankroll if bankroll is None else bankroll,
        config=config.sizing_config(),
        registry=registry,
    )

    outcome = Outcome.BELOW_MINIMUM if sizing.is_zero else Outcome.ACTIONABLE
    return Evaluation(
        outcome=outcome,
        recommended_side=side,
        recommended_edge=edge,
        sizing=sizing,
        **scored,
    )


def should_trade(evaluation: Evaluation) -> bool:
    """True solo si hay lado y tamano > 0."""
    return (
        evaluation.recommended_side is not None
        and evaluation.recommended_size is not None
        and evaluation.recommended_size.size_usd > 0
    )


def format_evaluation(evaluation: Evaluation) -> str:
    """Linea de log de una evaluacion."""
    ev = evaluation
    price_str = f"{ev.current_price:.2f}" if ev.current_price else "N/A"
    strike_str = f"{ev.strike_price:.2f}" if ev.strike_price else "N/A"
    vol_str = f"{ev.volatility:.3f}%" if ev.volatility is not None else "N/A"

    return " | ".join([
        f"[{ev.market.asset} {ev.market.market_type}]",
        f"Time: {ev.seconds_remaining:.0f}s",
        f"Price: ${price_str} / Strike: ${strike_str}",
        f"Delta: {ev.delta_percent:+.3f}%",
        f"Vol: {vol_str}",
        f"TrueP(Up): {ev.true_probability_up * 100:.1f}% vs Ask: {ev.market_price_up * 100:.1f}%",
        f"Edge(Up): {ev.edge_up * 100:.1f}% Edge(Down): {ev.edge_down * 100:.1f}%",
        f"-> {ev.reason}",
    ])
