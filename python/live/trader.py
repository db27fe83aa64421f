"""
Motor de trading: evaluador de latencia + paper trading + risk management.

Estrategia - Latency Arbitrage:
  - Evalua cada mercado activo en cada iteracion del loop
  - Entry: edge > MIN_EDGE en los ultimos 30s-300s de la ventana
  - Size: Kelly fraccional con caps de liquidez y correlacion
  - Exit: hold hasta resolucion (precio final vs strike)
  - Paper trading: solo logs, sin ejecucion real
"""

import csv
import os
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass

from config import SETTLEMENT_DELAY
from strategy.latency import (
    Evaluation,
    LatencyConfig,
    evaluate_market,
    format_evaluation,
    should_trade,
)
from strategy.models import Market, MarketPrices, Side
from strategy.price_history import PriceHistory
from strategy.sizing import PositionRegistry
from live.console import log


# ============================================================================
# Data classes
# ============================================================================

@dataclass
class Position:
    """Posicion abierta."""
    market: Market
    direction: Side
    entry_price: float
    entry_time: float       # time.time()
    token_id: str
    size_usd: float
    expected_edge: float

    @property
    def shares(self) -> float:
        return self.size_usd / self.entry_price if self.entry_price > 0 else 0.0


@dataclass
class TradeRecord:
    """Registro de un trade liquidado."""
    timestamp: str
    asset: str
    market_type: str
    condition_id: str
    slug: str
    side: str
    entry_price: float
    size_usd: float
    expected_edge: float
    strike_price: float
    final_price: float
    result: str             # WIN, LOSS
    pnl: float


@dataclass
class DailyStats:
    """Estadisticas del dia."""
    date: str
    evaluated: int = 0
    trades: int = 0
    wins: int = 0
    losses: int = 0
    pnl: float = 0.0

    @property
    def settled(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        if self.settled == 0:
            return 0.0
        return self.wins / self.settled


def settle(position: Position, final_price: float, strike_price: float) -> Tuple[bool, float]:
    """
    Resultado de una posicion binaria en resolucion: (gano, pnl).
    Gana: cobra $1 por share. Pierde: pierde lo pagado.
    """
    actual_up = final_price > strike_price
    won = (position.direction == Side.UP) == actual_up
    if won:
        return True, (1.0 - position.entry_price) * position.shares
    return False, -position.size_usd


# ============================================================================
# Trader principal
# ============================================================================

class LatencyTrader:
    """
    Motor de paper trading.
    Gestiona evaluaciones, posiciones, logs y riesgo.
    """

    def __init__(
        self,
        history: PriceHistory,
        config: Optional[LatencyConfig] = None,
        registry: Optional[PositionRegistry] = None,
        data_dir: str = "./data",
        max_daily_loss: float = 100.0,
        order_cooldown: float = 5.0,
        log_every_n: int = 10,
        verbose: bool = True,
    ):
        self.history = history
        self.config = config or LatencyConfig()
        self.registry = registry if registry is not None else PositionRegistry()
        self.data_dir = data_dir
        self.trades_file = os.path.join(data_dir, "latency_trades.csv")
        self.log_file = os.path.join(data_dir, "latency_log.csv")
        self.max_daily_loss = max_daily_loss
        self.order_cooldown = order_cooldown
        self.log_every_n = max(1, log_every_n)
        self.verbose = verbose

        # Estado
        self.positions: Dict[str, Position] = {}
        self.trade_history: List[TradeRecord] = []
        self.last_evaluation: Optional[Evaluation] = None
        self._last_order_time = 0.0
        self._loss_limit_logged = False

        # Stats
        self.daily_stats = DailyStats(
            date=datetime.now(timezone.utc).strftime("%Y-%m-%d")
        )
        self.session_pnl = 0.0
        self.session_start = time.time()

        self._init_files()

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _init_files(self):
        os.makedirs(self.data_dir, exist_ok=True)

        if not os.path.exists(self.trades_file):
            with open(self.trades_file, "w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow([
                    "timestamp", "asset", "market_type", "condition_id", "slug",
                    "side", "entry_price", "size_usd", "expected_edge",
                    "strike_price", "final_price", "result", "pnl", "balance",
                ])

        if not os.path.exists(self.log_file):
            with open(self.log_file, "w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow([
                    "timestamp", "asset", "market_type", "condition_id",
                    "seconds_remaining", "current_price", "strike_price",
                    "delta_percent", "volatility", "prob_up",
                    "ask_up", "ask_down", "edge_up", "edge_down",
                    "outcome", "side", "size_usd", "reason",
                ])

    def _write_trade(self, trade: TradeRecord):
        """Escribe un trade liquidado al CSV."""
        with open(self.trades_file, "a", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                trade.timestamp, trade.asset, trade.market_type,
                trade.condition_id, trade.slug, trade.side,
                f"{trade.entry_price:.4f}", f"{trade.size_usd:.2f}",
                f"{trade.expected_edge:.4f}",
                f"{trade.strike_price:.2f}", f"{trade.final_price:.2f}",
                trade.result, f"{trade.pnl:.2f}", f"{self.session_pnl:.2f}",
            ])

    def _write_log(self, ev: Evaluation):
        """Escribe una linea de log de evaluacion."""
        size = ev.recommended_size.size_usd if ev.recommended_size else 0.0
        with open(self.log_file, "a", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                datetime.now(timezone.utc).isoformat(),
                ev.market.asset, ev.market.market_type, ev.market.condition_id,
                f"{ev.seconds_remaining:.0f}",
                f"{ev.current_price:.2f}" if ev.current_price else "",
                f"{ev.strike_price:.2f}" if ev.strike_price else "",
                f"{ev.delta_percent:.4f}",
                f"{ev.volatility:.4f}" if ev.volatility is not None else "",
                f"{ev.true_probability_up:.4f}",
                f"{ev.market_price_up:.4f}", f"{ev.market_price_down:.4f}",
                f"{ev.edge_up:.4f}", f"{ev.edge_down:.4f}",
                ev.outcome.value,
                ev.recommended_side.value if ev.recommended_side else "",
                f"{size:.2f}",
                ev.reason,
            ])

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    def _roll_day(self):
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        if today != self.daily_stats.date:
            self.print_daily_summary()
            self.daily_stats = DailyStats(date=today)
            self._loss_limit_logged = False

    @property
    def is_loss_limit_hit(self) -> bool:
        return self.daily_stats.pnl <= -self.max_daily_loss

    def has_position(self, market: Market) -> bool:
        return market.position_key in self.positions

    # ------------------------------------------------------------------
    # Evaluacion
    # ------------------------------------------------------------------

    def process_market(
        self,
        market: Market,
        prices: MarketPrices,
        now: Optional[float] = None,
    ) -> str:
        """
        Evalua un mercado y abre posicion si corresponde.
        Retorna el evento: 'ENTRY_UP', 'ENTRY_DOWN', 'HELD', 'NO_TRADE',
        'COOLDOWN', 'LOSS_LIMIT'.
        """
        if now is None:
            now = time.time()
        self._roll_day()

        if self.has_position(market):
            return "HELD"

        evaluation = evaluate_market(
            market, prices, self.history, self.registry,
            config=self.config, now=now,
        )
        self.last_evaluation = evaluation
        self.daily_stats.evaluated += 1

        tradeable = should_trade(evaluation)
        if tradeable or self.daily_stats.evaluated % self.log_every_n == 0:
            self._write_log(evaluation)
            if self.verbose:
                log("SIGNAL" if tradeable else "PRICE", format_evaluation(evaluation))

        if not tradeable:
            return "NO_TRADE"

        if self.is_loss_limit_hit:
            if not self._loss_limit_logged:
                self._loss_limit_logged = True
                log("WARN",
                    f"DAILY LOSS LIMIT alcanzado: ${self.daily_stats.pnl:.2f}. "
                    f"Sin nuevas entradas por hoy.")
            return "LOSS_LIMIT"

        if now - self._last_order_time < self.order_cooldown:
            return "COOLDOWN"

        side = evaluation.recommended_side
        self._open_position(
            market=market,
            direction=side,
            entry_price=prices.ask(side),
            size_usd=evaluation.recommended_size.size_usd,
            edge=evaluation.recommended_edge,
            now=now,
        )
        return f"ENTRY_{side.value}"

    # ------------------------------------------------------------------
    # Position management
    # ------------------------------------------------------------------

    def _open_position(
        self,
        market: Market,
        direction: Side,
        entry_price: float,
        size_usd: float,
        edge: float,
        now: float,
    ):
        """Abre una posicion (paper) y la registra para correlacion."""
        key = market.position_key
        self.positions[key] = Position(
            market=market,
            direction=direction,
            entry_price=entry_price,
            entry_time=now,
            token_id=market.token_for(direction),
            size_usd=size_usd,
            expected_edge=edge,
        )
        self.registry.register(key, market.asset, direction)
        self._last_order_time = now
        self.daily_stats.trades += 1

        log("TRADE",
            f"{market.asset} {market.market_type} {direction.value} "
            f"@ {entry_price:.3f} | size ${size_usd:.2f} | edge {edge * 100:.1f}%")

    def check_exits(self, now: Optional[float] = None) -> List[TradeRecord]:
        """
        Liquida posiciones cuyo mercado cerro hace mas de SETTLEMENT_DELAY.
        Compara el precio final con el strike. Si falta algun dato, espera.
        """
        if now is None:
            now = time.time()

        settled = []
        for key, pos in list(self.positions.items()):
            end_ts = pos.market.end_time.timestamp()
            if now <= end_ts + SETTLEMENT_DELAY:
                continue

            final_price = self.history.get_price(pos.market.asset, now)
            strike = pos.market.strike_price
            if not final_price or not strike:
                continue

            won, pnl = settle(pos, final_price, strike)
            trade = TradeRecord(
                timestamp=datetime.now(timezone.utc).isoformat(),
                asset=pos.market.asset,
                market_type=pos.market.market_type,
                condition_id=pos.market.condition_id,
                slug=pos.market.slug,
                side=pos.direction.value,
                entry_price=pos.entry_price,
                size_usd=pos.size_usd,
                expected_edge=pos.expected_edge,
                strike_price=strike,
                final_price=final_price,
                result="WIN" if won else "LOSS",
                pnl=pnl,
            )

            self.session_pnl += pnl
            self.daily_stats.pnl += pnl
            if won:
                self.daily_stats.wins += 1
            else:
                self.daily_stats.losses += 1

            self.trade_history.append(trade)
            self._write_trade(trade)

            del self.positions[key]
            self.registry.remove(key)
            settled.append(trade)

            log("EXIT",
                f"{trade.asset} {trade.side} {trade.result} | "
                f"final ${final_price:,.2f} vs strike ${strike:,.2f} | "
                f"PnL ${pnl:+.2f} | Sesion ${self.session_pnl:+.2f}")

        return settled

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def get_status_line(self) -> str:
        """Linea de status para consola."""
        s = self.daily_stats
        parts = [
            f"evals:{s.evaluated}",
            f"open:{len(self.positions)}",
            f"trades:{s.trades}",
            f"W/L:{s.wins}/{s.losses}",
            f"PnL:${self.session_pnl:+.2f}",
        ]
        for pos in self.positions.values():
            parts.append(f"| {pos.market.asset}:{pos.direction.value}@{pos.entry_price:.2f}")
        return " ".join(parts)

    def print_daily_summary(self):
        """Imprime resumen diario."""
        s = self.daily_stats
        wr = f"{s.win_rate * 100:.1f}%" if s.settled > 0 else "N/A"
        print(f"\n{'='*60}")
        print(f"  RESUMEN DIARIO: {s.date}")
        print(f"  Evaluaciones:     {s.evaluated}")
        print(f"  Trades:           {s.trades} ({s.wins}W / {s.losses}L)")
        print(f"  Win Rate:         {wr}")
        print(f"  PnL:              ${s.pnl:.2f}")
        print(f"  PnL sesion:       ${self.session_pnl:.2f}")
        print(f"{'='*60}\n")

    def print_session_summary(self):
        """Imprime resumen de toda la sesion."""
        runtime = (time.time() - self.session_start) / 60.0
        self.print_daily_summary()
        print(f"  Runtime: {runtime:.1f} min")
        print(f"  Posiciones abiertas: {len(self.positions)}")
        if self.trade_history:
            print(f"  Trades liquidados esta sesion: {len(self.trade_history)}")
