"""
Latency Arbitrage Bot - Live Paper Trading

Estrategia: Latency Arbitrage sobre mercados 'Up or Down' (BTC/ETH/SOL)
  - Precio spot en real-time desde Binance
  - Mercados activos y orderbooks desde Polymarket
  - Modelo random-walk: P(UP) = Phi(delta% / (vol * sqrt(min_restantes)))
  - Entry: edge (P - ask) > 5% en los ultimos 30-300s de la ventana
  - Size: Kelly fraccional (25%) con caps de liquidez y correlacion
  - Exit: resolucion (precio final vs strike)
  - Logs de paper trading en data/latency_trades.csv

Uso:
  cd python
  python run_live.py
"""

import sys
import time
import signal
from pathlib import Path

# Agregar directorio actual al path
sys.path.insert(0, str(Path(__file__).parent))

from config import ASSETS, DATA_DIR
from strategy.price_history import PriceHistory
from live.binance_feed import BinanceFeed
from live.polymarket_client import PolymarketClient, merge_markets
from live.trader import LatencyTrader
from live.health import HealthMonitor
from live.console import C, log
from live.session_report import session_report
import live.settings as settings


# ============================================================================
# Banner
# ============================================================================

def print_banner():
    cfg = settings.get_latency_config()
    windows = ", ".join(f"{w}m" for w in settings.MARKET_WINDOWS)
    print(f"""
{C.GREEN}+======================================================================+
|  LATENCY ARBITRAGE BOT - Paper Trading                               |
|  Estrategia: precio real (Binance) vs cuotas retrasadas (Polymarket) |
+======================================================================+
|                                                                      |
|  MERCADOS: {', '.join(ASSETS):<15} ventanas: {windows:<32}|
|                                                                      |
|  ENTRY:                                                              |
|    Edge minimo: {cfg.min_edge*100:.1f}%                                                |
|    Ventana: {cfg.min_time_remaining:.0f}s - {cfg.max_time_remaining:.0f}s antes del cierre                          |
|                                                                      |
|  SIZING:                                                             |
|    Kelly: {cfg.kelly_fraction*100:.0f}% | bankroll ${cfg.bankroll:,.0f}                                |
|    Max ${cfg.max_position_size:.2f} | Min ${cfg.min_position_size:.2f} | Liquidez max {cfg.max_liquidity_percent*100:.0f}%            |
|                                                                      |
|  RISK:                                                               |
|    Max daily loss: ${settings.MAX_DAILY_LOSS:.2f}                                          |
|                                                                      |
|  MODO: PAPER TRADING (solo logs, sin ejecucion real)                 |
+======================================================================+{C.RESET}
""")


# ============================================================================
# Main loop
# ============================================================================

def main():
    print_banner()

    # Inicializar componentes
    history = PriceHistory()
    binance = BinanceFeed(history)
    polymarket = PolymarketClient()
    trader = LatencyTrader(
        history,
        config=settings.get_latency_config(),
        data_dir=str(DATA_DIR),
        max_daily_loss=settings.MAX_DAILY_LOSS,
        order_cooldown=settings.ORDER_COOLDOWN,
        log_every_n=settings.LOG_EVERY_N,
        verbose=settings.VERBOSE,
    )
    health = HealthMonitor()

    # Shutdown handler
    running = [True]

    def on_shutdown(signum, frame):
        running[0] = False
        log("INFO", "Shutdown solicitado...")

    signal.signal(signal.SIGINT, on_shutdown)

    # Primera conexion
    log("INFO", "Conectando a Binance...")
    spot = binance.fetch_prices()
    if spot:
        for asset, price in spot.items():
            log("INFO", f"  {asset}/USDT: ${price:,.2f}")
        health.record("binance", True)
    else:
        log("WARN", "No se pudo obtener precios spot. Reintentando...")
        health.record("binance", False, "initial connection failed")

    log("INFO", "Buscando mercados activos en Polymarket...")
    markets = polymarket.find_current_markets(ASSETS, settings.MARKET_WINDOWS)
    health.record("polymarket_discovery", bool(markets),
                  "" if markets else "no markets found")
    for m in markets:
        strike = f"${m.strike_price:,.2f}" if m.strike_price else "pendiente"
        log("INFO", f"  {m.title} | strike: {strike}")
    if not markets:
        secs = polymarket.seconds_until_next_window()
        log("WARN", f"No se encontraron mercados. Proxima ventana en {secs:.0f}s")

    last_market_refresh = time.time()
    last_status_print = 0.0
    last_full_stats = time.time()

    log("INFO", "Iniciando loop principal...")
    print()

    # ================================================================
    # MAIN LOOP
    # ================================================================

    while running[0]:
        try:
            now = time.time()

            # --------------------------------------------------------
            # 1. Precios spot
            # --------------------------------------------------------
            spot = binance.fetch_prices()
            health.record("binance", bool(spot),
                          "" if spot else "price fetch failed")

            # --------------------------------------------------------
            # 2. Descubrimiento / transicion de ventanas
            # --------------------------------------------------------
            expired = any(m.seconds_remaining(now) <= 0 for m in markets)
            if (
                now - last_market_refresh >= settings.MARKET_REFRESH_INTERVAL
                or expired
                or (not markets and health.should_rediscover())
            ):
                last_market_refresh = now
                found = polymarket.find_current_markets(ASSETS, settings.MARKET_WINDOWS)
                health.record("polymarket_discovery", bool(found),
                              "" if found else "no markets found")
                if found:
                    known = {m.position_key for m in markets}
                    for m in found:
                        if m.position_key not in known:
                            log("INFO", f"Mercado nuevo: {m.title}")
                    markets = merge_markets(markets, found)
                elif expired:
                    markets = [m for m in markets if m.seconds_remaining(now) > 0]

            # Strikes que aun no se publicaron
            markets = polymarket.fill_missing_strikes(markets, binance, now)

            # --------------------------------------------------------
            # 3. Liquidar posiciones de mercados cerrados
            # --------------------------------------------------------
            trader.check_exits(now)

            # --------------------------------------------------------
            # 4. Evaluar cada mercado
            # --------------------------------------------------------
            for market in markets:
                if trader.has_position(market):
                    continue
                if market.strike_price is None:
                    continue
                if market.seconds_remaining(now) <= 0:
                    continue

                prices = polymarket.fetch_market_prices(market)
                health.record("polymarket_prices", prices is not None,
                              "" if prices else "orderbook fetch failed")
                if prices is None:
                    continue

                trader.process_market(market, prices, now)
                health.record("trader", True)

            polymarket.prune_cache()

            # --------------------------------------------------------
            # 5. Status
            # --------------------------------------------------------
            if now - last_status_print >= settings.STATUS_INTERVAL:
                last_status_print = now
                log("PRICE", trader.get_status_line())

            if now - last_full_stats >= settings.FULL_STATS_INTERVAL:
                last_full_stats = now
                print()
                print(session_report(trader.trades_file))
                print("  HEALTH:")
                print(health.get_status_summary())
                print()

            # --------------------------------------------------------
            # Sleep (con backoff si hay errores)
            # --------------------------------------------------------
            time.sleep(health.get_wait_recommendation(settings.POLL_INTERVAL))

        except KeyboardInterrupt:
            break
        except Exception as e:
            log("ERROR", f"Error en loop: {e}")
            health.record("trader", False, str(e))
            time.sleep(5)

    # ================================================================
    # SHUTDOWN
    # ================================================================

    print()
    log("INFO", "Cerrando bot...")

    if trader.positions:
        log("WARN", f"{len(trader.positions)} posiciones abiertas sin liquidar")

    trader.print_session_summary()
    print(session_report(trader.trades_file))

    print(f"""
{C.YELLOW}+======================================================================+
|  SHUTDOWN COMPLETO                                                   |
|  PnL sesion: ${trader.session_pnl:+.2f}{' ' * max(0, 50 - len(f'${trader.session_pnl:+.2f}'))}|
|  Logs: data/latency_trades.csv, data/latency_log.csv                 |
+======================================================================+{C.RESET}
""")


if __name__ == "__main__":
    main()
