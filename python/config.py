"""
Latency Arbitrage Bot - Configuracion central.

Constantes que no se ajustan en operacion normal.
Los parametros de estrategia/riesgo editables viven en live/settings.py.
"""

from pathlib import Path

# --- Paths ---
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# --- Binance ---
BINANCE_REST_URL = "https://api.binance.com"
ASSETS = ("BTC", "ETH", "SOL")
BINANCE_SYMBOLS = {
    "BTC": "BTCUSDT",
    "ETH": "ETHUSDT",
    "SOL": "SOLUSDT",
}

# --- Polymarket ---
GAMMA_API = "https://gamma-api.polymarket.com"
CLOB_API = "https://clob.polymarket.com"
PRICE_CACHE_TTL = 5.0          # segundos
STRIKE_RETRY_INTERVAL = 5.0    # segundos entre reintentos de strike por mercado

# --- Volatilidad (% por minuto) ---
# Se usan cuando no hay historial suficiente o el feed esta caido.
DEFAULT_VOLATILITY = {
    "BTC": 1.5,
    "ETH": 2.0,
    "SOL": 3.5,
}
DEFAULT_VOLATILITY_OTHER = 2.5
VOLATILITY_WINDOW_MINUTES = 5
VOLATILITY_SAMPLE_SECONDS = 10.0
MIN_HISTORY_SAMPLES = 10
MIN_VOLATILITY_STEPS = 5

# --- Price history ---
HISTORY_WINDOW_SECONDS = 5 * 60
HISTORY_CAPACITY = 5000        # ticks por asset (a 1 tick/s sobra)
PRICE_MAX_AGE = 10.0           # precio mas viejo que esto = stale

# --- Bankroll / liquidez ---
# Sin lectura de balance real: el bankroll es un multiplo del trade base.
TRADE_SIZE_USD = 10.00
BANKROLL_MULTIPLIER = 100
DEFAULT_LIQUIDITY = 1000.0     # USD si no hay profundidad del orderbook

# --- Resolucion ---
SETTLEMENT_DELAY = 60.0        # segundos tras el cierre antes de liquidar
