"""
Settings editables para el bot live.

Este archivo centraliza los parametros ajustables del bot.
Para cambiar la estrategia, edita los valores aqui y reinicia el bot.

Los parametros estan organizados por seccion:
  - STRATEGY: umbral de edge
  - TIMING: ventana temporal antes del cierre
  - RISK: position sizing y limites
  - SYSTEM: polling, refresco de mercados, logs
"""

from config import BANKROLL_MULTIPLIER, DEFAULT_LIQUIDITY, TRADE_SIZE_USD
from strategy.latency import LatencyConfig


# ============================================================================
# STRATEGY - Parametros de señal
# ============================================================================

# Edge minimo (prob. modelo - ask) para entrar.
# Por debajo de 5c el ruido del modelo se come la ventaja.
MIN_EDGE = 0.05


# ============================================================================
# TIMING - Ventanas temporales
# ============================================================================

# Segundos restantes hasta el cierre del mercado.
# < 30s: riesgo de ejecucion y de que la orden no llegue a tiempo.
# > 300s: demasiada incertidumbre en el modelo (y carga de API).
MIN_TIME_REMAINING = 30
MAX_TIME_REMAINING = 300


# ============================================================================
# RISK - Gestion de riesgo
# ============================================================================

# Kelly fraccional (25% del Kelly completo)
KELLY_FRACTION = 0.25

# Limites por trade en dolares
MAX_POSITION_SIZE = 50.00
MIN_POSITION_SIZE = 5.00

# Maximo del orderbook visible que podemos consumir
MAX_LIQUIDITY_PERCENT = 0.5

# Bankroll usado por Kelly. No hay lectura de balance real:
# es TRADE_SIZE_USD * BANKROLL_MULTIPLIER ($1000 por defecto).
BANKROLL = TRADE_SIZE_USD * BANKROLL_MULTIPLIER

# Liquidez asumida si el orderbook no trae profundidad
ASSUMED_LIQUIDITY = DEFAULT_LIQUIDITY

# Maximo de perdida diaria en dolares.
# Cuando se alcanza, el bot deja de abrir posiciones hasta el dia siguiente.
MAX_DAILY_LOSS = 100.00

# Segundos minimos entre ordenes
ORDER_COOLDOWN = 5.0


# ============================================================================
# SYSTEM - Configuracion del sistema
# ============================================================================

# Intervalo del loop principal en segundos.
POLL_INTERVAL = 0.5

# Cada cuantos segundos redescubrir mercados.
MARKET_REFRESH_INTERVAL = 120.0

# Cada cuantos segundos imprimir status en consola.
STATUS_INTERVAL = 10.0

# Cada cuantos segundos imprimir resumen completo + health.
FULL_STATS_INTERVAL = 300.0

# Loguear 1 de cada N evaluaciones (las operables siempre se loguean)
LOG_EVERY_N = 10

# Duraciones de ventana a operar (minutos)
MARKET_WINDOWS = (15,)

# Logs verbosos
VERBOSE = True


# ============================================================================
# Helper: construir config del evaluador
# ============================================================================

def get_latency_config() -> LatencyConfig:
    """Retorna la configuracion inmutable que recibe el evaluador."""
    return LatencyConfig(
        min_edge=MIN_EDGE,
        min_time_remaining=MIN_TIME_REMAINING,
        max_time_remaining=MAX_TIME_REMAINING,
        kelly_fraction=KELLY_FRACTION,
        max_position_size=MAX_POSITION_SIZE,
        min_position_size=MIN_POSITION_SIZE,
        max_liquidity_percent=MAX_LIQUIDITY_PERCENT,
        bankroll=BANKROLL,
        default_liquidity=ASSUMED_LIQUIDITY,
    )
