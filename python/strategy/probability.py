"""
Modelo de probabilidad + calculo de edge.

Random walk: el movimiento esperado escala con sqrt(tiempo).
  expected_move% = vol_por_minuto * sqrt(minutos_restantes)
  z = delta% / expected_move%
  P(UP) = Phi(z)

Supuestos: cambios de log-precio ~normales en el horizonte restante,
strike fijo. Ignora skew, saltos y microestructura.
"""

import math
from typing import Tuple

# Abramowitz & Stegun 7.1.26 (error maximo ~1.5e-7)
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

PROB_FLOOR = 0.0001
PROB_CEIL = 0.9999
DECIDED_LOW = 0.001
DECIDED_HIGH = 0.999
MIN_EXPECTED_MOVE = 0.001
Z_CLAMP = 4.0


def normal_cdf(z: float) -> float:
    """CDF de la normal estandar via aproximacion racional de erf."""
    sign = -1.0 if z < 0 else 1.0
    x = abs(z) / math.sqrt(2.0)

    t = 1.0 / (1.0 + _P * x)
    poly = ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t
    y = 1.0 - poly * math.exp(-x * x)

    return 0.5 * (1.0 + sign * y)


def estimate_probability_up(
    delta_percent: float,
    seconds_remaining: float,
    volatility_per_minute: float,
) -> float:
    """
    Probabilidad de que el asset cierre por encima del strike.

    delta_percent: (precio - strike) / strike * 100
    seconds_remaining: segundos hasta la resolucion
    volatility_per_minute: std de cambios % por minuto
    """
    minutes_remaining = max(0.0, seconds_remaining) / 60.0
    expected_move = volatility_per_minute * math.sqrt(minutes_remaining)

    # Sin tiempo/vol restante: resultado practicamente decidido
    if expected_move < MIN_EXPECTED_MOVE:
        return DECIDED_HIGH if delta_percent > 0 else DECIDED_LOW

    z = delta_percent / expected_move

    if z > Z_CLAMP:
        return PROB_CEIL
    if z < -Z_CLAMP:
        return PROB_FLOOR

    # Phi(z) supera PROB_CEIL antes de z=4; se recorta para que la
    # curva siga siendo monotona al cruzar el clamp.
    return min(PROB_CEIL, max(PROB_FLOOR, normal_cdf(z)))


def compute_edges(
    prob_up: float,
    up_ask: float,
    down_ask: float,
) -> Tuple[float, float]:
    """
    Edge por lado contra el ASK (precio para abrir la posicion).
    Retorna (edge_up, edge_down). Puede ser negativo.
    """
    prob_down = 1.0 - prob_up
    return prob_up - up_ask, prob_down - down_ask
