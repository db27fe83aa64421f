"""
Health monitor: verifica que los colaboradores externos responden.
Binance feed, descubrimiento de mercados y precios del CLOB.
Recomienda cuanto esperar entre iteraciones segun errores acumulados.
"""

import time
from typing import Dict, Optional
from dataclasses import dataclass

MAX_CONSECUTIVE_ERRORS = 5
MAX_SUCCESS_AGE = 30.0

COMPONENT_NAMES = {
    "binance": "Binance Feed",
    "polymarket_discovery": "Polymarket Discovery",
    "polymarket_prices": "Polymarket Prices",
    "trader": "Latency Trader",
}


@dataclass
class ComponentHealth:
    """Estado de salud de un componente."""
    name: str
    last_success: float = 0.0
    last_error: float = 0.0
    consecutive_errors: int = 0
    total_errors: int = 0
    total_success: int = 0
    last_error_msg: str = ""

    def record_success(self, now: Optional[float] = None):
        self.last_success = time.time() if now is None else now
        self.consecutive_errors = 0
        self.total_success += 1

    def record_error(self, msg: str = "", now: Optional[float] = None):
        self.last_error = time.time() if now is None else now
        self.consecutive_errors += 1
        self.total_errors += 1
        self.last_error_msg = msg

    def is_healthy(self, now: Optional[float] = None) -> bool:
        if self.total_success == 0:
            return False
        if self.consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
            return False
        now = time.time() if now is None else now
        return now - self.last_success < MAX_SUCCESS_AGE

    def status_str(self, now: Optional[float] = None) -> str:
        if self.is_healthy(now):
            return "OK"
        if self.consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
            return f"ERROR (x{self.consecutive_errors})"
        if self.total_success == 0:
            return "WAITING"
        return "DEGRADED"


class HealthMonitor:
    """Rastrea componentes y decide cuanto esperar."""

    def __init__(self):
        self.components: Dict[str, ComponentHealth] = {
            key: ComponentHealth(name=name) for key, name in COMPONENT_NAMES.items()
        }
        self._start_time = time.time()

    def record(self, component: str, success: bool, error_msg: str = "", now: Optional[float] = None):
        """Registra resultado de una operacion."""
        if component not in self.components:
            self.components[component] = ComponentHealth(name=component)

        if success:
            self.components[component].record_success(now)
        else:
            self.components[component].record_error(error_msg, now)

    def should_rediscover(self) -> bool:
        """True si el descubrimiento viene fallando y conviene reintentar ya."""
        disc = self.components.get("polymarket_discovery")
        if disc is None or disc.total_success == 0:
            return True
        return disc.consecutive_errors >= 3

    def get_status_summary(self) -> str:
        """Resumen de estado de todos los componentes."""
        now = time.time()
        lines = [f"  System uptime: {(now - self._start_time) / 60:.1f} min"]
        for comp in self.components.values():
            age = ""
            if comp.last_success > 0:
                age = f" (last ok: {now - comp.last_success:.0f}s ago)"
            lines.append(
                f"  {comp.name:25s} [{comp.status_str(now):10s}] "
                f"ok={comp.total_success} err={comp.total_errors}{age}"
            )
        return "\n".join(lines)

    def get_wait_recommendation(self, base: float = 0.5) -> float:
        """
        Recomienda cuanto esperar basado en errores acumulados.
        Backoff escalonado sobre el intervalo base del loop.
        """
        max_consec = max(
            (c.consecutive_errors for c in self.components.values()),
            default=0,
        )
        if max_consec == 0:
            return base
        if max_consec < 3:
            return max(base, 2.0)
        if max_consec < 5:
            return max(base, 5.0)
        if max_consec < 10:
            return max(base, 10.0)
        return max(base, 30.0)
