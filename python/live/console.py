"""Salida de consola con timestamp y color."""

from datetime import datetime, timezone


class C:
    """ANSI color codes."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    "INFO": C.CYAN,
    "TRADE": C.GREEN,
    "EXIT": C.YELLOW,
    "WARN": C.YELLOW,
    "ERROR": C.RED,
    "PRICE": C.GRAY,
    "SIGNAL": C.BOLD,
}


def log(level: str, msg: str):
    """Log con timestamp y color."""
    now = datetime.now(timezone.utc).strftime("%H:%M:%S")
    color = LEVEL_COLORS.get(level, C.RESET)
    print(f"{color}[{now}] [{level:6s}] {msg}{C.RESET}")
