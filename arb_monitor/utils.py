"""
Common helpers for the arbitrage monitor.

Token amount conversion between human-readable Decimals and integer
smallest units, duration formatting, and the shared logger factory.
"""

import logging
from decimal import Decimal
from typing import Union


# Amount utilities
def to_base_units(amount: Union[Decimal, int, str], decimals: int) -> int:
    """
    Convert a human-readable amount into the token's smallest unit.

    Args:
        amount: Human amount (e.g. Decimal("1.5"))
        decimals: Token precision

    Returns:
        Integer amount in smallest units

    Raises:
        ValueError: If decimals is negative or amount has more
            fractional digits than the token supports
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")

    scaled = Decimal(str(amount)).scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{amount} has more than {decimals} fractional digits")
    return int(scaled)


def from_base_units(units: int, decimals: int) -> Decimal:
    """Convert an integer smallest-unit amount into a human-readable Decimal."""
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")
    return Decimal(int(units)).scaleb(-decimals)


def format_amount(amount: Decimal, places: int = 4) -> str:
    """Format a human amount with a fixed number of decimal places."""
    return f"{amount:.{places}f}"


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    minimal: bool = False,
) -> logging.Logger:
    """
    Get a logger with consistent structured formatting.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        minimal: If True, use simplified format (time + message only)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()

        if minimal:
            format_str = "%(asctime)s | %(message)s"
        else:
            format_str = (
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | " "%(message)s"
            )

        formatter = logging.Formatter(format_str, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        # Own handler attached; don't repeat the record on root handlers
        logger.propagate = False

    return logger
