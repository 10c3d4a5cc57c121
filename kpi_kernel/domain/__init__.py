"""
Pure domain helpers for the KPI kernel.

Nothing in this package performs I/O.  ``SystemClock`` is the one sanctioned
boundary for reading the current time.
"""

from kpi_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from kpi_kernel.domain.values import (
    HUNDRED,
    ZERO,
    safe_percentage,
    sum_decimals,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "HUNDRED",
    "SystemClock",
    "ZERO",
    "safe_percentage",
    "sum_decimals",
    "to_decimal",
]
