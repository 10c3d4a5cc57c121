"""
KPI Threshold Model (``kpi_kernel.models.thresholds``).

Process-wide risk breakpoints, one ``TierBreakpoints`` per dimension.  Each
breakpoint is an inclusive upper bound for its tier.  Ordering
(low <= moderate <= high) is not enforced here; ``kpi_config.validator``
reports violations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class TierBreakpoints:
    """Inclusive upper bounds (percent) of the first three tiers."""

    low: Decimal
    moderate: Decimal
    high: Decimal


def _breakpoints(low: str, moderate: str, high: str) -> TierBreakpoints:
    return TierBreakpoints(Decimal(low), Decimal(moderate), Decimal(high))


@dataclass(frozen=True)
class KpiThresholds:
    """Breakpoints for the four threshold-driven risk dimensions."""

    lag: TierBreakpoints = field(default_factory=lambda: _breakpoints("5", "10", "15"))
    scope_creep: TierBreakpoints = field(default_factory=lambda: _breakpoints("10", "15", "25"))
    slippage: TierBreakpoints = field(default_factory=lambda: _breakpoints("5", "10", "15"))
    receivable: TierBreakpoints = field(default_factory=lambda: _breakpoints("5", "10", "15"))

    DIMENSIONS = ("lag", "scope_creep", "slippage", "receivable")
