"""
Threshold validation.

Reports breakpoint sets that are not ordered low <= moderate <= high, or
that are negative.  Issues are advisory: the classifier accepts any
breakpoints and simply mis-orders tiers when they are inconsistent.
"""

from __future__ import annotations

from decimal import Decimal

from kpi_kernel.models.thresholds import KpiThresholds


def validate_thresholds(thresholds: KpiThresholds) -> tuple[str, ...]:
    """Return human-readable issues, empty when the breakpoints are sane."""
    issues: list[str] = []
    for name in KpiThresholds.DIMENSIONS:
        bp = getattr(thresholds, name)
        if bp.low > bp.moderate:
            issues.append(f"{name}: low ({bp.low}) exceeds moderate ({bp.moderate})")
        if bp.moderate > bp.high:
            issues.append(f"{name}: moderate ({bp.moderate}) exceeds high ({bp.high})")
        if bp.low < Decimal("0"):
            issues.append(f"{name}: low ({bp.low}) is negative")
    return tuple(issues)
