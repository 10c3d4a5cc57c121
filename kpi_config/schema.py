"""
KPI configuration schema.

The human-authored YAML is parsed by the loader into these frozen types.
``KpiThresholds`` itself lives in the kernel so that engines can take it
as a plain input without importing this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from kpi_kernel.models.thresholds import KpiThresholds


@dataclass(frozen=True)
class EngineSettings:
    """Knobs for the services wrapped around the engines."""

    default_overhead_percentage: Decimal = Decimal("10")
    memoize_results: bool = True


@dataclass(frozen=True)
class KpiConfig:
    """A loaded, parsed KPI configuration."""

    thresholds: KpiThresholds = field(default_factory=KpiThresholds)
    engine: EngineSettings = field(default_factory=EngineSettings)
    version: int = 1
    source: str = "<defaults>"
    checksum: str = ""
