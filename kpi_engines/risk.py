"""
kpi_engines.risk -- Risk classifier.

Responsibility:
    Compute the derived percentages of a project (lag, scope creep,
    slippage, receivable, profitability), map each onto a discrete risk
    tier, and flag the project as high-risk when any dimension is in an
    elevated tier.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``KpiSet`` from ``kpi_engines.kpis``; consumed by
    ``kpi_engines.portfolio`` and ``kpi_engines.recommendations``.

Invariants enforced:
    - Every ratio is guarded: a denominator <= 0 yields 0%, never an error.
    - Breakpoints are inclusive upper bounds evaluated low -> moderate ->
      high; a value equal to a breakpoint lands in the safer tier.
    - Dimensions are classified independently of each other.
    - Threshold ordering is not validated; mis-ordered breakpoints simply
      mis-classify.

Failure modes:
    None.  Missing figures are treated as 0.

Tier table:
    lag%, scope_creep%     Low / Moderate / High / Danger
    slippage%, receivable% Satisfactory / Low / High / Danger
    cost variance          Under Budget (>= 0) / Over Budget
    profitability          Excellent (>= planned) / Satisfactory (>= 92%)
                           / Risk (>= 85%) / Danger
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from kpi_kernel.domain.values import ZERO, safe_percentage, sum_decimals, to_decimal
from kpi_kernel.models.project import Project
from kpi_kernel.models.thresholds import KpiThresholds, TierBreakpoints
from kpi_engines.kpis import KpiSet
from kpi_engines.tracer import traced_engine

SATISFACTORY_PROFIT_FACTOR = Decimal("0.92")
RISK_PROFIT_FACTOR = Decimal("0.85")


class ScheduleRisk(str, Enum):
    """Tiers for lag and scope creep."""

    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    DANGER = "Danger"


class CollectionRisk(str, Enum):
    """Tiers for slippage and receivable."""

    SATISFACTORY = "Satisfactory"
    LOW = "Low"
    HIGH = "High"
    DANGER = "Danger"


class CostVarianceStatus(str, Enum):
    UNDER_BUDGET = "Under Budget"
    OVER_BUDGET = "Over Budget"


class ProfitabilityRisk(str, Enum):
    """Tiers relative to the project's planned profitability."""

    EXCELLENT = "Excellent"
    SATISFACTORY = "Satisfactory"
    RISK = "Risk"
    DANGER = "Danger"


_ELEVATED_SCHEDULE = frozenset({ScheduleRisk.HIGH, ScheduleRisk.DANGER})
_ELEVATED_COLLECTION = frozenset({CollectionRisk.HIGH, CollectionRisk.DANGER})
_ELEVATED_PROFITABILITY = frozenset({ProfitabilityRisk.RISK, ProfitabilityRisk.DANGER})


@dataclass(frozen=True)
class RiskResult:
    """
    Every derived figure and tier for one project.

    All fields are immutable.  ``is_high_risk`` is derived at construction
    by ``classify_risk``.
    """

    planned_revenue: Decimal
    actual_revenue: Decimal
    lag: Decimal
    lag_percentage: Decimal
    lag_risk: ScheduleRisk
    scope_creep: Decimal
    scope_creep_percentage: Decimal
    scope_creep_risk: ScheduleRisk
    total_expenditure: Decimal
    cost_variance: Decimal
    cost_variance_risk: CostVarianceStatus
    profitability: Decimal
    profitability_risk: ProfitabilityRisk
    slippage: Decimal
    slippage_percentage: Decimal
    slippage_risk: CollectionRisk
    receivable: Decimal
    receivable_percentage: Decimal
    receivable_risk: CollectionRisk
    is_high_risk: bool = False

    @property
    def elevated_dimensions(self) -> tuple[str, ...]:
        """Names of the dimensions that make the project high-risk."""
        return elevated_dimensions(self)


def classify_tier(
    percentage: Decimal,
    breakpoints: TierBreakpoints,
    tiers: tuple[Enum, Enum, Enum, Enum],
) -> Enum:
    """Map a percentage onto four tiers using inclusive upper bounds."""
    if percentage <= to_decimal(breakpoints.low):
        return tiers[0]
    if percentage <= to_decimal(breakpoints.moderate):
        return tiers[1]
    if percentage <= to_decimal(breakpoints.high):
        return tiers[2]
    return tiers[3]


_SCHEDULE_TIERS = (ScheduleRisk.LOW, ScheduleRisk.MODERATE, ScheduleRisk.HIGH, ScheduleRisk.DANGER)
_COLLECTION_TIERS = (
    CollectionRisk.SATISFACTORY,
    CollectionRisk.LOW,
    CollectionRisk.HIGH,
    CollectionRisk.DANGER,
)


def classify_profitability(profitability: Decimal, planned_profitability: Decimal) -> ProfitabilityRisk:
    """Tier profitability against the project's own planned figure.

    The 92% and 85% factors are applied to the planned percentage as-is,
    so a negative plan inverts the bands.
    """
    if profitability >= planned_profitability:
        return ProfitabilityRisk.EXCELLENT
    if profitability >= planned_profitability * SATISFACTORY_PROFIT_FACTOR:
        return ProfitabilityRisk.SATISFACTORY
    if profitability >= planned_profitability * RISK_PROFIT_FACTOR:
        return ProfitabilityRisk.RISK
    return ProfitabilityRisk.DANGER


def elevated_dimensions(result: RiskResult) -> tuple[str, ...]:
    dims: list[str] = []
    if result.lag_risk in _ELEVATED_SCHEDULE:
        dims.append("lag")
    if result.scope_creep_risk in _ELEVATED_SCHEDULE:
        dims.append("scope_creep")
    if result.profitability_risk in _ELEVATED_PROFITABILITY:
        dims.append("profitability")
    if result.slippage_risk in _ELEVATED_COLLECTION:
        dims.append("slippage")
    if result.receivable_risk in _ELEVATED_COLLECTION:
        dims.append("receivable")
    return tuple(dims)


def is_high_risk(result: RiskResult) -> bool:
    """True when any dimension sits in an elevated tier."""
    return bool(elevated_dimensions(result))


@traced_engine("risk_classifier", "1.0", fingerprint_fields=("kpis", "thresholds"))
def classify_risk(project: Project, kpis: KpiSet, thresholds: KpiThresholds) -> RiskResult:
    """Compute every derived percentage and tier for ``project``."""
    planned_revenue = sum_decimals(target.planned_value for target in project.targets)
    actual_revenue = to_decimal(kpis.actual_revenue)

    lag = planned_revenue - actual_revenue
    lag_percentage = safe_percentage(lag, planned_revenue)

    ca_value = to_decimal(project.ca_value)
    scope_creep = to_decimal(project.revised_ca_value) - ca_value
    scope_creep_percentage = safe_percentage(scope_creep, ca_value)

    total_expenditure = sum_decimals(kpis.expenditures.values())
    cost_variance = actual_revenue - total_expenditure
    profitability = safe_percentage(actual_revenue - total_expenditure, total_expenditure)

    slippage = to_decimal(kpis.slippage)
    slippage_percentage = safe_percentage(slippage, actual_revenue)

    receivable = to_decimal(kpis.receivable)
    receivable_percentage = safe_percentage(receivable, to_decimal(kpis.amount_received))

    result = RiskResult(
        planned_revenue=planned_revenue,
        actual_revenue=actual_revenue,
        lag=lag,
        lag_percentage=lag_percentage,
        lag_risk=classify_tier(lag_percentage, thresholds.lag, _SCHEDULE_TIERS),
        scope_creep=scope_creep,
        scope_creep_percentage=scope_creep_percentage,
        scope_creep_risk=classify_tier(
            scope_creep_percentage, thresholds.scope_creep, _SCHEDULE_TIERS
        ),
        total_expenditure=total_expenditure,
        cost_variance=cost_variance,
        cost_variance_risk=(
            CostVarianceStatus.UNDER_BUDGET if cost_variance >= ZERO
            else CostVarianceStatus.OVER_BUDGET
        ),
        profitability=profitability,
        profitability_risk=classify_profitability(
            profitability, to_decimal(project.planned_profitability)
        ),
        slippage=slippage,
        slippage_percentage=slippage_percentage,
        slippage_risk=classify_tier(slippage_percentage, thresholds.slippage, _COLLECTION_TIERS),
        receivable=receivable,
        receivable_percentage=receivable_percentage,
        receivable_risk=classify_tier(
            receivable_percentage, thresholds.receivable, _COLLECTION_TIERS
        ),
    )
    return dataclasses.replace(result, is_high_risk=is_high_risk(result))
