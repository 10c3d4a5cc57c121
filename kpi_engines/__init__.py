"""
Module: kpi_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``kpi_services`` and callers embedding the engine directly.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import kpi_kernel (and sibling engine modules).
    MUST NOT import kpi_services or kpi_config.

Invariants enforced:
    - Purity: engines never read the system clock directly; timestamps come
      from an injected ``Clock``.
    - Decimal-only arithmetic; floats are converted on input.
    - Determinism: identical inputs always produce identical outputs.
    - Degrade, never throw: missing figures are zero and every ratio is
      guarded against a zero denominator.

Data flow (one-way):
    ledger -> kpis -> risk -> portfolio

Usage:
    from kpi_engines import extract_kpis, classify_risk, aggregate_portfolio
    from kpi_kernel.models import KpiThresholds

    kpis = extract_kpis(project)
    risk = classify_risk(project, kpis, KpiThresholds())
    stats = aggregate_portfolio(projects, KpiThresholds())
"""

from kpi_engines.budget import (
    BudgetTotals,
    BudgetVariance,
    calculate_budget_totals,
    compare_budget_to_actual,
)
from kpi_engines.kpis import KpiSet, extract_kpis, progress_percentage
from kpi_engines.ledger import (
    append_progress,
    build_progress_entry,
    calculate_progress,
    previous_month_from_ledger,
)
from kpi_engines.portfolio import (
    DirectorateSummary,
    PortfolioStats,
    aggregate_portfolio,
    elevated_dimension_count,
    filter_projects,
    summarize_by_directorate,
)
from kpi_engines.recommendations import recommend_actions
from kpi_engines.risk import (
    CollectionRisk,
    CostVarianceStatus,
    ProfitabilityRisk,
    RiskResult,
    ScheduleRisk,
    classify_risk,
    classify_tier,
    is_high_risk,
)

__all__ = [
    # Ledger
    "append_progress",
    "build_progress_entry",
    "calculate_progress",
    "previous_month_from_ledger",
    # KPIs
    "KpiSet",
    "extract_kpis",
    "progress_percentage",
    # Risk
    "CollectionRisk",
    "CostVarianceStatus",
    "ProfitabilityRisk",
    "RiskResult",
    "ScheduleRisk",
    "classify_risk",
    "classify_tier",
    "is_high_risk",
    # Portfolio
    "DirectorateSummary",
    "PortfolioStats",
    "aggregate_portfolio",
    "elevated_dimension_count",
    "filter_projects",
    "summarize_by_directorate",
    # Budget
    "BudgetTotals",
    "BudgetVariance",
    "calculate_budget_totals",
    "compare_budget_to_actual",
    # Recommendations
    "recommend_actions",
]
