"""
kpi_engines.portfolio -- Portfolio aggregator.

Responsibility:
    Roll a set of projects up into status counts, financial totals and the
    high-risk list, and summarize the portfolio per directorate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Runs ``extract_kpis`` and ``classify_risk`` for every project on every
    call; caching, if any, belongs to the caller.

Invariants enforced:
    - total_revenue and total_expenditure are additive over disjoint
      project sets.
    - total_profit == total_revenue - total_expenditure.
    - The high-risk list preserves input order unless a risk score is given,
      in which case it is sorted by descending score (stable).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from kpi_kernel.domain.values import ZERO, safe_percentage, to_decimal
from kpi_kernel.models.project import Project, ProjectStatus
from kpi_kernel.models.thresholds import KpiThresholds
from kpi_engines.kpis import KpiSet, extract_kpis, progress_percentage
from kpi_engines.risk import RiskResult, classify_risk
from kpi_engines.tracer import traced_engine

ALL = "All"

RiskScore = Callable[[Project, RiskResult], Decimal | int | float]
Assessment = tuple[Project, KpiSet, RiskResult]
Assessor = Callable[[Project], tuple[KpiSet, RiskResult]]


@dataclass(frozen=True)
class PortfolioStats:
    """Counts, financial totals and high-risk projects for a portfolio."""

    total: int = 0
    in_progress: int = 0
    completed: int = 0
    planning: int = 0
    high_risk: int = 0
    total_ca_value: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")
    total_expenditure: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    status_counts: dict[str, int] = field(default_factory=dict)
    high_risk_projects: tuple[tuple[Project, RiskResult], ...] = ()


@dataclass(frozen=True)
class DirectorateSummary:
    """Performance summary for the projects of one directorate."""

    directorate: str
    total_projects: int
    total_ca_value: Decimal
    average_progress: Decimal
    total_revenue: Decimal
    total_expenditure: Decimal
    profitability: Decimal


def filter_projects(
    projects: Iterable[Project],
    directorate: str | None = None,
    status: str | None = None,
) -> list[Project]:
    """Keep projects matching the directorate and status ("All"/None = any)."""
    selected = []
    for project in projects:
        if directorate not in (None, ALL) and project.directorate != directorate:
            continue
        if status not in (None, ALL) and project.status != status:
            continue
        selected.append(project)
    return selected


def elevated_dimension_count(project: Project, result: RiskResult) -> int:
    """Risk score: how many dimensions sit in an elevated tier."""
    return len(result.elevated_dimensions)


def assess_projects(
    projects: Iterable[Project],
    thresholds: KpiThresholds,
    assessor: Assessor | None = None,
) -> list[Assessment]:
    """Run the KPI extractor and risk classifier over each project."""
    assessments: list[Assessment] = []
    for project in projects:
        if assessor is not None:
            kpis, risk = assessor(project)
        else:
            kpis = extract_kpis(project)
            risk = classify_risk(project, kpis, thresholds)
        assessments.append((project, kpis, risk))
    return assessments


@traced_engine("portfolio_aggregator", "1.0", fingerprint_fields=("thresholds",))
def aggregate_portfolio(
    projects: Sequence[Project],
    thresholds: KpiThresholds,
    risk_score: RiskScore | None = None,
    assessor: Assessor | None = None,
) -> PortfolioStats:
    """Aggregate a (pre-filtered) set of projects.

    ``assessor`` lets a caller substitute memoized (KpiSet, RiskResult)
    pairs; it must return exactly what the KPI extractor and risk
    classifier would.
    """
    status_counts: dict[str, int] = {}
    total_ca_value = ZERO
    total_revenue = ZERO
    total_expenditure = ZERO
    flagged: list[tuple[Project, RiskResult]] = []

    for project, kpis, risk in assess_projects(projects, thresholds, assessor):
        status = str(getattr(project.status, "value", project.status))
        status_counts[status] = status_counts.get(status, 0) + 1
        total_ca_value += to_decimal(project.ca_value)
        total_revenue += to_decimal(kpis.actual_revenue)
        total_expenditure += risk.total_expenditure
        if risk.is_high_risk:
            flagged.append((project, risk))

    if risk_score is not None:
        flagged.sort(key=lambda pair: to_decimal(risk_score(*pair)), reverse=True)

    return PortfolioStats(
        total=len(projects),
        in_progress=status_counts.get(ProjectStatus.IN_PROGRESS.value, 0),
        completed=status_counts.get(ProjectStatus.COMPLETED.value, 0),
        planning=status_counts.get(ProjectStatus.PLANNING.value, 0),
        high_risk=len(flagged),
        total_ca_value=total_ca_value,
        total_revenue=total_revenue,
        total_expenditure=total_expenditure,
        total_profit=total_revenue - total_expenditure,
        status_counts=status_counts,
        high_risk_projects=tuple(flagged),
    )


@traced_engine("directorate_summary", "1.0", fingerprint_fields=("thresholds",))
def summarize_by_directorate(
    projects: Sequence[Project],
    thresholds: KpiThresholds,
    directorates: Sequence[str] | None = None,
    assessor: Assessor | None = None,
) -> list[DirectorateSummary]:
    """One summary row per directorate, in first-seen order by default.

    Directorates named explicitly but without projects get an all-zero row.
    """
    grouped: dict[str, list[Assessment]] = {}
    for name in directorates or ():
        grouped.setdefault(name, [])
    for assessment in assess_projects(projects, thresholds, assessor):
        project = assessment[0]
        if directorates is not None and project.directorate not in grouped:
            continue
        grouped.setdefault(project.directorate, []).append(assessment)

    summaries = []
    for name, rows in grouped.items():
        count = len(rows)
        revenue = sum((to_decimal(kpis.actual_revenue) for _, kpis, _ in rows), ZERO)
        expenditure = sum((risk.total_expenditure for _, _, risk in rows), ZERO)
        progress = sum((progress_percentage(p, kpis) for p, kpis, _ in rows), ZERO)
        summaries.append(
            DirectorateSummary(
                directorate=name,
                total_projects=count,
                total_ca_value=sum((to_decimal(p.ca_value) for p, _, _ in rows), ZERO),
                average_progress=progress / count if count else ZERO,
                total_revenue=revenue,
                total_expenditure=expenditure,
                profitability=safe_percentage(revenue - expenditure, expenditure),
            )
        )
    return summaries
