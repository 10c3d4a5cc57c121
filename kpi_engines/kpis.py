"""
kpi_engines.kpis -- KPI extractor.

Responsibility:
    Read the latest cumulative KPIs of a project from the last entry of its
    progress ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Feeds ``kpi_engines.risk`` and ``kpi_engines.portfolio``.

Invariants enforced:
    - Only the most recent ledger entry is read; nothing is re-summed from
      period deltas.
    - An empty ledger yields an all-zero KPI set.
    - Idempotent: identical projects give identical KPI sets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from kpi_kernel.domain.values import ZERO, safe_percentage, to_decimal
from kpi_kernel.models.project import Project
from kpi_engines.tracer import traced_engine


@dataclass(frozen=True)
class KpiSet:
    """Latest cumulative KPIs of one project."""

    actual_revenue: Decimal = Decimal("0")
    vetted_revenue: Decimal = Decimal("0")
    amount_received: Decimal = Decimal("0")
    slippage: Decimal = Decimal("0")
    receivable: Decimal = Decimal("0")
    expenditures: dict[str, Decimal] = field(default_factory=dict)

    def expenditure_for(self, head: str) -> Decimal:
        """Amount booked against ``head``; absent heads count as 0."""
        return self.expenditures.get(head, ZERO)


@traced_engine(
    "kpi_extractor", "1.0", fingerprint_fields=("project.id", "project.latest_entry.id")
)
def extract_kpis(project: Project) -> KpiSet:
    """Extract the KPI set from the project's latest ledger entry."""
    entry = project.latest_entry
    if entry is None:
        return KpiSet()

    calc = entry.calculations
    return KpiSet(
        actual_revenue=to_decimal(calc.upto_date_actual_revenue),
        vetted_revenue=to_decimal(calc.upto_date_vetted_revenue),
        amount_received=to_decimal(calc.upto_date_amount_received),
        slippage=to_decimal(calc.upto_date_slippage),
        receivable=to_decimal(calc.upto_date_receivable),
        expenditures={head: to_decimal(amount) for head, amount in entry.expenditures.items()},
    )


def progress_percentage(project: Project, kpis: KpiSet | None = None) -> Decimal:
    """Actual revenue to date as a percentage of the CA value."""
    kpis = kpis if kpis is not None else extract_kpis(project)
    if kpis.actual_revenue <= ZERO:
        return ZERO
    return safe_percentage(kpis.actual_revenue, to_decimal(project.ca_value))
