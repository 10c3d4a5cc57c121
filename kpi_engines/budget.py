"""
kpi_engines.budget -- Planned budget totals and budget-vs-actual variance.

Responsibility:
    Expand a project's ``Budget`` into planned revenue, direct cost,
    overhead, total cost and planned profit, and compare the plan with the
    actuals from the progress ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Independent of the
    progress ledger except in ``compare_budget_to_actual``.

Invariants enforced:
    - total_planned_cost == total_direct_cost + total_overhead_cost.
    - planned_net_profit == planned_gross_profit - total_overhead_cost.
    - A project without a budget yields all-zero totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from kpi_kernel.domain.values import HUNDRED, ZERO, safe_percentage, to_decimal
from kpi_kernel.models.budget import Budget, OverheadMethod
from kpi_kernel.models.project import Project
from kpi_engines.risk import RiskResult
from kpi_engines.tracer import traced_engine

DEFAULT_OVERHEAD_PERCENTAGE = Decimal("10")


@dataclass(frozen=True)
class BudgetTotals:
    """Planned totals derived from a budget."""

    tentative_escalation_amount: Decimal = Decimal("0")
    total_planned_revenue: Decimal = Decimal("0")
    total_direct_cost: Decimal = Decimal("0")
    total_overhead_cost: Decimal = Decimal("0")
    total_planned_cost: Decimal = Decimal("0")
    planned_gross_profit: Decimal = Decimal("0")
    planned_net_profit: Decimal = Decimal("0")


@dataclass(frozen=True)
class BudgetVariance:
    """Plan versus actual for revenue and cost.

    Positive ``revenue_variance`` means revenue ahead of plan; positive
    ``cost_variance`` means spending below plan.
    """

    planned_revenue: Decimal
    actual_revenue: Decimal
    revenue_variance: Decimal
    planned_cost: Decimal
    actual_cost: Decimal
    cost_variance: Decimal
    cost_utilization_percentage: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.cost_variance < ZERO


@traced_engine("budget_totals", "1.0", fingerprint_fields=("budget", "ca_value"))
def calculate_budget_totals(
    budget: Budget | None,
    ca_value: Decimal,
    default_overhead_percentage: Decimal = DEFAULT_OVERHEAD_PERCENTAGE,
) -> BudgetTotals:
    """Planned totals for ``budget`` on a contract worth ``ca_value``."""
    if budget is None:
        return BudgetTotals()

    ca_value = to_decimal(ca_value)
    escalation_amount = ca_value * to_decimal(budget.tentative_escalation) / HUNDRED
    planned_revenue = ca_value + escalation_amount

    direct_cost = (
        to_decimal(budget.subcontractor_cost)
        + to_decimal(budget.material_cost)
        + to_decimal(budget.engineer_facility_cost)
    )
    if budget.overhead_method == OverheadMethod.DETAILED:
        overhead_cost = to_decimal(budget.hr_cost) + to_decimal(budget.general_adm_cost)
    else:
        rate = budget.overhead_percentage
        if rate is None:
            rate = default_overhead_percentage
        overhead_cost = ca_value * to_decimal(rate) / HUNDRED

    gross_profit = planned_revenue - direct_cost
    return BudgetTotals(
        tentative_escalation_amount=escalation_amount,
        total_planned_revenue=planned_revenue,
        total_direct_cost=direct_cost,
        total_overhead_cost=overhead_cost,
        total_planned_cost=direct_cost + overhead_cost,
        planned_gross_profit=gross_profit,
        planned_net_profit=gross_profit - overhead_cost,
    )


def compare_budget_to_actual(
    project: Project,
    risk: RiskResult,
    default_overhead_percentage: Decimal = DEFAULT_OVERHEAD_PERCENTAGE,
) -> BudgetVariance:
    """Compare the project's planned totals with its ledger actuals."""
    totals = calculate_budget_totals(
        project.budget, project.ca_value, default_overhead_percentage
    )
    return BudgetVariance(
        planned_revenue=totals.total_planned_revenue,
        actual_revenue=risk.actual_revenue,
        revenue_variance=risk.actual_revenue - totals.total_planned_revenue,
        planned_cost=totals.total_planned_cost,
        actual_cost=risk.total_expenditure,
        cost_variance=totals.total_planned_cost - risk.total_expenditure,
        cost_utilization_percentage=safe_percentage(
            risk.total_expenditure, totals.total_planned_cost
        ),
    )
