"""
Progress Ledger Models (``kpi_kernel.models.progress``).

Responsibility
--------------
Value objects for one monthly progress submission: the cumulative figures
as of the start of the period, the raw deltas reported for the period, the
eight derived cumulative values and the period's expenditure by cost head.

Invariants enforced
-------------------
* All models are ``frozen=True``; a ``ProgressEntry`` is never amended once
  appended to a project's ledger.
* All monetary fields use ``Decimal`` -- never ``float``.
* ``from_raw`` constructors degrade missing or unparseable figures to 0.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from kpi_kernel.domain.values import to_decimal

EXPENDITURE_HEADS: tuple[str, ...] = (
    "Subcontractor Cost",
    "Material Cost",
    "Hiring Cost",
    "Engineer Facilities",
    "Pays & Allowances",
    "General Administration",
    "Other Costs",
)


@dataclass(frozen=True)
class PreviousMonth:
    """Cumulative figures as of the start of the reporting period."""

    actual_work_done: Decimal = Decimal("0")
    escalation_percentage: Decimal = Decimal("0")
    vetted_revenue: Decimal = Decimal("0")
    amount_received: Decimal = Decimal("0")

    @classmethod
    def from_raw(cls, data: Mapping[str, Any]) -> PreviousMonth:
        """Build from snake_case or camelCase raw form values."""
        return cls(
            actual_work_done=to_decimal(_pick(data, "actual_work_done", "actualWorkDone")),
            escalation_percentage=to_decimal(
                _pick(data, "escalation_percentage", "escalationPercentage")
            ),
            vetted_revenue=to_decimal(_pick(data, "vetted_revenue", "vettedRevenue")),
            amount_received=to_decimal(_pick(data, "amount_received", "amountReceived")),
        )


@dataclass(frozen=True)
class CurrentMonth:
    """Raw deltas reported during the reporting period."""

    work_done: Decimal = Decimal("0")
    escalation_percentage: Decimal = Decimal("0")
    vetted_revenue: Decimal = Decimal("0")
    amount_received: Decimal = Decimal("0")

    @classmethod
    def from_raw(cls, data: Mapping[str, Any]) -> CurrentMonth:
        """Build from snake_case or camelCase raw form values."""
        return cls(
            work_done=to_decimal(_pick(data, "work_done", "workDone")),
            escalation_percentage=to_decimal(
                _pick(data, "escalation_percentage", "escalationPercentage")
            ),
            vetted_revenue=to_decimal(_pick(data, "vetted_revenue", "vettedRevenue")),
            amount_received=to_decimal(_pick(data, "amount_received", "amountReceived")),
        )


@dataclass(frozen=True)
class ProgressCalculations:
    """Derived cumulative values of a progress entry (no rounding applied)."""

    escalation_during_month: Decimal = Decimal("0")
    upto_date_actual_work_done: Decimal = Decimal("0")
    upto_date_escalation: Decimal = Decimal("0")
    upto_date_actual_revenue: Decimal = Decimal("0")
    upto_date_vetted_revenue: Decimal = Decimal("0")
    upto_date_amount_received: Decimal = Decimal("0")
    upto_date_slippage: Decimal = Decimal("0")
    upto_date_receivable: Decimal = Decimal("0")


@dataclass(frozen=True)
class ProgressEntry:
    """One immutable record of the append-only progress ledger."""

    id: UUID
    recorded_at: datetime
    previous_month: PreviousMonth
    current_month: CurrentMonth
    calculations: ProgressCalculations
    expenditures: dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_expenditure(self) -> Decimal:
        return sum(self.expenditures.values(), Decimal("0"))


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None
