"""
kpi_engines.ledger -- Progress ledger builder.

Responsibility:
    Turn a project's cumulative figures as of the start of a reporting
    period plus the raw figures reported for the period into a new
    cumulative snapshot (escalation, revenue, slippage, receivable), and
    wrap it in an immutable ``ProgressEntry``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by the KPI extractor (through the project's ledger) and by
    ``kpi_services.monitoring``.

Invariants enforced:
    - upto_date_slippage == upto_date_actual_revenue - upto_date_vetted_revenue
      and upto_date_receivable == upto_date_vetted_revenue -
      upto_date_amount_received, exactly; no rounding is applied.
    - Entries are never mutated; appending returns a new Project.
    - Missing or unparseable figures contribute 0.

Failure modes:
    None.  The builder never raises on numeric input.

Usage:
    from kpi_engines.ledger import build_progress_entry

    entry = build_progress_entry(
        {"actualWorkDone": "850000000", "escalationPercentage": "5"},
        {"workDone": "200000000", "escalationPercentage": "5"},
        {"Material Cost": "250000000"},
    )
    entry.calculations.upto_date_actual_revenue  # Decimal('1102500000')
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from kpi_kernel.domain.clock import Clock, SystemClock
from kpi_kernel.domain.values import HUNDRED, ZERO, safe_percentage, to_decimal
from kpi_kernel.logging_config import get_logger
from kpi_kernel.models.progress import (
    CurrentMonth,
    PreviousMonth,
    ProgressCalculations,
    ProgressEntry,
)
from kpi_kernel.models.project import Project
from kpi_engines.tracer import traced_engine

logger = get_logger("engines.ledger")

PreviousInput = PreviousMonth | Mapping[str, Any] | None
CurrentInput = CurrentMonth | Mapping[str, Any] | None


def _as_previous(previous: PreviousInput) -> PreviousMonth:
    # Typed blocks are re-coerced too; their fields may be out of range.
    if isinstance(previous, PreviousMonth):
        return PreviousMonth.from_raw(dataclasses.asdict(previous))
    return PreviousMonth.from_raw(previous or {})


def _as_current(current: CurrentInput) -> CurrentMonth:
    if isinstance(current, CurrentMonth):
        return CurrentMonth.from_raw(dataclasses.asdict(current))
    return CurrentMonth.from_raw(current or {})


def _as_expenditures(expenditures: Mapping[str, Any] | None) -> dict[str, Decimal]:
    # Category names and order pass through; amounts are normalized.
    return {str(head): to_decimal(amount) for head, amount in (expenditures or {}).items()}


def calculate_progress(
    previous: PreviousMonth,
    current: CurrentMonth,
) -> ProgressCalculations:
    """Derive the eight cumulative values for one reporting period."""
    escalation_during_month = current.work_done * current.escalation_percentage / HUNDRED
    upto_date_actual_work_done = previous.actual_work_done + current.work_done
    upto_date_escalation = (
        previous.actual_work_done * previous.escalation_percentage / HUNDRED
    ) + escalation_during_month
    upto_date_actual_revenue = upto_date_actual_work_done + upto_date_escalation
    upto_date_vetted_revenue = previous.vetted_revenue + current.vetted_revenue
    upto_date_amount_received = previous.amount_received + current.amount_received

    return ProgressCalculations(
        escalation_during_month=escalation_during_month,
        upto_date_actual_work_done=upto_date_actual_work_done,
        upto_date_escalation=upto_date_escalation,
        upto_date_actual_revenue=upto_date_actual_revenue,
        upto_date_vetted_revenue=upto_date_vetted_revenue,
        upto_date_amount_received=upto_date_amount_received,
        upto_date_slippage=upto_date_actual_revenue - upto_date_vetted_revenue,
        upto_date_receivable=upto_date_vetted_revenue - upto_date_amount_received,
    )


@traced_engine("progress_ledger", "1.0", fingerprint_fields=("previous", "current", "expenditures"))
def build_progress_entry(
    previous: PreviousInput,
    current: CurrentInput,
    expenditures: Mapping[str, Any] | None = None,
    *,
    clock: Clock | None = None,
    entry_id: UUID | None = None,
) -> ProgressEntry:
    """Build a new ledger entry from the period's inputs.

    ``previous`` and ``current`` may be the typed blocks or raw mappings
    (snake_case or camelCase keys, string or numeric values).  ``previous``
    is taken as given; it is not checked against the project's ledger.
    """
    previous_month = _as_previous(previous)
    current_month = _as_current(current)
    calculations = calculate_progress(previous_month, current_month)

    return ProgressEntry(
        id=entry_id or uuid4(),
        recorded_at=(clock or SystemClock()).now(),
        previous_month=previous_month,
        current_month=current_month,
        calculations=calculations,
        expenditures=_as_expenditures(expenditures),
    )


def previous_month_from_ledger(project: Project) -> PreviousMonth:
    """Carry the last ledger entry forward as the next period's opening figures.

    The escalation percentage is the blended rate that, applied to the
    cumulative work done, reproduces the last entry's cumulative escalation
    (to Decimal context precision).  An empty ledger yields all zeros.
    """
    entry = project.latest_entry
    if entry is None:
        return PreviousMonth()

    calc = entry.calculations
    return PreviousMonth(
        actual_work_done=calc.upto_date_actual_work_done,
        escalation_percentage=safe_percentage(
            calc.upto_date_escalation, calc.upto_date_actual_work_done
        ),
        vetted_revenue=calc.upto_date_vetted_revenue,
        amount_received=calc.upto_date_amount_received,
    )


def append_progress(
    project: Project,
    current: CurrentInput,
    expenditures: Mapping[str, Any] | None = None,
    previous: PreviousInput = None,
    *,
    clock: Clock | None = None,
) -> tuple[Project, ProgressEntry]:
    """Build an entry and return the project with it appended.

    When ``previous`` is None the opening figures are derived from the
    project's own ledger.
    """
    opening = previous_month_from_ledger(project) if previous is None else previous
    entry = build_progress_entry(opening, current, expenditures, clock=clock)

    if entry.calculations.upto_date_actual_work_done < ZERO:
        logger.warning(
            "negative_cumulative_work_done",
            extra={
                "project_id": project.id,
                "upto_date_actual_work_done": entry.calculations.upto_date_actual_work_done,
            },
        )

    return project.with_progress(entry), entry
