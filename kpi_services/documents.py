"""
Project Documents (``kpi_services.documents``).

Responsibility
--------------
Convert ``Project`` aggregates to and from plain JSON documents using the
camelCase layout of the dashboard's stored project list, and export/import
whole portfolios as JSON text.

Invariants enforced
-------------------
* Decimals are written as strings so no precision is lost in JSON.
* Reading is permissive: absent or unparseable figures become 0, absent
  sequences become empty, a missing budget stays ``None``.
* ``project_from_document(project_to_document(p)) == p`` for any project.

Failure modes
-------------
* ``import_projects`` raises ``ProjectImportError`` when the text is not
  JSON or not a list of project objects.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from kpi_kernel.domain.values import to_decimal
from kpi_kernel.exceptions import ProjectImportError
from kpi_kernel.models.budget import Budget, OverheadMethod
from kpi_kernel.models.progress import (
    CurrentMonth,
    PreviousMonth,
    ProgressCalculations,
    ProgressEntry,
)
from kpi_kernel.models.project import Project, ProjectStatus, Target

_CALCULATION_KEYS = (
    ("escalation_during_month", "escalationDuringMonth"),
    ("upto_date_actual_work_done", "uptoDateActualWorkDone"),
    ("upto_date_escalation", "uptoDateEscalation"),
    ("upto_date_actual_revenue", "uptoDateActualRevenue"),
    ("upto_date_vetted_revenue", "uptoDateVettedRevenue"),
    ("upto_date_amount_received", "uptoDateAmountReceived"),
    ("upto_date_slippage", "uptoDateSlippage"),
    ("upto_date_receivable", "uptoDateReceivable"),
)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _num(value: Decimal) -> str:
    return str(value)


def _status_value(status: Any) -> str:
    return str(getattr(status, "value", status))


def _entry_to_document(entry: ProgressEntry) -> dict[str, Any]:
    prev, cur, calc = entry.previous_month, entry.current_month, entry.calculations
    return {
        "id": str(entry.id),
        "date": entry.recorded_at.isoformat(),
        "previousMonth": {
            "actualWorkDone": _num(prev.actual_work_done),
            "escalationPercentage": _num(prev.escalation_percentage),
            "vettedRevenue": _num(prev.vetted_revenue),
            "amountReceived": _num(prev.amount_received),
        },
        "currentMonth": {
            "workDone": _num(cur.work_done),
            "escalationPercentage": _num(cur.escalation_percentage),
            "vettedRevenue": _num(cur.vetted_revenue),
            "amountReceived": _num(cur.amount_received),
        },
        "calculations": {
            camel: _num(getattr(calc, attr)) for attr, camel in _CALCULATION_KEYS
        },
        "expenditures": {head: _num(amount) for head, amount in entry.expenditures.items()},
    }


def _budget_to_document(budget: Budget) -> dict[str, Any]:
    doc = {
        "tentativeEscalation": _num(budget.tentative_escalation),
        "subcontractorCost": _num(budget.subcontractor_cost),
        "materialCost": _num(budget.material_cost),
        "engineerFacilityCost": _num(budget.engineer_facility_cost),
        "hrCost": _num(budget.hr_cost),
        "generalAdmCost": _num(budget.general_adm_cost),
        "overheadCalculationMethod": _status_value(budget.overhead_method),
    }
    if budget.overhead_percentage is not None:
        doc["overheadPercentage"] = _num(budget.overhead_percentage)
    return doc


def project_to_document(project: Project) -> dict[str, Any]:
    """Serialize a project to a JSON-ready dict."""
    return {
        "id": project.id,
        "name": project.name,
        "directorate": project.directorate,
        "category": project.category,
        "location": project.location,
        "client": project.client,
        "consultant": project.consultant,
        "caValue": _num(project.ca_value),
        "revisedCaValue": _num(project.revised_ca_value),
        "plannedProfitability": _num(project.planned_profitability),
        "status": _status_value(project.status),
        "startDate": project.start_date.isoformat() if project.start_date else None,
        "completionDate": project.completion_date.isoformat() if project.completion_date else None,
        "revisedCompletionDate": (
            project.revised_completion_date.isoformat()
            if project.revised_completion_date else None
        ),
        "targets": [
            {"month": t.month, "value": _num(t.planned_value)} for t in project.targets
        ],
        "progress": [_entry_to_document(e) for e in project.progress],
        "budget": _budget_to_document(project.budget) if project.budget else None,
    }


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_uuid(value: Any) -> UUID:
    try:
        return UUID(str(value))
    except ValueError:
        # Documents written by the dashboard carry no entry id.
        return uuid4()


def _parse_status(value: Any) -> str:
    text = str(value or ProjectStatus.PLANNING.value)
    try:
        return ProjectStatus(text)
    except ValueError:
        return text


def _section(doc: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = doc.get(key)
    return value if isinstance(value, Mapping) else {}


def _entry_from_document(doc: Mapping[str, Any]) -> ProgressEntry:
    calc = _section(doc, "calculations")
    return ProgressEntry(
        id=_parse_uuid(doc.get("id")),
        recorded_at=_parse_timestamp(doc.get("date")),
        previous_month=PreviousMonth.from_raw(_section(doc, "previousMonth")),
        current_month=CurrentMonth.from_raw(_section(doc, "currentMonth")),
        calculations=ProgressCalculations(
            **{attr: to_decimal(calc.get(camel)) for attr, camel in _CALCULATION_KEYS}
        ),
        expenditures={
            str(head): to_decimal(amount)
            for head, amount in _section(doc, "expenditures").items()
        },
    )


def _budget_from_document(doc: Mapping[str, Any] | None) -> Budget | None:
    if not isinstance(doc, Mapping):
        return None
    method = str(doc.get("overheadCalculationMethod") or OverheadMethod.PERCENTAGE.value)
    overhead = doc.get("overheadPercentage")
    return Budget(
        tentative_escalation=to_decimal(doc.get("tentativeEscalation")),
        subcontractor_cost=to_decimal(doc.get("subcontractorCost")),
        material_cost=to_decimal(doc.get("materialCost")),
        engineer_facility_cost=to_decimal(doc.get("engineerFacilityCost")),
        hr_cost=to_decimal(doc.get("hrCost")),
        general_adm_cost=to_decimal(doc.get("generalAdmCost")),
        overhead_method=(
            OverheadMethod.DETAILED if method == OverheadMethod.DETAILED.value
            else OverheadMethod.PERCENTAGE
        ),
        overhead_percentage=to_decimal(overhead) if overhead is not None else None,
    )


def _list(doc: Mapping[str, Any], key: str) -> list[Any]:
    value = doc.get(key)
    return [item for item in value if isinstance(item, Mapping)] if isinstance(value, list) else []


def project_from_document(doc: Mapping[str, Any]) -> Project:
    """Deserialize a project document; missing figures default to 0."""
    return Project(
        id=str(doc.get("id", "")),
        name=str(doc.get("name", "")),
        directorate=str(doc.get("directorate") or ""),
        category=str(doc.get("category") or ""),
        location=str(doc.get("location") or ""),
        client=str(doc.get("client") or ""),
        consultant=str(doc.get("consultant") or ""),
        ca_value=to_decimal(doc.get("caValue")),
        revised_ca_value=to_decimal(doc.get("revisedCaValue")),
        planned_profitability=to_decimal(doc.get("plannedProfitability")),
        status=_parse_status(doc.get("status")),
        start_date=_parse_date(doc.get("startDate")),
        completion_date=_parse_date(doc.get("completionDate")),
        revised_completion_date=_parse_date(doc.get("revisedCompletionDate")),
        targets=tuple(
            Target(month=str(t.get("month", "")), planned_value=to_decimal(t.get("value")))
            for t in _list(doc, "targets")
        ),
        progress=tuple(_entry_from_document(e) for e in _list(doc, "progress")),
        budget=_budget_from_document(doc.get("budget")),
    )


# ---------------------------------------------------------------------------
# Portfolio export / import
# ---------------------------------------------------------------------------


def export_projects(projects: Iterable[Project]) -> str:
    """Serialize a portfolio to indented JSON text."""
    return json.dumps([project_to_document(p) for p in projects], indent=2)


def import_projects(text: str) -> list[Project]:
    """Parse JSON text produced by ``export_projects`` (or the dashboard).

    Raises:
        ProjectImportError: if the text is not JSON or not a list of objects.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProjectImportError(f"not valid JSON ({exc.msg})") from exc
    if isinstance(data, Mapping) and isinstance(data.get("projects"), list):
        data = data["projects"]
    if not isinstance(data, list) or not all(isinstance(d, Mapping) for d in data):
        raise ProjectImportError("expected a list of project objects")
    return [project_from_document(d) for d in data]
