"""
Pytest fixtures for the KPI engine test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- ``captured_logs`` for asserting on emitted JSON log records
- Sample projects and a deterministic clock
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from kpi_kernel.domain.clock import DeterministicClock
from kpi_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from kpi_kernel.models import (
    Budget,
    CurrentMonth,
    OverheadMethod,
    PreviousMonth,
    Project,
    ProjectStatus,
    Target,
)
from kpi_engines.ledger import build_progress_entry


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture kpi_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.record_progress(...)
            logs = captured_logs()
            assert any(r["message"] == "record_progress_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("kpi_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


def make_project(project_id: str = "PROJ-001", **overrides) -> Project:
    """A project with no ledger; keyword overrides replace any field."""
    fields = dict(
        id=project_id,
        name="Highway Construction Phase 1",
        directorate="North",
        category="Infrastructure",
        ca_value=Decimal("2500000000"),
        revised_ca_value=Decimal("2650000000"),
        planned_profitability=Decimal("15"),
        status=ProjectStatus.IN_PROGRESS,
        location="Lahore",
        client="National Highway Authority",
        consultant="Engineering Consultants Ltd",
        start_date=date(2024, 1, 15),
        completion_date=date(2025, 12, 31),
    )
    fields.update(overrides)
    return Project(**fields)


@pytest.fixture
def highway_project(deterministic_clock) -> Project:
    """PROJ-001 with targets, a budget and one progress entry."""
    entry = build_progress_entry(
        PreviousMonth(
            actual_work_done=Decimal("850000000"),
            escalation_percentage=Decimal("5"),
            vetted_revenue=Decimal("800000000"),
            amount_received=Decimal("750000000"),
        ),
        CurrentMonth(
            work_done=Decimal("200000000"),
            escalation_percentage=Decimal("5"),
            vetted_revenue=Decimal("180000000"),
            amount_received=Decimal("150000000"),
        ),
        {
            "Subcontractor Cost": Decimal("400000000"),
            "Material Cost": Decimal("250000000"),
            "Hiring Cost": Decimal("50000000"),
            "Engineer Facilities": Decimal("30000000"),
            "Pays & Allowances": Decimal("80000000"),
            "General Administration": Decimal("40000000"),
            "Other Costs": Decimal("20000000"),
        },
        clock=deterministic_clock,
    )
    return make_project(
        targets=(
            Target("2024-01", Decimal("100000000")),
            Target("2024-02", Decimal("150000000")),
            Target("2024-03", Decimal("200000000")),
        ),
        progress=(entry,),
        budget=Budget(
            tentative_escalation=Decimal("5"),
            subcontractor_cost=Decimal("1500000000"),
            material_cost=Decimal("500000000"),
            engineer_facility_cost=Decimal("100000000"),
            hr_cost=Decimal("150000000"),
            general_adm_cost=Decimal("100000000"),
            overhead_method=OverheadMethod.PERCENTAGE,
        ),
    )


@pytest.fixture
def project_factory():
    """``make_project`` as a fixture."""
    return make_project
