"""
Tests for the progress ledger builder.

Covers:
- The cumulative derivation for one reporting period
- Permissive input handling (raw mappings, blanks, garbage)
- Opening figures carried forward from the ledger
- Append-only growth of the project ledger
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from kpi_kernel.domain.clock import DeterministicClock
from kpi_kernel.models import CurrentMonth, PreviousMonth
from kpi_engines.ledger import (
    append_progress,
    build_progress_entry,
    calculate_progress,
    previous_month_from_ledger,
)


class TestCalculateProgress:
    """Tests for the eight derived values."""

    def test_highway_reporting_period(self):
        calc = calculate_progress(
            PreviousMonth(
                actual_work_done=Decimal("850000000"),
                escalation_percentage=Decimal("5"),
            ),
            CurrentMonth(
                work_done=Decimal("200000000"),
                escalation_percentage=Decimal("5"),
            ),
        )

        assert calc.escalation_during_month == Decimal("10000000")
        assert calc.upto_date_actual_work_done == Decimal("1050000000")
        assert calc.upto_date_escalation == Decimal("52500000")
        assert calc.upto_date_actual_revenue == Decimal("1102500000")

    def test_revenue_and_collection_accumulate(self):
        calc = calculate_progress(
            PreviousMonth(vetted_revenue=Decimal("800"), amount_received=Decimal("750")),
            CurrentMonth(vetted_revenue=Decimal("180"), amount_received=Decimal("150")),
        )

        assert calc.upto_date_vetted_revenue == Decimal("980")
        assert calc.upto_date_amount_received == Decimal("900")
        assert calc.upto_date_receivable == Decimal("80")

    def test_slippage_is_revenue_minus_vetted(self):
        calc = calculate_progress(
            PreviousMonth(actual_work_done=Decimal("100"), vetted_revenue=Decimal("40")),
            CurrentMonth(work_done=Decimal("50"), escalation_percentage=Decimal("10")),
        )

        assert calc.upto_date_actual_revenue == Decimal("155")
        assert calc.upto_date_slippage == Decimal("115")

    def test_zero_inputs_give_zero_snapshot(self):
        calc = calculate_progress(PreviousMonth(), CurrentMonth())
        assert calc.upto_date_actual_revenue == Decimal("0")
        assert calc.upto_date_slippage == Decimal("0")
        assert calc.upto_date_receivable == Decimal("0")


class TestBuildProgressEntry:
    """Tests for entry construction."""

    def test_accepts_camel_case_mappings(self):
        entry = build_progress_entry(
            {"actualWorkDone": "850000000", "escalationPercentage": "5"},
            {"workDone": "200000000", "escalationPercentage": 5},
        )

        assert entry.previous_month.actual_work_done == Decimal("850000000")
        assert entry.current_month.work_done == Decimal("200000000")
        assert entry.calculations.upto_date_actual_revenue == Decimal("1102500000")

    def test_accepts_snake_case_mappings(self):
        entry = build_progress_entry(
            {"actual_work_done": 100},
            {"work_done": 50, "vetted_revenue": 20},
        )
        assert entry.calculations.upto_date_actual_work_done == Decimal("150")
        assert entry.calculations.upto_date_vetted_revenue == Decimal("20")

    def test_blank_and_garbage_fields_count_as_zero(self):
        entry = build_progress_entry(
            {"actualWorkDone": "", "vettedRevenue": "n/a"},
            {"workDone": None, "amountReceived": "12.5"},
        )

        calc = entry.calculations
        assert calc.upto_date_actual_work_done == Decimal("0")
        assert calc.upto_date_vetted_revenue == Decimal("0")
        assert calc.upto_date_amount_received == Decimal("12.5")

    def test_missing_blocks_degrade_to_zero(self):
        entry = build_progress_entry(None, None)
        assert entry.calculations.upto_date_actual_revenue == Decimal("0")
        assert entry.expenditures == {}

    def test_out_of_range_magnitudes_count_as_zero(self):
        entry = build_progress_entry(
            {"actualWorkDone": "1e-999999"},
            {"workDone": "1e999999", "escalationPercentage": "1e999999", "vettedRevenue": "7"},
        )

        calc = entry.calculations
        assert calc.escalation_during_month == Decimal("0")
        assert calc.upto_date_actual_work_done == Decimal("0")
        assert calc.upto_date_slippage == Decimal("-7")

    def test_typed_blocks_are_coerced(self):
        entry = build_progress_entry(
            PreviousMonth(actual_work_done=Decimal("1e500")),
            CurrentMonth(work_done=Decimal("10")),
        )
        assert entry.calculations.upto_date_actual_work_done == Decimal("10")

    def test_expenditures_pass_through_in_order(self):
        entry = build_progress_entry(
            None,
            None,
            {"Material Cost": "250", "Site Security": 40, "Hiring Cost": 10.5},
        )

        assert list(entry.expenditures) == ["Material Cost", "Site Security", "Hiring Cost"]
        assert entry.expenditures["Hiring Cost"] == Decimal("10.5")
        assert entry.total_expenditure == Decimal("300.5")

    def test_timestamp_comes_from_clock(self):
        clock = DeterministicClock(datetime(2024, 3, 31, 18, 0, tzinfo=timezone.utc))
        entry = build_progress_entry(None, None, clock=clock)
        assert entry.recorded_at == datetime(2024, 3, 31, 18, 0, tzinfo=timezone.utc)

    def test_explicit_entry_id(self):
        entry_id = UUID("00000000-0000-0000-0000-000000000042")
        entry = build_progress_entry(None, None, entry_id=entry_id)
        assert entry.id == entry_id

    def test_generated_ids_are_unique(self):
        first = build_progress_entry(None, None)
        second = build_progress_entry(None, None)
        assert first.id != second.id


class TestPreviousMonthFromLedger:
    """Tests for carrying the last snapshot forward."""

    def test_empty_ledger_gives_zero_opening(self, project_factory):
        assert previous_month_from_ledger(project_factory()) == PreviousMonth()

    def test_carries_cumulative_figures(self, highway_project):
        opening = previous_month_from_ledger(highway_project)

        assert opening.actual_work_done == Decimal("1050000000")
        assert opening.vetted_revenue == Decimal("980000000")
        assert opening.amount_received == Decimal("900000000")
        assert opening.escalation_percentage == Decimal("5")

    def test_blended_escalation_reproduces_cumulative_amount(self, project_factory):
        entry = build_progress_entry(
            {"actualWorkDone": 1000, "escalationPercentage": 4},
            {"workDone": 1000, "escalationPercentage": 6},
        )
        project = project_factory(progress=(entry,))

        opening = previous_month_from_ledger(project)

        assert opening.escalation_percentage == Decimal("5")
        carried = opening.actual_work_done * opening.escalation_percentage / 100
        assert carried == entry.calculations.upto_date_escalation


class TestAppendProgress:
    """Tests for appending to a project's ledger."""

    def test_appends_without_mutating_original(self, highway_project, deterministic_clock):
        updated, entry = append_progress(
            highway_project,
            {"workDone": "100000000", "escalationPercentage": "5"},
            clock=deterministic_clock,
        )

        assert len(highway_project.progress) == 1
        assert updated.progress == highway_project.progress + (entry,)
        assert updated.latest_entry is entry

    def test_derives_opening_from_ledger(self, highway_project):
        _, entry = append_progress(highway_project, {"workDone": "100000000"})

        assert entry.previous_month.actual_work_done == Decimal("1050000000")
        assert entry.calculations.upto_date_actual_work_done == Decimal("1150000000")
        assert entry.calculations.upto_date_escalation == Decimal("52500000")

    def test_explicit_opening_is_used_as_given(self, highway_project):
        _, entry = append_progress(
            highway_project,
            {"workDone": "10"},
            previous={"actualWorkDone": "5"},
        )
        assert entry.calculations.upto_date_actual_work_done == Decimal("15")

    def test_negative_cumulative_work_logs_warning(self, project_factory, captured_logs):
        append_progress(project_factory(), {"workDone": "-10"})

        warnings = [r for r in captured_logs() if r["message"] == "negative_cumulative_work_done"]
        assert len(warnings) == 1
        assert warnings[0]["project_id"] == "PROJ-001"
