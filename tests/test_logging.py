"""
Tests for structured logging (kpi_kernel/logging_config.py).

Covers:
- The KPI envelope on engine traces and progress events
- Error payloads for kernel exceptions
- LogContext binding and isolation between threads
- configure_logging / reset_logging
"""

import dataclasses
import json
import logging
import threading
from decimal import Decimal
from io import StringIO

import pytest

from kpi_config.loader import parse_config
from kpi_kernel.exceptions import LedgerImmutabilityError
from kpi_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from kpi_engines.risk import ScheduleRisk
from kpi_services.monitoring import ProjectMonitoringService
from kpi_services.store import InMemoryProjectStore


@pytest.fixture
def log_stream():
    """A StringIO wired as the kpi_kernel JSON handler at DEBUG."""
    reset_logging()
    stream = StringIO()
    configure_logging(level=logging.DEBUG, handler=logging.StreamHandler(stream))
    yield stream
    reset_logging()


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


def _one(stream: StringIO, message: str) -> dict:
    matches = [r for r in _records(stream) if r["message"] == message]
    assert len(matches) == 1, [r["message"] for r in _records(stream)]
    return matches[0]


class TestKpiEnvelope:
    """Project, entry and engine fields lead every record that has them."""

    def test_record_progress_events(self, log_stream, highway_project, deterministic_clock):
        service = ProjectMonitoringService(
            InMemoryProjectStore([highway_project]),
            config=parse_config({}),
            clock=deterministic_clock,
        )
        entry = service.record_progress("PROJ-001", {"workDone": "10"})

        started = _one(log_stream, "record_progress_started")
        completed = _one(log_stream, "record_progress_completed")

        assert started["project_id"] == "PROJ-001"
        assert started["derived_previous"] is True
        assert list(completed)[:6] == [
            "ts", "level", "logger", "message", "project_id", "entry_id",
        ]
        assert completed["entry_id"] == str(entry.id)
        assert completed["ledger_length"] == 2
        assert completed["logger"] == "kpi_kernel.services.monitoring"

    def test_engine_traces_inherit_project(self, highway_project, log_stream):
        service = ProjectMonitoringService(
            InMemoryProjectStore([highway_project]), config=parse_config({})
        )
        service.record_progress("PROJ-001", {"workDone": "10"})

        ledger_trace = next(
            r for r in _records(log_stream)
            if r["message"] == "KPI_ENGINE_TRACE" and r["engine_name"] == "progress_ledger"
        )
        assert ledger_trace["project_id"] == "PROJ-001"
        assert ledger_trace["trace_type"] == "KPI_ENGINE_TRACE"
        assert len(ledger_trace["input_fingerprint"]) == 16

    def test_extra_overrides_context(self, log_stream):
        with LogContext.bind(project_id="PROJ-001"):
            get_logger("test").info("moved", extra={"project_id": "PROJ-002"})

        assert _one(log_stream, "moved")["project_id"] == "PROJ-002"

    def test_amounts_and_tiers_serialized(self, log_stream):
        get_logger("test").info(
            "classified",
            extra={"lag_percentage": Decimal("5.50"), "tier": ScheduleRisk.HIGH},
        )

        record = _one(log_stream, "classified")
        assert record["lag_percentage"] == "5.50"
        assert record["tier"] == "High"

    def test_no_envelope_outside_a_project(self, log_stream):
        get_logger("test").info("bare")

        record = _one(log_stream, "bare")
        assert "project_id" not in record
        assert "entry_id" not in record


class TestErrorPayload:
    """Exceptions are rendered as a nested error object."""

    def test_ledger_rewrite_error(self, log_stream, highway_project):
        store = InMemoryProjectStore([highway_project])
        logger = get_logger("test")
        try:
            store.replace(dataclasses.replace(highway_project, progress=()))
        except LedgerImmutabilityError:
            logger.error("replace_failed", exc_info=True)

        error = _one(log_stream, "replace_failed")["error"]
        assert error["type"] == "LedgerImmutabilityError"
        assert error["code"] == "LEDGER_IMMUTABLE"
        assert error["project_id"] == "PROJ-001"
        assert error["stored_entries"] == 1
        assert error["offending_index"] == 0

    def test_foreign_exception_has_no_code(self, log_stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _one(log_stream, "failed")
        assert record["error"] == {"type": "ValueError", "message": "boom"}
        assert "Traceback" in record["traceback"]


class TestLogContext:
    """Context binding for a unit of work."""

    def test_bind_nests_and_restores(self):
        with LogContext.bind(project_id="outer", correlation_id="c-1"):
            with LogContext.bind(project_id="inner"):
                assert LogContext.current() == {"project_id": "inner", "correlation_id": "c-1"}
            assert LogContext.current()["project_id"] == "outer"
        assert LogContext.current() == {}

    def test_none_values_skipped(self):
        with LogContext.bind(project_id="P", entry_id=None):
            assert LogContext.current() == {"project_id": "P"}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="event_id"):
            with LogContext.bind(event_id="x"):
                pass

    def test_threads_do_not_share_fields(self):
        seen = {}

        def worker(project_id):
            with LogContext.bind(project_id=project_id):
                barrier.wait()
                seen[project_id] = LogContext.current()["project_id"]

        barrier = threading.Barrier(2)
        threads = [threading.Thread(target=worker, args=(p,)) for p in ("A", "B")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert seen == {"A": "A", "B": "B"}


class TestConfigureLogging:
    """Handler installation on the kpi_kernel logger."""

    def test_handler_not_duplicated(self, log_stream):
        root = configure_logging(level=logging.WARNING)

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_level_filters(self, log_stream):
        configure_logging(level=logging.INFO)
        logger = get_logger("services.monitoring")
        logger.debug("hidden")
        logger.info("shown")

        assert [r["message"] for r in _records(log_stream)] == ["shown"]

    def test_reset_detaches_handler(self, log_stream):
        reset_logging()
        root = logging.getLogger("kpi_kernel")

        assert root.handlers == []
        assert root.propagate is True

    def test_formatter_usable_standalone(self):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        logger = logging.getLogger("kpi_kernel.standalone")
        logger.addHandler(handler)
        try:
            logger.warning("direct")
        finally:
            logger.removeHandler(handler)

        assert json.loads(stream.getvalue())["logger"] == "kpi_kernel.standalone"
