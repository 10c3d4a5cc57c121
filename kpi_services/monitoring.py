"""
Project Monitoring Service (``kpi_services.monitoring``).

Responsibility
--------------
The single public entry point for maintaining a portfolio and reading its
KPIs: project CRUD, target and budget maintenance, progress recording, and
the KPI / risk / portfolio / directorate / recommendation views built from
the pure engines.

Architecture position
---------------------
**Services layer** -- thin glue over ``kpi_engines`` and a
``ProjectStore``.  Reads thresholds and engine settings from
``kpi_config``; owns no calculation logic of its own.

Invariants enforced
-------------------
* Writes to one project are serialized through a per-project lock, so two
  concurrent ``record_progress`` calls never derive their opening figures
  from the same ledger state.
* The ledger only grows: ``record_progress`` appends through
  ``store.replace`` and the store rejects any rewrite.
* A memoized (KpiSet, RiskResult) pair is served only for a project equal
  to the one it was computed from, under the same thresholds.  Entries are
  dropped on every write through this service.

Failure modes
-------------
* Unknown project id  -> ``ProjectNotFoundError`` from the store.
* Duplicate id on create  -> ``DuplicateProjectError``.
* Ledger rewrite on update  -> ``LedgerImmutabilityError``.

Audit relevance
---------------
Structured log events at operation start and finish for every write,
carrying the project id (bound into ``LogContext``) and entry id.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from typing import Any

from kpi_config import get_active_config
from kpi_config.schema import KpiConfig
from kpi_engines.budget import (
    BudgetTotals,
    BudgetVariance,
    calculate_budget_totals,
    compare_budget_to_actual,
)
from kpi_engines.kpis import KpiSet, extract_kpis
from kpi_engines.ledger import CurrentInput, PreviousInput, append_progress
from kpi_engines.portfolio import (
    DirectorateSummary,
    PortfolioStats,
    RiskScore,
    aggregate_portfolio,
    filter_projects,
    summarize_by_directorate,
)
from kpi_engines.recommendations import recommend_actions
from kpi_engines.risk import RiskResult, classify_risk
from kpi_kernel.domain.clock import Clock, SystemClock
from kpi_kernel.domain.values import to_decimal
from kpi_kernel.logging_config import LogContext, get_logger
from kpi_kernel.models.budget import Budget
from kpi_kernel.models.progress import ProgressEntry
from kpi_kernel.models.project import Project, Target
from kpi_kernel.models.thresholds import KpiThresholds
from kpi_services.store import ProjectStore

logger = get_logger("services.monitoring")

_MemoEntry = tuple[Project, KpiThresholds, KpiSet, RiskResult]


class ProjectMonitoringService:
    """
    Maintains projects in a store and computes their KPIs on demand.

    Contract
    --------
    * Write methods return the stored ``Project`` (or the new
      ``ProgressEntry`` for ``record_progress``).
    * Read methods return the engines' frozen result types unchanged.

    Guarantees
    ----------
    * Memoized reads return exactly what the engines would compute.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT validate that caller-supplied opening figures match the
      ledger; pass ``previous=None`` to have them derived.
    """

    def __init__(
        self,
        store: ProjectStore,
        config: KpiConfig | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._config = config or get_active_config()
        self._clock = clock or SystemClock()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._memo: dict[str, _MemoEntry] = {}
        self._memo_guard = threading.Lock()

    @property
    def config(self) -> KpiConfig:
        return self._config

    @property
    def thresholds(self) -> KpiThresholds:
        return self._config.thresholds

    # =========================================================================
    # Internals
    # =========================================================================

    def _lock_for(self, project_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(project_id, threading.Lock())

    def _invalidate(self, project_id: str) -> None:
        with self._memo_guard:
            self._memo.pop(project_id, None)

    def _assess(self, project: Project) -> tuple[KpiSet, RiskResult]:
        thresholds = self.thresholds
        if not self._config.engine.memoize_results:
            kpis = extract_kpis(project)
            return kpis, classify_risk(project, kpis, thresholds)

        # A reader may hold a snapshot older than the store; the hit check
        # compares the whole project, not just its id and last entry.
        with self._memo_guard:
            cached = self._memo.get(project.id)
        if cached is not None:
            snapshot, cached_thresholds, kpis, risk = cached
            if cached_thresholds == thresholds and snapshot == project:
                return kpis, risk

        kpis = extract_kpis(project)
        risk = classify_risk(project, kpis, thresholds)
        with self._memo_guard:
            self._memo[project.id] = (project, thresholds, kpis, risk)
        return kpis, risk

    def _amend(self, project_id: str, change) -> Project:
        with self._lock_for(project_id), LogContext.bind(project_id=project_id):
            project = self._store.replace(change(self._store.get(project_id)))
            self._invalidate(project_id)
            return project

    # =========================================================================
    # Project maintenance
    # =========================================================================

    def list_projects(self) -> list[Project]:
        return self._store.list()

    def get_project(self, project_id: str) -> Project:
        return self._store.get(project_id)

    def create_project(self, project: Project) -> Project:
        with LogContext.bind(project_id=project.id):
            logger.info("create_project_started", extra={"directorate": project.directorate})
            stored = self._store.append(project)
            self._invalidate(project.id)
            logger.info("create_project_completed")
            return stored

    def update_project(self, project: Project) -> Project:
        """Replace a project's fields; its ledger may only gain entries."""
        with self._lock_for(project.id), LogContext.bind(project_id=project.id):
            logger.info("update_project_started")
            stored = self._store.replace(project)
            self._invalidate(project.id)
            logger.info("update_project_completed")
            return stored

    def delete_project(self, project_id: str) -> Project:
        with self._lock_for(project_id), LogContext.bind(project_id=project_id):
            removed = self._store.remove(project_id)
            self._invalidate(project_id)
            logger.info("project_deleted")
        with self._locks_guard:
            self._locks.pop(project_id, None)
        return removed

    def add_target(self, project_id: str, month: str, planned_value: Any) -> Project:
        target = Target(month=month, planned_value=to_decimal(planned_value))
        return self._amend(project_id, lambda p: p.with_target(target))

    def set_budget(self, project_id: str, budget: Budget | None) -> Project:
        return self._amend(project_id, lambda p: p.with_budget(budget))

    def record_progress(
        self,
        project_id: str,
        current: CurrentInput,
        expenditures: Mapping[str, Any] | None = None,
        previous: PreviousInput = None,
    ) -> ProgressEntry:
        """Append one reporting period to the project's ledger.

        When ``previous`` is omitted the opening figures are carried forward
        from the last ledger entry.
        """
        with self._lock_for(project_id), LogContext.bind(project_id=project_id):
            logger.info(
                "record_progress_started",
                extra={"derived_previous": previous is None},
            )
            project, entry = append_progress(
                self._store.get(project_id),
                current,
                expenditures,
                previous,
                clock=self._clock,
            )
            self._store.replace(project)
            self._invalidate(project_id)
            logger.info(
                "record_progress_completed",
                extra={
                    "entry_id": str(entry.id),
                    "ledger_length": len(project.progress),
                },
            )
            return entry

    # =========================================================================
    # Views
    # =========================================================================

    def project_kpis(self, project_id: str) -> KpiSet:
        return self._assess(self._store.get(project_id))[0]

    def project_risk(self, project_id: str) -> RiskResult:
        return self._assess(self._store.get(project_id))[1]

    def budget_totals(self, project_id: str) -> BudgetTotals:
        project = self._store.get(project_id)
        return calculate_budget_totals(
            project.budget,
            project.ca_value,
            self._config.engine.default_overhead_percentage,
        )

    def budget_variance(self, project_id: str) -> BudgetVariance:
        project = self._store.get(project_id)
        return compare_budget_to_actual(
            project,
            self._assess(project)[1],
            self._config.engine.default_overhead_percentage,
        )

    def portfolio_statistics(
        self,
        directorate: str | None = None,
        status: str | None = None,
        risk_score: RiskScore | None = None,
    ) -> PortfolioStats:
        """Portfolio roll-up over the projects matching the filters."""
        projects = filter_projects(self._store.list(), directorate, status)
        return aggregate_portfolio(
            projects, self.thresholds, risk_score=risk_score, assessor=self._assess
        )

    def directorate_summaries(
        self,
        directorates: Sequence[str] | None = None,
    ) -> list[DirectorateSummary]:
        return summarize_by_directorate(
            self._store.list(), self.thresholds, directorates, assessor=self._assess
        )

    def recommendations(self, project_id: str) -> tuple[str, ...]:
        return recommend_actions(self.project_risk(project_id))
