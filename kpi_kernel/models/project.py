"""
Project Model (``kpi_kernel.models.project``).

Responsibility
--------------
The project aggregate: identity, directorate tag, contract values, planned
profitability, status, monthly revenue targets, the progress ledger and an
optional budget.

Invariants enforced
-------------------
* ``frozen=True``; the ``with_*`` helpers return amended copies.
* ``progress`` only ever grows at the end (``with_progress``).
* ``revised_ca_value - ca_value`` is scope creep and may be negative.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from kpi_kernel.models.budget import Budget
from kpi_kernel.models.progress import ProgressEntry


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    SUSPENDED = "Suspended"
    TRANSFERRED = "Transferred"


@dataclass(frozen=True)
class Target:
    """Revenue planned for one calendar month (``month`` as YYYY-MM)."""

    month: str
    planned_value: Decimal = Decimal("0")


@dataclass(frozen=True)
class Project:
    """A construction/infrastructure project with its progress ledger."""

    id: str
    name: str
    directorate: str = ""
    category: str = ""
    ca_value: Decimal = Decimal("0")
    revised_ca_value: Decimal = Decimal("0")
    planned_profitability: Decimal = Decimal("0")  # percent
    status: str = ProjectStatus.PLANNING
    targets: tuple[Target, ...] = ()
    progress: tuple[ProgressEntry, ...] = ()
    budget: Budget | None = None
    location: str = ""
    client: str = ""
    consultant: str = ""
    start_date: date | None = None
    completion_date: date | None = None
    revised_completion_date: date | None = None

    @property
    def latest_entry(self) -> ProgressEntry | None:
        """The authoritative (most recent) ledger entry, if any."""
        return self.progress[-1] if self.progress else None

    def with_progress(self, entry: ProgressEntry) -> Project:
        """Return a copy with ``entry`` appended to the ledger."""
        return dataclasses.replace(self, progress=self.progress + (entry,))

    def with_target(self, target: Target) -> Project:
        return dataclasses.replace(self, targets=self.targets + (target,))

    def with_budget(self, budget: Budget | None) -> Project:
        return dataclasses.replace(self, budget=budget)
