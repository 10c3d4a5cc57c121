"""
Domain Models (``kpi_kernel.models``).

Frozen dataclass value objects for the nouns of project progress tracking:
projects, monthly revenue targets, budgets and the append-only progress
ledger.  Every model is immutable; amending a project returns a new one.
"""

from kpi_kernel.models.budget import Budget, OverheadMethod
from kpi_kernel.models.progress import (
    EXPENDITURE_HEADS,
    CurrentMonth,
    PreviousMonth,
    ProgressCalculations,
    ProgressEntry,
)
from kpi_kernel.models.project import Project, ProjectStatus, Target
from kpi_kernel.models.thresholds import KpiThresholds, TierBreakpoints

__all__ = [
    "Budget",
    "CurrentMonth",
    "EXPENDITURE_HEADS",
    "KpiThresholds",
    "OverheadMethod",
    "PreviousMonth",
    "ProgressCalculations",
    "ProgressEntry",
    "Project",
    "ProjectStatus",
    "Target",
    "TierBreakpoints",
]
