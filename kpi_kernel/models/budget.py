"""
Budget Model (``kpi_kernel.models.budget``).

Planned cost structure of a project, independent of the progress ledger.
Overhead is either a flat percentage of the CA value (the budget's own
``overhead_percentage`` or, when unset, the configured default) or the sum of the
detailed HR and general-administration lines, selected by
``overhead_method``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class OverheadMethod(str, Enum):
    """How planned overhead is derived."""

    PERCENTAGE = "percentage"  # overhead_percentage of CA value
    DETAILED = "detailed"  # hr_cost + general_adm_cost


@dataclass(frozen=True)
class Budget:
    """Planned direct and overhead costs for a project."""

    tentative_escalation: Decimal = Decimal("0")  # percent of CA value
    subcontractor_cost: Decimal = Decimal("0")
    material_cost: Decimal = Decimal("0")
    engineer_facility_cost: Decimal = Decimal("0")
    hr_cost: Decimal = Decimal("0")
    general_adm_cost: Decimal = Decimal("0")
    overhead_method: OverheadMethod = OverheadMethod.PERCENTAGE
    overhead_percentage: Decimal | None = None  # None: configured default
