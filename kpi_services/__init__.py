"""
kpi_services -- Persistence and orchestration around the KPI engines.

Architecture position:
    Services -- may import kpi_engines, kpi_config and kpi_kernel.

Components:
    store       -- ProjectStore contract, in-memory and SQLAlchemy stores
    documents   -- camelCase JSON project documents, portfolio export/import
    monitoring  -- ProjectMonitoringService, the public entry point
"""

from kpi_services.documents import (
    export_projects,
    import_projects,
    project_from_document,
    project_to_document,
)
from kpi_services.monitoring import ProjectMonitoringService
from kpi_services.store import (
    InMemoryProjectStore,
    ProjectStore,
    SqlProjectStore,
    check_ledger_append_only,
)

__all__ = [
    "InMemoryProjectStore",
    "ProjectMonitoringService",
    "ProjectStore",
    "SqlProjectStore",
    "check_ledger_append_only",
    "export_projects",
    "import_projects",
    "project_from_document",
    "project_to_document",
]
