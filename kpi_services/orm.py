"""
SQLAlchemy ORM persistence model for projects.

Responsibility
--------------
One row per project.  The searchable columns (name, directorate, status)
are kept beside the full camelCase JSON document produced by
``kpi_services.documents``; the document is the source of truth.

Architecture position
---------------------
**Services layer** -- ORM model consumed by ``SqlProjectStore``.  Inherits
from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* ``position`` preserves portfolio order across reloads.
* ``document`` always round-trips through ``project_from_document``.
"""

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kpi_kernel.db.base import TrackedBase


class ProjectRecord(TrackedBase):
    """A stored project document."""

    __tablename__ = "projects"

    __table_args__ = (
        Index("idx_project_position", "position"),
        Index("idx_project_directorate", "directorate"),
    )

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    directorate: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    document: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<ProjectRecord {self.id} ({self.status})>"
