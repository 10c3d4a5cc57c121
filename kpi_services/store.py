"""
Project Stores (``kpi_services.store``).

Responsibility
--------------
Persist the portfolio: an ordered collection of ``Project`` aggregates
addressed by id.  Two implementations share one contract:

* ``InMemoryProjectStore`` -- insertion-ordered dict, for tests and
  embedding.
* ``SqlProjectStore`` -- SQLAlchemy ``projects`` table, one session per
  operation through ``kpi_kernel.db.session_scope``.

Invariants enforced
-------------------
* ``list()`` returns projects in insertion order.
* ``replace()`` keeps the progress ledger append-only: the stored entries
  must be an unchanged prefix of the replacement's ledger, otherwise
  ``LedgerImmutabilityError`` is raised and nothing is written.

Failure modes
-------------
* Unknown id on ``get``/``replace``/``remove``  -> ``ProjectNotFoundError``.
* Existing id on ``append``  -> ``DuplicateProjectError``.
"""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from kpi_kernel.db.engine import get_session_factory, session_scope
from kpi_kernel.exceptions import (
    DuplicateProjectError,
    LedgerImmutabilityError,
    ProjectNotFoundError,
)
from kpi_kernel.logging_config import get_logger
from kpi_kernel.models.project import Project
from kpi_services.documents import project_from_document, project_to_document
from kpi_services.orm import ProjectRecord

logger = get_logger("services.store")


def check_ledger_append_only(stored: Project, replacement: Project) -> None:
    """Raise ``LedgerImmutabilityError`` unless ``stored.progress`` is a prefix."""
    old, new = stored.progress, replacement.progress
    for index, entry in enumerate(old):
        if index >= len(new) or new[index] != entry:
            logger.warning(
                "ledger_rewrite_rejected",
                extra={
                    "project_id": stored.id,
                    "stored_entries": len(old),
                    "offending_index": index,
                },
            )
            raise LedgerImmutabilityError(stored.id, len(old), index)


class ProjectStore(ABC):
    """Ordered, id-addressed collection of projects."""

    @abstractmethod
    def list(self) -> list[Project]:
        """All projects in insertion order."""

    @abstractmethod
    def get(self, project_id: str) -> Project:
        """The project with ``project_id``; raises ``ProjectNotFoundError``."""

    @abstractmethod
    def append(self, project: Project) -> Project:
        """Add a new project at the end; raises ``DuplicateProjectError``."""

    @abstractmethod
    def replace(self, project: Project) -> Project:
        """Overwrite a stored project, keeping its position and ledger prefix."""

    @abstractmethod
    def remove(self, project_id: str) -> Project:
        """Delete and return the project with ``project_id``."""

    def __contains__(self, project_id: object) -> bool:
        try:
            self.get(str(project_id))
        except ProjectNotFoundError:
            return False
        return True


class InMemoryProjectStore(ProjectStore):
    """Dict-backed store; safe to share between threads."""

    def __init__(self, projects: list[Project] | None = None):
        self._projects: dict[str, Project] = {}
        self._lock = threading.RLock()
        for project in projects or ():
            self.append(project)

    def list(self) -> list[Project]:
        with self._lock:
            return list(self._projects.values())

    def get(self, project_id: str) -> Project:
        with self._lock:
            try:
                return self._projects[project_id]
            except KeyError:
                raise ProjectNotFoundError(project_id) from None

    def append(self, project: Project) -> Project:
        with self._lock:
            if project.id in self._projects:
                raise DuplicateProjectError(project.id)
            self._projects[project.id] = project
            return project

    def replace(self, project: Project) -> Project:
        with self._lock:
            check_ledger_append_only(self.get(project.id), project)
            self._projects[project.id] = project
            return project

    def remove(self, project_id: str) -> Project:
        with self._lock:
            project = self.get(project_id)
            del self._projects[project_id]
            return project


class SqlProjectStore(ProjectStore):
    """
    SQLAlchemy-backed store over the ``projects`` table.

    Uses the module-level session factory from ``kpi_kernel.db`` unless one
    is passed in.  The caller is responsible for ``init_engine_from_url``
    and ``create_tables``.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def _scope(self):
        return session_scope(self._session_factory or get_session_factory())

    @staticmethod
    def _load(record: ProjectRecord) -> Project:
        return project_from_document(json.loads(record.document))

    @staticmethod
    def _write(record: ProjectRecord, project: Project) -> None:
        record.name = project.name
        record.directorate = project.directorate
        record.status = str(getattr(project.status, "value", project.status))
        record.document = json.dumps(project_to_document(project))

    def _record(self, session: Session, project_id: str) -> ProjectRecord:
        record = session.get(ProjectRecord, project_id)
        if record is None:
            raise ProjectNotFoundError(project_id)
        return record

    def list(self) -> list[Project]:
        with self._scope() as session:
            records = session.scalars(
                select(ProjectRecord).order_by(ProjectRecord.position)
            ).all()
            return [self._load(r) for r in records]

    def get(self, project_id: str) -> Project:
        with self._scope() as session:
            return self._load(self._record(session, project_id))

    def append(self, project: Project) -> Project:
        with self._scope() as session:
            if session.get(ProjectRecord, project.id) is not None:
                raise DuplicateProjectError(project.id)
            last = session.scalar(select(func.max(ProjectRecord.position)))
            record = ProjectRecord(id=project.id, position=(last or 0) + 1)
            self._write(record, project)
            session.add(record)
        logger.debug("project_stored", extra={"project_id": project.id})
        return project

    def replace(self, project: Project) -> Project:
        with self._scope() as session:
            record = self._record(session, project.id)
            check_ledger_append_only(self._load(record), project)
            self._write(record, project)
        return project

    def remove(self, project_id: str) -> Project:
        with self._scope() as session:
            record = self._record(session, project_id)
            project = self._load(record)
            session.delete(record)
        return project
