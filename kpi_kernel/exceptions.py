"""
Typed Exception Hierarchy for the KPI Kernel.

===============================================================================
SCOPE
===============================================================================

The calculation engines never raise on numeric input: absent or malformed
figures degrade to zero and every ratio is guarded.  The exceptions below
belong to the layers around the engines -- project stores, the monitoring
service, configuration loading and JSON document import.

Every exception:
  1. Has a TYPED class (catch by type, not by message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    KpiKernelError (base)
    |
    +-- ProjectError
    |   +-- ProjectNotFoundError
    |   +-- DuplicateProjectError
    |
    +-- LedgerError
    |   +-- LedgerImmutabilityError
    |
    +-- ConfigError
    |
    +-- DocumentError
        +-- ProjectImportError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                 | When Raised
----------------|----------------------|----------------------------------------
Project         | PROJECT_NOT_FOUND    | Project ID not present in the store
                | DUPLICATE_PROJECT    | Appending a project whose ID exists
----------------|----------------------|----------------------------------------
Ledger          | LEDGER_IMMUTABLE     | Replace would edit or drop ledger entries
----------------|----------------------|----------------------------------------
Config          | CONFIG_INVALID       | YAML config has non-numeric breakpoints
----------------|----------------------|----------------------------------------
Document        | IMPORT_INVALID       | Import payload is not a JSON project list
"""


class KpiKernelError(Exception):
    """
    Base exception for all KPI kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "KPI_KERNEL_ERROR"


# Project-related exceptions


class ProjectError(KpiKernelError):
    """Base exception for project store errors."""

    code: str = "PROJECT_ERROR"


class ProjectNotFoundError(ProjectError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class DuplicateProjectError(ProjectError):
    """Project with given ID already exists."""

    code: str = "DUPLICATE_PROJECT"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project already exists: {project_id}")


# Ledger-related exceptions


class LedgerError(KpiKernelError):
    """Base exception for progress ledger errors."""

    code: str = "LEDGER_ERROR"


class LedgerImmutabilityError(LedgerError):
    """
    A replace would amend or remove an existing progress entry.

    The progress ledger is append-only: the stored entries must remain an
    unchanged prefix of the replacement project's ledger.
    """

    code: str = "LEDGER_IMMUTABLE"

    def __init__(self, project_id: str, stored_entries: int, offending_index: int):
        self.project_id = project_id
        self.stored_entries = stored_entries
        self.offending_index = offending_index
        super().__init__(
            f"Progress ledger for project {project_id} is append-only: "
            f"entry {offending_index} of {stored_entries} would be changed or removed"
        )


# Config-related exceptions


class ConfigError(KpiKernelError):
    """Threshold or engine configuration could not be parsed."""

    code: str = "CONFIG_INVALID"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid KPI configuration at {path}: {reason}")


# Document-related exceptions


class DocumentError(KpiKernelError):
    """Base exception for project document errors."""

    code: str = "DOCUMENT_ERROR"


class ProjectImportError(DocumentError):
    """Imported payload is not a valid JSON project list."""

    code: str = "IMPORT_INVALID"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid project import: {reason}")
