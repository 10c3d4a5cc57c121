"""
KPI Kernel - project progress and risk core

Shared foundation for the KPI engine:
- Exact Decimal arithmetic with permissive input coercion
- Immutable project, target, budget and progress-ledger models
- Structured JSON logging
- Injectable clock for deterministic timestamps
- SQLAlchemy plumbing for document persistence
"""

__version__ = "0.1.0"
