"""
kpi_config -- single public entrypoint for KPI threshold configuration.

Responsibility:
    Provides the runtime way to obtain thresholds and engine settings
    through ``get_active_config()``.  Loads the shipped ``defaults.yaml``
    unless a path is given.

Architecture position:
    Configuration -- sits above ``kpi_kernel`` and below ``kpi_services``.
    Engines never import this package; they receive ``KpiThresholds`` as
    an argument.

Invariants enforced:
    - Threshold ordering problems are reported as warnings, never rejected;
      classification with inconsistent breakpoints is the caller's choice.
    - Same YAML always yields the same ``KpiConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the given path does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigError`` -- a breakpoint is not numeric.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``KPI_CONFIG_TRACE`` log entry with the source, version and checksum, so
    any risk classification can be tied back to the thresholds in force.
"""

from __future__ import annotations

import logging
from pathlib import Path

from kpi_config.loader import compute_checksum, load_kpi_config, parse_config
from kpi_config.schema import EngineSettings, KpiConfig
from kpi_config.validator import validate_thresholds

_logger = logging.getLogger("kpi_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | None = None) -> KpiConfig:
    """Load, validate and trace the KPI configuration in force."""
    config = load_kpi_config(config_path or DEFAULT_CONFIG_PATH)

    for issue in validate_thresholds(config.thresholds):
        _logger.warning(
            "threshold_ordering_issue",
            extra={"config_source": config.source, "issue": issue},
        )

    _logger.info(
        "KPI_CONFIG_TRACE",
        extra={
            "trace_type": "KPI_CONFIG_TRACE",
            "config_source": config.source,
            "config_version": config.version,
            "checksum": config.checksum,
            "memoize_results": config.engine.memoize_results,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineSettings",
    "KpiConfig",
    "compute_checksum",
    "get_active_config",
    "load_kpi_config",
    "parse_config",
    "validate_thresholds",
]
