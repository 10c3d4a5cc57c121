"""
Configuration Loader (``kpi_config.loader``).

Responsibility
--------------
Loads a KPI configuration YAML file and parses it into the typed
``kpi_config.schema`` dataclasses.  Runtime callers go through
``kpi_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Breakpoints must be numeric; anything else raises ``ConfigError``.
  (The engine is permissive about project figures, the config layer is
  not.)
* Dimensions or keys absent from the file fall back to the defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-numeric breakpoint, non-boolean flag or non-mapping section
  -> ``ConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from kpi_kernel.exceptions import ConfigError
from kpi_kernel.models.thresholds import KpiThresholds, TierBreakpoints
from kpi_config.schema import EngineSettings, KpiConfig

_YAML_DIMENSIONS = {
    "lag": "lag",
    "scope_creep": "scope_creep",
    "scopeCreep": "scope_creep",
    "slippage": "slippage",
    "receivable": "receivable",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, source: str, field_path: str) -> Decimal:
    """Parse a numeric YAML scalar; reject booleans, blanks and text."""
    if isinstance(value, bool) or value is None:
        raise ConfigError(source, f"{field_path} must be a number, got {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigError(source, f"{field_path} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise ConfigError(source, f"{field_path} must be finite, got {value!r}")
    return result


def parse_bool(value: Any, source: str, field_path: str) -> bool:
    """Accept only YAML booleans; quoted "false" is a mistake, not False."""
    if not isinstance(value, bool):
        raise ConfigError(source, f"{field_path} must be true or false, got {value!r}")
    return value


def _mapping(value: Any, source: str, field_path: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(source, f"{field_path} must be a mapping")
    return value


def parse_breakpoints(
    data: dict[str, Any],
    default: TierBreakpoints,
    source: str,
    field_path: str,
) -> TierBreakpoints:
    """Parse one dimension's low/moderate/high, defaulting absent keys."""
    return TierBreakpoints(
        low=parse_decimal(data["low"], source, f"{field_path}.low")
        if "low" in data else default.low,
        moderate=parse_decimal(data["moderate"], source, f"{field_path}.moderate")
        if "moderate" in data else default.moderate,
        high=parse_decimal(data["high"], source, f"{field_path}.high")
        if "high" in data else default.high,
    )


def parse_thresholds(data: dict[str, Any], source: str) -> KpiThresholds:
    """Parse the ``thresholds`` section (snake_case or camelCase keys)."""
    defaults = KpiThresholds()
    parsed: dict[str, TierBreakpoints] = {}
    for key, value in data.items():
        name = _YAML_DIMENSIONS.get(key)
        if name is None:
            raise ConfigError(source, f"unknown threshold dimension {key!r}")
        parsed[name] = parse_breakpoints(
            _mapping(value, source, f"thresholds.{key}"),
            getattr(defaults, name),
            source,
            f"thresholds.{key}",
        )
    return KpiThresholds(**{name: parsed.get(name, getattr(defaults, name))
                            for name in KpiThresholds.DIMENSIONS})


def parse_engine_settings(data: dict[str, Any], source: str) -> EngineSettings:
    defaults = EngineSettings()
    overhead = data.get("default_overhead_percentage")
    return EngineSettings(
        default_overhead_percentage=(
            parse_decimal(overhead, source, "engine.default_overhead_percentage")
            if overhead is not None else defaults.default_overhead_percentage
        ),
        memoize_results=parse_bool(
            data.get("memoize_results", defaults.memoize_results),
            source,
            "engine.memoize_results",
        ),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any], source: str = "<memory>") -> KpiConfig:
    """Parse an already-loaded YAML document into a ``KpiConfig``."""
    data = _mapping(data, source, "<root>")
    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigError(source, f"version must be an integer, got {version!r}")
    return KpiConfig(
        thresholds=parse_thresholds(_mapping(data.get("thresholds"), source, "thresholds"), source),
        engine=parse_engine_settings(_mapping(data.get("engine"), source, "engine"), source),
        version=version,
        source=source,
        checksum=compute_checksum(data),
    )


def load_kpi_config(path: Path) -> KpiConfig:
    """Load and parse a KPI configuration file."""
    return parse_config(load_yaml_file(path), source=str(path))
