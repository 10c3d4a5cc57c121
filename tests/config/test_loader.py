"""
Tests for KPI configuration loading.

Covers:
- The shipped defaults match the built-in thresholds
- Partial files fall back to defaults
- Strict parsing of breakpoints
- Advisory validation and the KPI_CONFIG_TRACE record
"""

from decimal import Decimal

import pytest
import yaml

from kpi_config import DEFAULT_CONFIG_PATH, get_active_config
from kpi_config.loader import compute_checksum, load_kpi_config, parse_config
from kpi_config.schema import EngineSettings
from kpi_config.validator import validate_thresholds
from kpi_kernel.exceptions import ConfigError
from kpi_kernel.models import KpiThresholds, TierBreakpoints


def _write(tmp_path, data):
    path = tmp_path / "kpi.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadDefaults:

    def test_shipped_defaults_match_built_in(self):
        config = load_kpi_config(DEFAULT_CONFIG_PATH)

        assert config.thresholds == KpiThresholds()
        assert config.engine == EngineSettings()
        assert config.version == 1
        assert config.source == str(DEFAULT_CONFIG_PATH)

    def test_scope_creep_defaults(self):
        config = load_kpi_config(DEFAULT_CONFIG_PATH)
        assert config.thresholds.scope_creep == TierBreakpoints(
            Decimal("10"), Decimal("15"), Decimal("25")
        )


class TestParseConfig:

    def test_partial_dimension_falls_back(self):
        config = parse_config({"thresholds": {"lag": {"high": 20}}})

        assert config.thresholds.lag == TierBreakpoints(Decimal("5"), Decimal("10"), Decimal("20"))
        assert config.thresholds.slippage == KpiThresholds().slippage

    def test_camel_case_dimension(self):
        config = parse_config({"thresholds": {"scopeCreep": {"low": "12.5"}}})
        assert config.thresholds.scope_creep.low == Decimal("12.5")

    def test_float_breakpoints_are_exact(self):
        config = parse_config({"thresholds": {"receivable": {"low": 2.5}}})
        assert config.thresholds.receivable.low == Decimal("2.5")

    def test_engine_settings(self):
        config = parse_config(
            {"engine": {"default_overhead_percentage": 7, "memoize_results": False}}
        )
        assert config.engine.default_overhead_percentage == Decimal("7")
        assert config.engine.memoize_results is False

    def test_empty_document(self):
        config = parse_config({})
        assert config.thresholds == KpiThresholds()
        assert config.engine == EngineSettings()

    @pytest.mark.parametrize("bad", ["high", "", None, True, "nan"])
    def test_non_numeric_breakpoint_rejected(self, bad):
        with pytest.raises(ConfigError) as exc_info:
            parse_config({"thresholds": {"lag": {"low": bad}}}, source="test.yaml")

        assert exc_info.value.code == "CONFIG_INVALID"
        assert exc_info.value.path == "test.yaml"
        assert "thresholds.lag.low" in exc_info.value.reason

    def test_unknown_dimension_rejected(self):
        with pytest.raises(ConfigError, match="unknown threshold dimension"):
            parse_config({"thresholds": {"profitability": {"low": 1}}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError, match="thresholds must be a mapping"):
            parse_config({"thresholds": [1, 2, 3]})

    @pytest.mark.parametrize("flag", ["false", "no", 0, None])
    def test_memoize_flag_must_be_boolean(self, flag):
        with pytest.raises(ConfigError, match="engine.memoize_results") as exc_info:
            parse_config({"engine": {"memoize_results": flag}})
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_quoted_flag_in_yaml_rejected(self, tmp_path):
        path = tmp_path / "kpi.yaml"
        path.write_text('engine:\n  memoize_results: "false"\n')
        with pytest.raises(ConfigError, match="must be true or false"):
            load_kpi_config(path)

    def test_version_must_be_integer(self):
        with pytest.raises(ConfigError, match="version"):
            parse_config({"version": "one"})


class TestChecksum:

    def test_key_order_irrelevant(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_changes_with_content(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_config_carries_checksum(self, tmp_path):
        data = {"thresholds": {"lag": {"low": 3}}}
        config = load_kpi_config(_write(tmp_path, data))
        assert config.checksum == compute_checksum(data)
        assert len(config.checksum) == 64


class TestValidateThresholds:

    def test_defaults_are_clean(self):
        assert validate_thresholds(KpiThresholds()) == ()

    def test_reports_misordering(self):
        thresholds = KpiThresholds(
            lag=TierBreakpoints(Decimal("12"), Decimal("10"), Decimal("8")),
        )
        issues = validate_thresholds(thresholds)

        assert len(issues) == 2
        assert all(issue.startswith("lag:") for issue in issues)

    def test_reports_negative_low(self):
        thresholds = KpiThresholds(
            receivable=TierBreakpoints(Decimal("-1"), Decimal("10"), Decimal("15")),
        )
        assert validate_thresholds(thresholds) == ("receivable: low (-1) is negative",)


class TestGetActiveConfig:

    def test_defaults_when_no_path(self):
        assert get_active_config().thresholds == KpiThresholds()

    def test_emits_config_trace(self, tmp_path, captured_logs):
        path = _write(tmp_path, {"version": 2})
        config = get_active_config(path)

        trace = [r for r in captured_logs() if r["message"] == "KPI_CONFIG_TRACE"][-1]
        assert trace["config_source"] == str(path)
        assert trace["config_version"] == 2
        assert trace["checksum"] == config.checksum

    def test_misordered_thresholds_warn_but_load(self, tmp_path, captured_logs):
        path = _write(tmp_path, {"thresholds": {"slippage": {"low": 20}}})

        config = get_active_config(path)

        assert config.thresholds.slippage.low == Decimal("20")
        warnings = [r for r in captured_logs() if r["message"] == "threshold_ordering_issue"]
        assert len(warnings) == 1
        assert warnings[0]["level"] == "WARNING"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")
