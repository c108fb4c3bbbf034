"""
Tests for runtime configuration.
"""

import pytest

from rollup.circuits.config import (
    ConfigError,
    ConfigManager,
    ConfigValidationError,
    ConfigValue,
    get_config,
    get_config_manager,
)


class TestConfigValue:
    """Tests for a single configuration value."""

    def test_default_and_override(self):
        value = ConfigValue(default=4)
        assert value.get() == 4
        value.set(8)
        assert value.get() == 8
        value.reset()
        assert value.get() == 4

    def test_false_override_is_kept(self):
        value = ConfigValue(default=True)
        value.set(False)
        assert value.get() is False

    def test_validator(self):
        value = ConfigValue(default=4, validator=lambda x: x > 0)
        with pytest.raises(ConfigValidationError):
            value.set(0)

    def test_env_var_wins(self, monkeypatch):
        value = ConfigValue(default=False, env_var="ROLLUP_TEST_FLAG")
        value.set(False)
        monkeypatch.setenv("ROLLUP_TEST_FLAG", "yes")
        assert value.get() is True

    def test_env_var_coerces_int(self, monkeypatch):
        monkeypatch.setenv("ROLLUP_BATCH_MAX_WORKERS", "12")
        assert get_config().batch.max_workers.get() == 12

    def test_change_callback(self):
        seen = []
        value = ConfigValue(default="json")
        value.on_change(lambda old, new: seen.append((old, new)))
        value.set("text")
        assert seen == [(None, "text")]


class TestConfigManager:
    """Tests for the configuration manager."""

    def test_singleton(self):
        assert ConfigManager() is get_config_manager()

    def test_defaults(self, reset_config):
        assert reset_config.get("diagnostics.detailed_violations") is True
        assert reset_config.get("diagnostics.collect_all_violations") is False
        assert reset_config.get("batch.max_workers") == 4
        assert reset_config.get("observability.log_format") == "json"

    def test_set_by_path(self, reset_config):
        reset_config.set("batch.max_workers", 16)
        assert get_config().batch.max_workers.get() == 16

    def test_invalid_path(self, reset_config):
        with pytest.raises(ConfigError):
            reset_config.set("batch.nope", 1)
        with pytest.raises(ConfigError):
            reset_config.set("batch", 1)
        with pytest.raises(ConfigError):
            reset_config.get("nope.nothing")

    def test_invalid_value(self, reset_config):
        with pytest.raises(ConfigValidationError):
            reset_config.set("observability.log_format", "xml")

    def test_reset_drops_overrides(self, reset_config):
        reset_config.set("diagnostics.detailed_violations", False)
        reset_config.reset()
        assert reset_config.get("diagnostics.detailed_violations") is True

    def test_load_from_yaml(self, reset_config, tmp_path):
        path = tmp_path / "rollup.yaml"
        path.write_text(
            "diagnostics:\n"
            "  collect_all_violations: true\n"
            "batch:\n"
            "  max_workers: 2\n"
            "unknown_section:\n"
            "  ignored: 1\n"
        )
        reset_config.load_from_file(path)
        assert reset_config.get("diagnostics.collect_all_violations") is True
        assert reset_config.get("batch.max_workers") == 2

    def test_missing_file(self, reset_config, tmp_path):
        with pytest.raises(ConfigError):
            reset_config.load_from_file(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, reset_config, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("batch: [unclosed\n")
        with pytest.raises(ConfigError):
            reset_config.load_from_file(path)

    def test_non_mapping_root(self, reset_config, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError):
            reset_config.load_from_file(path)

    def test_reload_notifies_watchers(self, reset_config, tmp_path):
        path = tmp_path / "rollup.yaml"
        path.write_text("batch:\n  max_workers: 3\n")
        reset_config.load_from_file(path)

        seen = []
        reset_config.watch(seen.append)
        path.write_text("batch:\n  max_workers: 5\n")
        reset_config.reload()
        assert reset_config.get("batch.max_workers") == 5
        assert seen == [reset_config.config]

    def test_validate_clean(self, reset_config):
        assert reset_config.validate() == []

    def test_validate_reports_bad_env(self, reset_config, monkeypatch):
        monkeypatch.setenv("ROLLUP_LOG_LEVEL", "loud")
        errors = reset_config.validate()
        assert len(errors) == 1
        assert errors[0].startswith("observability.log_level")

    def test_export_schema(self, reset_config):
        schema = reset_config.export_schema()["properties"]
        workers = schema["batch"]["max_workers"]
        assert workers["type"] == "int"
        assert workers["default"] == "4"
        assert workers["env_var"] == "ROLLUP_BATCH_MAX_WORKERS"
        assert "detailed_violations" in schema["diagnostics"]

    def test_to_yaml(self, reset_config):
        text = get_config().to_yaml()
        assert "max_workers: 4" in text
