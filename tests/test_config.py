"""
Tests for configuration loading and validation.
"""

import json

import pytest
import yaml

from auval import ALL, OK, ConfigurationError, Policy, PolicyConfig, RuleDefinition
from auval.audit import FileAuditLogger, MemoryAuditLogger
from auval.config import get_config_value, load_config_file, load_config_from_env, merge_configs
from auval.metrics import MetricsCollector


class TestConfigHelpers:
    """Test the loading helpers."""

    def test_load_from_env(self, monkeypatch):
        """Only prefixed variables are picked up."""
        monkeypatch.setenv("AUVAL_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("OTHER_LOG_LEVEL", "ERROR")
        config = load_config_from_env()
        assert config["log_level"] == "DEBUG"
        assert "other_log_level" not in config

    def test_get_config_value(self, monkeypatch):
        """Values are cast when requested, falling back on bad input."""
        monkeypatch.setenv("AUVAL_METRICS_ENABLED", "yes")
        monkeypatch.setenv("AUVAL_AUDIT_MAX_ENTRIES", "many")
        assert get_config_value("metrics_enabled", cast_type=bool) is True
        assert get_config_value("audit_max_entries", 10, cast_type=int) == 10
        assert get_config_value("missing", "fallback") == "fallback"

    def test_merge_configs(self):
        """Later mappings win."""
        assert merge_configs({"a": 1, "b": 1}, {"b": 2}, None) == {"a": 1, "b": 2}

    def test_unsupported_file(self, tmp_path):
        """Only JSON and YAML files are understood."""
        path = tmp_path / "config.toml"
        path.write_text("name = 'x'")
        with pytest.raises(ConfigurationError):
            load_config_file(str(path))

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config_file(str(tmp_path / "absent.yaml"))

    def test_non_mapping_file(self, tmp_path):
        """Top-level lists are rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config_file(str(path))


class TestPolicyConfig:
    """Test PolicyConfig construction and validation."""

    def test_defaults_validate(self):
        """Default values are valid."""
        config = PolicyConfig()
        assert config.validate()
        assert config.audit_logger == "none"
        assert config.metrics_enabled is False

    def test_from_dict_casts(self):
        """String values are cast to the field types; unknown keys are ignored."""
        config = PolicyConfig.from_dict({
            "Audit-Max-Entries": "50",
            "metrics_enabled": "true",
            "unknown": 1,
        })
        assert config.audit_max_entries == 50
        assert config.metrics_enabled is True

    def test_from_dict_bad_int(self):
        """Uncastable values raise ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc_info:
            PolicyConfig.from_dict({"audit_max_entries": "lots"})
        assert exc_info.value.config_key == "audit_max_entries"

    def test_from_env(self, monkeypatch):
        """Environment variables populate the config."""
        monkeypatch.setenv("AUVAL_NAME", "billing")
        monkeypatch.setenv("AUVAL_AUDIT_LOGGER", "memory")
        config = PolicyConfig.from_env()
        assert config.name == "billing"
        assert config.audit_logger == "memory"

    def test_from_yaml_file(self, tmp_path):
        """YAML files are loaded with PyYAML."""
        path = tmp_path / "policy.yaml"
        path.write_text(yaml.safe_dump({"name": "docs", "metrics_enabled": True, "log_level": "WARNING"}))
        config = PolicyConfig.from_file(str(path))
        assert config.name == "docs"
        assert config.metrics_enabled is True
        assert config.log_level == "WARNING"

    def test_from_json_file_with_env_override(self, tmp_path, monkeypatch):
        """Environment variables override file values when a prefix is given."""
        path = tmp_path / "policy.json"
        path.write_text(json.dumps({"name": "docs", "audit_logger": "memory"}))
        monkeypatch.setenv("DOCS_NAME", "docs-prod")

        assert PolicyConfig.from_file(str(path)).name == "docs"
        config = PolicyConfig.from_file(str(path), prefix="DOCS_")
        assert config.name == "docs-prod"
        assert config.audit_logger == "memory"

    @pytest.mark.parametrize("overrides, key", [
        ({"name": ""}, "name"),
        ({"log_level": "LOUD"}, "log_level"),
        ({"audit_logger": "syslog"}, "audit_logger"),
        ({"audit_logger": "file", "audit_file_path": ""}, "audit_file_path"),
        ({"audit_max_entries": 0}, "audit_max_entries"),
    ])
    def test_validate_errors(self, overrides, key):
        """Invalid settings name the offending key."""
        with pytest.raises(ConfigurationError) as exc_info:
            PolicyConfig(**overrides).validate()
        assert exc_info.value.config_key == key


class TestPolicyFromConfig:
    """Test building policies from configuration."""

    RULES = [RuleDefinition("r", ALL, body=lambda b: OK)]

    def test_plain(self):
        """No audit or metrics by default."""
        policy = Policy.from_config(PolicyConfig(name="plain"), rules=self.RULES)
        assert policy.name == "plain"
        assert policy.audit_logger is None
        assert policy.metrics is None
        assert policy.authorize("s", "o", "read").allowed

    def test_memory_audit_and_metrics(self):
        """Audit and metrics are wired according to the config."""
        config = PolicyConfig(name="full", audit_logger="memory", audit_max_entries=10,
                              metrics_enabled=True, metrics_namespace="docs")
        policy = Policy.from_config(config, rules=self.RULES)
        assert isinstance(policy.audit_logger, MemoryAuditLogger)
        assert policy.audit_logger.max_entries == 10
        assert isinstance(policy.metrics, MetricsCollector)
        assert policy.metrics.config.namespace == "docs"

    def test_file_audit(self, tmp_path):
        """File audit logging writes to the configured path."""
        path = tmp_path / "audit.log"
        config = PolicyConfig(audit_logger="file", audit_file_path=str(path))
        policy = Policy.from_config(config, rules=self.RULES)
        assert isinstance(policy.audit_logger, FileAuditLogger)
        policy.authorize("s", "o", "read")
        assert path.exists()

    def test_invalid_config_rejected(self):
        """Invalid configurations fail before the policy is built."""
        with pytest.raises(ConfigurationError):
            Policy.from_config(PolicyConfig(audit_logger="syslog"))
