"""
Configuration for auval policies.
Provides configuration loading from environment variables and JSON/YAML files,
validation, and logging setup.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import os
import sys

import yaml

from .errors import ConfigurationError


AUDIT_LOGGER_TYPES = ("none", "memory", "file")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config_from_env(prefix: str = "AUVAL_") -> Dict[str, str]:
    """
    Load configuration from environment variables with given prefix.
    """
    config = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            # Remove prefix and convert to lowercase
            config[key[len(prefix):].lower()] = value

    return config


def get_config_value(key: str, default: Any = None,
                     cast_type: Optional[type] = None,
                     env_prefix: str = "AUVAL_") -> Any:
    """
    Get configuration value from environment or return default.
    Optionally cast to specified type.
    """
    env_key = f"{env_prefix}{key.upper()}"
    value = os.environ.get(env_key, default)

    if value is None or cast_type is None:
        return value

    try:
        if cast_type == bool:
            if isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')
            return bool(value)
        return cast_type(value)
    except (ValueError, TypeError):
        return default


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result = {}

    for config in configs:
        if isinstance(config, dict):
            result.update(config)

    return result


def load_config_file(file_path: str) -> Dict[str, Any]:
    """Load configuration from a file (JSON or YAML)."""
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    file_ext = Path(file_path).suffix.lower()

    with open(file_path, 'r', encoding='utf-8') as f:
        if file_ext == '.json':
            data = json.load(f)
        elif file_ext in ('.yaml', '.yml'):
            data = yaml.safe_load(f)
        else:
            raise ConfigurationError(f"Unsupported configuration file format: {file_ext}",
                                     config_key="file_path", config_value=file_path)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a mapping",
                                 config_key="file_path", config_value=file_path)
    return data


def configure_logging(level: str = "INFO") -> None:
    """Configure standard library logging for applications embedding auval."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    logging.getLogger("auval").setLevel(level.upper())


@dataclass
class PolicyConfig:
    """Configuration for a policy instance"""
    name: str = "policy"
    log_level: str = "INFO"
    audit_logger: str = "none"
    audit_file_path: str = "audit.log"
    audit_max_entries: int = 1000
    metrics_enabled: bool = False
    metrics_namespace: str = "auval"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyConfig":
        """Create from dictionary representation, ignoring unknown keys."""
        known = {f.name: f.type for f in fields(cls)}
        values = {}

        for key, value in data.items():
            key = key.lower().replace('-', '_')
            if key not in known:
                continue
            try:
                if known[key] in (bool, "bool") and isinstance(value, str):
                    value = value.lower() in ('true', '1', 'yes', 'on')
                elif known[key] in (int, "int"):
                    value = int(value)
            except (ValueError, TypeError) as e:
                raise ConfigurationError(f"Invalid value for {key}", config_key=key,
                                         config_value=value) from e
            values[key] = value

        return cls(**values)

    @classmethod
    def from_env(cls, prefix: str = "AUVAL_") -> "PolicyConfig":
        """Create configuration from environment variables"""
        return cls.from_dict(load_config_from_env(prefix))

    @classmethod
    def from_file(cls, file_path: str, prefix: Optional[str] = None) -> "PolicyConfig":
        """
        Create configuration from a JSON or YAML file.

        When ``prefix`` is given, matching environment variables override the
        file's values.
        """
        data = load_config_file(file_path)
        if prefix is not None:
            data = merge_configs(data, load_config_from_env(prefix))
        return cls.from_dict(data)

    def validate(self) -> bool:
        """Validate the configuration"""
        if not self.name:
            raise ConfigurationError("name is required", config_key="name")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"log_level must be one of {LOG_LEVELS}",
                                     config_key="log_level", config_value=self.log_level)
        if self.audit_logger not in AUDIT_LOGGER_TYPES:
            raise ConfigurationError(f"audit_logger must be one of {AUDIT_LOGGER_TYPES}",
                                     config_key="audit_logger", config_value=self.audit_logger)
        if self.audit_logger == "file" and not self.audit_file_path:
            raise ConfigurationError("audit_file_path is required for file audit logging",
                                     config_key="audit_file_path")
        if self.audit_max_entries < 1:
            raise ConfigurationError("audit_max_entries must be >= 1",
                                     config_key="audit_max_entries", config_value=self.audit_max_entries)
        return True
