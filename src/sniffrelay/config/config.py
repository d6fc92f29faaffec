"""Relay configuration from YAML file.

Structure:
    http:      timeouts, chunk size, redirects, pool limits (HttpClientConfig)
    logging:   console level, JSON output, optional log file
    transfer:  default ignore_status and allowlists for the CLI

Environment variables ARE supported using ${VAR_NAME} and
${VAR_NAME:-default} syntax in YAML files. Expanded strings are coerced to
the field type; list fields also accept a comma-separated string.
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, get_args, get_origin

import yaml

from sniffrelay.download.http_client import HttpClientConfig
from sniffrelay.errors.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SNIFFRELAY_CONFIG"
DEFAULT_CONFIG_FILE = Path("sniffrelay.yaml")

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-(([^}]*))?)?\}")


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", cause=e) from e
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")
    return data


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return _ENV_PATTERN.sub(replacer, data)
    else:
        return data


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json: bool = False
    file: Optional[str] = None


@dataclass
class TransferDefaults:
    ignore_status: bool = False
    allowed_extensions: Optional[List[str]] = None
    allowed_content_types: Optional[List[str]] = None


@dataclass
class RelayConfig:
    """Top-level relay configuration."""

    http: HttpClientConfig = field(default_factory=HttpClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    transfer: TransferDefaults = field(default_factory=TransferDefaults)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelayConfig":
        return cls(
            http=_build_section(HttpClientConfig, data.get("http"), "http"),
            logging=_build_section(LoggingConfig, data.get("logging"), "logging"),
            transfer=_build_section(TransferDefaults, data.get("transfer"), "transfer"),
        )

    def validate(self) -> None:
        """Raise ConfigError on values the relay cannot work with."""
        http = self.http
        for name in ("timeout_total", "timeout_connect", "timeout_sock_read", "timeout_sock_connect"):
            value = getattr(http, name)
            if value is not None and value <= 0:
                raise ConfigError(f"http.{name} must be positive, got {value}")
        if http.chunk_size <= 0:
            raise ConfigError(f"http.chunk_size must be positive, got {http.chunk_size}")
        if http.max_pending_events < 1:
            raise ConfigError(
                f"http.max_pending_events must be at least 1, got {http.max_pending_events}"
            )
        if http.max_redirects < 0:
            raise ConfigError(f"http.max_redirects must not be negative, got {http.max_redirects}")
        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ConfigError(f"logging.level is not a log level: {self.logging.level}")


def _parse_scalar(value: str, current: Any, key: str) -> Any:
    """Parse an env-expanded string as the type of the default value."""
    try:
        if isinstance(current, bool):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off"):
                return False
            raise ValueError(value)
        if isinstance(current, int):
            return int(value)
        if isinstance(current, float):
            return float(value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}", cause=e) from e
    return value


def _coerce(value: Any, current: Any, key: str) -> Any:
    """Coerce a value to the type of the default; null only where the default is null."""
    if value is None:
        if current is not None:
            raise ConfigError(f"{key} must not be null")
        return None
    if current is None:
        return value

    if isinstance(value, str) and not isinstance(current, str):
        value = _parse_scalar(value, current, key)

    if isinstance(current, bool):
        valid = isinstance(value, bool)
    elif isinstance(current, int):
        valid = isinstance(value, int) and not isinstance(value, bool)
    elif isinstance(current, float):
        valid = isinstance(value, (int, float)) and not isinstance(value, bool)
        if valid:
            value = float(value)
    else:
        valid = isinstance(value, type(current))

    if not valid:
        raise ConfigError(f"Invalid value for {key}: {value!r}")
    return value


def _coerce_list(value: Any, key: str) -> Optional[List[str]]:
    """Accept a list of strings, or a comma-separated string (e.g. from ${VAR})."""
    if value is None:
        return None
    if isinstance(value, str):
        # An empty string (unset variable) keeps the default
        return [item.strip() for item in value.split(",") if item.strip()] or None
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    raise ConfigError(f"{key} must be a list of strings, got {value!r}")


def _is_list_field(section_field) -> bool:
    field_type = section_field.type
    return list in (get_origin(field_type), *(get_origin(arg) for arg in get_args(field_type)))


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    defaults = section_cls()
    known = {f.name: f for f in fields(section_cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}': {', '.join(sorted(unknown))}")

    values = {}
    for key, value in data.items():
        if _is_list_field(known[key]):
            values[key] = _coerce_list(value, f"{name}.{key}")
        else:
            values[key] = _coerce(value, getattr(defaults, key), f"{name}.{key}")
    return section_cls(**values)


def load_config(config_path: Optional[Path] = None) -> RelayConfig:
    """
    Load relay configuration.

    Resolution order: explicit path, $SNIFFRELAY_CONFIG, ./sniffrelay.yaml.
    A missing file yields the defaults.
    """
    if config_path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_FILE

    config_path = Path(config_path)
    yaml_data = _expand_env_vars(load_yaml(config_path))
    if yaml_data:
        logger.debug(f"Loaded configuration from {config_path}")

    config = RelayConfig.from_dict(yaml_data)
    config.validate()
    return config
