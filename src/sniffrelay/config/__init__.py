"""Configuration loading."""

from sniffrelay.config.config import (
    CONFIG_ENV_VAR,
    LoggingConfig,
    RelayConfig,
    TransferDefaults,
    load_config,
    load_yaml,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "RelayConfig",
    "LoggingConfig",
    "TransferDefaults",
    "load_config",
    "load_yaml",
]
