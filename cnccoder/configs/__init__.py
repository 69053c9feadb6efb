"""Configuration loading and validation."""

from cnccoder.configs.loader import (
    DEFAULT_CONFIG_PATH,
    CoderConfig,
    ConfigError,
    ProgramDefaults,
    SimulationDefaults,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CoderConfig",
    "ConfigError",
    "ProgramDefaults",
    "SimulationDefaults",
    "load_config",
]
