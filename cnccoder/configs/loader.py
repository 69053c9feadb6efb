"""Configuration loader for cnccoder.

Loads and validates ``defaults.yaml`` into typed, frozen dataclasses:
program defaults (units, safe heights, spin-up dwell), simulation
defaults, and a named tool library.

Lengths and feeds are in the units declared next to them; nothing is
converted at load time.  Tools are converted into a program's units only
when cuts are resolved.

Usage::

    from cnccoder.configs.loader import load_config
    cfg = load_config()                        # default path
    cfg = load_config("/custom/cnccoder.yaml") # explicit path
    tool = cfg.get_tool("endmill_6mm")
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cnccoder.errors import CncCoderError
from cnccoder.tools.tool import Direction, Tool, ToolShape
from cnccoder.types.units import Units
from cnccoder.utils.fs import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(CncCoderError):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProgramDefaults:
    """Settings every new ``Program`` starts from."""

    units: Units
    z_safe: float
    z_tool_change: float
    spin_up_s: float


@dataclass(frozen=True)
class SimulationDefaults:
    """Camotics project settings."""

    resolution: float


@dataclass(frozen=True)
class CoderConfig:
    """Complete configuration loaded from YAML."""

    program: ProgramDefaults
    simulation: SimulationDefaults
    tools: dict[str, Tool]

    def get_tool(self, name: str) -> Tool:
        """Return tool by name or raise ``ConfigError``."""
        if name not in self.tools:
            raise ConfigError(
                f"Unknown tool '{name}'. Available: {list(self.tools.keys())}"
            )
        return self.tools[name]


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _parse_program(data: dict[str, Any]) -> ProgramDefaults:
    """Parse the ``program`` section."""
    return ProgramDefaults(
        units=Units.parse(data.get("units", "metric")),
        z_safe=float(data["z_safe"]),
        z_tool_change=float(data["z_tool_change"]),
        spin_up_s=float(data.get("spin_up_s", 5.0)),
    )


def _parse_tool(name: str, data: dict[str, Any]) -> Tool:
    """Parse a single tool entry from the ``tools`` library."""
    if not isinstance(data, dict):
        raise ConfigError(f"Tool '{name}' must be a mapping, got {data!r}")

    units = Units.parse(data.get("units", "metric"))
    shape = ToolShape(str(data.get("shape", "cylindrical")).lower())
    direction = Direction(str(data.get("direction", "clockwise")).lower())
    diameter = float(data["diameter"])
    spindle_speed = float(data["spindle_speed"])
    max_feed_rate = float(data["max_feed_rate"])

    if shape is ToolShape.CONICAL:
        length = data.get("length")
        return Tool.conical(
            units,
            float(data["angle"]),
            diameter,
            direction,
            spindle_speed,
            max_feed_rate,
            length=None if length is None else float(length),
        )
    if "angle" in data:
        raise ConfigError(f"Tool '{name}': only conical tools take an 'angle'")

    factory = Tool.ballnose if shape is ToolShape.BALLNOSE else Tool.cylindrical
    return factory(
        units,
        float(data["length"]),
        diameter,
        direction,
        spindle_speed,
        max_feed_rate,
    )


def _validate_config(cfg: CoderConfig) -> None:
    """Validate value ranges and cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    p = cfg.program
    for key in ("z_safe", "z_tool_change"):
        value = getattr(p, key)
        if not math.isfinite(value):
            raise ConfigError(f"program.{key} must be finite, got {value}")
    if p.spin_up_s < 0:
        raise ConfigError(f"program.spin_up_s must be >= 0, got {p.spin_up_s}")
    if not cfg.simulation.resolution > 0:
        raise ConfigError(
            f"simulation.resolution must be > 0, got {cfg.simulation.resolution}"
        )

    if p.z_tool_change < p.z_safe:
        logger.warning(
            "Tool change height is below the safe height: "
            "z_tool_change=%.3f, z_safe=%.3f",
            p.z_tool_change, p.z_safe,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> CoderConfig:
    """Load and validate configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to a YAML file.  ``None`` loads the ``defaults.yaml`` shipped
        alongside this module.

    Returns
    -------
    CoderConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        program = _parse_program(data["program"])

        sim_data = data.get("simulation") or {}
        simulation = SimulationDefaults(
            resolution=float(sim_data.get("resolution", 0.5)),
        )

        tools = {
            str(name): _parse_tool(str(name), cfg)
            for name, cfg in (data.get("tools") or {}).items()
        }

        config = CoderConfig(program=program, simulation=simulation, tools=tools)
        _validate_config(config)
        logger.info("Configuration loaded successfully (%d tools)", len(tools))
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc
