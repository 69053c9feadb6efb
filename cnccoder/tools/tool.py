"""Cutter description.

A ``Tool`` is an immutable value: two tools with identical fields are the
same tool, which is how a program groups cuts into one context per
cutter.  Dimensions and feed are in the tool's own ``units``; call
``to_units`` to express them in a program's units.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

from cnccoder.errors import ToolError
from cnccoder.types.units import Units
from cnccoder.utils.numbers import format_number


class Direction(Enum):
    """Spindle rotation (and arc interpolation) direction."""

    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counterclockwise"


class ToolShape(Enum):
    """Cutter profile, used by the simulation project's tool table."""

    CYLINDRICAL = "cylindrical"
    BALLNOSE = "ballnose"
    CONICAL = "conical"


@dataclass(frozen=True, slots=True)
class Tool:
    """Immutable cutter description.

    Parameters
    ----------
    diameter : float
        Cutting diameter.  Must be > 0.
    length : float
        Cutting length.  Must be > 0.
    direction : Direction
        Spindle rotation direction.
    spindle_speed : float
        Spindle speed in rpm.  Must be > 0.
    max_feed_rate : float
        Default (and maximum planned) feed in units per minute.  Must be > 0.
    units : Units
        Unit system of ``diameter``, ``length`` and ``max_feed_rate``.
    shape : ToolShape
        Cutter profile.
    angle : float | None
        Included tip angle in degrees, conical tools only.

    Raises
    ------
    ToolError
        If a dimension, speed or feed is not strictly positive, or a
        conical tool has no angle in ``(0, 180)``.
    """

    diameter: float
    length: float
    direction: Direction = Direction.CLOCKWISE
    spindle_speed: float = 5000.0
    max_feed_rate: float = 400.0
    units: Units = Units.METRIC
    shape: ToolShape = ToolShape.CYLINDRICAL
    angle: float | None = None

    def __post_init__(self) -> None:
        for name in ("diameter", "length", "spindle_speed", "max_feed_rate"):
            value = getattr(self, name)
            if not value > 0:
                raise ToolError(f"Tool {name} must be > 0, got {value}")
        if self.shape is ToolShape.CONICAL:
            if self.angle is None or not 0.0 < self.angle < 180.0:
                raise ToolError(
                    f"Conical tool angle must be in (0, 180), got {self.angle}"
                )
        elif self.angle is not None:
            raise ToolError(
                f"Only conical tools carry an angle, got {self.angle} "
                f"for a {self.shape.value} tool"
            )

    # -- Factories ----------------------------------------------------------

    @classmethod
    def cylindrical(
        cls,
        units: Units,
        length: float,
        diameter: float,
        direction: Direction,
        spindle_speed: float,
        max_feed_rate: float,
    ) -> Tool:
        """Flat end mill."""
        return cls(
            diameter=diameter,
            length=length,
            direction=direction,
            spindle_speed=spindle_speed,
            max_feed_rate=max_feed_rate,
            units=units,
        )

    @classmethod
    def ballnose(
        cls,
        units: Units,
        length: float,
        diameter: float,
        direction: Direction,
        spindle_speed: float,
        max_feed_rate: float,
    ) -> Tool:
        """Ball end mill."""
        return cls(
            diameter=diameter,
            length=length,
            direction=direction,
            spindle_speed=spindle_speed,
            max_feed_rate=max_feed_rate,
            units=units,
            shape=ToolShape.BALLNOSE,
        )

    @classmethod
    def conical(
        cls,
        units: Units,
        angle: float,
        diameter: float,
        direction: Direction,
        spindle_speed: float,
        max_feed_rate: float,
        length: float | None = None,
    ) -> Tool:
        """V-bit.  ``length`` defaults to the cone height for ``angle``."""
        if length is None:
            if not 0.0 < angle < 180.0:
                raise ToolError(
                    f"Conical tool angle must be in (0, 180), got {angle}"
                )
            length = (diameter / 2.0) / math.tan(math.radians(angle / 2.0))
        return cls(
            diameter=diameter,
            length=length,
            direction=direction,
            spindle_speed=spindle_speed,
            max_feed_rate=max_feed_rate,
            units=units,
            shape=ToolShape.CONICAL,
            angle=angle,
        )

    # -- Derived values -----------------------------------------------------

    @property
    def radius(self) -> float:
        """Cut radius (half the diameter)."""
        return self.diameter / 2.0

    def to_units(self, units: Units) -> Tool:
        """Return this tool with lengths and feed expressed in ``units``.

        Spindle speed (rpm) and tip angle are unit-free and kept as is.
        """
        if units is self.units:
            return self
        return replace(
            self,
            diameter=self.units.convert(self.diameter, units),
            length=self.units.convert(self.length, units),
            max_feed_rate=self.units.convert(self.max_feed_rate, units),
            units=units,
        )

    def describe(self) -> str:
        """One-line summary used in tool-change comments."""
        unit = self.units.base_unit
        parts = [f"{self.shape.value.capitalize()} tool"]
        if self.angle is not None:
            parts.append(f"angle = {format_number(self.angle)} deg,")
        parts.append(
            f"diameter = {format_number(self.diameter)}{unit}, "
            f"length = {format_number(self.length)}{unit}, "
            f"direction = {self.direction.value}, "
            f"spindle_speed = {format_number(self.spindle_speed)} rpm, "
            f"feed_rate = {format_number(self.max_feed_rate)}{unit}/min"
        )
        return " ".join(parts)

    def __str__(self) -> str:
        return self.describe()
