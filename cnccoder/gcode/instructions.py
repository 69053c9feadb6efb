"""Instruction stream -- the lowered form between cuts and G-code text.

Every instruction is an immutable, slotted dataclass.  A resolved
program is a flat ``list[Instruction]`` whose order is load-bearing:
serializers walk it front to back and never reorder, merge or drop
entries.

Coordinates and feeds are in the owning program's units.  Motion
instructions leave an axis as ``None`` when it does not change, which
maps to an omitted word in the emitted G-code.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import Iterator

from cnccoder.tools.tool import Direction, Tool
from cnccoder.types.units import Units
from cnccoder.types.vector import Vector3


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Instruction(ABC):
    """Base class for all lowered instructions."""

    pass


# ---------------------------------------------------------------------------
# Motion
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Move(Instruction):
    """Straight move.

    Parameters
    ----------
    x, y, z : float | None
        Target coordinates; ``None`` leaves the axis unchanged.
    feed : float | None
        Feed rate in units/min.  ``None`` means a rapid (``G0``) move.
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None

    @classmethod
    def feed_to(cls, point: Vector3, feed: float) -> Move:
        return cls(point.x, point.y, point.z, feed)

    @property
    def is_rapid(self) -> bool:
        return self.feed is None


@dataclass(frozen=True, slots=True)
class Arc(Instruction):
    """Circular interpolation in the XY plane (``G2`` / ``G3``).

    The arc runs from the current position to ``(x, y, z)`` around the
    centre at ``current + (i, j)``.  A full circle has its end point
    equal to its start point.

    Parameters
    ----------
    x, y, z : float
        End point.
    i, j : float
        Offset from the start point to the arc centre.
    direction : Direction
        ``CLOCKWISE`` emits ``G2``, ``COUNTER_CLOCKWISE`` emits ``G3``.
    feed : float
        Feed rate in units/min.
    """

    x: float
    y: float
    z: float
    i: float
    j: float
    direction: Direction
    feed: float

    @property
    def radius(self) -> float:
        return (self.i * self.i + self.j * self.j) ** 0.5


# ---------------------------------------------------------------------------
# Machine state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToolChange(Instruction):
    """Manual tool change to slot ``number`` (``T<n> M6``)."""

    tool: Tool
    number: int

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError(f"Tool number must be >= 1, got {self.number}")


@dataclass(frozen=True, slots=True)
class SpindleOn(Instruction):
    """Start the spindle (``M3`` clockwise / ``M4`` counter-clockwise)."""

    direction: Direction
    speed: float


@dataclass(frozen=True, slots=True)
class SpindleOff(Instruction):
    """Stop the spindle (``M5``)."""

    pass


@dataclass(frozen=True, slots=True)
class UnitsDirective(Instruction):
    """Select the unit system (``G21`` metric / ``G20`` imperial)."""

    units: Units


@dataclass(frozen=True, slots=True)
class Wait(Instruction):
    """Dwell for ``seconds`` (``G4``), e.g. while the spindle spins up."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError(f"Wait duration must be >= 0, got {self.seconds}")


@dataclass(frozen=True, slots=True)
class Comment(Instruction):
    """Free-text comment line."""

    text: str


# ---------------------------------------------------------------------------
# Stream helpers
# ---------------------------------------------------------------------------


def iter_motion_z(instructions: list[Instruction]) -> Iterator[float]:
    """Yield every explicit Z target of the Move/Arc instructions."""
    for ins in instructions:
        if isinstance(ins, Arc):
            yield ins.z
        elif isinstance(ins, Move) and ins.z is not None:
            yield ins.z


def first_xy(instructions: list[Instruction]) -> tuple[float, float] | None:
    """Return the first fully specified XY target in ``instructions``.

    Used to find the entry point of a resolved cut so the caller can
    travel there at safe height before the cut starts.
    """
    for ins in instructions:
        if isinstance(ins, (Move, Arc)) and ins.x is not None and ins.y is not None:
            return (ins.x, ins.y)
    return None
