"""Cut operations -- the declarative vocabulary of a program.

Every cut is an immutable, slotted dataclass describing *what* to
machine, in program units, independent of the cutter.  The resolver
turns a cut plus a tool into instructions; that is also where geometric
validity is checked, so a cut can always be constructed and inspected
even if it cannot be machined with a given tool.

Every cut accepts two optional overrides:

``feed``
    Feed rate (units/min) used instead of the tool's ``max_feed_rate``.
``speed``
    Spindle speed (rpm) held for the duration of this cut only.

Sequences passed as lists are stored as tuples so cuts stay hashable.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from enum import Enum

from cnccoder.tools.tool import Direction
from cnccoder.types.vector import Vector2, Vector3
from cnccoder.utils.numbers import format_number


class Compensation(Enum):
    """Tool-radius compensation applied to a nominal boundary.

    ``OUTER``
        Path radius/size shrinks by the tool radius: the cutter stays
        inside the boundary, producing an exact-size hole or cavity.
    ``INNER``
        Path radius/size grows by the tool radius: the cutter stays
        outside the boundary, producing an exact-size boss.
    ``NONE``
        The tool centre follows the boundary.
    """

    INNER = "inner"
    OUTER = "outer"
    NONE = "none"


class CircleMode(Enum):
    """How a ``Circle`` is machined."""

    DRILL = "drill"
    POCKET = "pocket"


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Cut(ABC):
    """Base class for all cut operations."""

    def describe(self) -> str:
        """Short human-readable label, emitted as a comment before the cut."""
        return type(self).__name__


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Line(Cut):
    """Polyline followed at feed rate, point by point.

    Parameters
    ----------
    points : tuple[Vector3, ...]
        Ordered vertices.  The tool feeds to each one in turn.
    """

    points: tuple[Vector3, ...]
    feed: float | None = None
    speed: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))

    def describe(self) -> str:
        if not self.points:
            return "Cut line (empty)"
        first = self.points[0]
        return (
            f"Cut line at: x = {format_number(first.x)}, "
            f"y = {format_number(first.y)}, points = {len(self.points)}"
        )


@dataclass(frozen=True, slots=True)
class Point(Cut):
    """Drill one or more holes by straight plunges.

    Parameters
    ----------
    positions : tuple[Vector2, ...]
        Hole centres, drilled in order.
    z_top : float
        Start (and retract) height for every hole.
    depths : tuple[float, ...]
        Target depth per position, or a single depth shared by all.
    """

    positions: tuple[Vector2, ...]
    z_top: float
    depths: tuple[float, ...]
    feed: float | None = None
    speed: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "positions", tuple(self.positions))
        depths = self.depths
        if isinstance(depths, (int, float)):
            depths = (float(depths),)
        object.__setattr__(self, "depths", tuple(depths))

    def depth_at(self, index: int) -> float:
        """Depth for the ``index``-th position (single depth broadcasts)."""
        if len(self.depths) == 1:
            return self.depths[0]
        return self.depths[index]

    def describe(self) -> str:
        return f"Drill {len(self.positions)} hole(s) from z = {format_number(self.z_top)}"


# ---------------------------------------------------------------------------
# Circular
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Circle(Cut):
    """Circular hole, boss or drill.

    Parameters
    ----------
    center : Vector2
        Circle centre.
    z_top, z_bottom : float
        Depth range, ``z_top >= z_bottom``.
    radius : float
        Nominal (finished) radius.
    max_step : float
        Maximum depth per pass.  Must be > 0.
    compensation : Compensation
        Tool-radius compensation; ``OUTER`` cuts an exact-size hole.
    mode : CircleMode
        ``POCKET`` interpolates full circles, ``DRILL`` pecks the centre.
    direction : Direction
        Arc direction for ``POCKET`` mode.
    """

    center: Vector2
    z_top: float
    z_bottom: float
    radius: float
    max_step: float
    compensation: Compensation = Compensation.NONE
    mode: CircleMode = CircleMode.POCKET
    direction: Direction = Direction.CLOCKWISE
    feed: float | None = None
    speed: float | None = None

    @classmethod
    def drill(
        cls,
        center: Vector2,
        z_top: float,
        z_bottom: float,
        max_step: float | None = None,
    ) -> Circle:
        """Drill at ``center``; one peck per ``max_step`` (single plunge by default)."""
        step = max_step if max_step is not None else max(z_top - z_bottom, 1.0)
        return cls(
            center=center,
            z_top=z_top,
            z_bottom=z_bottom,
            radius=0.0,
            max_step=step,
            mode=CircleMode.DRILL,
        )

    def describe(self) -> str:
        verb = "Drill hole" if self.mode is CircleMode.DRILL else "Cut hole"
        return (
            f"{verb} at: x = {format_number(self.center.x)}, "
            f"y = {format_number(self.center.y)}, "
            f"radius = {format_number(self.radius)}"
        )


@dataclass(frozen=True, slots=True)
class Arc(Cut):
    """Single arc in the XY plane, optionally helical.

    The tool plunges at ``start``, then interpolates around ``center`` to
    ``end``.  A differing ``end.z`` gives a helix.  ``start == end`` in XY
    cuts a full circle.

    Parameters
    ----------
    start, end : Vector3
        Arc end points.  Both must lie at the same distance from ``center``.
    center : Vector2
        Arc centre.
    direction : Direction
        ``CLOCKWISE`` (``G2``) or ``COUNTER_CLOCKWISE`` (``G3``).
    """

    start: Vector3
    end: Vector3
    center: Vector2
    direction: Direction = Direction.CLOCKWISE
    feed: float | None = None
    speed: float | None = None

    def describe(self) -> str:
        return (
            f"Cut arc {self.direction.value} from: x = {format_number(self.start.x)}, "
            f"y = {format_number(self.start.y)}, z = {format_number(self.start.z)}, "
            f"to: x = {format_number(self.end.x)}, y = {format_number(self.end.y)}, "
            f"z = {format_number(self.end.z)}"
        )


# ---------------------------------------------------------------------------
# Segmented paths
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LineSegment:
    """Straight path segment, in coordinates relative to the path start."""

    start: Vector2
    end: Vector2


@dataclass(frozen=True, slots=True)
class ArcSegment:
    """Circular path segment, in coordinates relative to the path start."""

    start: Vector2
    end: Vector2
    center: Vector2
    direction: Direction = Direction.CLOCKWISE


Segment = LineSegment | ArcSegment


@dataclass(frozen=True, slots=True)
class Path(Cut):
    """Chain of line and arc segments cut down to ``end_z`` in depth passes.

    Each pass ramps down along the path, spreading the step over the
    path length, so the cutter never plunges straight into the stock.
    A final flat pass cleans up the floor at ``end_z``.

    Parameters
    ----------
    start : Vector3
        Origin of the segment coordinates; ``start.z`` is the top.
    segments : tuple[Segment, ...]
        Ordered segments.  Gaps between one segment's end and the next
        one's start are bridged with a feed move.
    end_z : float
        Final depth.
    max_step : float
        Maximum depth per pass.  Must be > 0.
    """

    start: Vector3
    segments: tuple[Segment, ...]
    end_z: float
    max_step: float
    feed: float | None = None
    speed: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", tuple(self.segments))

    def describe(self) -> str:
        return (
            f"Cut path at: x = {format_number(self.start.x)}, "
            f"y = {format_number(self.start.y)}, segments = {len(self.segments)}"
        )


# ---------------------------------------------------------------------------
# Rectangular
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Area(Cut):
    """Facing pass: clear a rectangle down to ``end_z`` with a raster sweep.

    Parameters
    ----------
    corner : Vector3
        Minimum XY corner; ``corner.z`` is the top of the stock.
    size : Vector2
        Rectangle extent along X and Y.
    end_z : float
        Final floor height.
    max_step : float
        Maximum depth per pass.  Must be > 0.
    """

    corner: Vector3
    size: Vector2
    end_z: float
    max_step: float
    feed: float | None = None
    speed: float | None = None

    def describe(self) -> str:
        return (
            f"Clear area at: x = {format_number(self.corner.x)}, "
            f"y = {format_number(self.corner.y)}, size = {self.size}"
        )


@dataclass(frozen=True, slots=True)
class Frame(Cut):
    """Rectangular perimeter cut down to ``end_z``.

    Parameters
    ----------
    corner : Vector3
        Minimum XY corner of the nominal rectangle; ``corner.z`` is the top.
    size : Vector2
        Nominal rectangle extent.
    end_z : float
        Final depth.
    max_step : float
        Maximum depth per pass.  Must be > 0.
    compensation : Compensation
        ``OUTER`` cuts inside the rectangle, ``INNER`` outside it.
    """

    corner: Vector3
    size: Vector2
    end_z: float
    max_step: float
    compensation: Compensation = Compensation.NONE
    feed: float | None = None
    speed: float | None = None

    def describe(self) -> str:
        return (
            f"Cut frame at: x = {format_number(self.corner.x)}, "
            f"y = {format_number(self.corner.y)}, size = {self.size}"
        )
