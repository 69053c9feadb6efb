"""Geometry resolver -- one cut plus one tool to an instruction sequence.

``resolve`` is a pure function: the same cut, tool and units always give
the same instructions, and nothing outside the returned list is touched.
It is the only place where cut geometry is validated.

Conventions
-----------
Units:
    The tool is converted into the program ``units`` first; cut
    coordinates are already in program units.

Feed:
    ``cut.feed`` when given, otherwise ``tool.max_feed_rate``.  Rapids
    carry ``feed=None``.

Depth passes:
    A depth range ``[z_bottom, z_top]`` is split into
    ``ceil((z_top - z_bottom) / max_step)`` passes (at least one).  Pass
    ``k`` targets ``z_top - k * max_step``; the last pass targets
    ``z_bottom`` exactly, never overshooting it.

Compensation:
    ``OUTER`` shrinks the path by the tool radius (the cutter stays
    inside the nominal boundary), ``INNER`` grows it, ``NONE`` follows
    the nominal boundary with the tool centre.

Arcs:
    Always in the XY plane.  ``I``/``J`` are the centre offsets from the
    arc's start point.  Start and end must be equidistant from the
    centre within ``ARC_RADIUS_TOLERANCE``.

Safe-height travel between cuts is not produced here; the owning
context adds it.
"""

from __future__ import annotations

import math

from cnccoder.cuts.operations import (
    Arc,
    ArcSegment,
    Area,
    Circle,
    CircleMode,
    Compensation,
    Cut,
    Frame,
    Line,
    LineSegment,
    Path,
    Point,
)
from cnccoder.errors import GeometryError
from cnccoder.gcode.instructions import Arc as ArcMove
from cnccoder.gcode.instructions import Instruction, Move, SpindleOn
from cnccoder.tools.tool import Direction, Tool
from cnccoder.types.units import Units
from cnccoder.types.vector import Vector2, Vector3

AREA_STEPOVER_RATIO = 0.9
"""Raster row spacing as a fraction of the tool diameter."""

ARC_RADIUS_TOLERANCE = 1e-4
"""Largest allowed difference between an arc's start and end radius."""

_EPS = 1e-9


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(cut: Cut, tool: Tool, units: Units) -> list[Instruction]:
    """Lower ``cut`` into instructions for ``tool`` in ``units``.

    Parameters
    ----------
    cut : Cut
        Operation to resolve.
    tool : Tool
        Cutter; converted into ``units`` before any geometry is computed.
    units : Units
        Program unit system.

    Returns
    -------
    list[Instruction]
        Ordered instructions for this cut alone.

    Raises
    ------
    GeometryError
        If the cut is empty, has a non-positive step, an inverted depth
        range, or a non-positive effective radius/size for this tool.
    """
    tool = tool.to_units(units)
    feed = _feed(cut, tool)

    if isinstance(cut, Line):
        body = _resolve_line(cut, feed)
    elif isinstance(cut, Point):
        body = _resolve_point(cut, feed)
    elif isinstance(cut, Circle):
        body = _resolve_circle(cut, tool, feed)
    elif isinstance(cut, Area):
        body = _resolve_area(cut, tool, feed)
    elif isinstance(cut, Frame):
        body = _resolve_frame(cut, tool, feed)
    elif isinstance(cut, Arc):
        body = _resolve_arc(cut, feed)
    elif isinstance(cut, Path):
        body = _resolve_path(cut, feed)
    else:
        raise GeometryError(f"Unsupported cut type {type(cut).__name__}", cut)

    speed = getattr(cut, "speed", None)
    if speed is None:
        return body
    if not speed > 0:
        raise GeometryError(f"Spindle speed override must be > 0, got {speed}", cut)
    return [
        SpindleOn(tool.direction, speed),
        *body,
        SpindleOn(tool.direction, tool.spindle_speed),
    ]


def effective_radius(
    radius: float, tool_radius: float, compensation: Compensation,
) -> float:
    """Path radius after tool-radius compensation.

    ``OUTER`` gives ``radius - tool_radius``, ``INNER`` gives
    ``radius + tool_radius``, ``NONE`` leaves ``radius`` unchanged.
    The result is not clamped; callers reject non-positive values.
    """
    if compensation is Compensation.OUTER:
        return radius - tool_radius
    if compensation is Compensation.INNER:
        return radius + tool_radius
    return radius


def depth_passes(
    z_top: float, z_bottom: float, max_step: float, cut: Cut | None = None,
) -> list[float]:
    """Target heights of each depth pass, top to bottom.

    Parameters
    ----------
    z_top, z_bottom : float
        Depth range; ``z_top`` must not be below ``z_bottom``.
    max_step : float
        Maximum depth of a single pass.  Must be > 0.
    cut : Cut | None
        Cut named in error messages.

    Returns
    -------
    list[float]
        ``ceil((z_top - z_bottom) / max_step)`` heights (at least one),
        the last exactly ``z_bottom``.

    Raises
    ------
    GeometryError
        On ``max_step <= 0`` or ``z_top < z_bottom``.
    """
    if not max_step > 0:
        raise GeometryError(f"Depth step must be > 0, got {max_step}", cut)
    if z_top < z_bottom:
        raise GeometryError(
            f"Inverted z range: top {z_top} is below bottom {z_bottom}", cut
        )
    count = max(1, math.ceil((z_top - z_bottom) / max_step - _EPS))
    return [z_top - k * max_step for k in range(1, count)] + [z_bottom]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _feed(cut: Cut, tool: Tool) -> float:
    feed = getattr(cut, "feed", None)
    if feed is None:
        return tool.max_feed_rate
    if not feed > 0:
        raise GeometryError(f"Feed override must be > 0, got {feed}", cut)
    return feed


def _compensated_rect(
    corner: Vector3, size: Vector2, tool_radius: float, compensation: Compensation,
) -> tuple[Vector3, Vector2]:
    if compensation is Compensation.OUTER:
        return (
            corner.add_x(tool_radius).add_y(tool_radius),
            size.add_x(-2.0 * tool_radius).add_y(-2.0 * tool_radius),
        )
    if compensation is Compensation.INNER:
        return (
            corner.add_x(-tool_radius).add_y(-tool_radius),
            size.add_x(2.0 * tool_radius).add_y(2.0 * tool_radius),
        )
    return corner, size


def _arc_radius(start: Vector2, end: Vector2, center: Vector2, cut: Cut) -> float:
    r_start = start.distance_to(center)
    r_end = end.distance_to(center)
    if abs(r_start - r_end) > ARC_RADIUS_TOLERANCE:
        raise GeometryError(
            f"Arc start radius {r_start} and end radius {r_end} differ", cut
        )
    if not r_start > _EPS:
        raise GeometryError("Arc radius must be > 0", cut)
    return r_start


def _arc_length(
    start: Vector2, end: Vector2, center: Vector2, direction: Direction, radius: float,
) -> float:
    """Length along the arc; coincident end points sweep a full circle."""
    a_start = math.atan2(start.y - center.y, start.x - center.x)
    a_end = math.atan2(end.y - center.y, end.x - center.x)
    if direction is Direction.CLOCKWISE:
        sweep = (a_start - a_end) % math.tau
    else:
        sweep = (a_end - a_start) % math.tau
    if sweep <= _EPS:
        sweep = math.tau
    return radius * sweep


def _raster_rows(y_min: float, y_max: float, max_spacing: float) -> list[float]:
    span = y_max - y_min
    if span <= _EPS:
        return [y_min]
    intervals = max(1, math.ceil(span / max_spacing - _EPS))
    return [y_min + span * k / intervals for k in range(intervals)] + [y_max]


# ---------------------------------------------------------------------------
# Per-cut resolvers
# ---------------------------------------------------------------------------


def _resolve_line(cut: Line, feed: float) -> list[Instruction]:
    if not cut.points:
        raise GeometryError("Line has no points", cut)
    return [Move.feed_to(p, feed) for p in cut.points]


def _resolve_point(cut: Point, feed: float) -> list[Instruction]:
    if not cut.positions:
        raise GeometryError("Point cut has no positions", cut)
    if len(cut.depths) not in (1, len(cut.positions)):
        raise GeometryError(
            f"Point cut needs 1 or {len(cut.positions)} depths, "
            f"got {len(cut.depths)}",
            cut,
        )

    out: list[Instruction] = []
    for index, pos in enumerate(cut.positions):
        depth = cut.depth_at(index)
        if cut.z_top < depth:
            raise GeometryError(
                f"Inverted z range: top {cut.z_top} is below depth {depth}", cut
            )
        out.append(Move(pos.x, pos.y, cut.z_top))
        out.append(Move(pos.x, pos.y, depth, feed))
        out.append(Move(pos.x, pos.y, cut.z_top))
    return out


def _resolve_circle(cut: Circle, tool: Tool, feed: float) -> list[Instruction]:
    passes = depth_passes(cut.z_top, cut.z_bottom, cut.max_step, cut)
    cx, cy = cut.center.x, cut.center.y

    if cut.mode is CircleMode.DRILL:
        out: list[Instruction] = [Move(cx, cy, cut.z_top)]
        for z in passes:
            out.append(Move(cx, cy, z, feed))
            out.append(Move(cx, cy, cut.z_top))
        return out

    radius = effective_radius(cut.radius, tool.radius, cut.compensation)
    if not radius > 0:
        raise GeometryError(
            f"Effective radius {radius} is not positive "
            f"(radius {cut.radius}, tool radius {tool.radius}, "
            f"compensation {cut.compensation.value})",
            cut,
        )

    # Entry on the -X side of the circle; the centre is at +I from there.
    sx = cx - radius
    out = [Move(sx, cy, cut.z_top)]
    for z in passes:
        out.append(Move(sx, cy, z, feed))
        out.append(ArcMove(sx, cy, z, radius, 0.0, cut.direction, feed))
    return out


def _resolve_area(cut: Area, tool: Tool, feed: float) -> list[Instruction]:
    diameter = tool.diameter
    if cut.size.x < diameter or cut.size.y < diameter:
        raise GeometryError(
            f"Area {cut.size} is smaller than the tool diameter {diameter}", cut
        )
    passes = depth_passes(cut.corner.z, cut.end_z, cut.max_step, cut)

    r = tool.radius
    x_min = cut.corner.x + r
    x_max = cut.corner.x + cut.size.x - r
    rows = _raster_rows(
        cut.corner.y + r,
        cut.corner.y + cut.size.y - r,
        AREA_STEPOVER_RATIO * diameter,
    )

    out: list[Instruction] = []
    prev_z = cut.corner.z
    for z in passes:
        out.append(Move(x_min, rows[0], prev_z, feed))
        out.append(Move(x_min, rows[0], z, feed))
        x = x_min
        for index, y in enumerate(rows):
            if index:
                out.append(Move(x, y, z, feed))
            x = x_max if index % 2 == 0 else x_min
            out.append(Move(x, y, z, feed))
        prev_z = z
    return out


def _resolve_frame(cut: Frame, tool: Tool, feed: float) -> list[Instruction]:
    corner, size = _compensated_rect(
        cut.corner, cut.size, tool.radius, cut.compensation,
    )
    if not (size.x > 0 and size.y > 0):
        raise GeometryError(
            f"Effective frame size {size} is not positive "
            f"(tool radius {tool.radius}, compensation {cut.compensation.value})",
            cut,
        )
    passes = depth_passes(cut.corner.z, cut.end_z, cut.max_step, cut)

    x0, y0 = corner.x, corner.y
    x1, y1 = x0 + size.x, y0 + size.y
    out: list[Instruction] = []
    prev_z = cut.corner.z
    for z in passes:
        out.append(Move(x0, y0, prev_z, feed))
        out.append(Move(x0, y0, z, feed))
        out.append(Move(x1, y0, z, feed))
        out.append(Move(x1, y1, z, feed))
        out.append(Move(x0, y1, z, feed))
        out.append(Move(x0, y0, z, feed))
        prev_z = z
    return out


def _resolve_arc(cut: Arc, feed: float) -> list[Instruction]:
    _arc_radius(cut.start.xy(), cut.end.xy(), cut.center, cut)
    return [
        Move.feed_to(cut.start, feed),
        ArcMove(
            cut.end.x, cut.end.y, cut.end.z,
            cut.center.x - cut.start.x, cut.center.y - cut.start.y,
            cut.direction, feed,
        ),
    ]


def _resolve_path(cut: Path, feed: float) -> list[Instruction]:
    if not cut.segments:
        raise GeometryError("Path has no segments", cut)

    lengths: list[float] = []
    for segment in cut.segments:
        if isinstance(segment, ArcSegment):
            radius = _arc_radius(segment.start, segment.end, segment.center, cut)
            lengths.append(_arc_length(
                segment.start, segment.end, segment.center, segment.direction, radius,
            ))
        elif isinstance(segment, LineSegment):
            lengths.append(segment.start.distance_to(segment.end))
        else:
            raise GeometryError(
                f"Unsupported path segment {type(segment).__name__}", cut
            )
    total = sum(lengths)
    if not total > _EPS:
        raise GeometryError("Path has zero length", cut)

    top = cut.start.z
    passes = depth_passes(top, cut.end_z, cut.max_step, cut)
    ramps: list[tuple[float, float]] = []
    prev_z = top
    for z in passes:
        ramps.append((prev_z, z))
        prev_z = z
    if top > cut.end_z:
        ramps.append((cut.end_z, cut.end_z))

    origin = cut.start.xy()
    entry = origin + cut.segments[0].start
    closed = cut.segments[-1].end.distance_to(cut.segments[0].start) <= _EPS

    out: list[Instruction] = []
    for index, (from_z, to_z) in enumerate(ramps):
        if index and not closed:
            # Open path: lift out of the groove before returning to the entry
            out.append(Move(z=top))
            out.append(Move(entry.x, entry.y))
        out.append(Move(entry.x, entry.y, from_z, feed))
        out.extend(_path_ramp(cut, origin, lengths, total, from_z, to_z, feed))
    return out


def _path_ramp(
    cut: Path,
    origin: Vector2,
    lengths: list[float],
    total: float,
    from_z: float,
    to_z: float,
    feed: float,
) -> list[Instruction]:
    """One pass along the path, descending linearly with distance travelled."""
    out: list[Instruction] = []
    position = cut.segments[0].start
    z = from_z
    walked = 0.0
    last = len(cut.segments) - 1

    for index, (segment, length) in enumerate(zip(cut.segments, lengths)):
        start = origin + segment.start
        end = origin + segment.end
        if position.distance_to(segment.start) > _EPS:
            out.append(Move(start.x, start.y, z, feed))

        walked += length
        z = to_z if index == last else from_z - (from_z - to_z) * walked / total

        if isinstance(segment, ArcSegment):
            out.append(ArcMove(
                end.x, end.y, z,
                segment.center.x - segment.start.x,
                segment.center.y - segment.start.y,
                segment.direction, feed,
            ))
        else:
            out.append(Move(end.x, end.y, z, feed))
        position = segment.end
    return out
