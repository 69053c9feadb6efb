"""
Cut operations and their geometric resolution.

Cuts describe what to machine; ``resolve`` lowers one cut for one tool
into the instruction stream.
"""

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
    Segment,
)
from cnccoder.cuts.resolver import depth_passes, effective_radius, resolve

__all__ = [
    "Arc",
    "ArcSegment",
    "Area",
    "Circle",
    "CircleMode",
    "Compensation",
    "Cut",
    "Frame",
    "Line",
    "LineSegment",
    "Path",
    "Point",
    "Segment",
    "depth_passes",
    "effective_radius",
    "resolve",
]
