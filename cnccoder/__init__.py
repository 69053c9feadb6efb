"""
cnccoder.

Compiles declarative CNC cutting operations into G-code and a matching
Camotics simulation project.  Cuts are resolved per tool into a flat
instruction stream; both serializers read that one stream.

Subpackages:
    types: Vectors, units and bounding boxes
    tools: Cutter descriptions
    cuts: Cut operations and the geometry resolver
    gcode: Instruction stream and G-code generation
    program: Per-tool contexts, program assembly and metadata
    simulation: Camotics project model
    export: Writing G-code and project files to disk
    configs: YAML defaults and tool library
    utils: Number formatting, atomic I/O, logging setup

Typical use::

    from cnccoder import Circle, Direction, Program, Tool, Units, Vector2

    program = Program(Units.METRIC, z_safe=10.0, z_tool_change=50.0)
    tool = Tool.cylindrical(Units.METRIC, 50.0, 6.0, Direction.CLOCKWISE, 18000.0, 600.0)
    with program.editing(tool) as ctx:
        ctx.append_cut(Circle(Vector2(0, 0), 0.0, -3.0, 20.0, 1.0))
    print(program.to_gcode())
"""

from cnccoder._version import __version__
from cnccoder.cuts import (
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
from cnccoder.errors import (
    CncCoderError,
    GeometryError,
    MergeError,
    ToolError,
    ValidationError,
)
from cnccoder.export import write_project
from cnccoder.program import Context, Program, ProgramMetadata
from cnccoder.simulation import CamoticsProject
from cnccoder.tools import Direction, Tool, ToolShape
from cnccoder.types import Bounds, Units, Vector2, Vector3

__all__ = [
    "__version__",
    "Arc",
    "ArcSegment",
    "Area",
    "Bounds",
    "CamoticsProject",
    "Circle",
    "CircleMode",
    "CncCoderError",
    "Compensation",
    "Context",
    "Cut",
    "Direction",
    "Frame",
    "GeometryError",
    "Line",
    "LineSegment",
    "MergeError",
    "Path",
    "Point",
    "Program",
    "ProgramMetadata",
    "Tool",
    "ToolError",
    "ToolShape",
    "Units",
    "ValidationError",
    "Vector2",
    "Vector3",
    "write_project",
]
