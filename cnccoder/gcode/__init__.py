"""
Instruction stream and G-code generation.

Cuts are lowered into the instruction stream defined here; the generator
renders that stream as G-code text for one controller dialect.
"""

from cnccoder.gcode.generator import GCodeError, GCodeGenerator
from cnccoder.gcode.instructions import (
    Arc,
    Comment,
    Instruction,
    Move,
    SpindleOff,
    SpindleOn,
    ToolChange,
    UnitsDirective,
    Wait,
)

__all__ = [
    "Arc",
    "Comment",
    "GCodeError",
    "GCodeGenerator",
    "Instruction",
    "Move",
    "SpindleOff",
    "SpindleOn",
    "ToolChange",
    "UnitsDirective",
    "Wait",
]
