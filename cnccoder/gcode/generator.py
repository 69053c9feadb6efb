"""G-code generator -- instruction stream to machine text.

One controller dialect is modelled (GRBL-style).  Each instruction maps
to exactly one output line, in stream order; the generator holds no
modal state and never reorders or elides instructions, so the text is a
faithful rendering of the stream it was given.

Number format:
    Coordinates, offsets and feeds are rounded to three decimals with
    trailing zeros stripped (``10.0 -> "10"``, ``1.23456 -> "1.235"``).

Dialect summary::

    UnitsDirective   G21 | G20
    Move (rapid)     G0 X.. Y.. Z..
    Move (feed)      G1 X.. Y.. Z.. F..
    Arc              G2 | G3 X.. Y.. Z.. I.. J.. F..
    SpindleOn        M3 S.. | M4 S..
    SpindleOff       M5
    Wait             G4 P<seconds>
    ToolChange       T<n> M6
    Comment          ; text
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Iterable

from cnccoder.errors import CncCoderError
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
from cnccoder.tools.tool import Direction
from cnccoder.types.units import Units
from cnccoder.utils.numbers import PRECISION, format_number

logger = logging.getLogger(__name__)


class GCodeError(CncCoderError):
    """Raised when an instruction cannot be rendered."""

    pass


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class GCodeGenerator:
    """Render instruction streams as G-code text.

    Parameters
    ----------
    precision : int
        Decimal digits kept for coordinates, offsets and feeds.
    """

    def __init__(self, precision: int = PRECISION) -> None:
        if precision < 0:
            raise ValueError(f"precision must be >= 0, got {precision}")
        self._precision = precision

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, instructions: Iterable[Instruction]) -> str:
        """Render a full stream, one line per instruction.

        Parameters
        ----------
        instructions : Iterable[Instruction]
            Stream to render, in order.

        Returns
        -------
        str
            Newline-joined G-code (no trailing newline).

        Raises
        ------
        GCodeError
            If the stream contains an unknown instruction type or a
            motion instruction without any target axis.
        """
        buf = StringIO()
        count = 0
        for ins in instructions:
            if count:
                buf.write("\n")
            buf.write(self.render(ins))
            count += 1
        logger.debug("Rendered %d instructions to G-code", count)
        return buf.getvalue()

    def render(self, ins: Instruction) -> str:
        """Render a single instruction as one G-code line."""
        if isinstance(ins, Move):
            return self._gen_move(ins)
        if isinstance(ins, Arc):
            return self._gen_arc(ins)
        if isinstance(ins, UnitsDirective):
            return "G21" if ins.units is Units.METRIC else "G20"
        if isinstance(ins, SpindleOn):
            code = "M3" if ins.direction is Direction.CLOCKWISE else "M4"
            return f"{code} S{self._n(ins.speed)}"
        if isinstance(ins, SpindleOff):
            return "M5"
        if isinstance(ins, Wait):
            return f"G4 P{self._n(ins.seconds)}"
        if isinstance(ins, ToolChange):
            return f"T{ins.number} M6"
        if isinstance(ins, Comment):
            return f"; {ins.text}" if ins.text else ""
        raise GCodeError(f"Unsupported instruction: {type(ins).__name__}")

    # ------------------------------------------------------------------
    # Individual generators
    # ------------------------------------------------------------------

    def _n(self, value: float) -> str:
        return format_number(value, self._precision)

    def _axes(self, **axes: float | None) -> list[str]:
        return [
            f"{name.upper()}{self._n(value)}"
            for name, value in axes.items()
            if value is not None
        ]

    def _gen_move(self, ins: Move) -> str:
        words = self._axes(x=ins.x, y=ins.y, z=ins.z)
        if not words:
            raise GCodeError("Move instruction has no target axis")
        if ins.is_rapid:
            return " ".join(["G0", *words])
        return " ".join(["G1", *words, f"F{self._n(ins.feed)}"])

    def _gen_arc(self, ins: Arc) -> str:
        code = "G2" if ins.direction is Direction.CLOCKWISE else "G3"
        words = self._axes(x=ins.x, y=ins.y, z=ins.z, i=ins.i, j=ins.j)
        return " ".join([code, *words, f"F{self._n(ins.feed)}"])
