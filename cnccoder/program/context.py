"""Per-tool instruction buffer.

A ``Context`` owns the resolved instructions for every cut made with one
tool.  It is append-only while a program is being authored: each
``append_cut`` resolves the cut and appends the result in one step, or
raises and appends nothing.

Each appended cut is preceded by a comment naming it, a rapid retract
to ``z_safe`` and a rapid XY travel to the cut's entry point, so cuts
never drag the tool through stock on the way between them.

The retract height is not frozen into the stored stream.  It is bound
to the context's current ``z_safe`` whenever the instructions are read,
so a context adopted by another program (``copy(z_safe=...)``) or merged
into a local one retracts to the receiving program's safe height.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from cnccoder.cuts.operations import Cut
from cnccoder.cuts.resolver import resolve
from cnccoder.errors import MergeError
from cnccoder.gcode.instructions import (
    Arc,
    Comment,
    Instruction,
    Move,
    first_xy,
    iter_motion_z,
)
from cnccoder.tools.tool import Tool
from cnccoder.types.units import Units

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _SafeRetract(Instruction):
    """Placeholder for a rapid retract to the owning context's ``z_safe``."""

    pass


class Context:
    """Resolved instruction buffer bound to one tool.

    Parameters
    ----------
    tool : Tool
        Cutter every instruction in this context is made with.
    units : Units
        Program unit system the cuts are resolved in.
    z_safe : float
        Travel height used between cuts.
    instructions : Iterable[Instruction] | None
        Initial contents, copied.
    """

    def __init__(
        self,
        tool: Tool,
        units: Units,
        z_safe: float,
        instructions: Iterable[Instruction] | None = None,
    ) -> None:
        self._tool = tool
        self._units = units
        self._z_safe = z_safe
        self._instructions: list[Instruction] = list(instructions or ())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def tool(self) -> Tool:
        return self._tool

    @property
    def units(self) -> Units:
        return self._units

    @property
    def z_safe(self) -> float:
        return self._z_safe

    def operations(self) -> tuple[Instruction, ...]:
        """Read-only snapshot of the accumulated instructions.

        Safe-height retracts are emitted at this context's ``z_safe``.
        """
        retract = Move(z=self._z_safe)
        return tuple(
            retract if isinstance(ins, _SafeRetract) else ins
            for ins in self._instructions
        )

    def max_z(self) -> float | None:
        """Highest Z target of the cut geometry, ``None`` when there is none.

        Safe-height retracts are excluded; they follow ``z_safe`` by
        construction.
        """
        return max(iter_motion_z(self._instructions), default=None)

    def __len__(self) -> int:
        return len(self._instructions)

    def __repr__(self) -> str:
        return (
            f"Context(tool={self._tool.describe()!r}, "
            f"instructions={len(self._instructions)})"
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append_cut(self, cut: Cut) -> None:
        """Resolve ``cut`` with this context's tool and append it.

        Raises
        ------
        GeometryError
            If the cut cannot be resolved; the context is left unchanged.
        """
        resolved = resolve(cut, self._tool, self._units)

        block: list[Instruction] = [Comment(cut.describe()), _SafeRetract()]
        entry = first_xy(resolved)
        if entry is not None:
            block.append(Move(x=entry[0], y=entry[1]))
            resolved = _without_entry_travel(resolved, entry)
        block.extend(resolved)

        self._instructions.extend(block)
        logger.debug(
            "Appended %s: %d instructions (tool: %s)",
            type(cut).__name__, len(block), self._tool.describe(),
        )

    def append_comment(self, text: str) -> None:
        """Append a free-text comment to the stream."""
        self._instructions.append(Comment(text))

    def merge(self, other: Context) -> None:
        """Append ``other``'s instructions after this context's own.

        Retracts taken over from ``other`` follow this context's
        ``z_safe``.

        Raises
        ------
        MergeError
            If the tools or units differ; nothing is appended.
        """
        if other.tool != self._tool:
            raise MergeError(
                "Failed to merge contexts due to mismatching tools: "
                f"{self._tool.describe()} vs {other.tool.describe()}"
            )
        if other.units is not self._units:
            raise MergeError(
                "Failed to merge contexts due to mismatching units: "
                f"{self._units.value} vs {other.units.value}"
            )
        self._instructions.extend(other._instructions)

    def copy(self, z_safe: float | None = None) -> Context:
        """Independent copy, optionally rebound to another travel height."""
        return Context(
            self._tool,
            self._units,
            self._z_safe if z_safe is None else z_safe,
            self._instructions,
        )

    def _truncate(self, length: int) -> None:
        """Drop everything after the first ``length`` instructions."""
        del self._instructions[length:]


def _without_entry_travel(
    resolved: list[Instruction], entry: tuple[float, float],
) -> list[Instruction]:
    """Strip the XY part of a leading rapid to ``entry``.

    The context already travels to ``entry`` at safe height; a resolved
    cut that opens with its own rapid there keeps only the Z descent.
    """
    for index, ins in enumerate(resolved):
        if not isinstance(ins, (Move, Arc)):
            continue
        if not (isinstance(ins, Move) and ins.is_rapid and (ins.x, ins.y) == entry):
            return resolved
        rest = resolved[index + 1:]
        if ins.z is None:
            return resolved[:index] + rest
        return resolved[:index] + [Move(z=ins.z)] + rest
    return resolved
