"""Program orchestration: contexts, merging, validation and finalization.

A ``Program`` groups resolved cuts into one ``Context`` per distinct
tool, kept in creation order.  Finalizing (``to_instructions``,
``to_gcode``, ``bounds``) is a read-only view recomputed from the
current state on every call; the program stays editable afterwards.

Every mutating operation either applies completely or leaves the
program unchanged:

- ``extend`` / ``editing`` roll back the edited context if the action
  raises.
- ``merge`` builds the merged context table aside and swaps it in only
  once every context merged cleanly.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, TypeVar

import numpy as np

from cnccoder.errors import MergeError, ValidationError
from cnccoder.gcode.generator import GCodeGenerator
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
from cnccoder.program.context import Context
from cnccoder.program.metadata import ProgramMetadata, sample_metadata
from cnccoder.tools.tool import Tool
from cnccoder.types.bounds import Bounds
from cnccoder.types.units import Units
from cnccoder.types.vector import Vector3
from cnccoder.utils.numbers import format_number

if TYPE_CHECKING:
    from cnccoder.configs.loader import CoderConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SPIN_UP_S = 5.0
"""Dwell after every spindle start, in seconds."""


class Program:
    """Multi-tool CNC program.

    Parameters
    ----------
    units : Units
        Unit system for every coordinate and feed in the program.
    z_safe : float
        Travel height between cuts.  Must not be below any z the
        program's moves reach.
    z_tool_change : float
        Height the spindle retracts to for tool changes.  Same
        constraint as ``z_safe``.
    name : str | None
        Program name.  Overrides the name in ``metadata``.
    metadata : ProgramMetadata | None
        Header metadata.  Sampled via ``metadata_factory`` when omitted.
    metadata_factory : Callable[[str | None], ProgramMetadata]
        Source of metadata when none is given.
    spin_up : float
        Dwell after each spindle start, in seconds.

    Examples
    --------
    >>> program = Program(Units.METRIC, z_safe=10.0, z_tool_change=50.0)
    >>> tool = Tool.cylindrical(Units.METRIC, 50.0, 4.0, Direction.CLOCKWISE, 20000.0, 400.0)
    >>> with program.editing(tool) as ctx:
    ...     ctx.append_cut(Circle(Vector2(0, 0), 0.0, -3.0, 10.0, 1.0))
    >>> gcode = program.to_gcode()
    """

    def __init__(
        self,
        units: Units = Units.METRIC,
        z_safe: float = 50.0,
        z_tool_change: float = 100.0,
        *,
        name: str | None = None,
        metadata: ProgramMetadata | None = None,
        metadata_factory: Callable[[str | None], ProgramMetadata] = sample_metadata,
        spin_up: float = DEFAULT_SPIN_UP_S,
    ) -> None:
        if spin_up < 0:
            raise ValueError(f"spin_up must be >= 0, got {spin_up}")
        if metadata is None:
            metadata = metadata_factory(name)
        elif name is not None:
            metadata = metadata.renamed(name)

        self._units = units
        self._z_safe = z_safe
        self._z_tool_change = z_tool_change
        self._spin_up = spin_up
        self._metadata = metadata
        self._contexts: dict[Tool, Context] = {}

    @classmethod
    def new_empty_from(cls, other: Program) -> Program:
        """Empty program with ``other``'s settings and metadata."""
        return cls(
            other.units,
            other.z_safe,
            other.z_tool_change,
            metadata=other.metadata,
            spin_up=other.spin_up,
        )

    @classmethod
    def from_config(
        cls,
        config: CoderConfig,
        *,
        name: str | None = None,
        metadata_factory: Callable[[str | None], ProgramMetadata] = sample_metadata,
    ) -> Program:
        """Empty program using the defaults of a loaded configuration."""
        defaults = config.program
        return cls(
            defaults.units,
            defaults.z_safe,
            defaults.z_tool_change,
            name=name,
            metadata_factory=metadata_factory,
            spin_up=defaults.spin_up_s,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._metadata.name

    def set_name(self, name: str) -> None:
        self._metadata = self._metadata.renamed(name)

    @property
    def metadata(self) -> ProgramMetadata:
        return self._metadata

    @property
    def units(self) -> Units:
        return self._units

    @property
    def z_safe(self) -> float:
        return self._z_safe

    @property
    def z_tool_change(self) -> float:
        return self._z_tool_change

    @property
    def spin_up(self) -> float:
        return self._spin_up

    def tools(self) -> list[Tool]:
        """Tools in use, in context order."""
        return list(self._contexts)

    def contexts(self) -> list[Context]:
        return list(self._contexts.values())

    def __repr__(self) -> str:
        return (
            f"Program(name={self.name!r}, units={self._units.value}, "
            f"tools={len(self._contexts)})"
        )

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    @contextmanager
    def editing(self, tool: Tool) -> Iterator[Context]:
        """Yield the context for ``tool``, creating it on first use.

        If the ``with`` body raises, every instruction appended inside it
        is removed again, a context created for it is discarded, and the
        exception propagates.
        """
        context = self._contexts.get(tool)
        created = context is None
        if context is None:
            context = Context(tool, self._units, self._z_safe)
            self._contexts[tool] = context
            logger.debug("Created context for %s", tool.describe())
        mark = len(context)

        try:
            yield context
        except BaseException:
            if created:
                del self._contexts[tool]
            else:
                context._truncate(mark)
            logger.debug("Rolled back edit of context for %s", tool.describe())
            raise

    def extend(self, tool: Tool, action: Callable[[Context], T]) -> T:
        """Run ``action`` on the context for ``tool`` and return its result.

        Raises
        ------
        Exception
            Whatever ``action`` raised; the program is rolled back first.
        """
        with self.editing(tool) as context:
            return action(context)

    def merge(self, other: Program) -> None:
        """Merge ``other``'s contexts into this program.

        Local contexts keep their position; contexts for tools not used
        locally are appended in ``other``'s order.  Merging a program
        into itself doubles every context.  Cuts taken over from
        ``other`` retract to this program's ``z_safe``.

        Raises
        ------
        MergeError
            On a unit mismatch; neither program is changed.
        """
        if other.units is not self._units:
            raise MergeError(
                "Failed to merge programs due to mismatching units: "
                f"{self._units.value} vs {other.units.value}"
            )

        incoming = [(c.tool, c.copy()) for c in other.contexts()]
        merged = {tool: ctx.copy() for tool, ctx in self._contexts.items()}
        for tool, ctx in incoming:
            if tool in merged:
                merged[tool].merge(ctx)
            else:
                merged[tool] = ctx.copy(z_safe=self._z_safe)

        self._contexts = merged
        logger.info(
            "Merged program %r into %r (%d contexts)",
            other.name, self.name, len(merged),
        )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def to_instructions(self) -> list[Instruction]:
        """Validate the program and assemble its full instruction stream.

        Raises
        ------
        ValidationError
            If ``z_safe`` or ``z_tool_change`` is below the highest z any
            Move/Arc of the program reaches.
        """
        self._validate()
        return self._assemble()

    def to_gcode(self) -> str:
        """Render the program as G-code text."""
        return GCodeGenerator().generate(self.to_instructions())

    def bounds(self) -> Bounds:
        """Axis-aligned extent of the assembled (unvalidated) stream.

        Includes the safe-height and tool-change excursions and the full
        extent of arcs.  An axis that never receives a coordinate
        contributes 0; an empty program gives ``Bounds.zero()``.
        """
        if not self._contexts:
            return Bounds.zero()

        samples = _motion_samples(self._assemble())
        if not samples:
            return Bounds.zero()

        points = np.array(samples, dtype=np.float64)
        present = ~np.isnan(points)
        lo = np.where(present, points, np.inf).min(axis=0)
        hi = np.where(present, points, -np.inf).max(axis=0)
        lo = np.where(np.isfinite(lo), lo, 0.0)
        hi = np.where(np.isfinite(hi), hi, 0.0)
        return Bounds(Vector3.from_array(lo), Vector3.from_array(hi))

    def _validate(self) -> None:
        heights = [z for z in (c.max_z() for c in self._contexts.values()) if z is not None]
        if not heights:
            return
        max_z = max(heights)
        if max_z > self._z_safe:
            raise ValidationError(
                f"Program {self.name!r} reaches z = {format_number(max_z)}, "
                f"above its safe height z_safe = {format_number(self._z_safe)}",
                height=max_z,
            )
        if max_z > self._z_tool_change:
            raise ValidationError(
                f"Program {self.name!r} reaches z = {format_number(max_z)}, "
                f"above its tool change height "
                f"z_tool_change = {format_number(self._z_tool_change)}",
                height=max_z,
            )

    def _assemble(self) -> list[Instruction]:
        out: list[Instruction] = [UnitsDirective(self._units)]
        out.extend(Comment(line) for line in self._metadata.header_lines())

        for number, (tool, context) in enumerate(self._contexts.items(), start=1):
            out.append(Comment(f"Tool change: {tool.describe()}"))
            out.append(SpindleOff())
            out.append(Move(z=self._z_tool_change))
            out.append(ToolChange(tool, number))
            out.append(SpindleOn(tool.direction, tool.spindle_speed))
            out.append(Wait(self._spin_up))
            out.append(UnitsDirective(self._units))
            out.extend(context.operations())
            out.append(Move(z=self._z_safe))
        return out


def _motion_samples(
    instructions: list[Instruction],
) -> list[tuple[float, float, float]]:
    """Coordinates touched by the motion in ``instructions``, NaN where absent.

    Tracks the modal position so arcs contribute their centre +/- radius.
    """
    nan = float("nan")
    current: list[float | None] = [None, None, None]
    samples: list[tuple[float, float, float]] = []

    for ins in instructions:
        if isinstance(ins, Move):
            target = (ins.x, ins.y, ins.z)
            if all(v is None for v in target):
                continue
            samples.append(tuple(nan if v is None else v for v in target))
            for axis, value in enumerate(target):
                if value is not None:
                    current[axis] = value
        elif isinstance(ins, Arc):
            samples.append((ins.x, ins.y, ins.z))
            sx, sy = current[0], current[1]
            if sx is not None and sy is not None:
                cx, cy, r = sx + ins.i, sy + ins.j, ins.radius
                samples.append((cx - r, cy - r, nan))
                samples.append((cx + r, cy + r, nan))
            current = [ins.x, ins.y, ins.z]
    return samples
