"""Tests for Program assembly.

Validates:
    - Finalized stream layout (units, header, per-tool blocks, retract)
    - Safe-height validation at finalization time
    - Merge ordering, atomicity, associativity and self-merge
    - Rollback of failed edits
    - Bounds, including the empty-program zero box
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cnccoder.configs import load_config
from cnccoder.cuts import Arc as ArcCut
from cnccoder.cuts import Circle, Compensation, Line, LineSegment, Path, Point
from cnccoder.errors import GeometryError, MergeError, ValidationError
from cnccoder.gcode import (
    Comment,
    Move,
    SpindleOff,
    SpindleOn,
    ToolChange,
    UnitsDirective,
    Wait,
)
from cnccoder.program import Context, Program, ProgramMetadata
from cnccoder.tools import Direction, Tool
from cnccoder.types import Bounds, Units, Vector2, Vector3

METADATA = ProgramMetadata(
    name="test_program",
    generator="cnccoder 0.1.0",
    host="bench",
    author="tester",
    created=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tool10() -> Tool:
    return Tool.cylindrical(Units.METRIC, 50.0, 10.0, Direction.CLOCKWISE, 12000.0, 400.0)


@pytest.fixture()
def tool4() -> Tool:
    return Tool.cylindrical(Units.METRIC, 30.0, 4.0, Direction.COUNTER_CLOCKWISE, 20000.0, 300.0)


@pytest.fixture()
def tool6() -> Tool:
    return Tool.ballnose(Units.METRIC, 30.0, 6.0, Direction.CLOCKWISE, 18000.0, 500.0)


def make_program(**kwargs) -> Program:
    kwargs.setdefault("metadata", METADATA)
    return Program(Units.METRIC, 10.0, 50.0, **kwargs)


def circle_cut() -> Circle:
    return Circle(Vector2(0, 0), 0.0, -1.0, 20.0, 1.0, compensation=Compensation.OUTER)


def line_at(x: float) -> Line:
    return Line([Vector3(x, 0, 0), Vector3(x, 5, -1)])


# ---------------------------------------------------------------------------
# Finalized stream
# ---------------------------------------------------------------------------


class TestToInstructions:
    def test_empty_program(self) -> None:
        out = make_program().to_instructions()
        assert out[0] == UnitsDirective(Units.METRIC)
        assert out[1:] == [Comment(line) for line in METADATA.header_lines()]

    def test_tool_block_layout(self, tool10: Tool) -> None:
        program = make_program(spin_up=2.5)
        program.extend(tool10, lambda ctx: ctx.append_cut(circle_cut()))
        out = program.to_instructions()
        start = 1 + len(METADATA.header_lines())
        assert out[start:start + 7] == [
            Comment(f"Tool change: {tool10.describe()}"),
            SpindleOff(),
            Move(z=50.0),
            ToolChange(tool10, 1),
            SpindleOn(Direction.CLOCKWISE, 12000.0),
            Wait(2.5),
            UnitsDirective(Units.METRIC),
        ]
        ctx_ops = program.contexts()[0].operations()
        assert tuple(out[start + 7:-1]) == ctx_ops
        assert out[-1] == Move(z=10.0)

    def test_tool_numbers_follow_creation_order(self, tool10: Tool, tool4: Tool) -> None:
        program = make_program()
        program.extend(tool4, lambda ctx: ctx.append_cut(line_at(0)))
        program.extend(tool10, lambda ctx: ctx.append_cut(line_at(1)))
        program.extend(tool4, lambda ctx: ctx.append_cut(line_at(2)))
        changes = [i for i in program.to_instructions() if isinstance(i, ToolChange)]
        assert [(c.tool, c.number) for c in changes] == [(tool4, 1), (tool10, 2)]
        assert program.tools() == [tool4, tool10]

    def test_recomputed_after_more_edits(self, tool10: Tool) -> None:
        program = make_program()
        first = program.to_instructions()
        program.extend(tool10, lambda ctx: ctx.append_cut(line_at(0)))
        assert len(program.to_instructions()) > len(first)


class TestCircleScenario:
    def test_gcode(self, tool10: Tool) -> None:
        program = make_program()
        with program.editing(tool10) as ctx:
            ctx.append_cut(circle_cut())
        lines = program.to_gcode().split("\n")
        assert lines[0] == "G21"
        assert lines[1] == "; Name: test_program"
        assert "; Created: 2024-01-02T03:04:05Z" in lines
        assert "T1 M6" in lines
        assert "M3 S12000" in lines
        assert "G4 P5" in lines
        assert any(l.startswith("G2 ") and " I15 " in l for l in lines)
        assert lines[-1] == "G0 Z10"

    def test_arc_and_path_cuts(self, tool10: Tool) -> None:
        program = make_program()
        with program.editing(tool10) as ctx:
            ctx.append_cut(ArcCut(
                Vector3(10, 0, -1), Vector3(0, 10, -1), Vector2(0, 0),
                Direction.COUNTER_CLOCKWISE,
            ))
            ctx.append_cut(Path(
                Vector3(0, 0, 0), [LineSegment(Vector2(0, 0), Vector2(5, 0))], -1.0, 1.0,
            ))
        lines = program.to_gcode().split("\n")
        assert "G3 X0 Y10 Z-1 I-10 J0 F400" in lines
        assert lines.count("G0 Z10") == 3
        assert program.bounds().min.z == -1.0


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_cut_above_safe_height(self, tool10: Tool) -> None:
        program = Program(Units.METRIC, 2.0, 50.0, metadata=METADATA)
        program.extend(tool10, lambda ctx: ctx.append_cut(Line([Vector3(0, 0, 5)])))
        with pytest.raises(ValidationError, match="z = 5") as info:
            program.to_instructions()
        assert info.value.height == 5.0

    def test_cut_above_tool_change_height(self, tool10: Tool) -> None:
        program = Program(Units.METRIC, 10.0, 3.0, metadata=METADATA)
        program.extend(tool10, lambda ctx: ctx.append_cut(Line([Vector3(0, 0, 5)])))
        with pytest.raises(ValidationError, match="z_tool_change") as info:
            program.to_gcode()
        assert info.value.height == 5.0

    def test_cut_at_safe_height_is_valid(self, tool10: Tool) -> None:
        program = make_program()
        program.extend(tool10, lambda ctx: ctx.append_cut(Line([Vector3(0, 0, 10)])))
        program.to_instructions()

    def test_invalid_program_still_mutable(self, tool10: Tool) -> None:
        program = Program(Units.METRIC, 2.0, 50.0, metadata=METADATA)
        program.extend(tool10, lambda ctx: ctx.append_cut(Point([Vector2(0, 0)], 5.0, -1.0)))
        with pytest.raises(ValidationError):
            program.to_instructions()
        program.extend(tool10, lambda ctx: ctx.append_comment("still editable"))
        assert program.bounds().max.z == 50.0


# ---------------------------------------------------------------------------
# Editing and rollback
# ---------------------------------------------------------------------------


class TestEditing:
    def test_extend_returns_action_result(self, tool10: Tool) -> None:
        program = make_program()
        assert program.extend(tool10, lambda ctx: len(ctx)) == 0

    def test_failed_action_discards_new_context(self, tool10: Tool) -> None:
        program = make_program()

        def action(ctx: Context) -> None:
            ctx.append_cut(line_at(0))
            raise RuntimeError("operator abort")

        with pytest.raises(RuntimeError, match="operator abort"):
            program.extend(tool10, action)
        assert program.tools() == []

    def test_failed_action_truncates_existing_context(self, tool10: Tool) -> None:
        program = make_program()
        program.extend(tool10, lambda ctx: ctx.append_cut(line_at(0)))
        before = program.contexts()[0].operations()

        with pytest.raises(GeometryError):
            with program.editing(tool10) as ctx:
                ctx.append_cut(line_at(1))
                ctx.append_cut(Line([]))

        assert program.contexts()[0].operations() == before

    def test_editing_reuses_context_by_value(self) -> None:
        program = make_program()
        a = Tool.cylindrical(Units.METRIC, 50.0, 3.0, Direction.CLOCKWISE, 1000.0, 100.0)
        b = Tool.cylindrical(Units.METRIC, 50.0, 3.0, Direction.CLOCKWISE, 1000.0, 100.0)
        with program.editing(a) as first:
            first.append_comment("a")
        with program.editing(b) as second:
            second.append_comment("b")
        assert first is second
        assert len(program.contexts()) == 1


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _ops(program: Program) -> list[tuple]:
    return [c.operations() for c in program.contexts()]


class TestMerge:
    def test_local_first_order(self, tool10: Tool, tool4: Tool) -> None:
        a = make_program()
        b = make_program()
        a.extend(tool10, lambda ctx: ctx.append_comment("a10"))
        b.extend(tool4, lambda ctx: ctx.append_comment("b4"))
        b.extend(tool10, lambda ctx: ctx.append_comment("b10"))

        a.merge(b)

        assert a.tools() == [tool10, tool4]
        assert _ops(a) == [
            (Comment("a10"), Comment("b10")),
            (Comment("b4"),),
        ]
        assert b.tools() == [tool4, tool10]

    def test_unit_mismatch_leaves_both_unchanged(self, tool10: Tool) -> None:
        metric = make_program()
        imperial = Program(Units.IMPERIAL, 1.0, 2.0, metadata=METADATA)
        metric.extend(tool10, lambda ctx: ctx.append_cut(line_at(0)))
        imperial.extend(tool10, lambda ctx: ctx.append_comment("inch"))
        metric_before, imperial_before = _ops(metric), _ops(imperial)

        with pytest.raises(MergeError, match="mismatching units"):
            metric.merge(imperial)

        assert _ops(metric) == metric_before
        assert _ops(imperial) == imperial_before

    def test_self_merge_doubles(self, tool10: Tool, tool4: Tool) -> None:
        program = make_program()
        program.extend(tool10, lambda ctx: ctx.append_cut(circle_cut()))
        program.extend(tool4, lambda ctx: ctx.append_cut(line_at(0)))
        before = _ops(program)

        program.merge(program)

        assert _ops(program) == [ops + ops for ops in before]
        assert program.tools() == [tool10, tool4]

    def test_associative_over_disjoint_tools(
        self, tool10: Tool, tool4: Tool, tool6: Tool,
    ) -> None:
        def build() -> tuple[Program, Program, Program]:
            a, b, c = make_program(), make_program(), make_program()
            a.extend(tool10, lambda ctx: ctx.append_cut(circle_cut()))
            b.extend(tool4, lambda ctx: ctx.append_cut(line_at(1)))
            c.extend(tool6, lambda ctx: ctx.append_cut(line_at(2)))
            return a, b, c

        a, b, c = build()
        a.merge(b)
        a.merge(c)
        left = a.to_instructions()

        a, b, c = build()
        b.merge(c)
        a.merge(b)
        right = a.to_instructions()

        assert left == right

    def test_merged_contexts_are_not_shared(self, tool10: Tool, tool4: Tool) -> None:
        a = make_program()
        b = make_program()
        b.extend(tool4, lambda ctx: ctx.append_comment("b4"))
        a.merge(b)
        b.extend(tool4, lambda ctx: ctx.append_comment("later"))
        assert _ops(a) == [(Comment("b4"),)]

    def test_adopted_context_uses_local_safe_height(self, tool4: Tool) -> None:
        a = make_program()
        b = Program(Units.METRIC, 30.0, 60.0, metadata=METADATA)
        b.extend(tool4, lambda ctx: ctx.append_comment("b4"))
        a.merge(b)
        assert a.contexts()[0].z_safe == 10.0

    @pytest.mark.parametrize("other_z_safe", [30.0, 5.0])
    def test_adopted_cuts_retract_to_local_safe_height(
        self, tool4: Tool, other_z_safe: float,
    ) -> None:
        a = make_program()
        b = Program(Units.METRIC, other_z_safe, 60.0, metadata=METADATA)
        b.extend(tool4, lambda ctx: ctx.append_cut(circle_cut()))
        a.merge(b)

        out = a.to_instructions()

        block = out[out.index(ToolChange(tool4, 1)):]
        retracts = [
            i for i in block
            if isinstance(i, Move) and i.x is None and i.y is None and i.z is not None
            and i.z > 0
        ]
        assert retracts == [Move(z=10.0), Move(z=10.0)]
        assert f"G0 Z{other_z_safe:g}" not in a.to_gcode().split("\n")

    def test_merged_cuts_retract_to_local_safe_height(self, tool10: Tool) -> None:
        a = make_program()
        b = Program(Units.METRIC, 30.0, 60.0, metadata=METADATA)
        a.extend(tool10, lambda ctx: ctx.append_cut(line_at(0)))
        b.extend(tool10, lambda ctx: ctx.append_cut(circle_cut()))
        a.merge(b)

        ops = a.contexts()[0].operations()

        assert ops.count(Move(z=10.0)) == 2
        assert Move(z=30.0) not in ops
        a.to_instructions()


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------


class TestBounds:
    def test_empty_program_is_zero_box(self) -> None:
        assert make_program().bounds() == Bounds.zero()

    def test_circle_extent_includes_arcs_and_heights(self, tool10: Tool) -> None:
        program = make_program()
        program.extend(tool10, lambda ctx: ctx.append_cut(circle_cut()))
        bounds = program.bounds()
        assert bounds.min == Vector3(-15.0, -15.0, -1.0)
        assert bounds.max == Vector3(15.0, 15.0, 50.0)

    def test_line_extent(self, tool10: Tool) -> None:
        program = make_program()
        program.extend(
            tool10,
            lambda ctx: ctx.append_cut(Line([Vector3(-3, 2, 0), Vector3(7, 9, -4)])),
        )
        bounds = program.bounds()
        assert bounds.min == Vector3(-3.0, 2.0, -4.0)
        assert bounds.max == Vector3(7.0, 9.0, 50.0)

    def test_comment_only_program_keeps_absent_axes_at_zero(self, tool10: Tool) -> None:
        program = make_program()
        program.extend(tool10, lambda ctx: ctx.append_comment("nothing yet"))
        bounds = program.bounds()
        assert bounds.min == Vector3(0.0, 0.0, 10.0)
        assert bounds.max == Vector3(0.0, 0.0, 50.0)


# ---------------------------------------------------------------------------
# Construction and metadata
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self) -> None:
        program = Program(metadata=METADATA)
        assert program.units is Units.METRIC
        assert program.z_safe == 50.0
        assert program.z_tool_change == 100.0

    def test_metadata_factory_receives_name(self) -> None:
        seen: list[str | None] = []

        def factory(name: str | None) -> ProgramMetadata:
            seen.append(name)
            return ProgramMetadata(name=name or "generated")

        program = Program(Units.METRIC, 10.0, 50.0, name="bracket", metadata_factory=factory)
        assert seen == ["bracket"]
        assert program.name == "bracket"

    def test_name_overrides_metadata(self) -> None:
        program = make_program(name="plate")
        assert program.name == "plate"
        assert program.metadata.host == "bench"

    def test_set_name_updates_header(self) -> None:
        program = make_program()
        program.set_name("renamed")
        assert "; Name: renamed" in program.to_gcode().split("\n")

    def test_negative_spin_up_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_program(spin_up=-1.0)

    def test_new_empty_from(self, tool10: Tool) -> None:
        source = Program(Units.IMPERIAL, 1.0, 2.0, metadata=METADATA, spin_up=3.0)
        source.extend(tool10, lambda ctx: ctx.append_comment("x"))
        clone = Program.new_empty_from(source)
        assert clone.units is Units.IMPERIAL
        assert (clone.z_safe, clone.z_tool_change, clone.spin_up) == (1.0, 2.0, 3.0)
        assert clone.metadata == METADATA
        assert clone.tools() == []

    def test_from_config(self) -> None:
        config = load_config()
        program = Program.from_config(
            config, name="from_cfg", metadata_factory=lambda n: ProgramMetadata(name=n),
        )
        assert program.name == "from_cfg"
        assert program.units is config.program.units
        assert program.z_safe == config.program.z_safe
        assert program.z_tool_change == config.program.z_tool_change
        assert program.spin_up == config.program.spin_up_s
