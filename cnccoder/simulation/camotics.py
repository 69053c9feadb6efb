"""Camotics simulation project model.

A project file tells Camotics which tools to load, how large the stock
is and which G-code file to run.  It is derived from the same program
the G-code comes from:

    - tool numbers match the ``T<n>`` numbers of the generated G-code
    - tool dimensions are expressed in the program's units
    - the workpiece is the program's ``bounds()``

Serialized with pydantic v2 (``to_json``); key names follow the Camotics
file format, including the hyphenated ``resolution-mode``.

Usage:
    from cnccoder.simulation import CamoticsProject
    project = CamoticsProject.from_program(program, resolution=0.5)
    text = project.to_json()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

from cnccoder.tools.tool import Tool, ToolShape
from cnccoder.types.bounds import Bounds
from cnccoder.types.units import Units

if TYPE_CHECKING:
    from cnccoder.program.program import Program


# ============================================================================
# PROJECT SCHEMA
# ============================================================================

class SimulationTool(BaseModel):
    """One entry of the project's tool table."""
    units: Units
    length: float = Field(..., gt=0.0, description="Cutting length")
    diameter: float = Field(..., gt=0.0, description="Cutting diameter")
    number: int = Field(..., ge=1, description="Tool slot, matches T<n> in the G-code")
    shape: ToolShape
    angle: float | None = Field(None, description="Included tip angle (conical only)")

    @classmethod
    def from_tool(cls, tool: Tool, number: int, units: Units) -> SimulationTool:
        converted = tool.to_units(units)
        return cls(
            units=units,
            length=converted.length,
            diameter=converted.diameter,
            number=number,
            shape=converted.shape,
            angle=converted.angle,
        )


class WorkpieceBounds(BaseModel):
    """Stock extent as ``[x, y, z]`` triples."""
    min: tuple[float, float, float]
    max: tuple[float, float, float]

    @classmethod
    def from_bounds(cls, bounds: Bounds) -> WorkpieceBounds:
        return cls(min=bounds.min.to_tuple(), max=bounds.max.to_tuple())


class Workpiece(BaseModel):
    """Stock definition; sized explicitly rather than by Camotics."""
    automatic: bool = False
    margin: float = Field(0.0, ge=0.0)
    bounds: WorkpieceBounds


class CamoticsProject(BaseModel):
    """Camotics project file.

    Parameters
    ----------
    name : str
        Project name; not serialized, used for the G-code file name.
    units : Units
        Unit system of the project.
    resolution : float
        Simulation voxel size in project units.  Must be > 0; smaller is
        more detailed and slower.  0.5 - 1.0 suits most parts.
    tools : dict[str, SimulationTool]
        Tool table keyed by tool number.
    workpiece : Workpiece
        Stock definition.
    files : list[str]
        G-code files the project runs.

    Raises
    ------
    pydantic.ValidationError
        On a non-positive resolution or malformed tool table.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., exclude=True)
    units: Units = Units.METRIC
    resolution_mode: Literal["manual"] = Field("manual", alias="resolution-mode")
    resolution: float = Field(..., gt=0.0, description="Voxel size")
    tools: dict[str, SimulationTool] = Field(default_factory=dict)
    workpiece: Workpiece
    files: list[str] = Field(default_factory=list)

    @classmethod
    def new(
        cls,
        name: str,
        tools: list[Tool],
        workpiece: Bounds,
        resolution: float,
        units: Units = Units.METRIC,
    ) -> CamoticsProject:
        """Project for ``tools`` (numbered from 1) cutting ``workpiece``."""
        return cls(
            name=name,
            units=units,
            resolution=resolution,
            tools={
                str(number): SimulationTool.from_tool(tool, number, units)
                for number, tool in enumerate(tools, start=1)
            },
            workpiece=Workpiece(bounds=WorkpieceBounds.from_bounds(workpiece)),
            files=[f"{name}.gcode"],
        )

    @classmethod
    def from_program(
        cls,
        program: Program,
        resolution: float,
        name: str | None = None,
    ) -> CamoticsProject:
        """Project simulating ``program``; named after it unless ``name`` is given."""
        return cls.new(
            name or program.name,
            program.tools(),
            program.bounds(),
            resolution,
            program.units,
        )

    def to_json(self) -> str:
        """Serialize to the JSON text Camotics loads."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
