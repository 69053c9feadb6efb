"""
Simulation project description (Camotics).
"""

from cnccoder.simulation.camotics import (
    CamoticsProject,
    SimulationTool,
    Workpiece,
    WorkpieceBounds,
)

__all__ = [
    "CamoticsProject",
    "SimulationTool",
    "Workpiece",
    "WorkpieceBounds",
]
