"""Write a program to disk as a G-code file plus a Camotics project.

Both documents are rendered in memory before anything is written, so a
program that fails validation leaves the target directory untouched.
Each file is then written atomically via :mod:`cnccoder.utils.fs`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cnccoder.configs.loader import CoderConfig, load_config
from cnccoder.program.program import Program
from cnccoder.simulation.camotics import CamoticsProject
from cnccoder.utils import fs
from cnccoder.utils.logging_config import log_context

logger = logging.getLogger(__name__)

GCODE_SUFFIX = ".gcode"
CAMOTICS_SUFFIX = ".camotics"


def write_project(
    program: Program,
    resolution: float | None = None,
    directory: str | Path = ".",
    *,
    config: CoderConfig | None = None,
) -> tuple[Path, Path]:
    """Write ``<name>.gcode`` and ``<name>.camotics`` for ``program``.

    Parameters
    ----------
    program : Program
        Program to export; its name is the base filename.
    resolution : float | None
        Camotics simulation resolution.  Must be > 0.  ``None`` uses
        ``simulation.resolution`` from ``config``.
    directory : str | Path
        Output directory, created if missing.
    config : CoderConfig | None
        Configuration supplying the default resolution; the packaged
        defaults when omitted.  Only read when ``resolution`` is None.

    Returns
    -------
    tuple[Path, Path]
        Paths of the G-code file and the project file.

    Raises
    ------
    ValidationError
        If the program violates its safe heights; nothing is written.
    pydantic.ValidationError
        If ``resolution`` is not positive; nothing is written.
    RuntimeError
        If a file cannot be written.
    """
    with log_context(program=program.name):
        if resolution is None:
            resolution = (config or load_config()).simulation.resolution
            logger.debug("Using configured simulation resolution %s", resolution)

        gcode = program.to_gcode()
        project = CamoticsProject.from_program(program, resolution)
        project_json = project.to_json()

        out_dir = fs.ensure_dir(directory)
        gcode_path = out_dir / f"{program.name}{GCODE_SUFFIX}"
        project_path = out_dir / f"{program.name}{CAMOTICS_SUFFIX}"

        fs.atomic_write_text(gcode_path, gcode + "\n")
        fs.atomic_write_text(project_path, project_json + "\n")

        logger.info("Wrote %s and %s", gcode_path, project_path)
    return gcode_path, project_path
