"""
Program assembly.

``Program`` groups resolved cuts into one ``Context`` per tool and
finalizes them into a validated instruction stream.
"""

from cnccoder.program.context import Context
from cnccoder.program.metadata import (
    GENERATOR,
    ProgramMetadata,
    generate_name,
    sample_metadata,
)
from cnccoder.program.program import DEFAULT_SPIN_UP_S, Program

__all__ = [
    "DEFAULT_SPIN_UP_S",
    "GENERATOR",
    "Context",
    "Program",
    "ProgramMetadata",
    "generate_name",
    "sample_metadata",
]
