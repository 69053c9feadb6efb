"""Persistence of programs as G-code plus simulation projects."""

from cnccoder.export.project import write_project

__all__ = ["write_project"]
