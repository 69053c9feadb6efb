"""Exception taxonomy shared by every cnccoder layer.

All errors derive from :class:`CncCoderError` so callers can catch the
whole family at an API boundary.  Errors caused by bad numeric input
additionally derive from ``ValueError``.
"""

from __future__ import annotations

from typing import Any


class CncCoderError(Exception):
    """Base class for all cnccoder errors."""

    pass


class GeometryError(CncCoderError, ValueError):
    """Raised when a cut cannot be resolved into instructions.

    Parameters
    ----------
    message : str
        Human-readable cause.
    cut : Any
        The offending cut, kept for inspection by callers.
    """

    def __init__(self, message: str, cut: Any = None) -> None:
        if cut is not None:
            message = f"{message} (cut: {cut!r})"
        super().__init__(message)
        self.cut = cut


class ValidationError(CncCoderError):
    """Raised when a program violates its safe-height invariant.

    Parameters
    ----------
    message : str
        Human-readable cause.
    height : float | None
        The offending z height reached by the program.
    """

    def __init__(self, message: str, height: float | None = None) -> None:
        super().__init__(message)
        self.height = height


class MergeError(CncCoderError):
    """Raised when programs or contexts cannot be merged."""

    pass


class ToolError(CncCoderError, ValueError):
    """Raised when a tool is constructed with invalid dimensions."""

    pass
