"""Measurement units.

A program declares one unit system; every length and feed rate it
holds is interpreted in that system.  Tools carry their own units and
are converted into the program's units before geometry is resolved.
"""

from __future__ import annotations

from enum import Enum

MM_PER_INCH = 25.4
"""Fixed metric/imperial conversion factor."""


class Units(Enum):
    """Unit system of a program or tool."""

    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def base_unit(self) -> str:
        """Short suffix used in human-readable descriptions."""
        return "mm" if self is Units.METRIC else '"'

    def convert(self, value: float, to: Units) -> float:
        """Convert a length or feed ``value`` from this unit system to ``to``.

        Parameters
        ----------
        value : float
            Quantity expressed in ``self`` (length, or length per minute).
        to : Units
            Target unit system.

        Returns
        -------
        float
            ``value`` expressed in ``to``.  Unchanged when units match.
        """
        if self is to:
            return value
        if self is Units.METRIC:
            return value / MM_PER_INCH
        return value * MM_PER_INCH

    @classmethod
    def parse(cls, raw: str | Units) -> Units:
        """Accept a ``Units`` member or its (case-insensitive) name/value."""
        if isinstance(raw, Units):
            return raw
        key = str(raw).strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise ValueError(
            f"Unknown units {raw!r}. Expected 'metric' or 'imperial'"
        )
