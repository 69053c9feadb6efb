"""Value types: vectors, units, and bounding boxes."""

from cnccoder.types.bounds import Bounds
from cnccoder.types.units import MM_PER_INCH, Units
from cnccoder.types.vector import Vector2, Vector3

__all__ = ["Bounds", "MM_PER_INCH", "Units", "Vector2", "Vector3"]
