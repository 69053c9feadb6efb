"""2D and 3D coordinate value types.

Vectors are frozen, slotted dataclasses: they compare exactly (no
tolerance), hash by value, and every arithmetic operation returns a new
instance.  Lengths are in whatever unit the owning program uses; no
unit is attached to the vector itself.

Conversion helpers (``to_array`` / ``from_array``) bridge to numpy for
callers doing bulk math on coordinates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from cnccoder.utils.numbers import format_number


# ---------------------------------------------------------------------------
# Vector2
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Vector2:
    """Planar coordinate.

    Parameters
    ----------
    x, y : float
        Components in program units.
    """

    x: float = 0.0
    y: float = 0.0

    # -- Named constants ----------------------------------------------------

    @classmethod
    def zero(cls) -> Vector2:
        return cls(0.0, 0.0)

    @classmethod
    def unit_x(cls) -> Vector2:
        return cls(1.0, 0.0)

    @classmethod
    def unit_y(cls) -> Vector2:
        return cls(0.0, 1.0)

    # -- Algebra ------------------------------------------------------------

    def __add__(self, other: Vector2) -> Vector2:
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        if not isinstance(other, Vector2):
            return NotImplemented
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector2:
        return Vector2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_to(self, other: Vector2) -> float:
        return (other - self).length()

    def angle(self) -> float:
        """Angle in radians from the positive X axis, in ``[0, 2*pi)``."""
        return math.atan2(self.y, self.x) % math.tau

    # -- Component replace / offset ----------------------------------------

    def with_x(self, x: float) -> Vector2:
        return Vector2(x, self.y)

    def with_y(self, y: float) -> Vector2:
        return Vector2(self.x, y)

    def add_x(self, dx: float) -> Vector2:
        return Vector2(self.x + dx, self.y)

    def add_y(self, dy: float) -> Vector2:
        return Vector2(self.x, self.y + dy)

    def with_z(self, z: float) -> Vector3:
        """Lift to 3D at height ``z``."""
        return Vector3(self.x, self.y, z)

    # -- Conversion ---------------------------------------------------------

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_array(self) -> np.ndarray:
        """Return a ``(2,)`` float64 numpy array."""
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_array(cls, values: Sequence[float] | np.ndarray) -> Vector2:
        """Build from any 2-element sequence or numpy array.

        Raises
        ------
        ValueError
            If ``values`` does not hold exactly two components.
        """
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape != (2,):
            raise ValueError(
                f"Vector2 requires exactly 2 components, got {arr.shape[0]}"
            )
        return cls(float(arr[0]), float(arr[1]))

    def __str__(self) -> str:
        return f"{{x: {format_number(self.x)}, y: {format_number(self.y)}}}"


# ---------------------------------------------------------------------------
# Vector3
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Vector3:
    """Spatial coordinate, Z is the vertical (spindle) axis.

    Parameters
    ----------
    x, y, z : float
        Components in program units.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def zero(cls) -> Vector3:
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def unit_x(cls) -> Vector3:
        return cls(1.0, 0.0, 0.0)

    @classmethod
    def unit_y(cls) -> Vector3:
        return cls(0.0, 1.0, 0.0)

    @classmethod
    def unit_z(cls) -> Vector3:
        return cls(0.0, 0.0, 1.0)

    def __add__(self, other: Vector3) -> Vector3:
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector3:
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def distance_to(self, other: Vector3) -> float:
        return (other - self).length()

    def xy(self) -> Vector2:
        """Drop the Z component."""
        return Vector2(self.x, self.y)

    def with_x(self, x: float) -> Vector3:
        return Vector3(x, self.y, self.z)

    def with_y(self, y: float) -> Vector3:
        return Vector3(self.x, y, self.z)

    def with_z(self, z: float) -> Vector3:
        return Vector3(self.x, self.y, z)

    def add_x(self, dx: float) -> Vector3:
        return Vector3(self.x + dx, self.y, self.z)

    def add_y(self, dy: float) -> Vector3:
        return Vector3(self.x, self.y + dy, self.z)

    def add_z(self, dz: float) -> Vector3:
        return Vector3(self.x, self.y, self.z + dz)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_array(self) -> np.ndarray:
        """Return a ``(3,)`` float64 numpy array."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, values: Sequence[float] | np.ndarray) -> Vector3:
        """Build from any 3-element sequence or numpy array.

        Raises
        ------
        ValueError
            If ``values`` does not hold exactly three components.
        """
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape != (3,):
            raise ValueError(
                f"Vector3 requires exactly 3 components, got {arr.shape[0]}"
            )
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def __str__(self) -> str:
        return (
            f"{{x: {format_number(self.x)}, y: {format_number(self.y)}, "
            f"z: {format_number(self.z)}}}"
        )
