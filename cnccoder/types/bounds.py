"""Axis-aligned bounding box."""

from __future__ import annotations

from dataclasses import dataclass

from cnccoder.types.vector import Vector3


@dataclass(frozen=True, slots=True)
class Bounds:
    """Min/max corners of an axis-aligned box in program units."""

    min: Vector3
    max: Vector3

    @classmethod
    def zero(cls) -> Bounds:
        """Degenerate box collapsed on the origin."""
        return cls(Vector3.zero(), Vector3.zero())

    @property
    def size(self) -> Vector3:
        return self.max - self.min

    def union(self, other: Bounds) -> Bounds:
        """Smallest box containing both ``self`` and ``other``."""
        return Bounds(
            Vector3(
                min(self.min.x, other.min.x),
                min(self.min.y, other.min.y),
                min(self.min.z, other.min.z),
            ),
            Vector3(
                max(self.max.x, other.max.x),
                max(self.max.y, other.max.y),
                max(self.max.z, other.max.z),
            ),
        )

    def contains(self, point: Vector3) -> bool:
        return (
            self.min.x <= point.x <= self.max.x
            and self.min.y <= point.y <= self.max.y
            and self.min.z <= point.z <= self.max.z
        )
