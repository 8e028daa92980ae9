"""Circular areas in which mob spawnability is checked."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckSpawn:
    """A circle in world block coordinates, centred on (x, z)."""

    x: int
    z: int
    distance: int

    def contains(self, x: int, z: int) -> bool:
        """Return True if the world column (x, z) lies within the circle."""
        return math.hypot(self.x - x, self.z - z) <= self.distance