"""Cartesian pose value types shared across the package."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class PoseType(IntEnum):
    """Origin of a marked pose."""

    ROBOT = 0
    VIVE = 1


@dataclass
class CartesianPosition:
    """A point in space, in millimetres."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class CartesianOrientation:
    """An orientation as A, B, C Euler angles in radians."""

    a: float = 0.0
    b: float = 0.0
    c: float = 0.0


@dataclass
class CartesianPose:
    """A position together with an orientation."""

    position: CartesianPosition = field(default_factory=CartesianPosition)
    orientation: CartesianOrientation = field(default_factory=CartesianOrientation)

    @classmethod
    def from_values(cls, x: float, y: float, z: float, a: float, b: float, c: float) -> CartesianPose:
        """Build a pose from its six scalar components."""
        return cls(CartesianPosition(x, y, z), CartesianOrientation(a, b, c))