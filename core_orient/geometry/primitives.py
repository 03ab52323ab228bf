"""
Geometric primitives in the local frame of the core cylinder.

Coordinate system:
- Z axis runs along the core (borehole) axis, 0 at the shallow end of the scene
- X/Y span the core cross-section, origin on the axis
- All lengths are in centimeters
"""

import math
from dataclasses import dataclass, field
from typing import Iterator, Tuple

import numpy as np
from numpy.typing import NDArray

# Core diameter 6.35 cm (HQ-size core)
DEFAULT_CORE_RADIUS_CM = 3.175
DEFAULT_SURFACE_TOLERANCE_CM = 0.25

CYLINDER_AXIS = np.array([0.0, 0.0, 1.0])


@dataclass(frozen=True)
class Point3D:
    """A point picked on the core, local cylinder frame (cm)."""
    x: float
    y: float
    z: float

    @property
    def distance_from_axis(self) -> float:
        """Radial distance from the cylinder axis."""
        return math.hypot(self.x, self.y)

    def as_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_sequence(cls, values) -> 'Point3D':
        x, y, z = values
        return cls(float(x), float(y), float(z))

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'z': self.z}


@dataclass(frozen=True)
class PointTrio:
    """Three points tracing one structural plane on the core surface.

    Attributes:
        p1, p2, p3: Picked points
        label: Optional operator label (structure id, type, ...)
    """
    p1: Point3D
    p2: Point3D
    p3: Point3D
    label: str = ""

    def __iter__(self) -> Iterator[Point3D]:
        return iter((self.p1, self.p2, self.p3))

    @property
    def points(self) -> Tuple[Point3D, Point3D, Point3D]:
        return (self.p1, self.p2, self.p3)

    @property
    def mean_z(self) -> float:
        """Average axial position of the three picks."""
        return (self.p1.z + self.p2.z + self.p3.z) / 3.0

    def as_array(self) -> NDArray[np.float64]:
        """3x3 array, one point per row."""
        return np.array([p.as_array() for p in self.points])

    def to_dict(self) -> dict:
        return {
            'label': self.label,
            'points': [p.to_dict() for p in self.points],
        }


@dataclass(frozen=True)
class PlaneEquation:
    """Plane a*x + b*y + c*z + d = 0 with its unit normal.

    (a, b, c) is the raw (unnormalized) cross product of the trio edges,
    `normal` is the same direction scaled to unit length.
    """
    a: float
    b: float
    c: float
    d: float
    normal: NDArray[np.float64] = field(compare=False)

    def evaluate(self, point: Point3D) -> float:
        """Signed residual of a point (0 for points on the plane)."""
        return self.a * point.x + self.b * point.y + self.c * point.z + self.d

    def to_dict(self) -> dict:
        return {
            'a': self.a,
            'b': self.b,
            'c': self.c,
            'd': self.d,
            'normal': self.normal.tolist(),
        }


def cylinder_point(angle_deg: float, z: float,
                   radius: float = DEFAULT_CORE_RADIUS_CM) -> Point3D:
    """Point on the lateral surface at a given angular position.

    The angle follows the BOH convention: measured in the XY plane from +X,
    so 90 deg is the +Y direction (the default BOH line position).
    """
    rad = math.radians(angle_deg)
    return Point3D(radius * math.cos(rad), radius * math.sin(rad), z)
