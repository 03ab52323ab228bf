"""
Drill-hole rotation: local core frame -> global East-North-Up frame.

Provides:
- Rotation3D class for representing and composing rotations
- DrillHoleOrientation survey record with range validation
- The drill-hole rotation matrix built from azimuth and dip
- Real (geological) dip / dip direction from a global normal

Conventions:
- Azimuth: 0-360 deg clockwise from North
- Dip: -90..0 deg, negative = downward
- Global frame: X = East, Y = North, Z = Up

Note the asymmetry with the local decomposition: locally alpha is
acos(|nz|), globally the dip is asin(|gz|). Both conventions are used on
purpose and must not be unified.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from core_orient.errors import OutOfRangeAngleError
from core_orient.orientation.local import local_normal, normalize_angle

logger = logging.getLogger(__name__)


@dataclass
class Rotation3D:
    """3D rotation represented as a rotation matrix.

    Attributes:
        matrix: 3x3 orthogonal rotation matrix (det = +1)
    """
    matrix: NDArray[np.float64]

    def __post_init__(self):
        """Validate rotation matrix."""
        self.matrix = np.asarray(self.matrix, dtype=np.float64)
        if self.matrix.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be 3x3, got {self.matrix.shape}")

    @classmethod
    def identity(cls) -> 'Rotation3D':
        """Create identity rotation (no rotation)."""
        return cls(np.eye(3))

    @classmethod
    def from_drill_hole(cls, azimuth: float, dip: float) -> 'Rotation3D':
        """Rotation taking core-frame vectors to the global frame.

        Args:
            azimuth: Hole azimuth, degrees from North
            dip: Hole dip, degrees (negative = downward)

        Returns:
            Rotation3D with the drill-hole matrix (Rz(azimuth) * Ry(-dip))
        """
        az_rad = math.radians(azimuth)
        dip_rad = math.radians(-dip)

        cos_az, sin_az = math.cos(az_rad), math.sin(az_rad)
        cos_dip, sin_dip = math.cos(dip_rad), math.sin(dip_rad)

        return cls(np.array([
            [cos_az * cos_dip, -sin_az, cos_az * sin_dip],
            [sin_az * cos_dip, cos_az, sin_az * sin_dip],
            [-sin_dip, 0.0, cos_dip],
        ]))

    def apply(self, vectors: NDArray[np.float64]) -> NDArray[np.float64]:
        """Apply rotation to one (3,) vector or an Nx3 array."""
        vectors = np.asarray(vectors, dtype=np.float64)
        if vectors.ndim == 1:
            return self.matrix @ vectors
        return vectors @ self.matrix.T

    def compose(self, other: 'Rotation3D') -> 'Rotation3D':
        """Compose with another rotation: self * other.

        Result applies `other` first, then `self`.
        """
        return Rotation3D(self.matrix @ other.matrix)

    def inverse(self) -> 'Rotation3D':
        """Inverse rotation (transpose of an orthogonal matrix)."""
        return Rotation3D(self.matrix.T)

    def is_identity(self, tol: float = 1e-9) -> bool:
        """Check if rotation is identity."""
        return np.allclose(self.matrix, np.eye(3), atol=tol)

    def __matmul__(self, other: 'Rotation3D') -> 'Rotation3D':
        """Matrix multiplication operator."""
        return self.compose(other)


@dataclass(frozen=True)
class DrillHoleOrientation:
    """Borehole survey direction.

    Raises:
        OutOfRangeAngleError: If azimuth is outside [0, 360] or dip
            outside [-90, 0]
    """
    azimuth: float
    dip: float

    def __post_init__(self):
        if not 0.0 <= self.azimuth <= 360.0:
            raise OutOfRangeAngleError("Azimuth", self.azimuth, 0.0, 360.0)
        if not -90.0 <= self.dip <= 0.0:
            raise OutOfRangeAngleError("Dip", self.dip, -90.0, 0.0)

    def rotation(self) -> Rotation3D:
        return Rotation3D.from_drill_hole(self.azimuth, self.dip)

    def to_dict(self) -> dict:
        return {'azimuth': self.azimuth, 'dip': self.dip}


@dataclass(frozen=True)
class RealOrientation:
    """Geological orientation of a plane in the global frame.

    Attributes:
        dip: Dip angle from horizontal, [0, 90]
        dip_direction: Bearing of steepest descent, [0, 360)
        normal: Global (East, North, Up) unit normal it was derived from
    """
    dip: float
    dip_direction: float
    normal: Tuple[float, float, float] = (0.0, 0.0, 1.0)

    def to_dict(self) -> dict:
        return {
            'dip': self.dip,
            'dip_direction': self.dip_direction,
            'normal': list(self.normal),
        }


def drill_hole_rotation(azimuth: float, dip: float) -> Rotation3D:
    """Validated drill-hole rotation for a survey azimuth/dip."""
    return DrillHoleOrientation(azimuth, dip).rotation()


def real_orientation_from_normal(normal: NDArray[np.float64]) -> RealOrientation:
    """Dip and dip direction of a plane from its global normal.

    dip = asin(|gz|); dip direction = atan2(gx, gy), turned by 180 deg
    when the normal points up.
    """
    gx, gy, gz = (float(v) for v in normal)

    dip = math.degrees(math.asin(min(1.0, abs(gz))))

    dip_direction_rad = math.atan2(gx, gy)
    if gz > 0:
        dip_direction_rad += math.pi

    return RealOrientation(
        dip=dip,
        dip_direction=normalize_angle(math.degrees(dip_direction_rad)),
        normal=(gx, gy, gz),
    )


def to_real_orientation(
    alpha: float,
    beta: float,
    boh_angle: float,
    hole_azimuth: float,
    hole_dip: float,
) -> RealOrientation:
    """Real-world dip / dip direction of a plane measured on the core.

    Args:
        alpha: Angle of the normal from the core axis, degrees
        beta: Dip-direction bearing from the BOH line, degrees
        boh_angle: Angular position of the BOH line used for beta, degrees
        hole_azimuth: Drill-hole azimuth, degrees from North
        hole_dip: Drill-hole dip, degrees (negative = downward)

    Returns:
        RealOrientation in the global frame

    Raises:
        OutOfRangeAngleError: If the hole azimuth/dip are out of range
    """
    normal_local = local_normal(alpha, beta, boh_angle)
    rotation = drill_hole_rotation(hole_azimuth, hole_dip)
    normal_global = rotation.apply(normal_local)

    result = real_orientation_from_normal(normal_global)
    logger.debug(
        "alpha=%.2f beta=%.2f BOH=%.1f hole=%.1f/%.1f -> dip=%.2f dd=%.2f",
        alpha, beta, boh_angle, hole_azimuth, hole_dip,
        result.dip, result.dip_direction,
    )
    return result
