"""
Plane orientation in the core's own frame: alpha and beta.

- alpha: angle between the plane normal and the core axis
  (0 = plane perpendicular to the axis, 90 = plane contains the axis)
- beta: bearing of the dip direction from the active BOH line,
  clockwise looking down the axis

The in-plane azimuth of a normal is atan2(nx, ny), i.e. measured from +Y.
A BOH line at 90 deg sits on +Y, so beta re-bases the azimuth by (boh - 90).
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Horizontal normal component below which the azimuth is undefined
AZIMUTH_EPS = 1e-4


def normalize_angle(degrees: float) -> float:
    """Wrap an angle into [0, 360)."""
    normalized = degrees % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if normalized >= 360.0 else normalized


@dataclass(frozen=True)
class LocalOrientation:
    """Orientation of a plane relative to the core axis and a BOH line.

    Attributes:
        alpha: Angle of the normal from the core axis, [0, 90]
        beta: Dip-direction bearing from the BOH line, [0, 360)
        azimuth: In-plane azimuth of the normal from +Y, [0, 360)
        azimuth_indeterminate: True when the normal is parallel to the axis
            and neither azimuth nor beta carry information
    """
    alpha: float
    beta: float
    azimuth: float = 0.0
    azimuth_indeterminate: bool = False

    @property
    def strike(self) -> float:
        """Bearing of the plane's axis-perpendicular line, [0, 360)."""
        return normalize_angle(self.azimuth + 90.0)

    def to_dict(self) -> dict:
        return {
            'alpha': self.alpha,
            'beta': self.beta,
            'azimuth': self.azimuth,
            'azimuth_indeterminate': self.azimuth_indeterminate,
        }


def decompose_local(normal: NDArray[np.float64], boh_angle: float) -> LocalOrientation:
    """Express a local plane normal as (alpha, beta) against a BOH line.

    Args:
        normal: Unit normal in the cylinder frame (axis = local Z)
        boh_angle: Angular position of the active BOH line, degrees

    Returns:
        LocalOrientation; beta is 0 with `azimuth_indeterminate` set when
        alpha is ~0
    """
    nx, ny, nz = (float(v) for v in np.asarray(normal, dtype=np.float64))

    alpha = math.degrees(math.acos(min(1.0, max(-1.0, abs(nz)))))

    if math.hypot(nx, ny) < AZIMUTH_EPS:
        logger.debug("Normal parallel to core axis, azimuth indeterminate (alpha=%.4f)", alpha)
        return LocalOrientation(alpha=alpha, beta=0.0, azimuth=0.0, azimuth_indeterminate=True)

    azimuth = normalize_angle(math.degrees(math.atan2(nx, ny)))
    beta = normalize_angle(azimuth - (boh_angle - 90.0))

    logger.debug(
        "Local orientation: alpha=%.2f beta=%.2f (azimuth=%.2f, BOH=%.1f)",
        alpha, beta, azimuth, boh_angle,
    )
    return LocalOrientation(alpha=alpha, beta=beta, azimuth=azimuth)


def local_normal(alpha: float, beta: float, boh_angle: float) -> NDArray[np.float64]:
    """Rebuild the local unit normal from alpha, beta and the BOH angle.

    Inverse of `decompose_local` (up to the indeterminate case).
    """
    alpha_rad = math.radians(alpha)
    phi = math.radians((boh_angle - 90.0) + beta)
    return np.array([
        math.sin(alpha_rad) * math.sin(phi),
        math.sin(alpha_rad) * math.cos(phi),
        math.cos(alpha_rad),
    ])
