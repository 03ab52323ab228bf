"""
Straight-line drill-hole trajectory.

Positions are collar-relative offsets along a hole with constant azimuth
and dip (no desurveying between survey stations). Linear units are
whatever the caller uses for depth; collar coordinates must match.

    horizontal = depth * cos(dip)
    vertical   = depth * sin(dip)     # negative downward
    east       = horizontal * sin(azimuth)
    north      = horizontal * cos(azimuth)
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from core_orient.orientation.local import normalize_angle
from core_orient.orientation.rotation import DrillHoleOrientation

logger = logging.getLogger(__name__)

# Slack when deciding whether the last station still fits in the hole
_STATION_EPS = 1e-9


@dataclass(frozen=True)
class CollarPosition:
    """Drill-hole collar in projected (UTM) coordinates."""
    utm_east: float = 0.0
    utm_north: float = 0.0
    elevation: float = 0.0

    def to_dict(self) -> dict:
        return {
            'utm_east': self.utm_east,
            'utm_north': self.utm_north,
            'elevation': self.elevation,
        }


@dataclass(frozen=True)
class SpatialPosition:
    """Absolute position of a point down the hole."""
    east: float
    north: float
    elevation: float

    def to_dict(self) -> dict:
        return {'east': self.east, 'north': self.north, 'elevation': self.elevation}


def hole_offset(depth: float, orientation: DrillHoleOrientation) -> Tuple[float, float, float]:
    """Collar-relative (east, north, up) offset at a depth along the hole."""
    dip_rad = math.radians(orientation.dip)
    az_rad = math.radians(orientation.azimuth)

    horizontal = depth * math.cos(dip_rad)
    vertical = depth * math.sin(dip_rad)

    return (
        horizontal * math.sin(az_rad),
        horizontal * math.cos(az_rad),
        vertical,
    )


def _position(collar: CollarPosition, depth: float,
              orientation: DrillHoleOrientation) -> SpatialPosition:
    east, north, up = hole_offset(depth, orientation)
    return SpatialPosition(
        east=collar.utm_east + east,
        north=collar.utm_north + north,
        elevation=collar.elevation + up,
    )


def to_spatial_position(
    collar: CollarPosition,
    depth: float,
    hole_azimuth: float,
    hole_dip: float,
) -> SpatialPosition:
    """Absolute position of a point `depth` along the hole from its collar.

    Raises:
        OutOfRangeAngleError: If the hole azimuth/dip are out of range
    """
    return _position(collar, depth, DrillHoleOrientation(hole_azimuth, hole_dip))


def trajectory(
    total_depth: float,
    orientation: DrillHoleOrientation,
    interval: float,
    collar: Optional[CollarPosition] = None,
) -> Iterator[SpatialPosition]:
    """Lazily yield positions at depths 0, interval, 2*interval, ... <= total_depth.

    Args:
        total_depth: Hole length
        orientation: Constant hole azimuth/dip
        interval: Spacing between stations, > 0
        collar: Collar position (origin when omitted)

    Raises:
        ValueError: If interval is not positive
    """
    if interval <= 0:
        raise ValueError(f"Trajectory interval must be positive, got {interval}")

    collar = collar or CollarPosition()
    n_stations = int(math.floor(total_depth / interval + _STATION_EPS)) + 1 if total_depth >= 0 else 0
    logger.debug("Trajectory: %d stations every %g to depth %g", n_stations, interval, total_depth)

    for i in range(n_stations):
        yield _position(collar, i * interval, orientation)


def collar_separation(first: CollarPosition, second: CollarPosition) -> Tuple[float, float]:
    """Straight-line distance and azimuth from one collar to another.

    The distance includes the elevation difference; the azimuth is the
    bearing of the horizontal offset.

    Returns:
        (distance, azimuth) with azimuth in [0, 360) clockwise from North
    """
    d_east = second.utm_east - first.utm_east
    d_north = second.utm_north - first.utm_north
    d_up = second.elevation - first.elevation
    distance = math.sqrt(d_east * d_east + d_north * d_north + d_up * d_up)
    azimuth = normalize_angle(math.degrees(math.atan2(d_east, d_north)))
    return distance, azimuth
