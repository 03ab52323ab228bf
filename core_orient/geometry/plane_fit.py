"""
Plane fitting from points picked on the core surface.

Provides:
- fit_plane: unit normal from a point trio (the measurement path)
- plane_equation / plane_axis_depth: plane coefficients and axis crossing
- ellipse_trace: plane/cylinder intersection for overlay drawing
- fit_plane_lstsq: best-fit normal through more than three picks
- validate_trio: lateral-surface check for picked points

Sign convention: every returned normal points toward +Z (the deep end of
the scene), i.e. dot(normal, axis) >= 0.
"""

import logging
from typing import Iterable, Optional, Union

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import eigh

from core_orient.errors import DegeneratePlaneError, OffSurfaceError
from core_orient.geometry.primitives import (
    CYLINDER_AXIS,
    DEFAULT_CORE_RADIUS_CM,
    DEFAULT_SURFACE_TOLERANCE_CM,
    PlaneEquation,
    Point3D,
    PointTrio,
)

logger = logging.getLogger(__name__)

# Cross product magnitude below which three points are treated as collinear
DEGENERATE_EPS = 1e-9
# |c| below which a plane is considered parallel to the core axis
AXIS_PARALLEL_EPS = 1e-4

PointLike = Union[Point3D, NDArray[np.float64], Iterable[float]]


def _as_vector(point: PointLike) -> NDArray[np.float64]:
    if isinstance(point, Point3D):
        return point.as_array()
    vec = np.asarray(point, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"Point must have 3 coordinates, got shape {vec.shape}")
    return vec


def _orient_to_axis(normal: NDArray[np.float64]) -> NDArray[np.float64]:
    if np.dot(normal, CYLINDER_AXIS) < 0:
        return -normal
    return normal


def _raw_normal(p1: PointLike, p2: PointLike, p3: PointLike) -> NDArray[np.float64]:
    a = _as_vector(p1)
    v1 = _as_vector(p2) - a
    v2 = _as_vector(p3) - a
    return np.cross(v1, v2)


def fit_plane(p1: PointLike, p2: PointLike, p3: PointLike) -> NDArray[np.float64]:
    """Unit normal of the plane through three points.

    Args:
        p1, p2, p3: Points in the local cylinder frame

    Returns:
        Unit normal (3,), oriented so its axial component is non-negative

    Raises:
        DegeneratePlaneError: If the points are collinear or duplicated
    """
    n = _raw_normal(p1, p2, p3)
    magnitude = float(np.linalg.norm(n))

    if magnitude < DEGENERATE_EPS:
        raise DegeneratePlaneError(
            f"Points are collinear or duplicated (|v1 x v2| = {magnitude:.2e})"
        )

    normal = _orient_to_axis(n / magnitude)
    logger.debug("Plane normal: (%.4f, %.4f, %.4f)", *normal)
    return normal


def plane_equation(p1: PointLike, p2: PointLike, p3: PointLike) -> PlaneEquation:
    """Plane coefficients (a, b, c, d) through three points.

    The coefficients follow the same sign convention as `fit_plane`.

    Raises:
        DegeneratePlaneError: If the points are collinear or duplicated
    """
    normal = fit_plane(p1, p2, p3)
    n = _orient_to_axis(_raw_normal(p1, p2, p3))
    origin = _as_vector(p1)
    a, b, c = (float(v) for v in n)
    d = -float(np.dot(n, origin))
    return PlaneEquation(a=a, b=b, c=c, d=d, normal=normal)


def plane_axis_depth(equation: PlaneEquation) -> Optional[float]:
    """Z coordinate where the plane crosses the cylinder axis (x = y = 0).

    Returns:
        Axial depth in the scene, or None if the plane is parallel to the axis
    """
    if abs(equation.normal[2]) < AXIS_PARALLEL_EPS:
        return None
    return -equation.d / equation.c


def ellipse_trace(
    equation: PlaneEquation,
    radius: float = DEFAULT_CORE_RADIUS_CM,
    n_points: int = 64,
) -> NDArray[np.float64]:
    """Sample the intersection of a plane with the core surface.

    Args:
        equation: Plane coefficients
        radius: Core radius
        n_points: Number of samples around the circumference

    Returns:
        (n_points, 3) array of points; empty (0, 3) when the plane is
        nearly parallel to the axis and the trace is not a closed ellipse
    """
    if abs(equation.normal[2]) < AXIS_PARALLEL_EPS:
        logger.warning("Plane is nearly parallel to the core axis, no ellipse trace")
        return np.empty((0, 3))

    theta = np.linspace(0.0, 2.0 * np.pi, n_points, endpoint=False)
    x = radius * np.cos(theta)
    y = radius * np.sin(theta)
    z = -(equation.a * x + equation.b * y + equation.d) / equation.c
    return np.column_stack([x, y, z])


def fit_plane_lstsq(points: Iterable[PointLike]) -> NDArray[np.float64]:
    """Best-fit plane normal through three or more picks.

    The normal is the eigenvector of the centred scatter matrix with the
    smallest eigenvalue.

    Args:
        points: At least three points

    Returns:
        Unit normal (3,), same sign convention as `fit_plane`

    Raises:
        DegeneratePlaneError: If fewer than three points are given or they
            do not span a plane
    """
    pts = np.array([_as_vector(p) for p in points])
    if len(pts) < 3:
        raise DegeneratePlaneError(f"Need at least 3 points, got {len(pts)}")

    centered = pts - pts.mean(axis=0)
    scatter = centered.T @ centered
    eigenvalues, eigenvectors = eigh(scatter)  # ascending order

    # Points spanning only a line leave two eigenvalues at zero
    if eigenvalues[1] <= DEGENERATE_EPS * max(eigenvalues[2], 1.0):
        raise DegeneratePlaneError("Points are collinear or duplicated")

    normal = eigenvectors[:, 0]
    normal = normal / np.linalg.norm(normal)
    return _orient_to_axis(normal)


def validate_trio(
    trio: PointTrio,
    radius: float = DEFAULT_CORE_RADIUS_CM,
    tolerance: float = DEFAULT_SURFACE_TOLERANCE_CM,
) -> None:
    """Check that every point of a trio lies on the lateral surface.

    Raises:
        OffSurfaceError: For the first point farther than `tolerance`
            from the surface
    """
    for index, point in enumerate(trio.points):
        distance = point.distance_from_axis
        if abs(distance - radius) > tolerance:
            raise OffSurfaceError(index, distance, radius, tolerance)
