"""Local-frame primitives and plane fitting on the core surface."""

from core_orient.geometry.primitives import (
    Point3D,
    PointTrio,
    PlaneEquation,
    cylinder_point,
)
from core_orient.geometry.plane_fit import (
    fit_plane,
    fit_plane_lstsq,
    plane_equation,
    plane_axis_depth,
    ellipse_trace,
    validate_trio,
)

__all__ = [
    "Point3D",
    "PointTrio",
    "PlaneEquation",
    "cylinder_point",
    "fit_plane",
    "fit_plane_lstsq",
    "plane_equation",
    "plane_axis_depth",
    "ellipse_trace",
    "validate_trio",
]
