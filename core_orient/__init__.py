"""
core_orient: orientation of geological structures on drill core.

Three points picked on the core surface plus the BOH reference lines and
the hole survey give the structure's real dip / dip direction; the frame
detector auto-captures the core photo at the calibrated distance.
"""

from core_orient.errors import (
    CoreOrientError,
    DegeneratePlaneError,
    FrameUnavailableError,
    OffSurfaceError,
    OutOfRangeAngleError,
)
from core_orient.geometry import Point3D, PointTrio, fit_plane
from core_orient.orientation import (
    BOHReferenceModel,
    DrillHoleOrientation,
    LocalOrientation,
    RealOrientation,
    angle_of_fit,
    decompose_local,
    to_real_orientation,
)
from core_orient.trajectory import CollarPosition, SpatialPosition, to_spatial_position, trajectory
from core_orient.detection import CylinderEdgeDetector, EdgeDetectionResult, ThreadScheduler
from core_orient.measurement import measure_scene, measure_structure
from core_orient.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)

__version__ = "0.3.0"

__all__ = [
    "CoreOrientError",
    "DegeneratePlaneError",
    "FrameUnavailableError",
    "OffSurfaceError",
    "OutOfRangeAngleError",
    "Point3D",
    "PointTrio",
    "fit_plane",
    "BOHReferenceModel",
    "DrillHoleOrientation",
    "LocalOrientation",
    "RealOrientation",
    "angle_of_fit",
    "decompose_local",
    "to_real_orientation",
    "CollarPosition",
    "SpatialPosition",
    "to_spatial_position",
    "trajectory",
    "CylinderEdgeDetector",
    "EdgeDetectionResult",
    "ThreadScheduler",
    "measure_scene",
    "measure_structure",
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
