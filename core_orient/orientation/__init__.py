"""Core-frame and global orientation: alpha/beta, BOH lines, drill-hole rotation."""

from core_orient.orientation.local import (
    LocalOrientation,
    decompose_local,
    local_normal,
    normalize_angle,
)
from core_orient.orientation.boh import (
    ActiveBOH,
    AngleOfFit,
    BOHPosition,
    BOHReferenceModel,
    BOHSide,
    BOHState,
    angle_of_fit,
    validate_angle_of_fit,
)
from core_orient.orientation.rotation import (
    DrillHoleOrientation,
    RealOrientation,
    Rotation3D,
    drill_hole_rotation,
    real_orientation_from_normal,
    to_real_orientation,
)

__all__ = [
    "LocalOrientation",
    "decompose_local",
    "local_normal",
    "normalize_angle",
    "ActiveBOH",
    "AngleOfFit",
    "BOHPosition",
    "BOHReferenceModel",
    "BOHSide",
    "BOHState",
    "angle_of_fit",
    "validate_angle_of_fit",
    "DrillHoleOrientation",
    "RealOrientation",
    "Rotation3D",
    "drill_hole_rotation",
    "real_orientation_from_normal",
    "to_real_orientation",
]
