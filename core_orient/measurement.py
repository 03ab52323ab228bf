"""
Structure measurement pipeline.

Provides:
- Per-structure measurement: point trio -> plane -> alpha/beta against the
  active BOH line -> real dip / dip direction -> optional position down hole
- Per-scene measurement of many trios with failure collection
- Non-fatal measurement issues (indeterminate azimuth, AC outside window)
- Text formatting of orientations and positions

Usage:
    from core_orient.measurement import measure_scene

    result = measure_scene(trios, boh_model, DrillHoleOrientation(60, -60),
                           collar=collar, scene_top_depth=515.0)
    print(result.summary())
"""

import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from scipy.stats import circmean, circstd

from core_orient.errors import DegeneratePlaneError, OffSurfaceError
from core_orient.geometry.plane_fit import plane_axis_depth, plane_equation, validate_trio
from core_orient.geometry.primitives import PointTrio
from core_orient.logging_config import timed
from core_orient.orientation.boh import BOHReferenceModel
from core_orient.orientation.local import LocalOrientation, decompose_local, normalize_angle
from core_orient.orientation.rotation import (
    DrillHoleOrientation,
    RealOrientation,
    to_real_orientation,
)
from core_orient.project_config import CylinderConfig
from core_orient.trajectory import CollarPosition, SpatialPosition, to_spatial_position

logger = logging.getLogger(__name__)

INDETERMINATE_AZIMUTH = "INDETERMINATE_AZIMUTH"
AC_OUT_OF_RANGE = "AC_OUT_OF_RANGE"
AXIS_DEPTH_OUTSIDE_SCENE = "AXIS_DEPTH_OUTSIDE_SCENE"


class IssueSeverity(Enum):
    """Severity level of a measurement issue."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class MeasurementIssue:
    """A non-fatal condition attached to a measurement."""
    code: str
    severity: IssueSeverity
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.code}: {self.message}"

    def to_dict(self) -> dict:
        return {'code': self.code, 'severity': self.severity.value, 'message': self.message}


@dataclass
class StructureMeasurement:
    """Complete orientation of one structure picked on the core."""
    label: str
    normal: Tuple[float, float, float]
    local: LocalOrientation
    boh_line: int
    boh_angle: float
    axis_depth: float
    real: RealOrientation
    position: Optional[SpatialPosition] = None
    depth_along_hole: Optional[float] = None
    issues: List[MeasurementIssue] = field(default_factory=list)

    @property
    def alpha(self) -> float:
        return self.local.alpha

    @property
    def beta(self) -> float:
        return self.local.beta

    @property
    def dip(self) -> float:
        return self.real.dip

    @property
    def dip_direction(self) -> float:
        return self.real.dip_direction

    @property
    def warnings(self) -> List[MeasurementIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

    def has_issue(self, code: str) -> bool:
        return any(i.code == code for i in self.issues)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'label': self.label,
            'normal': list(self.normal),
            'local': self.local.to_dict(),
            'boh_line': self.boh_line,
            'boh_angle': self.boh_angle,
            'axis_depth': self.axis_depth,
            'real': self.real.to_dict(),
            'position': self.position.to_dict() if self.position else None,
            'depth_along_hole': self.depth_along_hole,
            'issues': [i.to_dict() for i in self.issues],
        }


@dataclass(frozen=True)
class StructureFailure:
    """A trio that could not be measured."""
    index: int
    label: str
    error: str
    error_type: str


@dataclass(frozen=True)
class SceneTrends:
    """Dominant orientation of the structures measured in a scene.

    Dip statistics are arithmetic. Dip direction is a bearing, so its mean
    and spread are circular (350 and 10 average to 0, not 180).

    Attributes:
        count: Number of measured structures
        mean_dip, dip_std: Mean and standard deviation of the dip
        mean_dip_direction: Circular mean of the dip direction, [0, 360)
        dip_direction_std: Circular standard deviation, degrees
        mean_depth: Mean depth along the hole, None when no structure
            was positioned
    """
    count: int = 0
    mean_dip: float = 0.0
    dip_std: float = 0.0
    mean_dip_direction: float = 0.0
    dip_direction_std: float = 0.0
    mean_depth: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            'count': self.count,
            'mean_dip': self.mean_dip,
            'dip_std': self.dip_std,
            'mean_dip_direction': self.mean_dip_direction,
            'dip_direction_std': self.dip_direction_std,
            'mean_depth': self.mean_depth,
        }


@dataclass
class SceneResult:
    """Result of measuring every trio of a scene."""
    measurements: List[StructureMeasurement] = field(default_factory=list)
    failures: List[StructureFailure] = field(default_factory=list)
    total_duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.measurements) + len(self.failures)

    @property
    def successful(self) -> int:
        return len(self.measurements)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.successful / self.total

    def trends(self) -> SceneTrends:
        """Mean and spread of the measured orientations."""
        if not self.measurements:
            return SceneTrends()

        dips = np.array([m.dip for m in self.measurements])
        directions = np.array([m.dip_direction for m in self.measurements])
        depths = [m.depth_along_hole for m in self.measurements if m.depth_along_hole is not None]

        return SceneTrends(
            count=len(self.measurements),
            mean_dip=float(np.mean(dips)),
            dip_std=float(np.std(dips)),
            mean_dip_direction=normalize_angle(float(circmean(directions, high=360.0, low=0.0))),
            dip_direction_std=float(circstd(directions, high=360.0, low=0.0)),
            mean_depth=float(np.mean(depths)) if depths else None,
        )

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Scene Measurement Summary",
            "=" * 40,
            f"Structures:      {self.total}",
            f"Measured:        {self.successful}",
            f"Failed:          {self.failed}",
            f"Success rate:    {self.success_rate:.1f}%",
            "",
        ]

        if self.measurements:
            trends = self.trends()
            lines.append(
                f"Dominant:        {trends.mean_dip:.1f}°/{trends.mean_dip_direction:.1f}° "
                f"(std {trends.dip_std:.1f}° / {trends.dip_direction_std:.1f}°)"
            )
            lines.append("")

        for m in self.measurements:
            line = f"  {m.label or '-'}: {format_orientation(m.real)} (alpha {m.alpha:.1f}, beta {m.beta:.1f})"
            if m.issues:
                line += " " + ", ".join(i.code for i in m.issues)
            lines.append(line)

        if self.failures:
            lines.append("")
            lines.append("Failed structures:")
            for f in self.failures:
                lines.append(f"  - {f.label or f'#{f.index + 1}'}: {f.error}")

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'success_rate': self.success_rate,
            'total_duration_seconds': self.total_duration_seconds,
            'trends': self.trends().to_dict(),
            'measurements': [m.to_dict() for m in self.measurements],
            'failures': [
                {'index': f.index, 'label': f.label, 'error': f.error, 'type': f.error_type}
                for f in self.failures
            ],
        }


def _axis_depth(trio: PointTrio, equation, scene_height: float,
                issues: List[MeasurementIssue]) -> float:
    depth = plane_axis_depth(equation)
    if depth is None:
        issues.append(MeasurementIssue(
            code=AXIS_DEPTH_OUTSIDE_SCENE,
            severity=IssueSeverity.INFO,
            message=f"plane is parallel to the axis, using mean pick depth {trio.mean_z:.2f}",
        ))
        return trio.mean_z
    if not 0.0 <= depth <= scene_height:
        issues.append(MeasurementIssue(
            code=AXIS_DEPTH_OUTSIDE_SCENE,
            severity=IssueSeverity.INFO,
            message=f"plane crosses the axis at z={depth:.2f}, using mean pick depth {trio.mean_z:.2f}",
        ))
        return trio.mean_z
    return depth


def measure_structure(
    trio: PointTrio,
    boh_model: BOHReferenceModel,
    drill_hole: DrillHoleOrientation,
    collar: Optional[CollarPosition] = None,
    depth_along_hole: Optional[float] = None,
    cylinder: Optional[CylinderConfig] = None,
) -> StructureMeasurement:
    """Measure one structure from three picks on the core surface.

    Args:
        trio: Three points on the lateral surface
        boh_model: Current BOH lines; the line covering the plane's depth
            is used for beta
        drill_hole: Hole azimuth/dip
        collar: Collar for the absolute position (origin when omitted)
        depth_along_hole: Depth of the structure along the hole; no
            position is computed without it
        cylinder: Core radius and surface tolerance

    Returns:
        StructureMeasurement

    Raises:
        OffSurfaceError: If a pick is off the core surface
        DegeneratePlaneError: If the picks are collinear
    """
    cylinder = cylinder or CylinderConfig()
    issues: List[MeasurementIssue] = []

    validate_trio(trio, radius=cylinder.radius_cm, tolerance=cylinder.surface_tolerance_cm)

    equation = plane_equation(trio.p1, trio.p2, trio.p3)
    axis_depth = _axis_depth(trio, equation, cylinder.scene_height_cm, issues)

    active = boh_model.active_boh(axis_depth)
    local = decompose_local(equation.normal, active.angle)
    if local.azimuth_indeterminate:
        issues.append(MeasurementIssue(
            code=INDETERMINATE_AZIMUTH,
            severity=IssueSeverity.WARNING,
            message="plane is perpendicular to the core axis, beta is undefined",
        ))

    fit_ok, fit_warning = boh_model.validate_fit()
    if not fit_ok:
        issues.append(MeasurementIssue(
            code=AC_OUT_OF_RANGE,
            severity=IssueSeverity.INFO,
            message=fit_warning,
        ))

    real = to_real_orientation(local.alpha, local.beta, active.angle,
                               drill_hole.azimuth, drill_hole.dip)

    position = None
    if depth_along_hole is not None:
        position = to_spatial_position(collar or CollarPosition(), depth_along_hole,
                                       drill_hole.azimuth, drill_hole.dip)

    measurement = StructureMeasurement(
        label=trio.label,
        normal=tuple(float(v) for v in equation.normal),
        local=local,
        boh_line=active.line,
        boh_angle=active.angle,
        axis_depth=axis_depth,
        real=real,
        position=position,
        depth_along_hole=depth_along_hole,
        issues=issues,
    )

    logger.info(
        "Structure %s: %s (alpha=%.1f beta=%.1f BOH%d=%.1f)",
        trio.label or "-", format_orientation(real),
        local.alpha, local.beta, active.line, active.angle,
    )
    return measurement


@timed(operation="measure_scene")
def measure_scene(
    trios: Iterable[PointTrio],
    boh_model: BOHReferenceModel,
    drill_hole: DrillHoleOrientation,
    collar: Optional[CollarPosition] = None,
    scene_top_depth: Optional[float] = None,
    cylinder: Optional[CylinderConfig] = None,
) -> SceneResult:
    """Measure every trio of a scene.

    Off-surface and degenerate trios are recorded as failures and do not
    stop the scene.

    Args:
        trios: Point trios picked in the scene
        boh_model: Current BOH lines
        drill_hole: Hole azimuth/dip
        collar: Collar for absolute positions (origin when omitted)
        scene_top_depth: Depth along the hole of scene z=0; when given,
            each structure is positioned at scene_top_depth + axis depth
        cylinder: Core radius and surface tolerance

    Returns:
        SceneResult with measurements and failures in input order
    """
    start_time = time.perf_counter()
    result = SceneResult()

    for index, trio in enumerate(trios):
        try:
            measurement = measure_structure(trio, boh_model, drill_hole, cylinder=cylinder)
        except (OffSurfaceError, DegeneratePlaneError) as e:
            logger.warning("Structure %s skipped: %s", trio.label or f"#{index + 1}", e)
            result.failures.append(StructureFailure(
                index=index, label=trio.label, error=str(e), error_type=type(e).__name__,
            ))
            continue

        if scene_top_depth is not None:
            depth = scene_top_depth + measurement.axis_depth
            measurement = replace(
                measurement,
                depth_along_hole=depth,
                position=to_spatial_position(collar or CollarPosition(), depth,
                                             drill_hole.azimuth, drill_hole.dip),
            )
        result.measurements.append(measurement)

    result.total_duration_seconds = time.perf_counter() - start_time
    logger.info(
        "Scene measured: %d/%d structures (%.1f%%)",
        result.successful, result.total, result.success_rate,
    )
    return result


def format_orientation(orientation: RealOrientation) -> str:
    """Dip/dip-direction as `45.0°/120.0°`."""
    return f"{orientation.dip:.1f}°/{orientation.dip_direction:.1f}°"


def format_position(position: SpatialPosition) -> str:
    return f"E: {position.east:.2f}, N: {position.north:.2f}, Z: {position.elevation:.2f}"
