"""Camera-frame core detection and auto-capture."""

from core_orient.detection.edge_detector import (
    CylinderEdgeDetector,
    DetectorState,
    EdgeDetectionResult,
    NO_DETECTION_DISTANCE_CM,
)
from core_orient.detection.scheduler import ThreadScheduler, TickHandle

__all__ = [
    "CylinderEdgeDetector",
    "DetectorState",
    "EdgeDetectionResult",
    "NO_DETECTION_DISTANCE_CM",
    "ThreadScheduler",
    "TickHandle",
]
