"""
Pytest configuration and fixtures for core_orient.

Provides:
- Point trios on the core surface (reference structure, synthetic planes)
- Synthetic camera frames with a bright core on a dark background
- Fake frame sources and a manual scheduler for detector tests
- Logger isolation between tests
"""

import logging
import math
from typing import Callable, List, Optional, Tuple

import numpy as np
import pytest

from core_orient.geometry.primitives import DEFAULT_CORE_RADIUS_CM, Point3D, PointTrio
from core_orient.orientation.boh import BOHReferenceModel
from core_orient.orientation.local import local_normal


# ============================================================================
# Logging isolation
# ============================================================================

@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo setup_logging() side effects (handlers, propagate, level)."""
    logger = logging.getLogger("core_orient")
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.propagate = propagate
    logger.setLevel(level)


# ============================================================================
# Geometry Fixtures
# ============================================================================

REFERENCE_STRUCTURE = PointTrio(
    Point3D(-2.6836, 1.6822, 14.6413),
    Point3D(-0.5745, 3.1184, 14.8241),
    Point3D(2.3582, 2.1072, 14.8742),
    label="S-515",
)


def trio_on_plane(normal: np.ndarray, z0: float = 10.0,
                  angles: Tuple[float, float, float] = (10.0, 130.0, 250.0),
                  radius: float = DEFAULT_CORE_RADIUS_CM, label: str = "") -> PointTrio:
    """Three surface points on the plane through (0, 0, z0) with `normal`.

    The normal must not be perpendicular to the core axis.
    """
    nx, ny, nz = normal
    points = []
    for angle in angles:
        rad = math.radians(angle)
        x, y = radius * math.cos(rad), radius * math.sin(rad)
        z = z0 - (nx * x + ny * y) / nz
        points.append(Point3D(x, y, z))
    return PointTrio(*points, label=label)


def trio_from_alpha_beta(alpha: float, beta: float, boh_angle: float,
                         z0: float = 10.0, label: str = "") -> PointTrio:
    return trio_on_plane(local_normal(alpha, beta, boh_angle), z0=z0, label=label)


@pytest.fixture
def reference_trio() -> PointTrio:
    """Structure picked at 515 cm in hole DDH-AOC-001."""
    return REFERENCE_STRUCTURE


@pytest.fixture
def boh_model() -> BOHReferenceModel:
    return BOHReferenceModel()


# ============================================================================
# Frame Fixtures
# ============================================================================

FRAME_WIDTH = 640
FRAME_HEIGHT = 480


def make_core_frame(left: int = 161, right: int = 416, top: int = 97, bottom: int = 383,
                    width: int = FRAME_WIDTH, height: int = FRAME_HEIGHT,
                    channels: Optional[int] = 3) -> np.ndarray:
    """Dark frame with a bright rectangle (inclusive pixel bounds).

    With the defaults the edge pixels sit in columns 160 and 416 and in
    rows 96 and 383: both sampled columns / rows see the core, the
    apparent width is 256 px (= 40% of 640) and the distance is 26 cm.
    """
    shape = (height, width) if channels is None else (height, width, channels)
    frame = np.zeros(shape, dtype=np.uint8)
    frame[top:bottom + 1, left:right + 1] = 255
    return frame


@pytest.fixture
def core_frame() -> np.ndarray:
    return make_core_frame()


@pytest.fixture
def blank_frame() -> np.ndarray:
    return np.zeros((FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8)


class FakeCapture:
    """cv2.VideoCapture look-alike returning (ok, frame) pairs."""

    def __init__(self, frames: List[Optional[np.ndarray]]):
        self.frames = list(frames)
        self.reads = 0

    def read(self):
        self.reads += 1
        if not self.frames:
            return False, None
        frame = self.frames.pop(0) if len(self.frames) > 1 else self.frames[0]
        return frame is not None, frame


class ManualScheduler:
    """Scheduler that records the callback instead of starting a thread."""

    def __init__(self):
        self.callback: Optional[Callable[[], object]] = None
        self.interval_s: Optional[float] = None
        self.handles: List["ManualHandle"] = []

    def schedule(self, callback, interval_s):
        self.callback = callback
        self.interval_s = interval_s
        handle = ManualHandle()
        self.handles.append(handle)
        return handle

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.handles and not self.handles[-1].cancelled:
                self.callback()


class ManualHandle:
    def __init__(self):
        self.cancelled = False
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.cancelled = True


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


# ============================================================================
# Assertion Helpers
# ============================================================================

def assert_unit_vector(vector: np.ndarray, tol: float = 1e-9) -> None:
    assert isinstance(vector, np.ndarray)
    assert vector.shape == (3,)
    assert abs(np.linalg.norm(vector) - 1.0) < tol


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two bearings, degrees."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)
