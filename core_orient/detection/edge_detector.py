"""
Real-time core edge detection and auto-capture.

Each tick analyses one camera frame:
1. Convert to gray = (r + g + b) / 3 in a scratch buffer sized to the frame
   (reallocated only when the frame size changes)
2. Edge map: forward-difference gradient magnitude > threshold, interior
   pixels only
3. Pattern checks: vertical edges in the columns at 25% / 75% width,
   curved edges in the rows at 20% / 80% height, centeredness
4. Apparent width from a 40-row band around the middle row, distance by
   the pinhole relation distance ~ 1 / width, calibrated so the core fills
   40% of the frame at the target distance
5. Capture once when ready, confident and within tolerance of the target
   distance

Frames are numpy arrays, (H, W) gray or (H, W, C) with C >= 3 (channel
order does not matter for the gray mean, so BGR frames from OpenCV work).
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from core_orient.errors import FrameUnavailableError
from core_orient.project_config import DetectorConfig

logger = logging.getLogger(__name__)

# Reported distance when a frame could not be analysed
NO_DETECTION_DISTANCE_CM = 999.0

# Fraction of a sampled column / row that must be edge pixels
EDGE_COVERAGE = 0.3
# Half-width of the central band used for centeredness, as a fraction of W
CENTER_BAND = 0.3
# Rows scanned above and below the middle row for the apparent width
WIDTH_BAND_HALF_ROWS = 20

CONFIDENCE_VERTICAL = 0.4
CONFIDENCE_CURVED = 0.3
CONFIDENCE_CENTERED = 0.3


class DetectorState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    CAPTURED = "captured"


@dataclass(frozen=True)
class EdgeDetectionResult:
    """Outcome of analysing one frame.

    Attributes:
        is_ready: Confidence and apparent width are sufficient for capture
        confidence: 0.4 * vertical + 0.3 * curved + 0.3 * centeredness
        has_vertical_edges: Core sides found in a sampled column
        has_curved_edges: Core ends found in a sampled row
        centeredness: Fraction of edge pixels near the frame centre
        estimated_distance_cm: Camera-to-core distance estimate
        apparent_width_px: Distance between left and right edges
        left_edge_x, right_edge_x: Edge columns in the middle band
        edge_alignment_quality: Agreement of the edges with the expected
            virtual cylinder edges, [0, 1]
    """
    is_ready: bool
    confidence: float
    has_vertical_edges: bool
    has_curved_edges: bool
    centeredness: float
    estimated_distance_cm: float
    apparent_width_px: int
    left_edge_x: int
    right_edge_x: int
    edge_alignment_quality: float

    @classmethod
    def zero(cls) -> 'EdgeDetectionResult':
        """Result reported when a frame could not be analysed."""
        return cls(
            is_ready=False,
            confidence=0.0,
            has_vertical_edges=False,
            has_curved_edges=False,
            centeredness=0.0,
            estimated_distance_cm=NO_DETECTION_DISTANCE_CM,
            apparent_width_px=0,
            left_edge_x=0,
            right_edge_x=0,
            edge_alignment_quality=0.0,
        )

    def to_dict(self) -> dict:
        return {
            'is_ready': self.is_ready,
            'confidence': self.confidence,
            'has_vertical_edges': self.has_vertical_edges,
            'has_curved_edges': self.has_curved_edges,
            'centeredness': self.centeredness,
            'estimated_distance_cm': self.estimated_distance_cm,
            'apparent_width_px': self.apparent_width_px,
            'left_edge_x': self.left_edge_x,
            'right_edge_x': self.right_edge_x,
            'edge_alignment_quality': self.edge_alignment_quality,
        }


class _FrameBuffers:
    """Scratch arrays reused across ticks."""

    def __init__(self, height: int, width: int):
        if height < 3 or width < 3:
            raise ValueError(f"Frame must be at least 3x3, got {width}x{height}")
        self.height = height
        self.width = width
        self.gray = np.zeros((height, width), dtype=np.float32)
        self.edges = np.zeros((height, width), dtype=bool)
        self.grad_x = np.zeros((height - 2, width - 2), dtype=np.float32)
        self.grad_y = np.zeros((height - 2, width - 2), dtype=np.float32)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width


class CylinderEdgeDetector:
    """Polls a frame source and fires a one-shot capture at the target distance.

    Lifecycle: IDLE --start()--> ARMED --capture--> CAPTURED --reset()--> IDLE.
    Ticks outside ARMED are no-ops, so the capture callback fires at most
    once per arming. Ticks never raise; a frame that cannot be read or
    analysed produces `EdgeDetectionResult.zero()`.

    Example:
        detector = CylinderEdgeDetector()
        detector.start(cv2.VideoCapture(0), on_ready=take_photo,
                       scheduler=ThreadScheduler())
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()
        self._state = DetectorState.IDLE
        self._state_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._buffers: Optional[_FrameBuffers] = None
        self._expected_edges: Optional[Tuple[float, float]] = None

        self._frame_source: Any = None
        self._on_ready: Optional[Callable[[], Any]] = None
        self._on_distance_update: Optional[Callable[[float], Any]] = None
        self._on_edge_update: Optional[Callable[[int, int, float], Any]] = None
        self._handle = None
        self.last_result: Optional[EdgeDetectionResult] = None

    @property
    def state(self) -> DetectorState:
        return self._state

    def set_expected_edges(self, left_x: float, right_x: float) -> None:
        """Virtual cylinder edges (pixels) used for the alignment quality."""
        if right_x <= left_x:
            raise ValueError(f"Right edge must be right of left edge ({left_x}, {right_x})")
        self._expected_edges = (float(left_x), float(right_x))

    def expected_edges(self, width: int) -> Tuple[float, float]:
        if self._expected_edges is not None:
            return self._expected_edges
        half = width * self.config.reference_width_fraction / 2.0
        return width / 2.0 - half, width / 2.0 + half

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        frame_source: Any,
        on_ready: Callable[[], Any],
        on_distance_update: Optional[Callable[[float], Any]] = None,
        on_edge_update: Optional[Callable[[int, int, float], Any]] = None,
        scheduler=None,
    ) -> None:
        """Arm the detector.

        Args:
            frame_source: Callable returning a frame, or an object whose
                `read()` returns a frame or an (ok, frame) pair
            on_ready: Called once when the capture condition is met
            on_distance_update: Called every tick with the distance estimate
            on_edge_update: Called every tick with (left_x, right_x, quality)
            scheduler: Object with `schedule(callback, interval_s)`; when
                omitted the host drives `tick()` itself
        """
        if not callable(frame_source) and not callable(getattr(frame_source, "read", None)):
            raise TypeError("frame_source must be callable or have a read() method")

        self.stop()

        self._frame_source = frame_source
        self._on_ready = on_ready
        self._on_distance_update = on_distance_update
        self._on_edge_update = on_edge_update
        if self._buffers is None:
            # Until the first frame arrives
            self._buffers = _FrameBuffers(self.config.frame_height, self.config.frame_width)
        self.last_result = None

        with self._state_lock:
            self._state = DetectorState.ARMED

        if scheduler is not None:
            self._handle = scheduler.schedule(self.tick, self.config.interval_ms / 1000.0)

        logger.info(
            "Detection started: target %.1f +/- %.1f cm",
            self.config.target_distance_cm, self.config.distance_tolerance_cm,
        )

    def stop(self) -> None:
        """Stop polling. An armed detector returns to IDLE."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
        with self._state_lock:
            if self._state == DetectorState.ARMED:
                self._state = DetectorState.IDLE
                logger.info("Detection stopped")

    def reset(self) -> None:
        """Clear the capture guard; the host re-arms with start()."""
        self.stop()
        with self._state_lock:
            self._state = DetectorState.IDLE

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self) -> Optional[EdgeDetectionResult]:
        """Analyse one frame; returns None when skipped (not armed or busy)."""
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("Tick skipped, previous tick still running")
            return None
        try:
            if self._state != DetectorState.ARMED:
                return None

            try:
                result = self.analyze_frame(self._read_frame())
            except FrameUnavailableError as e:
                logger.warning("Frame unavailable: %s", e)
                result = EdgeDetectionResult.zero()
            except Exception:
                logger.exception("Frame analysis failed")
                result = EdgeDetectionResult.zero()

            self.last_result = result
            self._notify(self._on_distance_update, result.estimated_distance_cm)
            self._notify(self._on_edge_update, result.left_edge_x, result.right_edge_x,
                         result.edge_alignment_quality)

            logger.debug(
                "Distance %.1f cm | width %d px | confidence %.2f",
                result.estimated_distance_cm, result.apparent_width_px, result.confidence,
            )

            if self._should_capture(result):
                self._capture(result)
            return result
        finally:
            self._tick_lock.release()

    def _should_capture(self, result: EdgeDetectionResult) -> bool:
        in_range = abs(result.estimated_distance_cm - self.config.target_distance_cm) \
            <= self.config.distance_tolerance_cm
        return result.is_ready and result.confidence > self.config.ready_confidence and in_range

    def _capture(self, result: EdgeDetectionResult) -> None:
        with self._state_lock:
            if self._state != DetectorState.ARMED:
                return
            self._state = DetectorState.CAPTURED
            handle, self._handle = self._handle, None

        if handle is not None:
            handle.cancel()

        logger.info("Core detected at %.1f cm, capturing", result.estimated_distance_cm)
        self._notify(self._on_ready)

    @staticmethod
    def _notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Detector callback %r raised", callback)

    def _read_frame(self) -> NDArray:
        source = self._frame_source
        if source is None:
            raise FrameUnavailableError("no frame source")

        reader = getattr(source, "read", None)
        value = reader() if callable(reader) else source()

        if isinstance(value, tuple) and len(value) == 2:
            ok, frame = value
            if not ok:
                frame = None
        else:
            frame = value

        if frame is None:
            raise FrameUnavailableError("frame source returned no frame")
        return np.asarray(frame)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def _load_gray(self, frame: NDArray) -> _FrameBuffers:
        if frame.ndim == 3 and frame.shape[2] == 1:
            frame = frame[:, :, 0]
        if frame.ndim not in (2, 3) or (frame.ndim == 3 and frame.shape[2] < 3):
            raise ValueError(f"Unsupported frame shape {frame.shape}")

        shape = frame.shape[:2]
        buffers = self._buffers
        if buffers is None or buffers.shape != shape:
            logger.debug("Allocating frame buffers %dx%d", shape[1], shape[0])
            buffers = self._buffers = _FrameBuffers(*shape)

        if frame.ndim == 2:
            buffers.gray[...] = frame
        else:
            np.sum(frame[:, :, :3], axis=2, dtype=np.float32, out=buffers.gray)
            buffers.gray /= 3.0
        return buffers

    def _edge_map(self, buffers: _FrameBuffers) -> NDArray[np.bool_]:
        gray = buffers.gray
        center = gray[1:-1, 1:-1]

        np.subtract(center, gray[1:-1, 2:], out=buffers.grad_x)
        np.subtract(center, gray[2:, 1:-1], out=buffers.grad_y)
        np.square(buffers.grad_x, out=buffers.grad_x)
        np.square(buffers.grad_y, out=buffers.grad_y)
        buffers.grad_x += buffers.grad_y

        edges = buffers.edges
        edges.fill(False)
        threshold = self.config.gradient_threshold
        np.greater(buffers.grad_x, threshold * threshold, out=edges[1:-1, 1:-1])
        return edges

    @staticmethod
    def _has_vertical_edges(edges: NDArray[np.bool_]) -> bool:
        height, width = edges.shape
        columns = (int(width * 0.25), int(width * 0.75))
        return any(np.count_nonzero(edges[:, c]) > height * EDGE_COVERAGE for c in columns)

    @staticmethod
    def _has_curved_edges(edges: NDArray[np.bool_]) -> bool:
        height, width = edges.shape
        rows = (int(height * 0.2), int(height * 0.8))
        return any(np.count_nonzero(edges[r, :]) > width * EDGE_COVERAGE for r in rows)

    @staticmethod
    def _centeredness(edges: NDArray[np.bool_]) -> float:
        width = edges.shape[1]
        per_column = np.count_nonzero(edges, axis=0)
        total = int(per_column.sum())
        if total == 0:
            return 0.0
        offsets = np.abs(np.arange(width) - width / 2.0)
        centered = int(per_column[offsets < width * CENTER_BAND].sum())
        return centered / total

    @staticmethod
    def _apparent_width(edges: NDArray[np.bool_]) -> Tuple[int, int, int]:
        height = edges.shape[0]
        middle = height // 2
        band = edges[max(0, middle - WIDTH_BAND_HALF_ROWS):min(height, middle + WIDTH_BAND_HALF_ROWS)]
        columns = np.flatnonzero(band.any(axis=0))
        if columns.size == 0:
            return 0, 0, 0
        left, right = int(columns[0]), int(columns[-1])
        width = right - left
        if width <= 0:
            return 0, left, right
        return width, left, right

    def _alignment_quality(self, width_px: int, left: int, right: int, frame_width: int) -> float:
        if width_px <= 0:
            return 0.0
        exp_left, exp_right = self.expected_edges(frame_width)
        half_width = (exp_right - exp_left) / 2.0
        mean_offset = (abs(left - exp_left) + abs(right - exp_right)) / 2.0
        return float(np.clip(1.0 - mean_offset / half_width, 0.0, 1.0))

    def analyze_frame(self, frame: NDArray) -> EdgeDetectionResult:
        """Analyse one frame without touching the capture state.

        Raises:
            ValueError: If the frame shape is not a supported image layout
        """
        frame = np.asarray(frame)
        buffers = self._load_gray(frame)
        edges = self._edge_map(buffers)
        frame_width = buffers.width

        has_vertical = self._has_vertical_edges(edges)
        has_curved = self._has_curved_edges(edges)
        centeredness = self._centeredness(edges)
        width_px, left, right = self._apparent_width(edges)

        reference_width = frame_width * self.config.reference_width_fraction
        distance = self.config.target_distance_cm * reference_width / max(width_px, 1)

        confidence = centeredness * CONFIDENCE_CENTERED
        if has_vertical:
            confidence += CONFIDENCE_VERTICAL
        if has_curved:
            confidence += CONFIDENCE_CURVED

        is_ready = (confidence > self.config.ready_confidence
                    and width_px > frame_width * self.config.min_width_fraction)

        return EdgeDetectionResult(
            is_ready=is_ready,
            confidence=confidence,
            has_vertical_edges=has_vertical,
            has_curved_edges=has_curved,
            centeredness=centeredness,
            estimated_distance_cm=distance,
            apparent_width_px=width_px,
            left_edge_x=left,
            right_edge_x=right,
            edge_alignment_quality=self._alignment_quality(width_px, left, right, frame_width),
        )
