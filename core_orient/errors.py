"""
Exception types raised by the orientation engine.

None of these is meant to be fatal to the host: geometry errors ask the
operator to re-pick points, and the frame detector converts its own
failures into zero-confidence results.
"""


class CoreOrientError(Exception):
    """Base class for all core_orient errors."""


class DegeneratePlaneError(CoreOrientError, ValueError):
    """Three picked points do not define a plane (collinear or duplicated)."""


class OffSurfaceError(CoreOrientError, ValueError):
    """A picked point does not lie on the lateral surface of the core."""

    def __init__(self, index: int, distance: float, radius: float, tolerance: float):
        self.index = index
        self.distance = distance
        self.radius = radius
        self.tolerance = tolerance
        super().__init__(
            f"Point {index + 1} is {distance:.3f} from the core axis, "
            f"expected {radius:.3f} +/- {tolerance:.3f}"
        )


class OutOfRangeAngleError(CoreOrientError, ValueError):
    """An angle lies outside the range allowed for it."""

    def __init__(self, name: str, value: float, low: float, high: float):
        self.name = name
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"{name} must be {low:g}..{high:g} deg (got {value:.2f} deg)")


class FrameUnavailableError(CoreOrientError):
    """The frame source had no image to analyse on this tick."""
