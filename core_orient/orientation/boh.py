"""
BOH (base-of-hole) reference lines.

Two BOH lines run along the core surface, one per half of a 30 cm scene:
line 1 covers depths [0, 15) cm, line 2 covers [15, 30] cm. The operator
drags each line within +-20 deg of its base angle; beta of a structure is
measured from the line that covers its depth.

The angle of fit (AC) between the two lines is reported for operator
feedback only and does not enter the orientation transform.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from core_orient.geometry.primitives import DEFAULT_CORE_RADIUS_CM
from core_orient.project_config import BOHConfig

logger = logging.getLogger(__name__)

# Side thresholds around the front of the core (90 deg), degrees
LEFT_OF_CENTER_BELOW = 85.0
RIGHT_OF_CENTER_ABOVE = 95.0


class BOHSide(Enum):
    """Qualitative position of a BOH line as seen by the operator."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class BOHPosition:
    """Descriptive position of one BOH line.

    Attributes:
        angle: Current angular position, degrees
        displacement: Offset from the line's base angle, degrees
        side: Left/center/right descriptor
        radial_x, radial_y: Location on the core circumference (cm)
    """
    angle: float
    displacement: float
    side: BOHSide
    radial_x: float
    radial_y: float

    def to_dict(self) -> dict:
        return {
            'angle': self.angle,
            'displacement': self.displacement,
            'side': self.side.value,
            'radial_x': self.radial_x,
            'radial_y': self.radial_y,
        }


@dataclass(frozen=True)
class AngleOfFit:
    """Angle of fit (AC) between the two BOH lines.

    Attributes:
        ac: |line2 - line1|, degrees
        convergence: line2 - line1 (positive = diverging), degrees
        line1, line2: Per-line position descriptors
        relative_position: Human-readable summary of both sides
    """
    ac: float
    convergence: float
    line1: BOHPosition
    line2: BOHPosition
    relative_position: str

    def to_dict(self) -> dict:
        return {
            'ac': self.ac,
            'convergence': self.convergence,
            'line1': self.line1.to_dict(),
            'line2': self.line2.to_dict(),
            'relative_position': self.relative_position,
        }


@dataclass(frozen=True)
class ActiveBOH:
    """BOH line selected for a given depth."""
    angle: float
    line: int  # 1 or 2


@dataclass
class BOHState:
    """Mutable operator state of the two BOH lines."""
    line1_angle: float = 0.0
    line2_angle: float = 90.0
    visible: bool = True
    interactive: bool = True


def classify_side(angle: float) -> BOHSide:
    """Left/center/right descriptor of a BOH angle."""
    if angle < LEFT_OF_CENTER_BELOW:
        return BOHSide.LEFT
    if angle > RIGHT_OF_CENTER_ABOVE:
        return BOHSide.RIGHT
    return BOHSide.CENTER


def boh_position(angle: float, base: float, radius: float = DEFAULT_CORE_RADIUS_CM) -> BOHPosition:
    """Describe one BOH line at `angle` relative to its `base`."""
    rad = math.radians(angle)
    return BOHPosition(
        angle=angle,
        displacement=angle - base,
        side=classify_side(angle),
        radial_x=radius * math.cos(rad),
        radial_y=radius * math.sin(rad),
    )


def _describe_relative(boh1: BOHPosition, boh2: BOHPosition) -> str:
    if boh1.side == boh2.side:
        return f"both BOH lines {boh1.side.value}"
    if boh1.side == BOHSide.CENTER or boh2.side == BOHSide.CENTER:
        other = boh2 if boh1.side == BOHSide.CENTER else boh1
        return f"one BOH line centered, the other {other.side.value}"
    return f"BOH1 {boh1.side.value}, BOH2 {boh2.side.value}"


def angle_of_fit(
    line1_angle: float,
    line2_angle: float,
    radius: float = DEFAULT_CORE_RADIUS_CM,
    bases: Tuple[float, float] = (0.0, 90.0),
) -> AngleOfFit:
    """Angle of fit between two BOH lines.

    Args:
        line1_angle: BOH line 1 position, degrees
        line2_angle: BOH line 2 position, degrees
        radius: Core radius used for the radial positions
        bases: Base angles the displacements are measured from

    Returns:
        AngleOfFit with AC, signed convergence and per-line descriptors
    """
    boh1 = boh_position(line1_angle, bases[0], radius)
    boh2 = boh_position(line2_angle, bases[1], radius)
    convergence = line2_angle - line1_angle

    return AngleOfFit(
        ac=abs(convergence),
        convergence=convergence,
        line1=boh1,
        line2=boh2,
        relative_position=_describe_relative(boh1, boh2),
    )


def validate_angle_of_fit(ac: float, min_ac: float = 0.0,
                          max_ac: float = 40.0) -> Tuple[bool, Optional[str]]:
    """Check an AC value against the recommended window.

    Returns:
        (valid, warning) where warning is None for a valid AC
    """
    if ac < min_ac:
        return False, f"AC too small ({ac:.2f} deg), recommended minimum {min_ac:g} deg"
    if ac > max_ac:
        return False, f"AC too large ({ac:.2f} deg), recommended maximum {max_ac:g} deg"
    return True, None


class BOHReferenceModel:
    """Operator-adjustable pair of BOH lines.

    Every mutation clamps the requested angle into the line's band
    [base - range, base + range]; out-of-band input never reaches the state.

    Example:
        model = BOHReferenceModel()
        model.set_line1(500)        # clamped to 20
        model.active_boh(7.5)       # ActiveBOH(angle=20.0, line=1)
    """

    def __init__(self, config: Optional[BOHConfig] = None,
                 radius: float = DEFAULT_CORE_RADIUS_CM):
        self.config = config or BOHConfig()
        self.radius = radius
        self._state = BOHState(
            line1_angle=self.config.line1_base,
            line2_angle=self.config.line2_base,
        )

    @property
    def state(self) -> BOHState:
        """Snapshot of the current state."""
        return replace(self._state)

    @property
    def line1_angle(self) -> float:
        return self._state.line1_angle

    @property
    def line2_angle(self) -> float:
        return self._state.line2_angle

    def base(self, line: int) -> float:
        if line == 1:
            return self.config.line1_base
        if line == 2:
            return self.config.line2_base
        raise ValueError(f"BOH line must be 1 or 2, got {line}")

    def band(self, line: int) -> Tuple[float, float]:
        """Allowed (min, max) angle for a line."""
        base = self.base(line)
        return base - self.config.displacement_range, base + self.config.displacement_range

    def clamp(self, line: int, angle: float) -> float:
        low, high = self.band(line)
        clamped = max(low, min(high, float(angle)))
        if clamped != angle:
            logger.debug("BOH%d angle %.2f clamped to %.2f", line, angle, clamped)
        return clamped

    def set_line(self, line: int, angle: float) -> float:
        """Move one line; returns the stored (clamped) angle."""
        clamped = self.clamp(line, angle)
        if line == 1:
            self._state.line1_angle = clamped
        else:
            self._state.line2_angle = clamped
        return clamped

    def set_line1(self, angle: float) -> float:
        return self.set_line(1, angle)

    def set_line2(self, angle: float) -> float:
        return self.set_line(2, angle)

    def update(self, line1_angle: float, line2_angle: float) -> None:
        """Move both lines at once."""
        self.set_line1(line1_angle)
        self.set_line2(line2_angle)

    def reset(self) -> None:
        """Return both lines to their base angles."""
        self._state.line1_angle = self.config.line1_base
        self._state.line2_angle = self.config.line2_base

    def set_visibility(self, visible: bool) -> None:
        self._state.visible = visible

    def set_interactive(self, interactive: bool) -> None:
        self._state.interactive = interactive

    def active_boh(self, depth_cm: float) -> ActiveBOH:
        """BOH line covering a scene depth.

        Args:
            depth_cm: Axial depth within the scene

        Returns:
            Line 1 for depth < split depth, line 2 otherwise
        """
        if depth_cm < self.config.split_depth_cm:
            return ActiveBOH(angle=self._state.line1_angle, line=1)
        return ActiveBOH(angle=self._state.line2_angle, line=2)

    def angle_of_fit(self) -> AngleOfFit:
        return angle_of_fit(
            self._state.line1_angle,
            self._state.line2_angle,
            radius=self.radius,
            bases=(self.config.line1_base, self.config.line2_base),
        )

    def validate_fit(self) -> Tuple[bool, Optional[str]]:
        """Check the current AC against the configured window."""
        return validate_angle_of_fit(
            self.angle_of_fit().ac, self.config.min_ac, self.config.max_ac
        )
