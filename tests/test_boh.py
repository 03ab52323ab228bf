"""
Unit tests for core_orient.orientation.boh module.

Tests:
- Clamping of BOH lines to their bands
- Active line selection by depth
- Angle of fit and per-line descriptors
- AC validation window
"""

import pytest

from core_orient.orientation.boh import (
    ActiveBOH,
    BOHReferenceModel,
    BOHSide,
    angle_of_fit,
    validate_angle_of_fit,
)
from core_orient.project_config import BOHConfig


class TestClamping:
    """Tests for BOH line clamping."""

    def test_defaults_at_bases(self, boh_model):
        assert boh_model.line1_angle == 0.0
        assert boh_model.line2_angle == 90.0

    def test_line1_clamped_high(self, boh_model):
        assert boh_model.set_line1(500.0) == 20.0
        assert boh_model.line1_angle == 20.0

    def test_line1_clamped_low(self, boh_model):
        boh_model.set_line1(-35.0)
        assert boh_model.line1_angle == -20.0

    def test_line2_clamped(self, boh_model):
        boh_model.set_line2(0.0)
        assert boh_model.line2_angle == 70.0

    def test_in_band_value_kept(self, boh_model):
        boh_model.set_line2(104.5)
        assert boh_model.line2_angle == 104.5

    def test_update_clamps_both(self, boh_model):
        boh_model.update(30.0, 200.0)
        assert (boh_model.line1_angle, boh_model.line2_angle) == (20.0, 110.0)

    def test_custom_band(self):
        model = BOHReferenceModel(BOHConfig(displacement_range=5.0))
        model.set_line1(12.0)
        assert model.line1_angle == 5.0
        assert model.band(2) == (85.0, 95.0)

    def test_unknown_line(self, boh_model):
        with pytest.raises(ValueError):
            boh_model.set_line(3, 10.0)

    def test_reset(self, boh_model):
        boh_model.update(10.0, 80.0)
        boh_model.reset()
        assert (boh_model.line1_angle, boh_model.line2_angle) == (0.0, 90.0)

    def test_state_is_a_snapshot(self, boh_model):
        state = boh_model.state
        state.line1_angle = 99.0
        assert boh_model.line1_angle == 0.0

    def test_visibility_and_interaction_flags(self, boh_model):
        boh_model.set_visibility(False)
        boh_model.set_interactive(False)
        state = boh_model.state
        assert state.visible is False
        assert state.interactive is False


class TestActiveBOH:
    """Tests for active_boh."""

    @pytest.mark.parametrize("depth, line", [
        (0.0, 1),
        (7.5, 1),
        (14.999, 1),
        (15.0, 2),
        (29.0, 2),
    ])
    def test_line_by_depth(self, boh_model, depth, line):
        assert boh_model.active_boh(depth).line == line

    def test_active_angle_follows_line(self, boh_model):
        boh_model.update(12.0, 95.0)
        assert boh_model.active_boh(3.0) == ActiveBOH(angle=12.0, line=1)
        assert boh_model.active_boh(20.0) == ActiveBOH(angle=95.0, line=2)


class TestAngleOfFit:
    """Tests for angle_of_fit."""

    def test_default_lines(self):
        fit = angle_of_fit(0.0, 90.0)
        assert fit.ac == pytest.approx(90.0)
        assert fit.convergence == pytest.approx(90.0)
        assert fit.line1.side == BOHSide.LEFT
        assert fit.line2.side == BOHSide.CENTER
        assert fit.relative_position == "one BOH line centered, the other left"

    def test_converging_lines(self):
        fit = angle_of_fit(100.0, 80.0)
        assert fit.ac == pytest.approx(20.0)
        assert fit.convergence == pytest.approx(-20.0)
        assert fit.line1.side == BOHSide.RIGHT
        assert fit.line2.side == BOHSide.LEFT
        assert fit.relative_position == "BOH1 right, BOH2 left"

    def test_same_side(self):
        fit = angle_of_fit(10.0, 70.0)
        assert fit.relative_position == "both BOH lines left"

    def test_radial_position(self):
        fit = angle_of_fit(0.0, 90.0, radius=3.175)
        assert fit.line1.radial_x == pytest.approx(3.175)
        assert fit.line1.radial_y == pytest.approx(0.0, abs=1e-12)
        assert fit.line2.radial_x == pytest.approx(0.0, abs=1e-12)
        assert fit.line2.radial_y == pytest.approx(3.175)

    def test_displacement_from_base(self, boh_model):
        boh_model.update(-7.0, 105.0)
        fit = boh_model.angle_of_fit()
        assert fit.line1.displacement == pytest.approx(-7.0)
        assert fit.line2.displacement == pytest.approx(15.0)
        assert fit.ac == pytest.approx(112.0)

    def test_to_dict(self):
        d = angle_of_fit(0.0, 90.0).to_dict()
        assert d['line2']['side'] == 'center'
        assert d['ac'] == pytest.approx(90.0)


class TestValidateAngleOfFit:
    """Tests for validate_angle_of_fit."""

    def test_within_default_window(self):
        assert validate_angle_of_fit(30.0) == (True, None)

    def test_too_large(self):
        valid, warning = validate_angle_of_fit(45.0)
        assert valid is False
        assert "too large" in warning

    def test_too_small(self):
        valid, warning = validate_angle_of_fit(5.0, min_ac=10.0)
        assert valid is False
        assert "too small" in warning

    def test_model_uses_configured_window(self, boh_model):
        assert boh_model.validate_fit() == (True, None)
        tight = BOHReferenceModel(BOHConfig(min_ac=0.0, max_ac=40.0))
        assert tight.validate_fit()[0] is False
