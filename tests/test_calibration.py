"""
Tests for calibration modules.

Test Coverage:
- Parameter validation and factory presets
- YAML calibration files: load, partial override, save
- Distortion: zero-coefficient identity, hand-computed radial/tangential values
- Depth-to-color mapping: factory center scenario, synthetic linear model
"""

import numpy as np
import pytest


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def factory_model():
    """Factory-calibrated camera model."""
    from kinreg.calibration.params import CameraModel

    return CameraModel.factory_default()


@pytest.fixture
def linear_model():
    """Synthetic model whose mapping reduces to a linear scaling."""
    from kinreg.calibration.params import (
        CameraModel,
        ColorCameraParams,
        IrCameraParams,
        POLY_TERMS,
    )

    ir = IrCameraParams(
        fx=365.0, fy=365.0, cx=256.0, cy=212.0,
        k1=0.0, k2=0.0, k3=0.0, p1=0.0, p2=0.0,
        mq=0.01,
    )
    coefficients = {f"{axis}_{term}": 0.0 for axis in ("mx", "my") for term in POLY_TERMS}
    coefficients["mx_x1y0"] = 1.0
    coefficients["my_x0y1"] = 1.0
    color = ColorCameraParams(
        fx=1000.0, fy=1000.0, cx=960.0, cy=540.0,
        shift_d=1.0, shift_m=0.0,
        mq=0.01,
        **coefficients,
    )
    return CameraModel(ir=ir, color=color)


# =============================================================================
# Test Parameters
# =============================================================================

class TestResolution:
    """Tests for Resolution value object."""

    def test_size_and_shape(self):
        """Test size and numpy shape."""
        from kinreg.calibration.params import DEPTH_RESOLUTION, COLOR_RESOLUTION

        assert DEPTH_RESOLUTION.size == 512 * 424 == 217088
        assert DEPTH_RESOLUTION.shape == (424, 512)
        assert COLOR_RESOLUTION.shape == (1080, 1920)

    def test_contains(self):
        """Test grid membership."""
        from kinreg.calibration.params import DEPTH_RESOLUTION

        assert DEPTH_RESOLUTION.contains(0, 0)
        assert DEPTH_RESOLUTION.contains(511, 423)
        assert not DEPTH_RESOLUTION.contains(512, 0)
        assert not DEPTH_RESOLUTION.contains(0, -1)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1), (1.5, 10), (True, 10)])
    def test_invalid_dimensions(self, width, height):
        """Test non-positive or non-integer dimensions are rejected."""
        from kinreg.calibration.params import Resolution
        from kinreg.exceptions import InvalidArgumentError

        with pytest.raises(InvalidArgumentError):
            Resolution(width, height)


class TestCameraParams:
    """Tests for IrCameraParams / ColorCameraParams / CameraModel."""

    def test_factory_values(self, factory_model):
        """Test factory presets are loaded."""
        assert factory_model.ir.fx == pytest.approx(351.447)
        assert factory_model.ir.k2 == pytest.approx(-0.272574991)
        assert factory_model.color.cx == pytest.approx(957.425)
        assert factory_model.color.shift_m == 52.0
        assert factory_model.overlap_rows == (26, 389)
        assert factory_model.ir.has_distortion

    def test_params_immutable(self, factory_model):
        """Test parameter bundles are frozen."""
        from dataclasses import FrozenInstanceError

        with pytest.raises(FrozenInstanceError):
            factory_model.ir.fx = 1.0
        with pytest.raises(FrozenInstanceError):
            factory_model.overlap_rows = (0, 10)

    def test_coefficient_order(self, factory_model):
        """Test polynomial coefficients follow POLY_TERMS."""
        mx = factory_model.color.mx_coefficients
        my = factory_model.color.my_coefficients

        assert len(mx) == len(my) == 10
        assert mx[0] == factory_model.color.mx_x3y0
        assert mx[-1] == factory_model.color.mx_x0y0
        assert my[8] == factory_model.color.my_x0y1

    @pytest.mark.parametrize("field_name", ["fx", "fy", "mq"])
    def test_ir_zero_divisor_rejected(self, factory_model, field_name):
        """Test zero focal length / scale is rejected."""
        from dataclasses import replace
        from kinreg.exceptions import InvalidArgumentError

        with pytest.raises(InvalidArgumentError):
            replace(factory_model.ir, **{field_name: 0.0})

    def test_color_zero_shift_d_rejected(self, factory_model):
        """Test shift_d must be non-zero."""
        from dataclasses import replace
        from kinreg.exceptions import InvalidArgumentError

        with pytest.raises(InvalidArgumentError):
            replace(factory_model.color, shift_d=0.0)

    def test_non_finite_rejected(self, factory_model):
        """Test NaN coefficients are rejected."""
        from dataclasses import replace
        from kinreg.exceptions import InvalidArgumentError

        with pytest.raises(InvalidArgumentError):
            replace(factory_model.ir, k1=float("nan"))

    def test_invalid_argument_is_value_error(self, factory_model):
        """Test InvalidArgumentError can be caught as ValueError."""
        from dataclasses import replace

        with pytest.raises(ValueError):
            replace(factory_model.color, fx=0.0)

    @pytest.mark.parametrize("rows", [(0, 425), (30, 30), (-1, 100), (200, 100)])
    def test_invalid_overlap_rows(self, factory_model, rows):
        """Test overlap band must lie inside the depth grid."""
        from dataclasses import replace
        from kinreg.exceptions import InvalidArgumentError

        with pytest.raises(InvalidArgumentError):
            replace(factory_model, overlap_rows=rows)

    def test_full_grid_overlap_allowed(self, factory_model):
        """Test the band may span the whole grid."""
        from dataclasses import replace

        model = replace(factory_model, overlap_rows=(0, 424))
        assert model.overlap_rows == (0, 424)


class TestCalibrationFiles:
    """Tests for CameraModel dict / YAML (de)serialization."""

    def test_from_empty_dict_is_factory(self, factory_model):
        """Test missing keys fall back to factory presets."""
        from kinreg.calibration.params import CameraModel

        assert CameraModel.from_dict({}) == factory_model

    def test_partial_override(self, factory_model):
        """Test overriding a single coefficient."""
        from kinreg.calibration.params import CameraModel

        model = CameraModel.from_dict({"color": {"shift_m": 0.0}, "overlap_rows": [0, 424]})

        assert model.color.shift_m == 0.0
        assert model.color.shift_d == factory_model.color.shift_d
        assert model.ir == factory_model.ir
        assert model.overlap_rows == (0, 424)

    def test_unknown_keys_rejected(self):
        """Test typos in calibration files are reported."""
        from kinreg.calibration.params import CameraModel
        from kinreg.exceptions import CalibrationError

        with pytest.raises(CalibrationError):
            CameraModel.from_dict({"ir": {"fxx": 1.0}})
        with pytest.raises(CalibrationError):
            CameraModel.from_dict({"lens": {}})

    def test_non_numeric_rejected(self):
        """Test non-numeric values are reported."""
        from kinreg.calibration.params import CameraModel
        from kinreg.exceptions import CalibrationError

        with pytest.raises(CalibrationError):
            CameraModel.from_dict({"ir": {"fx": "wide"}})
        with pytest.raises(CalibrationError):
            CameraModel.from_dict({"color": [1, 2, 3]})

    def test_yaml_save_and_load(self, tmp_path, linear_model):
        """Test a model written to YAML loads back unchanged."""
        from kinreg.calibration.params import CameraModel

        path = tmp_path / "calib" / "sensor.yaml"
        linear_model.save(path)

        assert path.exists()
        assert CameraModel.from_yaml(path) == linear_model

    def test_yaml_partial_file(self, tmp_path, factory_model):
        """Test a YAML file listing only some values."""
        from kinreg.calibration.params import CameraModel

        path = tmp_path / "partial.yaml"
        path.write_text("ir:\n  k1: 0.0\n  k2: 0.0\n  k3: 0.0\n")

        model = CameraModel.from_yaml(path)

        assert not model.ir.has_distortion
        assert model.color == factory_model.color

    def test_yaml_empty_file(self, tmp_path, factory_model):
        """Test an empty file yields the factory model."""
        from kinreg.calibration.params import CameraModel

        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert CameraModel.from_yaml(path) == factory_model

    def test_yaml_missing_file(self, tmp_path):
        """Test missing file raises FileNotFoundError."""
        from kinreg.calibration.params import CameraModel

        with pytest.raises(FileNotFoundError):
            CameraModel.from_yaml(tmp_path / "nope.yaml")

    def test_yaml_malformed_file(self, tmp_path):
        """Test invalid YAML raises CalibrationError."""
        from kinreg.calibration.params import CameraModel
        from kinreg.exceptions import CalibrationError

        path = tmp_path / "broken.yaml"
        path.write_text("ir: [unclosed\n")

        with pytest.raises(CalibrationError):
            CameraModel.from_yaml(path)


# =============================================================================
# Test DistortionCorrector
# =============================================================================

class TestDistortionCorrector:
    """Tests for the forward lens distortion model."""

    def test_zero_distortion_is_identity(self, linear_model):
        """Test all grid points map to themselves without distortion."""
        from kinreg.calibration.distortion import DistortionCorrector

        corrector = DistortionCorrector(linear_model.ir)
        ys, xs = np.mgrid[0:424, 0:512]

        x, y = corrector.distort(xs.ravel(), ys.ravel())

        np.testing.assert_allclose(x, xs.ravel(), atol=1e-3)
        np.testing.assert_allclose(y, ys.ravel(), atol=1e-3)

    def test_principal_point_fixed(self, factory_model):
        """Test the principal point is not moved by distortion."""
        from kinreg.calibration.distortion import DistortionCorrector

        corrector = DistortionCorrector(factory_model.ir)
        x, y = corrector.distort(factory_model.ir.cx, factory_model.ir.cy)

        assert x == pytest.approx(factory_model.ir.cx, abs=1e-4)
        assert y == pytest.approx(factory_model.ir.cy, abs=1e-4)

    def test_radial_hand_computed(self, linear_model):
        """Test a pure k1 distortion against a hand-computed value."""
        from dataclasses import replace
        from kinreg.calibration.distortion import DistortionCorrector

        ir = replace(linear_model.ir, k1=0.1)
        corrector = DistortionCorrector(ir)

        # dx = (621 - 256) / 365 = 1, dy = 0 -> r2 = 1, kr = 1.1
        x, y = corrector.distort(621.0, 212.0)

        assert x == pytest.approx(256.0 + 365.0 * 1.1, rel=1e-6)
        assert y == pytest.approx(212.0, abs=1e-4)

    def test_tangential_hand_computed(self, linear_model):
        """Test p1/p2 terms against hand-computed values."""
        from dataclasses import replace
        from kinreg.calibration.distortion import DistortionCorrector

        ir = replace(linear_model.ir, p1=0.01, p2=0.02)
        corrector = DistortionCorrector(ir)

        # dx = dy = 1 -> r2 = 2, dxdy2 = 2
        x, y = corrector.distort(621.0, 577.0)
        expected_x = 365.0 * (1.0 + 0.02 * (2 + 2) + 0.01 * 2) + 256.0
        expected_y = 365.0 * (1.0 + 0.01 * (2 + 2) + 0.02 * 2) + 212.0

        assert x == pytest.approx(expected_x, rel=1e-6)
        assert y == pytest.approx(expected_y, rel=1e-6)

    def test_scalar_matches_array(self, factory_model):
        """Test scalar and vectorized evaluation agree bit for bit."""
        from kinreg.calibration.distortion import DistortionCorrector

        corrector = DistortionCorrector(factory_model.ir)
        xs = np.array([0, 100, 511], dtype=np.float32)
        ys = np.array([0, 300, 423], dtype=np.float32)

        ax, ay = corrector.distort(xs, ys)
        for i in range(3):
            sx, sy = corrector(xs[i], ys[i])
            assert sx == ax[i]
            assert sy == ay[i]

    def test_float32_output(self, factory_model):
        """Test evaluation stays in single precision."""
        from kinreg.calibration.distortion import DistortionCorrector

        x, y = DistortionCorrector(factory_model.ir).distort(np.arange(4), np.arange(4))

        assert x.dtype == np.float32
        assert y.dtype == np.float32


# =============================================================================
# Test DepthColorMapper
# =============================================================================

class TestDepthColorMapper:
    """Tests for the polynomial depth-to-color mapping."""

    def test_factory_center_near_color_principal_point(self, factory_model):
        """Test the depth principal point lands near the color principal point."""
        from kinreg.calibration.mapping import DepthColorMapper

        mapper = DepthColorMapper(factory_model.ir, factory_model.color)
        col, row = mapper.to_color_pixel(factory_model.ir.cx, factory_model.ir.cy)

        assert abs(col - 957.425) <= 5.0
        assert abs(row - 540.0) <= 5.0

    def test_factory_center_pixel(self, factory_model):
        """Test the grid pixel nearest the principal point."""
        from kinreg.calibration.mapping import DepthColorMapper

        mapper = DepthColorMapper(factory_model.ir, factory_model.color)
        col, row = mapper.to_color_pixel(256, 208)

        assert abs(col - 957.425) <= 5.0
        assert abs(row - 540.0) <= 5.0

    def test_linear_model_golden_values(self, linear_model):
        """Test the synthetic model reduces to a linear scaling."""
        from kinreg.calibration.mapping import DepthColorMapper

        mapper = DepthColorMapper(linear_model.ir, linear_model.color)
        xs = np.array([0.0, 100.0, 256.0, 511.0])
        ys = np.array([0.0, 200.0, 212.0, 423.0])

        rx, ry = mapper.depth_to_color(xs, ys)

        # rx = (x - 256) * 0.01 / (1000 * 0.01), ry = (y - 212) * 0.01 / 0.01 + 540
        np.testing.assert_allclose(rx, (xs - 256.0) / 1000.0, rtol=1e-5, atol=1e-7)
        np.testing.assert_allclose(ry, ys + 328.0, rtol=1e-6)

    def test_single_cubic_term(self, linear_model):
        """Test a lone x^2*y coefficient is applied to the right monomial."""
        from dataclasses import replace
        from kinreg.calibration.mapping import DepthColorMapper

        color = replace(linear_model.color, mx_x1y0=0.0, mx_x2y1=1.0)
        mapper = DepthColorMapper(linear_model.ir, color)

        # x = (356 - 256) * 0.01 = 1, y = (412 - 212) * 0.01 = 2 -> wx = 2
        rx, _ = mapper.depth_to_color(356.0, 412.0)

        assert rx == pytest.approx(2.0 / 10.0, rel=1e-5)

    def test_shift_subtracted(self, linear_model):
        """Test shift_m / shift_d offsets the normalized x coordinate."""
        from dataclasses import replace
        from kinreg.calibration.mapping import DepthColorMapper

        color = replace(linear_model.color, shift_m=52.0, shift_d=863.0)
        mapper = DepthColorMapper(linear_model.ir, color)

        rx, _ = mapper.depth_to_color(256.0, 212.0)

        assert rx == pytest.approx(-52.0 / 863.0, rel=1e-6)
