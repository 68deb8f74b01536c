"""
Camera Parameter Module.

This module holds the calibration constants for the two imagers of a
Kinect v2 style sensor: the infrared (depth) camera and the color camera.

Depth Camera:
=============
The depth camera is described by a pinhole model plus a Brown-Conrady lens
distortion:

    K_ir = | fx   0  cx |      radial:     k1, k2, k3
           |  0  fy  cy |      tangential: p1, p2
           |  0   0   1 |

and an extra scale ``mq`` that only enters the cross-sensor mapping.

Color Camera:
=============
The color camera carries ordinary intrinsics (fx, fy, cx, cy) but no
extrinsic matrix. The depth-to-color relation is instead expressed by two
reverse-engineered cubic polynomials in the normalized depth coordinate:

    wx = sum(mx_xiyj * x^i * y^j)    for i + j <= 3
    wy = sum(my_xiyj * x^i * y^j)

together with the shift terms ``shift_m`` / ``shift_d`` and a color scale
``mq``. These coefficients are factory presets; they cannot be used for a
matrix transformation and are not estimated by this package.

Sensor Geometry:
================
Depth frames are 512x424, color frames are 1920x1080. Only depth rows
26..388 are registered, the band in which both fields of view overlap.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np
import yaml

from ..exceptions import CalibrationError, InvalidArgumentError
from ..utils.config_loader import ConfigLoader


# Polynomial term order shared by both output axes: x^3, y^3, x^2y, xy^2,
# x^2, y^2, xy, x, y, 1
POLY_TERMS: Tuple[str, ...] = (
    "x3y0", "x0y3", "x2y1", "x1y2",
    "x2y0", "x0y2", "x1y1",
    "x1y0", "x0y1",
    "x0y0",
)


@dataclass(frozen=True)
class Resolution:
    """
    Image resolution of one imager.

    Attributes:
        width: Number of columns (pixels).
        height: Number of rows (pixels).
    """

    width: int
    height: int

    def __post_init__(self):
        """Validate dimensions."""
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")

    @property
    def size(self) -> int:
        """Number of pixels in a frame."""
        return int(self.width) * int(self.height)

    @property
    def shape(self) -> Tuple[int, int]:
        """Numpy (rows, cols) shape of a frame."""
        return int(self.height), int(self.width)

    def contains(self, x: int, y: int) -> bool:
        """Check whether an integer pixel lies inside the grid."""
        return 0 <= x < self.width and 0 <= y < self.height

    def __repr__(self) -> str:
        """String representation."""
        return f"Resolution({self.width}x{self.height})"


DEPTH_RESOLUTION = Resolution(512, 424)
COLOR_RESOLUTION = Resolution(1920, 1080)

# Half-open row range of the depth grid where both fields of view overlap
OVERLAP_ROWS: Tuple[int, int] = (26, 389)


def _check_finite(obj: Any) -> None:
    for f in fields(obj):
        value = getattr(obj, f.name)
        if not np.isfinite(value):
            raise InvalidArgumentError(
                f"{type(obj).__name__}.{f.name} must be finite, got {value!r}"
            )


def _check_nonzero(obj: Any, names: Tuple[str, ...]) -> None:
    for name in names:
        if getattr(obj, name) == 0:
            raise InvalidArgumentError(f"{type(obj).__name__}.{name} must be non-zero")


def _params_from_dict(cls, data: Dict[str, Any]):
    if not isinstance(data, dict):
        raise CalibrationError(
            f"{cls.__name__} section must be a mapping, got {type(data).__name__}"
        )

    names = [f.name for f in fields(cls)]
    unknown = sorted(set(data) - set(names))
    if unknown:
        raise CalibrationError(f"Unknown {cls.__name__} keys: {unknown}")

    missing = [name for name in names if name not in data]
    if missing:
        raise CalibrationError(f"Missing {cls.__name__} keys: {missing}")

    try:
        values = {name: float(data[name]) for name in names}
    except (TypeError, ValueError) as e:
        raise CalibrationError(f"Non-numeric {cls.__name__} value: {e}") from e

    return cls(**values)


@dataclass(frozen=True)
class IrCameraParams:
    """
    Depth (IR) camera intrinsic parameters.

    Attributes:
        fx, fy: Focal lengths (pixels).
        cx, cy: Principal point (pixels).
        k1, k2, k3: Radial distortion coefficients.
        p1, p2: Tangential distortion coefficients.
        mq: Scale applied to depth coordinates before the color mapping.
    """

    fx: float
    fy: float
    cx: float
    cy: float
    k1: float
    k2: float
    k3: float
    p1: float
    p2: float
    mq: float

    def __post_init__(self):
        _check_finite(self)
        _check_nonzero(self, ("fx", "fy", "mq"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IrCameraParams":
        """Create parameters from a flat mapping of field name to value."""
        return _params_from_dict(cls, data)

    def to_dict(self) -> Dict[str, float]:
        """Flat mapping of field name to value."""
        return asdict(self)

    @property
    def has_distortion(self) -> bool:
        """True if any distortion coefficient is non-zero."""
        return any((self.k1, self.k2, self.k3, self.p1, self.p2))


@dataclass(frozen=True)
class ColorCameraParams:
    """
    Color camera intrinsics plus the depth-to-color mapping coefficients.

    The ``mx_*`` / ``my_*`` fields are the ten coefficients of the x and y
    output polynomials, named after the exponents of the normalized depth
    coordinate (``mx_x2y1`` multiplies x^2 * y).
    """

    fx: float
    fy: float
    cx: float
    cy: float
    shift_d: float
    shift_m: float
    mx_x3y0: float
    mx_x0y3: float
    mx_x2y1: float
    mx_x1y2: float
    mx_x2y0: float
    mx_x0y2: float
    mx_x1y1: float
    mx_x1y0: float
    mx_x0y1: float
    mx_x0y0: float
    my_x3y0: float
    my_x0y3: float
    my_x2y1: float
    my_x1y2: float
    my_x2y0: float
    my_x0y2: float
    my_x1y1: float
    my_x1y0: float
    my_x0y1: float
    my_x0y0: float
    mq: float

    def __post_init__(self):
        _check_finite(self)
        _check_nonzero(self, ("fx", "fy", "mq", "shift_d"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColorCameraParams":
        """Create parameters from a flat mapping of field name to value."""
        return _params_from_dict(cls, data)

    def to_dict(self) -> Dict[str, float]:
        """Flat mapping of field name to value."""
        return asdict(self)

    @property
    def mx_coefficients(self) -> Tuple[float, ...]:
        """x-polynomial coefficients in ``POLY_TERMS`` order."""
        return tuple(getattr(self, f"mx_{term}") for term in POLY_TERMS)

    @property
    def my_coefficients(self) -> Tuple[float, ...]:
        """y-polynomial coefficients in ``POLY_TERMS`` order."""
        return tuple(getattr(self, f"my_{term}") for term in POLY_TERMS)


# Factory presets shipped with the sensor driver
FACTORY_IR_PARAMS: Dict[str, float] = {
    "fx": 351.447,
    "fy": 354.899,
    "cx": 256.486694,
    "cy": 207.852905,
    "k1": 0.0944473594,
    "k2": -0.272574991,
    "k3": 0.0929763764,
    "p1": 0.0,
    "p2": 0.0,
    "mq": 0.01,
}

FACTORY_COLOR_PARAMS: Dict[str, float] = {
    "fx": 1081.37207,
    "fy": 1081.37207,
    "cx": 957.425,
    "cy": 540.0,
    "shift_d": 863.0,
    "shift_m": 52.0,
    "mx_x3y0": 0.000770506682,
    "mx_x0y3": 1.20775903e-005,
    "mx_x2y1": 3.76318094e-005,
    "mx_x1y2": 0.000614197692,
    "mx_x2y0": 0.000680659898,
    "mx_x0y2": 3.44224718e-005,
    "mx_x1y1": 6.82990285e-005,
    "mx_x1y0": 0.640516996,
    "mx_x0y1": -0.00459693093,
    "mx_x0y0": 0.145085305,
    "my_x3y0": 2.47515800e-006,
    "my_x0y3": 0.000991923735,
    "my_x2y1": 0.000699647586,
    "my_x1y2": 3.94420204e-005,
    "my_x2y0": -4.04973107e-005,
    "my_x0y2": 0.000106151798,
    "my_x1y1": 0.000555969891,
    "my_x1y0": 0.00499383500,
    "my_x0y1": 0.639892220,
    "my_x0y0": 0.000404909311,
    "mq": 0.002199,
}


@dataclass(frozen=True)
class CameraModel:
    """
    Complete calibration bundle for depth-to-color registration.

    Attributes:
        ir: Depth camera parameters.
        color: Color camera parameters.
        depth_resolution: Depth frame size (default 512x424).
        color_resolution: Color frame size (default 1920x1080).
        overlap_rows: Half-open ``(start, stop)`` range of depth rows that
            get registered.

    Example:
        >>> model = CameraModel.factory_default()
        >>> model.depth_resolution.size
        217088
        >>> model = CameraModel.from_yaml("configs/my_sensor.yaml")
    """

    ir: IrCameraParams
    color: ColorCameraParams
    depth_resolution: Resolution = DEPTH_RESOLUTION
    color_resolution: Resolution = COLOR_RESOLUTION
    overlap_rows: Tuple[int, int] = field(default=OVERLAP_ROWS)

    def __post_init__(self):
        """Validate the overlap band against the depth grid."""
        if not isinstance(self.ir, IrCameraParams):
            raise InvalidArgumentError(f"ir must be IrCameraParams, got {type(self.ir).__name__}")
        if not isinstance(self.color, ColorCameraParams):
            raise InvalidArgumentError(
                f"color must be ColorCameraParams, got {type(self.color).__name__}"
            )

        rows = tuple(int(r) for r in self.overlap_rows)
        if len(rows) != 2:
            raise InvalidArgumentError(f"overlap_rows must be (start, stop), got {self.overlap_rows!r}")
        start, stop = rows
        if not 0 <= start < stop <= self.depth_resolution.height:
            raise InvalidArgumentError(
                f"overlap_rows {rows} outside [0, {self.depth_resolution.height}]"
            )
        object.__setattr__(self, "overlap_rows", rows)

    @classmethod
    def factory_default(cls) -> "CameraModel":
        """Camera model built from the factory presets."""
        return cls(
            ir=IrCameraParams.from_dict(FACTORY_IR_PARAMS),
            color=ColorCameraParams.from_dict(FACTORY_COLOR_PARAMS),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CameraModel":
        """
        Create a camera model from a nested mapping.

        Keys that are absent fall back to the factory presets, so a file only
        needs to list the values that differ.

        Args:
            data: Mapping with optional ``ir``, ``color``, ``depth_resolution``,
                  ``color_resolution`` and ``overlap_rows`` entries.

        Returns:
            CameraModel: Validated model.

        Raises:
            CalibrationError: If the mapping is malformed.
            InvalidArgumentError: If a value is out of its valid range.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise CalibrationError(f"Calibration must be a mapping, got {type(data).__name__}")

        unknown = sorted(set(data) - {f.name for f in fields(cls)})
        if unknown:
            raise CalibrationError(f"Unknown calibration keys: {unknown}")

        merged = ConfigLoader().merge(cls.factory_default().to_dict(), data)

        try:
            depth_res = Resolution(*merged["depth_resolution"])
            color_res = Resolution(*merged["color_resolution"])
            overlap = tuple(merged["overlap_rows"])
        except TypeError as e:
            raise CalibrationError(f"Malformed resolution or overlap entry: {e}") from e

        return cls(
            ir=IrCameraParams.from_dict(merged["ir"]),
            color=ColorCameraParams.from_dict(merged["color"]),
            depth_resolution=depth_res,
            color_resolution=color_res,
            overlap_rows=overlap,
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "CameraModel":
        """
        Load a camera model from a YAML calibration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            CalibrationError: If the file content is malformed.
        """
        try:
            data = ConfigLoader().load(path)
        except yaml.YAMLError as e:
            raise CalibrationError(f"Invalid calibration file {path}: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Nested mapping suitable for YAML serialization."""
        return {
            "ir": self.ir.to_dict(),
            "color": self.color.to_dict(),
            "depth_resolution": [self.depth_resolution.width, self.depth_resolution.height],
            "color_resolution": [self.color_resolution.width, self.color_resolution.height],
            "overlap_rows": list(self.overlap_rows),
        }

    def save(self, path: Union[str, Path]) -> None:
        """Write the camera model to a YAML file."""
        ConfigLoader().save(self.to_dict(), path)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"CameraModel(ir_f=({self.ir.fx:.3f}, {self.ir.fy:.3f}), "
            f"color_f=({self.color.fx:.3f}, {self.color.fy:.3f}), "
            f"depth={self.depth_resolution!r}, color={self.color_resolution!r}, "
            f"overlap_rows={self.overlap_rows})"
        )
