"""
Depth-to-Color Coordinate Mapping Module.

The Kinect v2 factory calibration does not expose a rotation/translation
between the depth and color cameras. Instead it ships two cubic polynomials
fitted empirically to map a depth pixel onto the color image plane.

Mapping:
========
    x = (u - ir.cx) * ir.mq
    y = (v - ir.cy) * ir.mq

    wx = mx_x3y0 x³ + mx_x0y3 y³ + mx_x2y1 x²y + mx_x1y2 xy²
       + mx_x2y0 x² + mx_x0y2 y² + mx_x1y1 xy + mx_x1y0 x + mx_x0y1 y + mx_x0y0
    wy = (same terms with the my_* coefficients)

    rx = wx / (color.fx * color.mq) - shift_m / shift_d     (normalized x)
    ry = wy / color.mq + color.cy                           (color row, pixels)

The color column in pixels is ``rx * color.fx + color.cx``.

Note:
    The formula is a black box. It is evaluated exactly as calibrated, in
    float32, and is not a geometric projection: it ignores depth, so
    parallax between the two cameras is not modelled.
"""

from typing import Sequence, Tuple, Union

import numpy as np

from .params import ColorCameraParams, IrCameraParams

ArrayLike = Union[float, np.ndarray]


def _cubic(x: np.ndarray, y: np.ndarray, c: Sequence[np.float32]) -> np.ndarray:
    # c follows POLY_TERMS: x3y0, x0y3, x2y1, x1y2, x2y0, x0y2, x1y1, x1y0, x0y1, x0y0
    return (
        (x * x * x * c[0]) + (y * y * y * c[1])
        + (x * x * y * c[2]) + (y * y * x * c[3])
        + (x * x * c[4]) + (y * y * c[5]) + (x * y * c[6])
        + (x * c[7]) + (y * c[8]) + c[9]
    )


class DepthColorMapper:
    """
    Map depth camera pixels to color camera coordinates.

    Example:
        >>> model = CameraModel.factory_default()
        >>> mapper = DepthColorMapper(model.ir, model.color)
        >>> rx, ry = mapper.depth_to_color(256, 212)
        >>> col = rx * model.color.fx + model.color.cx
    """

    def __init__(self, ir: IrCameraParams, color: ColorCameraParams):
        """
        Initialize the mapper.

        Args:
            ir: Depth camera parameters (principal point and ``mq``).
            color: Color camera parameters and polynomial coefficients.
        """
        self.ir = ir
        self.color = color

        f32 = np.float32
        self._ir_cx, self._ir_cy, self._ir_mq = f32(ir.cx), f32(ir.cy), f32(ir.mq)
        self._mx = tuple(f32(c) for c in color.mx_coefficients)
        self._my = tuple(f32(c) for c in color.my_coefficients)
        self._x_scale = f32(color.fx) * f32(color.mq)
        self._x_shift = f32(color.shift_m) / f32(color.shift_d)
        self._y_scale = f32(color.mq)
        self._color_cy = f32(color.cy)

    def depth_to_color(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """
        Map undistorted depth coordinates to color coordinates.

        Args:
            mx: Depth x coordinate(s) (pixels).
            my: Depth y coordinate(s) (pixels).

        Returns:
            Tuple (rx, ry): normalized color x and color row in pixels,
            float32, same shape as input.
        """
        mx = (np.asarray(mx, dtype=np.float32) - self._ir_cx) * self._ir_mq
        my = (np.asarray(my, dtype=np.float32) - self._ir_cy) * self._ir_mq

        wx = _cubic(mx, my, self._mx)
        wy = _cubic(mx, my, self._my)

        rx = (wx / self._x_scale) - self._x_shift
        ry = (wy / self._y_scale) + self._color_cy

        return rx, ry

    def to_color_pixel(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """
        Map depth coordinates to color pixel coordinates (column, row).

        Args:
            mx: Depth x coordinate(s) (pixels).
            my: Depth y coordinate(s) (pixels).

        Returns:
            Tuple (col, row) in color image pixels.
        """
        rx, ry = self.depth_to_color(mx, my)
        return rx * np.float32(self.color.fx) + np.float32(self.color.cx), ry

    def __call__(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        return self.depth_to_color(mx, my)
