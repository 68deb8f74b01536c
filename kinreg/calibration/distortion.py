"""
Depth Camera Lens Distortion Module.

Forward Brown-Conrady model mapping an ideal (undistorted) depth pixel to
the location where it appears in the raw, distorted depth image:

    dx = (u - cx) / fx,   dy = (v - cy) / fy
    r2 = dx² + dy²
    kr = 1 + ((k3 * r2 + k2) * r2 + k1) * r2      (= 1 + k1 r² + k2 r⁴ + k3 r⁶)

    u_d = fx * (dx * kr + p2 * (r2 + 2 dx²) + p1 * 2 dx dy) + cx
    v_d = fy * (dy * kr + p1 * (r2 + 2 dy²) + p2 * 2 dx dy) + cy

There is no closed-form inverse. The registration tables invert the model by
sampling it on every undistorted pixel and rounding to the nearest distorted
pixel, so no iterative solver is needed.

All arithmetic runs in float32, the precision the factory coefficients were
fitted with, so tables built here match the sensor driver.
"""

from typing import Tuple, Union

import numpy as np

from .params import IrCameraParams

ArrayLike = Union[float, np.ndarray]


class DistortionCorrector:
    """
    Forward lens distortion for the depth camera.

    Example:
        >>> corrector = DistortionCorrector(CameraModel.factory_default().ir)
        >>> x, y = corrector.distort(100, 50)
        >>> xs, ys = corrector.distort(np.arange(512), np.zeros(512))
    """

    def __init__(self, params: IrCameraParams):
        """
        Initialize the corrector.

        Args:
            params: Depth camera intrinsics and distortion coefficients.
        """
        self.params = params

        f32 = np.float32
        self._fx, self._fy = f32(params.fx), f32(params.fy)
        self._cx, self._cy = f32(params.cx), f32(params.cy)
        self._k1, self._k2, self._k3 = f32(params.k1), f32(params.k2), f32(params.k3)
        self._p1, self._p2 = f32(params.p1), f32(params.p2)

    def distort(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """
        Map undistorted pixel coordinates to distorted ones.

        Args:
            mx: Undistorted x coordinate(s) (pixels).
            my: Undistorted y coordinate(s) (pixels).

        Returns:
            Tuple of distorted (x, y) coordinates, float32, same shape as input.
        """
        mx = np.asarray(mx, dtype=np.float32)
        my = np.asarray(my, dtype=np.float32)

        dx = (mx - self._cx) / self._fx
        dy = (my - self._cy) / self._fy
        dx2 = dx * dx
        dy2 = dy * dy
        r2 = dx2 + dy2
        dxdy2 = np.float32(2) * dx * dy
        kr = np.float32(1) + ((self._k3 * r2 + self._k2) * r2 + self._k1) * r2

        two = np.float32(2)
        x = self._fx * (dx * kr + self._p2 * (r2 + two * dx2) + self._p1 * dxdy2) + self._cx
        y = self._fy * (dy * kr + self._p1 * (r2 + two * dy2) + self._p2 * dxdy2) + self._cy

        return x, y

    def __call__(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        return self.distort(mx, my)
