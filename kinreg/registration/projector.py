"""Single-pixel depth-to-color projection."""

from numbers import Integral
from typing import Tuple

import numpy as np

from ..calibration.params import CameraModel
from ..exceptions import InvalidArgumentError
from .tables import LookupTables


class PointProjector:
    """
    Project one depth pixel into the color image using the static tables.

    Unlike FrameRegistrar this does not build a per-frame offset table and
    does not look at ``distort_map``; it reads the color mapping tables
    directly at the given pixel.
    """

    def __init__(self, camera_model: CameraModel, tables: LookupTables):
        self.camera_model = camera_model
        self.tables = tables
        self._color_fx = np.float32(camera_model.color.fx)
        self._color_cx = np.float32(camera_model.color.cx)

    def project(self, dx: int, dy: int, dz: float = 0.0) -> Tuple[float, float]:
        """
        Map a depth pixel to color pixel coordinates.

        Args:
            dx: Depth column, in [0, width).
            dy: Depth row, in [0, height).
            dz: Depth value (millimeters). Accepted for API symmetry; no
                range-dependent parallax correction is applied.

        Returns:
            Tuple (cx, cy): color column and (rounded) color row in pixels.

        Raises:
            InvalidArgumentError: If the coordinates are not integers inside
                the depth grid or dz is not a number.
        """
        res = self.camera_model.depth_resolution
        for name, value in (("dx", dx), ("dy", dy)):
            if isinstance(value, bool) or not isinstance(value, Integral):
                raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
        if not res.contains(dx, dy):
            raise InvalidArgumentError(
                f"Pixel ({dx}, {dy}) outside depth grid {res.width}x{res.height}"
            )
        try:
            float(dz)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"dz must be a number, got {dz!r}") from e

        index = int(dx) + int(dy) * res.width
        rx = self.tables.depth_to_color_map_x[index]
        cy = self.tables.depth_to_color_map_yi[index]

        # dz unused: rx is not shifted by shift_m / dz for parallax
        cx = rx * self._color_fx + self._color_cx

        return float(cx), float(cy)

    def __call__(self, dx: int, dy: int, dz: float = 0.0) -> Tuple[float, float]:
        return self.project(dx, dy, dz)
