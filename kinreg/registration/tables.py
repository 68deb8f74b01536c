"""
Registration Lookup Tables.

Every per-frame operation of the registration reads four flat tables with
one entry per depth pixel (row-major, ``index = y * width + x``):

    distort_map            int32    index into the raw (distorted) depth
                                    frame, or -1 if it falls off the grid
    depth_to_color_map_x   float32  normalized color x
    depth_to_color_map_y   float32  color row (pixels)
    depth_to_color_map_yi  int32    color row rounded to the nearest integer

The tables are built once from a CameraModel and frozen (numpy write flag
cleared), so they can be shared between threads without locking.

Rounding follows the sensor driver: ``int(v + 0.5)``, i.e. truncation
toward zero after adding one half. Coordinates in (-1, -0.5] therefore round
to 0, not -1.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..calibration.distortion import DistortionCorrector
from ..calibration.mapping import DepthColorMapper
from ..calibration.params import CameraModel
from ..utils.logger import get_logger

INVALID_INDEX = -1


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round like a C ``(int)(v + 0.5)`` cast (truncates toward zero)."""
    shifted = np.asarray(values, dtype=np.float32) + np.float32(0.5)
    # Keep far off-grid coordinates castable; they are rejected by range checks
    return np.clip(shifted, -2.0 ** 30, 2.0 ** 30).astype(np.int32)


def _freeze(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class LookupTables:
    """Read-only per-pixel registration tables."""

    distort_map: np.ndarray
    depth_to_color_map_x: np.ndarray
    depth_to_color_map_y: np.ndarray
    depth_to_color_map_yi: np.ndarray

    def __len__(self) -> int:
        return len(self.distort_map)

    @property
    def valid_mask(self) -> np.ndarray:
        """Boolean mask of pixels with a valid distorted counterpart."""
        return self.distort_map != INVALID_INDEX

    @property
    def num_invalid(self) -> int:
        """Number of sentinel entries in ``distort_map``."""
        return int(np.count_nonzero(self.distort_map == INVALID_INDEX))

    def equals(self, other: "LookupTables") -> bool:
        """Bit-exact comparison of all four tables."""
        return all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in (
                "distort_map",
                "depth_to_color_map_x",
                "depth_to_color_map_y",
                "depth_to_color_map_yi",
            )
        )


class LookupTableBuilder:
    """
    Build the registration tables from a camera model.

    The distortion model only maps undistorted -> distorted. The builder
    evaluates it on every undistorted pixel and records the nearest
    distorted pixel, which yields the inverse mapping without solving.

    Example:
        >>> tables = LookupTableBuilder(CameraModel.factory_default()).build()
        >>> tables.distort_map.shape
        (217088,)
    """

    def __init__(
        self,
        camera_model: CameraModel,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the builder.

        Args:
            camera_model: Calibration to tabulate.
            logger: Logger for build diagnostics.
        """
        self.camera_model = camera_model
        self.distortion = DistortionCorrector(camera_model.ir)
        self.mapper = DepthColorMapper(camera_model.ir, camera_model.color)
        self.logger = logger or get_logger(__name__)

    def build(self) -> LookupTables:
        """
        Compute all four tables.

        Returns:
            LookupTables: Frozen tables of ``depth_resolution.size`` entries.
        """
        res = self.camera_model.depth_resolution
        width, height = res.width, res.height

        ys, xs = np.mgrid[0:height, 0:width]
        xs = xs.ravel().astype(np.float32)
        ys = ys.ravel().astype(np.float32)

        # Undistorted -> distorted pixel, rounded to the raw depth grid
        mx, my = self.distortion.distort(xs, ys)
        ix = round_half_up(mx)
        iy = round_half_up(my)
        inside = (ix >= 0) & (ix < width) & (iy >= 0) & (iy < height)
        distort_map = np.where(inside, iy * width + ix, INVALID_INDEX).astype(np.int32)

        # Undistorted depth pixel -> color coordinates
        rx, ry = self.mapper.depth_to_color(xs, ys)
        map_yi = round_half_up(ry)

        tables = LookupTables(
            distort_map=_freeze(distort_map),
            depth_to_color_map_x=_freeze(rx.astype(np.float32)),
            depth_to_color_map_y=_freeze(ry.astype(np.float32)),
            depth_to_color_map_yi=_freeze(map_yi),
        )

        self.logger.debug(
            f"Built registration tables: {len(tables)} entries, "
            f"{tables.num_invalid} outside the distorted grid"
        )

        return tables
