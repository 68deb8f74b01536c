"""
Per-Frame Registration.

Applies the precomputed lookup tables to whole frames:

    register_color:  1920x1080 packed color frame -> 512x424 color image
                     aligned with the depth grid
    undistort_depth: 512x424 raw depth frame -> 512x424 depth masked to
                     pixels that have a color counterpart

Both first derive a per-frame color offset table from the static tables:

    col   = int(map_x[i] * color.fx + color.cx + 0.5)
    row   = map_yi[i]
    c_off = col + row * color_width       (-1 if distort_map[i] == -1
                                           or c_off outside the color frame)

Only the overlap band (depth rows 26..388 by default) is written. Rows
outside the band are left exactly as the caller supplied them.

Note:
    ``undistort_depth`` does not resample depth through ``distort_map``. The
    distorted index is only used to check that the raw sample there is a
    valid (> 0) reading; the value written is the sample at the same
    row/column. This matches the sensor driver and is kept on purpose.
"""

from typing import Optional, Tuple

import numpy as np

from ..calibration.params import CameraModel
from ..exceptions import InvalidArgumentError
from .tables import INVALID_INDEX, LookupTables


def _check_array(frame, name: str) -> np.ndarray:
    if frame is None:
        raise InvalidArgumentError(f"{name} must not be None")
    if not isinstance(frame, np.ndarray):
        raise InvalidArgumentError(f"{name} must be a numpy array, got {type(frame).__name__}")
    return frame


def as_packed_pixels(frame: np.ndarray, shape: Tuple[int, int], name: str) -> np.ndarray:
    """
    Flat uint32 view of a packed 4-byte-per-pixel frame.

    Accepted layouts are uint32 ``(H, W)`` or ``(H*W,)`` and uint8
    ``(H, W, 4)`` (BGRX). The result shares memory with ``frame`` whenever
    the frame is C-contiguous.

    Raises:
        InvalidArgumentError: If the layout, dtype or size is wrong.
    """
    frame = _check_array(frame, name)
    height, width = shape

    if frame.dtype == np.uint8 and frame.shape == (height, width, 4):
        if not frame.flags.c_contiguous:
            raise InvalidArgumentError(f"{name} must be C-contiguous")
        return frame.view(np.uint32).reshape(-1)

    if frame.dtype == np.uint32 and frame.shape in ((height, width), (height * width,)):
        return frame.reshape(-1)

    raise InvalidArgumentError(
        f"{name} must be uint32 {(height, width)} / {(height * width,)} or uint8 "
        f"{(height, width, 4)}, got {frame.dtype} {frame.shape}"
    )


def as_depth_samples(frame: np.ndarray, shape: Tuple[int, int], name: str) -> np.ndarray:
    """
    Flat view of a depth frame.

    Accepted layouts are ``(H, W)`` or ``(H*W,)`` with an integer or floating
    dtype (uint16 raw samples or float32 millimeters).

    Raises:
        InvalidArgumentError: If the layout, dtype or size is wrong.
    """
    frame = _check_array(frame, name)
    height, width = shape

    if frame.dtype.kind not in "uif":
        raise InvalidArgumentError(f"{name} must have a numeric dtype, got {frame.dtype}")
    if frame.shape not in ((height, width), (height * width,)):
        raise InvalidArgumentError(
            f"{name} must have shape {(height, width)} or {(height * width,)}, got {frame.shape}"
        )
    return frame.reshape(-1)


def _writable_view(out: np.ndarray, flat: np.ndarray, name: str) -> np.ndarray:
    if not out.flags.writeable:
        raise InvalidArgumentError(f"{name} is read-only")
    if not np.may_share_memory(out, flat):
        raise InvalidArgumentError(f"{name} must be C-contiguous")
    return flat


class FrameRegistrar:
    """
    Register color frames and mask depth frames with static lookup tables.

    The registrar holds no per-frame state, so one instance can serve
    several threads as long as each call gets its own buffers.

    Example:
        >>> model = CameraModel.factory_default()
        >>> tables = LookupTableBuilder(model).build()
        >>> registrar = FrameRegistrar(model, tables)
        >>> registered = registrar.register_color(color_frame)
        >>> undistorted = registrar.undistort_depth(depth_frame)
    """

    def __init__(self, camera_model: CameraModel, tables: LookupTables):
        """
        Initialize the registrar.

        Args:
            camera_model: Calibration the tables were built from.
            tables: Static registration tables.
        """
        if len(tables) != camera_model.depth_resolution.size:
            raise InvalidArgumentError(
                f"Tables have {len(tables)} entries, expected "
                f"{camera_model.depth_resolution.size}"
            )

        self.camera_model = camera_model
        self.tables = tables

        self._depth_shape = camera_model.depth_resolution.shape
        self._color_shape = camera_model.color_resolution.shape
        self._color_width = camera_model.color_resolution.width
        self._color_size = camera_model.color_resolution.size

        self._color_fx = np.float32(camera_model.color.fx)
        self._color_cx = np.float32(camera_model.color.cx)

        start, stop = camera_model.overlap_rows
        width = camera_model.depth_resolution.width
        self._band = slice(start * width, stop * width)

    @property
    def band(self) -> slice:
        """Flat index range of the overlap band in a depth-sized buffer."""
        return self._band

    def color_offsets(self, depth: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Compute the per-frame color offset table.

        Args:
            depth: Optional raw depth frame. When given, pixels whose
                   distorted sample is not strictly positive are invalidated.

        Returns:
            np.ndarray: int32 array (depth size,) of linear indices into the
            color frame, or -1.
        """
        t = self.tables
        valid = t.distort_map != INVALID_INDEX

        if depth is not None:
            depth_flat = as_depth_samples(depth, self._depth_shape, "depth")
            valid[valid] = depth_flat[t.distort_map[valid]] > 0

        cx = t.depth_to_color_map_x * self._color_fx + self._color_cx
        cx = (cx + np.float32(0.5)).astype(np.int64)
        c_off = cx + t.depth_to_color_map_yi.astype(np.int64) * self._color_width
        valid &= (c_off >= 0) & (c_off < self._color_size)

        return np.where(valid, c_off, INVALID_INDEX).astype(np.int32)

    def register_color(
        self,
        color: np.ndarray,
        out: Optional[np.ndarray] = None,
        color_depth_map: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Sample the color frame at every depth pixel of the overlap band.

        Args:
            color: Packed color frame (1920x1080, uint32 or uint8 BGRX).
            out: Optional depth-sized output in the same packed layout.
                 Rows outside the overlap band are not touched. If omitted,
                 a zero-filled buffer matching the input layout is returned.
            color_depth_map: Optional int32 depth-sized array receiving the
                 per-frame color offset table.

        Returns:
            np.ndarray: The registered color image (``out`` if given).

        Raises:
            InvalidArgumentError: If a buffer has the wrong layout or size.
        """
        color_flat = as_packed_pixels(color, self._color_shape, "color")

        if out is None:
            if color.ndim == 3:
                out = np.zeros(self._depth_shape + (4,), dtype=np.uint8)
            elif color.ndim == 2:
                out = np.zeros(self._depth_shape, dtype=np.uint32)
            else:
                out = np.zeros(self._depth_shape[0] * self._depth_shape[1], dtype=np.uint32)
        out_flat = _writable_view(
            out, as_packed_pixels(out, self._depth_shape, "out"), "out"
        )

        offsets = self.color_offsets()

        if color_depth_map is not None:
            self._write_offsets(color_depth_map, offsets)

        band = offsets[self._band]
        ok = band != INVALID_INDEX
        registered = np.zeros(band.shape, dtype=np.uint32)
        registered[ok] = color_flat[band[ok]]
        out_flat[self._band] = registered

        return out

    def undistort_depth(
        self,
        depth: np.ndarray,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Mask a raw depth frame to pixels with a valid color counterpart.

        A pixel in the overlap band keeps its own sample when both its
        distorted sample is > 0 and its color offset is valid; otherwise it
        becomes 0.

        Args:
            depth: Raw depth frame (512x424, uint16 or float32).
            out: Optional output of the same dtype and size. Rows outside the
                 overlap band are not touched. If omitted, a zero-filled
                 buffer shaped like the input is returned.

        Returns:
            np.ndarray: The masked depth frame (``out`` if given).

        Raises:
            InvalidArgumentError: If a buffer has the wrong layout, dtype or size.
        """
        depth_flat = as_depth_samples(depth, self._depth_shape, "depth")

        if out is None:
            out = np.zeros_like(depth)
        elif isinstance(out, np.ndarray) and out.dtype != depth.dtype:
            raise InvalidArgumentError(
                f"out dtype {out.dtype} does not match depth dtype {depth.dtype}"
            )
        out_flat = _writable_view(
            out, as_depth_samples(out, self._depth_shape, "out"), "out"
        )

        offsets = self.color_offsets(depth)

        ok = offsets[self._band] != INVALID_INDEX
        out_flat[self._band] = np.where(ok, depth_flat[self._band], 0)

        return out

    def _write_offsets(self, target: np.ndarray, offsets: np.ndarray) -> None:
        target = _check_array(target, "color_depth_map")
        if target.size != offsets.size or target.dtype.kind != "i" or target.dtype.itemsize < 4:
            raise InvalidArgumentError(
                f"color_depth_map must be an int32 or int64 array of {offsets.size} "
                f"entries, got {target.dtype} {target.shape}"
            )
        flat = _writable_view(target, target.reshape(-1), "color_depth_map")
        flat[:] = offsets
