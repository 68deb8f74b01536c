"""
Depth/Color Registration.

High-level entry point combining the calibration model, the lookup tables
and the per-frame / per-point operations.

Lifecycle:
    1. Registration(camera_model) builds the four lookup tables once.
    2. apply(...) is called per frame or per point; it reads the frozen
       tables and the caller's buffers only.

Example:
    >>> from kinreg import CameraModel, Registration
    >>> reg = Registration(CameraModel.factory_default())
    >>> col, row = reg.apply(256, 212, 1500.0)
    >>> registered = reg.apply(color_frame)     # 1920x1080 -> 512x424
    >>> undistorted = reg.apply(depth_frame)    # 512x424 -> 512x424

Note:
    The mapping is the factory polynomial fit, not a 3D extrinsic
    transform. If you need registration from a standard extrinsic matrix,
    use a different tool.
"""

from typing import Optional, Tuple

import numpy as np

from ..calibration.distortion import ArrayLike
from ..calibration.params import CameraModel
from ..exceptions import InvalidArgumentError
from ..utils.logger import LoggerMixin, LogTimer
from .projector import PointProjector
from .registrar import FrameRegistrar
from .tables import LookupTableBuilder, LookupTables


class Registration(LoggerMixin):
    """
    Register depth frames with color frames.

    Attributes:
        camera_model: Calibration in use.
        tables: Frozen lookup tables built at construction.
    """

    def __init__(self, camera_model: CameraModel):
        """
        Build the registration tables.

        Args:
            camera_model: Calibration bundle. Use
                          ``CameraModel.factory_default()`` for the factory presets.

        Raises:
            InvalidArgumentError: If camera_model is not a CameraModel.
        """
        if not isinstance(camera_model, CameraModel):
            raise InvalidArgumentError(
                f"camera_model must be a CameraModel, got {type(camera_model).__name__}"
            )

        self.camera_model = camera_model

        builder = LookupTableBuilder(camera_model, logger=self.logger)
        with LogTimer("Building registration tables", self.logger):
            self._tables = builder.build()

        self._distortion = builder.distortion
        self._mapper = builder.mapper
        self._registrar = FrameRegistrar(camera_model, self._tables)
        self._projector = PointProjector(camera_model, self._tables)

    @property
    def tables(self) -> LookupTables:
        """Frozen lookup tables."""
        return self._tables

    @property
    def registrar(self) -> FrameRegistrar:
        """Whole-frame registrar sharing these tables."""
        return self._registrar

    @property
    def projector(self) -> PointProjector:
        """Single-pixel projector sharing these tables."""
        return self._projector

    def distort(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """Forward lens distortion of the depth camera (see DistortionCorrector)."""
        return self._distortion.distort(mx, my)

    def depth_to_color(self, mx: ArrayLike, my: ArrayLike) -> Tuple[ArrayLike, ArrayLike]:
        """Polynomial depth-to-color mapping (see DepthColorMapper)."""
        return self._mapper.depth_to_color(mx, my)

    def project_point(self, dx: int, dy: int, dz: float = 0.0) -> Tuple[float, float]:
        """Project a single depth pixel to color pixel coordinates."""
        return self._projector.project(dx, dy, dz)

    def register_color(
        self,
        color: np.ndarray,
        out: Optional[np.ndarray] = None,
        color_depth_map: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Map a color frame onto the depth grid (see FrameRegistrar)."""
        return self._registrar.register_color(color, out=out, color_depth_map=color_depth_map)

    def undistort_depth(
        self,
        depth: np.ndarray,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Mask a depth frame to pixels seen by both cameras (see FrameRegistrar)."""
        return self._registrar.undistort_depth(depth, out=out)

    def apply(self, *args, **kwargs):
        """
        Overloaded entry point.

        ``apply(dx, dy, dz)`` projects a single pixel and returns
        ``(cx, cy)``. ``apply(frame, out=None)`` dispatches on the frame size:
        a color-sized frame is registered, a depth-sized frame is masked.

        Raises:
            InvalidArgumentError: If the arguments match neither form.
        """
        if len(args) == 3:
            return self.project_point(*args, **kwargs)

        if len(args) != 1:
            raise InvalidArgumentError(
                f"apply expects (dx, dy, dz) or (frame), got {len(args)} positional arguments"
            )

        frame = args[0]
        if not isinstance(frame, np.ndarray):
            raise InvalidArgumentError(f"frame must be a numpy array, got {type(frame).__name__}")

        pixels = frame.size // 4 if frame.dtype == np.uint8 and frame.ndim == 3 else frame.size
        if pixels == self.camera_model.color_resolution.size:
            return self.register_color(frame, **kwargs)
        if pixels == self.camera_model.depth_resolution.size:
            return self.undistort_depth(frame, **kwargs)

        raise InvalidArgumentError(
            f"Frame of {pixels} pixels matches neither color "
            f"({self.camera_model.color_resolution!r}) nor depth "
            f"({self.camera_model.depth_resolution!r})"
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"Registration({self.camera_model!r})"
