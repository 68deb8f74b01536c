"""
Calibration modules for depth-to-color geometry.

This package holds the factory calibration of a Kinect v2 style sensor and
the two pure functions derived from it.

Classes:
    Resolution: Frame size value object.
    IrCameraParams: Depth camera intrinsics and lens distortion.
    ColorCameraParams: Color intrinsics plus the depth-to-color polynomials.
    CameraModel: Complete calibration bundle (params, resolutions, overlap band).
    DistortionCorrector: Forward lens distortion of the depth camera.
    DepthColorMapper: Polynomial depth-to-color coordinate mapping.

Example Usage:
    >>> from kinreg.calibration import CameraModel, DistortionCorrector
    >>>
    >>> model = CameraModel.factory_default()
    >>> corrector = DistortionCorrector(model.ir)
    >>> x, y = corrector.distort(100, 50)
"""

from .params import (
    COLOR_RESOLUTION,
    DEPTH_RESOLUTION,
    FACTORY_COLOR_PARAMS,
    FACTORY_IR_PARAMS,
    OVERLAP_ROWS,
    POLY_TERMS,
    CameraModel,
    ColorCameraParams,
    IrCameraParams,
    Resolution,
)
from .distortion import DistortionCorrector
from .mapping import DepthColorMapper

__all__ = [
    # Classes
    "Resolution",
    "IrCameraParams",
    "ColorCameraParams",
    "CameraModel",
    "DistortionCorrector",
    "DepthColorMapper",
    # Constants
    "DEPTH_RESOLUTION",
    "COLOR_RESOLUTION",
    "OVERLAP_ROWS",
    "POLY_TERMS",
    "FACTORY_IR_PARAMS",
    "FACTORY_COLOR_PARAMS",
]
