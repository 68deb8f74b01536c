"""Depth-to-color registration for Kinect v2 style depth sensors."""

__version__ = "0.1.0"
__author__ = "Nagarjunan"

from . import calibration
from . import registration
from . import utils
from . import viz
from .calibration import CameraModel, ColorCameraParams, IrCameraParams, Resolution
from .exceptions import CalibrationError, InvalidArgumentError, KinregError
from .registration import Registration

__all__ = [
    "CameraModel",
    "IrCameraParams",
    "ColorCameraParams",
    "Resolution",
    "Registration",
    "KinregError",
    "InvalidArgumentError",
    "CalibrationError",
]
