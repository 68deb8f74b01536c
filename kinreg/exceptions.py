"""Custom exceptions for depth/color registration."""

from typing import Any, Dict, Optional


class KinregError(Exception):
    """Base exception for the registration package."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(KinregError, ValueError):
    """Raised for malformed caller input (buffers, coordinates, parameters)."""

    pass


class CalibrationError(KinregError):
    """Raised when a calibration file cannot be turned into a camera model."""

    pass
