"""
Registration of depth frames with color frames.

Classes:
    LookupTables: Frozen per-pixel tables.
    LookupTableBuilder: One-time table construction from a CameraModel.
    FrameRegistrar: Whole-frame color registration and depth masking.
    PointProjector: Single-pixel projection.
    Registration: Facade owning the tables, with the overloaded ``apply``.
"""

from .tables import INVALID_INDEX, LookupTableBuilder, LookupTables, round_half_up
from .registrar import FrameRegistrar, as_depth_samples, as_packed_pixels
from .projector import PointProjector
from .registration import Registration

__all__ = [
    "INVALID_INDEX",
    "LookupTables",
    "LookupTableBuilder",
    "round_half_up",
    "FrameRegistrar",
    "as_depth_samples",
    "as_packed_pixels",
    "PointProjector",
    "Registration",
]
