"""Visualization utilities for registration results."""

from .overlay import (
    DEFAULT_MAX_DEPTH,
    DEPTH_COLORMAP,
    blend_registration,
    colorize_depth,
    save_image,
    unpack_bgrx,
)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DEPTH_COLORMAP",
    "unpack_bgrx",
    "colorize_depth",
    "blend_registration",
    "save_image",
]
