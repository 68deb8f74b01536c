"""
Registration overlay visualization utilities.

Helpers for eyeballing alignment quality: unpack registered BGRX frames,
colorize depth, and blend the two so edges can be compared.
"""

from pathlib import Path
from typing import Union

import cv2
import numpy as np

from ..exceptions import InvalidArgumentError


# Depth colormap: blue (near) -> cyan -> green -> yellow -> red (far)
DEPTH_COLORMAP = cv2.COLORMAP_TURBO

# Kinect v2 working range upper bound (millimeters)
DEFAULT_MAX_DEPTH = 4500.0


def unpack_bgrx(frame: np.ndarray) -> np.ndarray:
    """
    Convert a packed BGRX frame to an RGB image.

    Args:
        frame: (H, W) uint32 packed pixels or (H, W, 4) uint8 BGRX.

    Returns:
        (H, W, 3) uint8 RGB image.
    """
    if frame.dtype == np.uint32 and frame.ndim == 2:
        frame = np.ascontiguousarray(frame).view(np.uint8).reshape(frame.shape + (4,))
    elif not (frame.dtype == np.uint8 and frame.ndim == 3 and frame.shape[2] == 4):
        raise InvalidArgumentError(
            f"Expected (H, W) uint32 or (H, W, 4) uint8 frame, got {frame.dtype} {frame.shape}"
        )

    bgr = np.ascontiguousarray(frame[:, :, :3])
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def colorize_depth(
    depth: np.ndarray,
    max_depth: float = DEFAULT_MAX_DEPTH,
    colormap: int = DEPTH_COLORMAP,
) -> np.ndarray:
    """
    Map a depth frame to an RGB image.

    Args:
        depth: (H, W) depth in millimeters (uint16 or float).
        max_depth: Depth mapped to the far end of the colormap.
        colormap: OpenCV colormap id.

    Returns:
        (H, W, 3) uint8 RGB image; pixels with depth <= 0 are black.
    """
    if depth.ndim != 2:
        raise InvalidArgumentError(f"Expected (H, W) depth, got shape {depth.shape}")
    if max_depth <= 0:
        raise InvalidArgumentError(f"max_depth must be positive, got {max_depth}")

    depth = depth.astype(np.float32)
    scaled = np.clip(depth / max_depth * 255.0, 0, 255).astype(np.uint8)

    colored = cv2.applyColorMap(scaled, colormap)
    colored = cv2.cvtColor(colored, cv2.COLOR_BGR2RGB)
    colored[~(depth > 0)] = 0

    return colored


def blend_registration(
    registered: np.ndarray,
    depth: np.ndarray,
    alpha: float = 0.5,
    max_depth: float = DEFAULT_MAX_DEPTH,
) -> np.ndarray:
    """
    Blend a registered color frame with its colorized depth.

    Args:
        registered: Registered color frame (packed BGRX, depth-sized).
        depth: Depth frame of the same size.
        alpha: Weight of the depth layer (0-1).
        max_depth: Depth mapped to the far end of the colormap.

    Returns:
        (H, W, 3) uint8 RGB image. Pixels without valid depth show the
        color image only.
    """
    if not 0.0 <= alpha <= 1.0:
        raise InvalidArgumentError(f"alpha must be in [0, 1], got {alpha}")

    color_rgb = unpack_bgrx(registered)
    depth_rgb = colorize_depth(depth, max_depth=max_depth)

    if color_rgb.shape != depth_rgb.shape:
        raise InvalidArgumentError(
            f"Registered frame {color_rgb.shape[:2]} and depth {depth_rgb.shape[:2]} differ in size"
        )

    result = color_rgb.copy()
    valid = depth > 0
    if np.any(valid):
        blended = cv2.addWeighted(color_rgb, 1 - alpha, depth_rgb, alpha, 0)
        result[valid] = blended[valid]

    return result


def save_image(
    image: np.ndarray,
    path: Union[str, Path],
    quality: int = 95,
    create_dir: bool = True,
) -> bool:
    """
    Save image to file.

    Args:
        image: (H, W, 3) RGB image.
        path: Output file path.
        quality: JPEG quality (1-100).
        create_dir: Create parent directories if needed.

    Returns:
        True if successful.
    """
    path = Path(path)

    if create_dir:
        path.parent.mkdir(parents=True, exist_ok=True)

    image_bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)

    if path.suffix.lower() in [".jpg", ".jpeg"]:
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]
    elif path.suffix.lower() == ".png":
        params = [cv2.IMWRITE_PNG_COMPRESSION, 9 - (quality // 11)]
    else:
        params = []

    return cv2.imwrite(str(path), image_bgr, params)
