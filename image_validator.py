"""
Module: image_validator.py

Loads a candidate image under a timeout and checks its size and aspect ratio.
A rejection is a None result, never an exception.
"""

import asyncio

from Logging import default_trace
from image_utils import MAX_ASPECT_RATIO, detect_format, load_image_dimensions
from models import ImageCandidate, Origin, Zone

DEFAULT_MIN_WIDTH = 400
DEFAULT_MIN_HEIGHT = 200
LOAD_TIMEOUT_SECONDS = 5.0


async def load_dimensions(source, loader=None, timeout=LOAD_TIMEOUT_SECONDS):
    """
    Run the blocking loader in a worker thread, bounded by `timeout`.

    An expired timeout resolves to None, same as a failed load.
    """
    loader = loader or load_image_dimensions
    try:
        return await asyncio.wait_for(asyncio.to_thread(loader, source), timeout)
    except asyncio.TimeoutError:
        return None


def rejection_reason(width, height, min_width, min_height):
    """Why (width, height) fails the thresholds, or None if it fits."""
    if height <= 0:
        return "no height"
    if width < min_width or height < min_height:
        return f"too small (min {min_width}x{min_height})"
    aspect_ratio = width / height
    if aspect_ratio > MAX_ASPECT_RATIO or aspect_ratio < 1 / MAX_ASPECT_RATIO:
        return (f"aspect ratio out of range ({aspect_ratio:.2f} not in "
                f"{1 / MAX_ASPECT_RATIO:.2f}-{MAX_ASPECT_RATIO})")
    return None


async def validate(src, min_width=DEFAULT_MIN_WIDTH, min_height=DEFAULT_MIN_HEIGHT, *,
                   origin=Origin.PAGE_SCAN, zone=Zone.NONE, data=None,
                   loader=None, timeout=LOAD_TIMEOUT_SECONDS, trace=None):
    """
    Load `src` (or `data`, for inline images) and return an ImageCandidate
    when it meets the thresholds, else None.
    """
    trace = trace or default_trace

    dims = await load_dimensions(data if data is not None else src, loader, timeout)
    if not dims:
        trace("    - Skipped: failed to load image")
        return None

    width, height = dims
    reason = rejection_reason(width, height, min_width, min_height)
    if reason:
        trace(f"    - Skipped: {width}x{height} {reason}")
        return None

    trace(f"    + Loaded: {width}x{height}, aspect ratio: {width / height:.2f}, area: {width * height}")
    return ImageCandidate(
        source=src,
        width=width,
        height=height,
        format=detect_format(src),
        origin=origin,
        zone=zone,
        data=data,
    )
