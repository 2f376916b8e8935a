# -*- coding: utf-8 -*-
import enum
import logging
from typing import Tuple

from PIL import Image, ImageFilter

logger = logging.getLogger(__name__)


class Algorithm(str, enum.Enum):
    NEAREST_NEIGHBOR = "nearest"
    TRIANGLE = "triangle"
    CATMULL_ROM = "catmull-rom"
    GAUSSIAN = "gaussian"
    LANCZOS3 = "lanczos3"


QUALITY_ALGORITHMS = {
    1: Algorithm.NEAREST_NEIGHBOR,
    2: Algorithm.TRIANGLE,
    3: Algorithm.CATMULL_ROM,
    4: Algorithm.GAUSSIAN,
    5: Algorithm.LANCZOS3,
}

ALGORITHM_NAMES = {
    Algorithm.NEAREST_NEIGHBOR: "Nearest Neighbor",
    Algorithm.TRIANGLE: "Linear: Triangle",
    Algorithm.CATMULL_ROM: "Cubic: Catmull-Rom",
    Algorithm.GAUSSIAN: "Gaussian",
    Algorithm.LANCZOS3: "Lanczos with window 3",
}

_PIL_RESAMPLE_FILTERS = {
    Algorithm.NEAREST_NEIGHBOR: Image.Resampling.NEAREST,
    Algorithm.TRIANGLE: Image.Resampling.BILINEAR,
    Algorithm.CATMULL_ROM: Image.Resampling.BICUBIC,
    Algorithm.GAUSSIAN: Image.Resampling.BILINEAR,
    Algorithm.LANCZOS3: Image.Resampling.LANCZOS,
}

# Modes ImageFilter.GaussianBlur accepts; others are resized without the blur.
_BLURRABLE_MODES = ("L", "LA", "La", "RGB", "RGBA", "RGBa", "RGBX", "CMYK", "YCbCr", "LAB", "HSV")


def should_resize(actual_width: int, actual_height: int, target_width: int, target_height: int) -> bool:
    """Returns False when the image already fits inside both bounds."""
    return not (actual_width <= target_width and actual_height <= target_height)


def algorithm_for(quality: int) -> Algorithm:
    try:
        return QUALITY_ALGORITHMS[quality]
    except (KeyError, TypeError):
        raise ValueError(f"quality must be between 1-5, got {quality!r}") from None


def fit_within(original_width: int, original_height: int, box_width: int, box_height: int) -> Tuple[int, int]:
    """
    Computes the largest size with the original aspect ratio that fits in the box.

    The side with the larger relative overshoot lands exactly on its bound and
    the other side is scaled by the same ratio and rounded to the nearest pixel.
    """
    if original_width <= 0 or original_height <= 0:
        raise ValueError(f"Invalid image dimensions ({original_width}x{original_height})")
    if box_width <= 0 or box_height <= 0:
        raise ValueError(f"Invalid target dimensions ({box_width}x{box_height})")

    ratio = min(box_width / original_width, box_height / original_height)
    new_width = min(box_width, max(1, round(original_width * ratio)))
    new_height = min(box_height, max(1, round(original_height * ratio)))
    return new_width, new_height


def resample(img: Image.Image, size: Tuple[int, int], algorithm: Algorithm) -> Image.Image:
    original_width, original_height = img.size
    new_width, new_height = size
    if (new_width, new_height) == (original_width, original_height):
        logger.debug("Calculated resize dimensions are the same as original. Skipping resize.")
        return img

    source = img
    if algorithm is Algorithm.GAUSSIAN and img.mode in _BLURRABLE_MODES:
        reduction = max(original_width / new_width, original_height / new_height)
        radius = max(0.0, (reduction - 1.0) / 2.0)
        if radius > 0:
            source = img.filter(ImageFilter.GaussianBlur(radius))

    logger.debug(f"Resizing ({algorithm.value}): ({original_width},{original_height}) -> ({new_width},{new_height})")
    return source.resize((new_width, new_height), _PIL_RESAMPLE_FILTERS[algorithm])
