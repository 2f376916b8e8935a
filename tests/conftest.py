# -*- coding: utf-8 -*-
import hashlib
import os

import pytest
from PIL import Image

from imgresize.config import build_config


def make_image(path, size, fmt=None, noise=False):
    """Writes an image of the given size. Noise makes the file large and incompressible."""
    if noise:
        img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    else:
        img = Image.new("RGB", size, (200, 120, 40))
    img.save(str(path), format=fmt)
    return str(path)


def digest(path):
    with open(path, "rb") as f:
        return hashlib.sha256(f.read()).hexdigest()


def image_size(path):
    with Image.open(path) as img:
        return img.size


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        options = dict(
            input_dir=str(tmp_path),
            extensions=["jpg", "png"],
            min_size=100,
            width=64,
            height=48,
            jobs=1,
            show_progress=False,
        )
        options.update(overrides)
        return build_config(**options)
    return _make
