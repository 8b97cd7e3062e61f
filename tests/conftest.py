import io
import sys
import os

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from weavinator.core.params import WeaveConfig, WeavePattern
from weavinator.utils.image_ops import tile_test_card


def make_config(**kw):
    """Config with every effect off unless given."""
    base = dict(
        tile_size=50,
        horizontal_shift=0.0,
        vertical_shift=0.0,
        scatter_intensity=0.0,
        pattern=WeavePattern.PLAIN,
        seed=0,
        opacity=100.0,
    )
    base.update(kw)
    return WeaveConfig(**base)


def png_bytes(raster):
    buf = io.BytesIO()
    Image.fromarray(raster).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def card():
    """100x100 RGB raster, one flat colour per 50px tile."""
    return tile_test_card(100, 100, 50)


@pytest.fixture
def gradient():
    """Raster whose every pixel is distinct, so any move is visible."""
    h, w = 70, 90
    yy, xx = np.mgrid[0:h, 0:w]
    return np.stack([xx * 2, yy * 3, (xx + yy) % 256], axis=-1).astype(np.uint8)
