from pathlib import Path

import numpy as np
import pytest

from spritesheet2frames.core import ExtractionSettings, SpriteSheet

RED = (200, 60, 40, 255)

# five 16x16 squares, 8px apart, on a 116x20 canvas
FIVE_SQUARES = [(2 + i * 24, 2, 16, 16) for i in range(5)]


def build_sheet(width, height, boxes=(), name="sheet.png", color=RED, background=(0, 0, 0, 0)):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = background
    for box in boxes:
        x, y, w, h = box[:4]
        pixels[y : y + h, x : x + w] = box[4] if len(box) > 4 else color
    return SpriteSheet(source=Path(name), pixels=pixels)


@pytest.fixture
def make_sheet():
    return build_sheet


@pytest.fixture
def settings():
    return ExtractionSettings()


@pytest.fixture
def two_square_sheet():
    return build_sheet(128, 64, [(4, 4, 56, 56), (68, 4, 56, 56)], name="pair.png")


@pytest.fixture
def five_square_sheet():
    return build_sheet(116, 20, FIVE_SQUARES, name="row.png")
