"""Test fixtures for tilesplit tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import numpy as np
import pytest

from tilesplit.preprocess.backends import VIPSBackend

#: Quadrant colors of the sample image: top-left, top-right, bottom-left, bottom-right
QUADRANT_COLORS = {
    (0, 0): (200, 50, 50),
    (1, 0): (50, 200, 50),
    (0, 1): (50, 50, 200),
    (1, 1): (150, 50, 150),
}


def quadrant_array(side: int) -> np.ndarray:
    """RGB image of ``side`` px with a solid color per quadrant."""
    img = np.zeros((side, side, 3), dtype=np.uint8)
    half = side // 2
    for (qx, qy), color in QUADRANT_COLORS.items():
        img[qy * half:(qy + 1) * half, qx * half:(qx + 1) * half] = color
    return img


def gradient_array(side: int) -> np.ndarray:
    """RGB image of ``side`` px where every pixel differs from its neighbours."""
    ys, xs = np.mgrid[0:side, 0:side]
    img = np.stack(
        [(xs * 7) % 256, (ys * 11) % 256, ((xs + ys) * 3) % 256], axis=-1
    )
    return img.astype(np.uint8)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_rgb_array() -> np.ndarray:
    """64x64 RGB image with colored quadrants (zoom 1 for 32px tiles)."""
    return quadrant_array(64)


@pytest.fixture
def sample_image(sample_rgb_array: np.ndarray):
    """The quadrant sample as a pyvips image."""
    return VIPSBackend.from_numpy(sample_rgb_array)


@pytest.fixture
def gradient_image():
    """64x64 gradient as a pyvips image (zoom 2 for 16px tiles)."""
    return VIPSBackend.from_numpy(gradient_array(64))


@pytest.fixture
def source_png(temp_dir: Path) -> Path:
    """64x64 gradient PNG on disk (zoom 2 for 16px tiles)."""
    path = temp_dir / "source.png"
    VIPSBackend.save_png(VIPSBackend.from_numpy(gradient_array(64)), path)
    return path


@pytest.fixture
def truncated_png(source_png: Path) -> Path:
    """The gradient PNG cut off halfway through its pixel data."""
    path = source_png.with_name("truncated.png")
    data = source_png.read_bytes()
    path.write_bytes(data[: len(data) // 2])
    return path
