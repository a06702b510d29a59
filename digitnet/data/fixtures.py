"""Deterministic IDX fixtures for offline runs."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import numpy as np

from .idx import NUM_CLASSES, write_idx_images, write_idx_labels

FIXTURE_IMAGES = "fixture-images-idx3-ubyte"
FIXTURE_LABELS = "fixture-labels-idx1-ubyte"


def fixture_arrays(
    count: int = 100, rows: int = 8, cols: int = 8, seed: int = 0
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(images, labels)`` where each digit lights its own set of pixels.

    Pixel ``k`` of a class-``d`` image is bright when ``k % 10 == d``; a small
    amount of seeded noise is added on top so samples are not identical.
    """

    rng = np.random.default_rng(seed)
    labels = np.arange(count, dtype=np.int64) % NUM_CLASSES
    positions = np.arange(rows * cols) % NUM_CLASSES
    images = np.where(positions[None, :] == labels[:, None], 200, 0)
    images = images + rng.integers(0, 40, size=images.shape)
    return images.astype(np.uint8), labels.astype(np.uint8)


def build_fixture(
    directory: str | Path, count: int = 100, rows: int = 8, cols: int = 8, seed: int = 0
) -> Tuple[Path, Path]:
    """Write the fixture as an IDX pair under ``directory`` and return both paths."""

    directory = Path(directory)
    images, labels = fixture_arrays(count, rows, cols, seed)
    images_path = write_idx_images(directory / FIXTURE_IMAGES, images, rows, cols)
    labels_path = write_idx_labels(directory / FIXTURE_LABELS, labels)
    return images_path, labels_path


__all__ = ["fixture_arrays", "build_fixture"]
