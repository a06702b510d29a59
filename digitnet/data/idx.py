"""IDX image/label codec.

Both files are big-endian. The image file starts with
``magic:u32 count:u32 rows:u32 cols:u32`` followed by ``count`` images of
``rows*cols`` unsigned bytes; the label file starts with
``magic:u32 count:u32`` followed by one byte per label.
"""

from __future__ import annotations

import struct
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from ..core.errors import DatasetFormatError, TruncatedStreamError
from ..core.types import Array, Sample

IMAGE_MAGIC = 2051
LABEL_MAGIC = 2049
NUM_CLASSES = 10

_IMAGE_HEADER = struct.Struct(">IIII")
_LABEL_HEADER = struct.Struct(">II")


@dataclass(frozen=True)
class IdxHeader:
    """Header fields of an image/label file pair."""

    image_magic_number: int
    image_count: int
    rows_count: int
    cols_count: int
    label_magic_number: int
    label_count: int

    @property
    def pixels_per_image(self) -> int:
        return self.rows_count * self.cols_count

    @property
    def record_count(self) -> int:
        return min(self.image_count, self.label_count)

    def as_dict(self) -> dict:
        return asdict(self)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if data is None or len(data) < size:
        got = 0 if data is None else len(data)
        raise TruncatedStreamError(f"Can't read the {what}: expected {size} bytes, got {got}")
    return data


def read_header(image_stream: BinaryIO, label_stream: BinaryIO) -> IdxHeader:
    """Consume the 16-byte image header and the 8-byte label header."""

    image_magic, image_count, rows, cols = _IMAGE_HEADER.unpack(
        _read_exact(image_stream, _IMAGE_HEADER.size, "images header")
    )
    label_magic, label_count = _LABEL_HEADER.unpack(
        _read_exact(label_stream, _LABEL_HEADER.size, "labels header")
    )
    return IdxHeader(
        image_magic_number=image_magic,
        image_count=image_count,
        rows_count=rows,
        cols_count=cols,
        label_magic_number=label_magic,
        label_count=label_count,
    )


def one_hot(label: int, num_classes: int = NUM_CLASSES) -> Array:
    if not 0 <= label < num_classes:
        raise DatasetFormatError(f"Label {label} is outside 0..{num_classes - 1}")
    target = np.zeros(num_classes, dtype=np.float64)
    target[label] = 1.0
    return target


def read_records(
    image_stream: BinaryIO,
    label_stream: BinaryIO,
    header: IdxHeader,
    limit: int | None = None,
) -> Iterator[Sample]:
    """Yield ``(pixels, one_hot_target)`` pairs read in lock-step from both streams.

    Pixels keep their raw ``0..255`` values. The streams must already be
    positioned after their headers.
    """

    count = header.record_count if limit is None else min(limit, header.record_count)
    pixels = header.pixels_per_image
    for index in range(count):
        (label,) = _read_exact(label_stream, 1, f"label #{index}")
        image = _read_exact(image_stream, pixels, f"pixels of image #{index}")
        yield np.frombuffer(image, dtype=np.uint8).astype(np.float64), one_hot(label)


class IdxDataset:
    """Restartable view over an IDX file pair.

    Only the paths and the header are kept. Every iteration opens fresh file
    handles and seeks past the headers, so iterations never share state.
    """

    IMAGE_OFFSET = _IMAGE_HEADER.size
    LABEL_OFFSET = _LABEL_HEADER.size

    def __init__(self, images_path: str | Path, labels_path: str | Path) -> None:
        self.images_path = Path(images_path)
        self.labels_path = Path(labels_path)
        with self.images_path.open("rb") as images, self.labels_path.open("rb") as labels:
            self.header = read_header(images, labels)

    def records(self, limit: int | None = None) -> Iterator[Sample]:
        with self.images_path.open("rb") as images, self.labels_path.open("rb") as labels:
            images.seek(self.IMAGE_OFFSET)
            labels.seek(self.LABEL_OFFSET)
            yield from read_records(images, labels, self.header, limit=limit)

    def load(self, limit: int | None = None) -> Tuple[List[Array], List[Array]]:
        """Materialise up to ``limit`` records as ``(inputs, targets)`` lists."""

        inputs: List[Array] = []
        targets: List[Array] = []
        for pixels, target in self.records(limit):
            inputs.append(pixels)
            targets.append(target)
        return inputs, targets

    def __iter__(self) -> Iterator[Sample]:
        return self.records()

    def __len__(self) -> int:
        return self.header.record_count


def write_idx_images(
    path: str | Path,
    images: Iterable[Sequence[int]] | Array,
    rows: int,
    cols: int,
    *,
    magic: int = IMAGE_MAGIC,
) -> Path:
    pixels = np.asarray(list(images) if not isinstance(images, np.ndarray) else images)
    pixels = pixels.reshape(-1, rows * cols) if pixels.size else pixels.reshape(0, rows * cols)
    if pixels.min(initial=0) < 0 or pixels.max(initial=0) > 255:
        raise DatasetFormatError("Pixel values must fit in an unsigned byte")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        handle.write(_IMAGE_HEADER.pack(magic, pixels.shape[0], rows, cols))
        handle.write(pixels.astype(np.uint8).tobytes())
    return path


def write_idx_labels(
    path: str | Path, labels: Iterable[int] | Array, *, magic: int = LABEL_MAGIC
) -> Path:
    values = np.asarray(list(labels) if not isinstance(labels, np.ndarray) else labels)
    values = values.reshape(-1)
    if values.min(initial=0) < 0 or values.max(initial=0) > 255:
        raise DatasetFormatError("Labels must fit in an unsigned byte")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        handle.write(_LABEL_HEADER.pack(magic, values.shape[0]))
        handle.write(values.astype(np.uint8).tobytes())
    return path


__all__ = [
    "IMAGE_MAGIC",
    "LABEL_MAGIC",
    "NUM_CLASSES",
    "IdxHeader",
    "IdxDataset",
    "one_hot",
    "read_header",
    "read_records",
    "write_idx_images",
    "write_idx_labels",
]
