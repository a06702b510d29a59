"""Binary model codec.

Layout, all big-endian::

    u16                 number of layer sizes (layers + 1)
    u16 * sizes         size_in of the first layer, then size_out of every layer
    per layer:
        f64 * out*in    weights, row-major
        f64 * out       biases

Neither the activation nor the learning rate is stored.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np

from .errors import ModelFormatError
from .matrix import Matrix

_U16 = struct.Struct(">H")
_F64 = np.dtype(">f8")
_MAX_U16 = 0xFFFF

Parameters = List[Tuple[Matrix, Matrix]]


def encode_model(sizes: Sequence[int], parameters: Sequence[Tuple[Matrix, Matrix]]) -> bytes:
    """Serialise layer sizes and ``(weights, biases)`` pairs into the model format."""

    sizes = [int(size) for size in sizes]
    if len(sizes) - 1 != len(parameters):
        raise ModelFormatError(
            f"{len(sizes)} sizes describe {len(sizes) - 1} layers, got {len(parameters)}"
        )
    if len(sizes) > _MAX_U16 or any(not 0 < size <= _MAX_U16 for size in sizes):
        raise ModelFormatError(f"Layer sizes must fit in an unsigned 16-bit field: {sizes}")

    chunks = [_U16.pack(len(sizes))]
    chunks.extend(_U16.pack(size) for size in sizes)
    for index, (weights, biases) in enumerate(parameters):
        size_in, size_out = sizes[index], sizes[index + 1]
        if weights.shape != (size_out, size_in) or biases.shape != (size_out, 1):
            raise ModelFormatError(
                f"Layer {index} parameters {weights.shape}/{biases.shape} do not match "
                f"sizes {size_in}->{size_out}"
            )
        chunks.append(weights.data.astype(_F64).tobytes())
        chunks.append(biases.data.astype(_F64).tobytes())
    return b"".join(chunks)


def decode_model(payload: bytes) -> Tuple[List[int], Parameters]:
    """Inverse of :func:`encode_model`."""

    if len(payload) < _U16.size:
        raise ModelFormatError("Model file is too short to hold the layer count")
    (count,) = _U16.unpack_from(payload, 0)
    if count < 2:
        raise ModelFormatError(f"A model needs at least 2 layer sizes, file declares {count}")
    offset = _U16.size
    header_end = offset + count * _U16.size
    if len(payload) < header_end:
        raise ModelFormatError(
            f"Model file declares {count} layer sizes but ends after {len(payload)} bytes"
        )
    sizes = [_U16.unpack_from(payload, offset + i * _U16.size)[0] for i in range(count)]
    if any(size == 0 for size in sizes):
        raise ModelFormatError(f"Model file declares an empty layer: {sizes}")

    expected = header_end + _F64.itemsize * sum(
        size_out * (size_in + 1) for size_in, size_out in zip(sizes[:-1], sizes[1:])
    )
    if len(payload) != expected:
        raise ModelFormatError(
            f"Model file for sizes {sizes} must be {expected} bytes, found {len(payload)}"
        )

    parameters: Parameters = []
    offset = header_end
    for size_in, size_out in zip(sizes[:-1], sizes[1:]):
        weights = np.frombuffer(payload, dtype=_F64, count=size_out * size_in, offset=offset)
        offset += weights.nbytes
        biases = np.frombuffer(payload, dtype=_F64, count=size_out, offset=offset)
        offset += biases.nbytes
        parameters.append(
            (
                Matrix(weights.astype(np.float64).reshape(size_out, size_in)),
                Matrix(biases.astype(np.float64).reshape(size_out, 1)),
            )
        )
    return sizes, parameters


def save_model(
    path: str | Path, sizes: Sequence[int], parameters: Sequence[Tuple[Matrix, Matrix]]
) -> Path:
    payload = encode_model(sizes, parameters)
    path = Path(path)
    if path.parent != Path(""):
        path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        handle.write(payload)
    return path


def load_model(path: str | Path) -> Tuple[List[int], Parameters]:
    with Path(path).open("rb") as handle:
        payload = handle.read()
    return decode_model(payload)


__all__ = ["encode_model", "decode_model", "save_model", "load_model"]
