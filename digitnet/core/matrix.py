"""Dense two-dimensional float64 matrices."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from .errors import ShapeMismatchError
from .types import Array


class Matrix:
    """Row-major ``rows x cols`` grid of IEEE-754 doubles.

    Every operation returns a new :class:`Matrix`; the buffers of the operands
    are never shared with the result.
    """

    __slots__ = ("data",)

    def __init__(self, data: Array) -> None:
        data = np.array(data, dtype=np.float64, copy=True)
        if data.ndim != 2:
            raise ShapeMismatchError("build", tuple(data.shape), ("rows", "cols"))
        self.data = data

    # ------------------------------------------------------------------
    # Constructors

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Matrix":
        return cls(np.zeros((rows, cols), dtype=np.float64))

    @classmethod
    def random(
        cls, rows: int, cols: int, rng: np.random.Generator | None = None
    ) -> "Matrix":
        """Return a matrix of values drawn uniformly from ``[-1, 1)``."""

        rng = rng or np.random.default_rng()
        return cls(rng.random((rows, cols)) * 2.0 - 1.0)

    @classmethod
    def from_rows(cls, grid: Sequence[Sequence[float]]) -> "Matrix":
        """Build a matrix from nested rows; the first row fixes the column count."""

        rows = [list(row) for row in grid]
        cols = len(rows[0]) if rows else 0
        for row in rows:
            if len(row) != cols:
                raise ShapeMismatchError("build", (len(rows), cols), (len(row),))
        return cls(np.array(rows, dtype=np.float64).reshape(len(rows), cols))

    @classmethod
    def column(cls, vector: Sequence[float] | Array) -> "Matrix":
        """Return ``vector`` as an ``n x 1`` column matrix."""

        values = np.asarray(vector, dtype=np.float64).reshape(-1)
        return cls(values.reshape(-1, 1))

    # ------------------------------------------------------------------
    # Shape

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def cols(self) -> int:
        return int(self.data.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    # ------------------------------------------------------------------
    # Arithmetic

    def multiply(self, other: "Matrix") -> "Matrix":
        if self.cols != other.rows:
            raise ShapeMismatchError("multiply", self.shape, other.shape)
        return Matrix(self.data @ other.data)

    def add(self, other: "Matrix") -> "Matrix":
        self._require_same_shape("add", other)
        return Matrix(self.data + other.data)

    def subtract(self, other: "Matrix") -> "Matrix":
        self._require_same_shape("subtract", other)
        return Matrix(self.data - other.data)

    def scale(self, factor: float) -> "Matrix":
        return Matrix(self.data * float(factor))

    def map(self, function: Callable[[float], float]) -> "Matrix":
        """Apply a scalar ``function`` to every element."""

        if self.data.size == 0:
            return Matrix(self.data)
        mapped = np.vectorize(function, otypes=[np.float64])(self.data)
        return Matrix(mapped)

    def transpose(self) -> "Matrix":
        return Matrix(self.data.T)

    def _require_same_shape(self, operation: str, other: "Matrix") -> None:
        if self.shape != other.shape:
            raise ShapeMismatchError(operation, self.shape, other.shape)

    # ------------------------------------------------------------------
    # Conversions and comparisons

    def to_vector(self) -> Array:
        """Flatten the matrix in row-major order into a 1-D array."""

        return self.data.reshape(-1).copy()

    def tolist(self) -> list[list[float]]:
        return self.data.tolist()

    def allclose(self, other: "Matrix", atol: float = 1e-9) -> bool:
        return self.shape == other.shape and bool(
            np.allclose(self.data, other.data, rtol=0.0, atol=atol)
        )

    def __getitem__(self, index):
        return self.data[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Matrix(rows={self.rows}, cols={self.cols})"


__all__ = ["Matrix"]
