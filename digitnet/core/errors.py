"""Error taxonomy for DigitNet."""

from __future__ import annotations


class DigitNetError(Exception):
    """Base class for every error raised by DigitNet itself."""


class ShapeMismatchError(DigitNetError, ValueError):
    """Raised when an operation combines matrices or vectors of incompatible shapes."""

    def __init__(self, operation: str, left: tuple[int, ...], right: tuple[int, ...]):
        super().__init__(
            f"Attempted to {operation} matrices of incorrect dimensions: {left} and {right}"
        )
        self.operation = operation
        self.left = left
        self.right = right


class TruncatedStreamError(DigitNetError, EOFError):
    """Raised when a binary stream ends before the announced data was read."""


class FormatError(DigitNetError, ValueError):
    """Raised when a binary file decodes to inconsistent content."""


class ModelFormatError(FormatError):
    """Raised when a model file is malformed or a model cannot be encoded."""


class DatasetFormatError(FormatError):
    """Raised when an IDX dataset carries values outside the expected range."""


__all__ = [
    "DigitNetError",
    "ShapeMismatchError",
    "TruncatedStreamError",
    "FormatError",
    "ModelFormatError",
    "DatasetFormatError",
]
