"""Core numerical primitives for DigitNet."""

from . import activations, errors, layer, matrix, network, persistence, types

__all__ = ["activations", "errors", "layer", "matrix", "network", "persistence", "types"]
