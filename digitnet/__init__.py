"""DigitNet public API."""

from .core import activations, errors, types  # noqa: F401
from .core.activations import Activation
from .core.layer import Layer
from .core.matrix import Matrix
from .core.network import Network
from .data.idx import IdxDataset
from .training.pipelines import load_preset, presets, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "Activation",
    "IdxDataset",
    "Layer",
    "Matrix",
    "Network",
    "activations",
    "errors",
    "types",
    "load_preset",
    "presets",
    "run_pipeline",
]
