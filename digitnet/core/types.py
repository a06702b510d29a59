"""Core typing contracts for DigitNet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .matrix import Matrix

Array = np.ndarray

Sample = Tuple[Array, Array]


@dataclass(frozen=True)
class ForwardCache:
    """Values captured by one layer during the forward pass of one sample.

    The backward formulas of :class:`digitnet.core.layer.Layer` consume this
    record instead of reading state left behind on the layer, so a cache can
    only ever describe the sample it was produced for.
    """

    inputs: Array
    pre_activation: "Matrix"
    output: Array


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`digitnet.training.pipelines.run_pipeline`."""

    epochs: int
    accuracy: float
    model_path: str = ""
    metrics_path: str = ""
    manifest_path: str = ""


__all__ = ["Array", "Sample", "ForwardCache", "RunResult"]
