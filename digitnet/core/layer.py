"""Fully-connected layer with backpropagation helpers."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .activations import Activation
from .errors import ShapeMismatchError
from .matrix import Matrix
from .types import Array, ForwardCache


class Layer:
    """One ``size_in -> size_out`` dense transformation followed by an activation.

    The layer owns its parameters and the per-batch gradient accumulators.
    Everything that belongs to a single sample travels in a
    :class:`~digitnet.core.types.ForwardCache` returned by
    :meth:`compute_output`.
    """

    def __init__(
        self,
        size_in: int,
        size_out: int,
        activation: Activation = Activation.SIGMOID,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.size_in = int(size_in)
        self.size_out = int(size_out)
        self.activation = activation
        self.weights = Matrix.random(self.size_out, self.size_in, rng)
        self.biases = Matrix.random(self.size_out, 1, rng)
        self.clear_gradients()

    def compute_output(self, inputs: Sequence[float] | Array) -> tuple[Array, ForwardCache]:
        inputs = np.asarray(inputs, dtype=np.float64).reshape(-1)
        if inputs.size != self.size_in:
            raise ShapeMismatchError("feed", (self.size_in,), (inputs.size,))
        pre_activation = self.weights.multiply(Matrix.column(inputs)).add(self.biases)
        output = pre_activation.map(self.activation.function).to_vector()
        return output, ForwardCache(inputs=inputs, pre_activation=pre_activation, output=output)

    @staticmethod
    def node_cost(output, target):
        return (output - target) ** 2

    @staticmethod
    def node_cost_derivative(output, target):
        return 2.0 * (output - target)

    def output_layer_node_values(
        self, cache: ForwardCache, target: Sequence[float] | Array
    ) -> Array:
        """Return dCost/dPreActivation for an output layer under squared error."""

        target = np.asarray(target, dtype=np.float64).reshape(-1)
        if target.size != self.size_out:
            raise ShapeMismatchError("compare", (self.size_out,), (target.size,))
        cost_derivative = self.node_cost_derivative(cache.output, target)
        return self._activation_derivative(cache) * cost_derivative

    def hidden_layer_node_values(
        self,
        cache: ForwardCache,
        next_weights: Matrix,
        next_node_values: Sequence[float] | Array,
    ) -> Array:
        """Back-propagate ``next_node_values`` through the following layer's weights.

        ``next_weights`` is ``next_size_out x size_out``; unit ``i`` receives
        ``sum_j next_weights[j][i] * next_node_values[j]``.
        """

        if next_weights.cols != self.size_out:
            raise ShapeMismatchError("backpropagate", (self.size_out,), next_weights.shape)
        propagated = next_weights.transpose().multiply(Matrix.column(next_node_values))
        return self._activation_derivative(cache) * propagated.to_vector()

    def update_gradients(self, cache: ForwardCache, node_values: Sequence[float] | Array) -> None:
        node_values = np.asarray(node_values, dtype=np.float64).reshape(-1)
        if node_values.size != self.size_out:
            raise ShapeMismatchError("accumulate", (self.size_out,), (node_values.size,))
        self.cost_gradient_w = self.cost_gradient_w.add(
            Matrix(np.outer(node_values, cache.inputs))
        )
        self.cost_gradient_b = self.cost_gradient_b.add(Matrix.column(node_values))

    def apply_gradients(self, learning_rate: float) -> None:
        self.biases = self.biases.subtract(self.cost_gradient_b.scale(learning_rate))
        self.weights = self.weights.subtract(self.cost_gradient_w.scale(learning_rate))

    def clear_gradients(self) -> None:
        self.cost_gradient_w = Matrix.zeros(self.size_out, self.size_in)
        self.cost_gradient_b = Matrix.zeros(self.size_out, 1)

    def _activation_derivative(self, cache: ForwardCache) -> Array:
        return cache.pre_activation.map(self.activation.derivative).to_vector()

    def __repr__(self) -> str:
        return (
            f"Layer(size_in={self.size_in}, size_out={self.size_out}, "
            f"activation={self.activation.value})"
        )


__all__ = ["Layer"]
