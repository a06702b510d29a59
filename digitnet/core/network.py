"""Feed-forward network built from a linear stack of dense layers."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from . import persistence
from .activations import Activation
from .errors import ShapeMismatchError
from .layer import Layer
from .matrix import Matrix
from .types import Array, ForwardCache


class Network:
    """Ordered stack of :class:`Layer` objects trained with plain gradient descent.

    Parameters
    ----------
    layer_sizes:
        Width of every layer including the input, e.g. ``[784, 100, 10]``.
    learning_rate:
        Fixed step size; it is divided by the batch size when applied.
    activation:
        Shared by every layer of the network.
    seed:
        Optional seed for the uniform ``[-1, 1)`` weight initialisation.
    callbacks:
        Objects exposing ``on_epoch(epoch, metrics)`` and/or
        ``on_step(step, metrics)``, or plain callables receiving
        ``(epoch, metrics)`` after every batch update.
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        learning_rate: float = 1.0,
        activation: Activation | str = Activation.SIGMOID,
        *,
        seed: int | None = None,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        sizes = [int(size) for size in layer_sizes]
        if len(sizes) < 2:
            raise ValueError("A network needs at least an input and an output size")
        if any(size <= 0 for size in sizes):
            raise ValueError(f"Layer sizes must be positive, got {sizes}")
        self.learning_rate = float(learning_rate)
        self.activation = Activation.from_name(activation)
        self.callbacks = list(callbacks or [])
        rng = np.random.default_rng(seed)
        self.layers: List[Layer] = [
            Layer(size_in, size_out, self.activation, rng=rng)
            for size_in, size_out in zip(sizes[:-1], sizes[1:])
        ]

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    @property
    def sizes(self) -> List[int]:
        return [self.layers[0].size_in] + [layer.size_out for layer in self.layers]

    # ------------------------------------------------------------------
    # Inference

    def forward_pass(self, inputs: Sequence[float] | Array) -> tuple[Array, List[ForwardCache]]:
        current = np.asarray(inputs, dtype=np.float64).reshape(-1)
        caches: List[ForwardCache] = []
        for layer in self.layers:
            current, cache = layer.compute_output(current)
            caches.append(cache)
        return current, caches

    def feed_forwards(self, inputs: Sequence[float] | Array) -> Array:
        output, _ = self.forward_pass(inputs)
        return output

    def recognize(self, inputs: Sequence[float] | Array) -> int:
        """Return the index of the strongest output unit."""

        return int(np.argmax(self.feed_forwards(inputs)))

    def test_accuracy(
        self, inputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]
    ) -> float:
        """Return the fraction of samples whose arg-max output is the one-hot target."""

        if len(inputs) != len(targets):
            raise ShapeMismatchError("score", (len(inputs),), (len(targets),))
        if len(inputs) == 0:
            raise ValueError("Cannot measure accuracy on an empty dataset")
        successes = 0
        for index, (sample, target) in enumerate(zip(inputs, targets)):
            predicted = self.recognize(sample)
            if target[predicted] == 1.0:
                successes += 1
            self._emit_step(index + 1, {"accuracy": successes / (index + 1)})
        return successes / len(inputs)

    # ------------------------------------------------------------------
    # Training

    def update_all_gradients(
        self, inputs: Sequence[float] | Array, target: Sequence[float] | Array
    ) -> float:
        """Accumulate the gradients of one sample into every layer.

        Returns the squared-error cost of the sample. Hidden layers are
        visited from ``layer_count - 2`` down to and including index 0.
        """

        output, caches = self.forward_pass(inputs)
        output_layer = self.layers[-1]
        node_values = output_layer.output_layer_node_values(caches[-1], target)
        output_layer.update_gradients(caches[-1], node_values)

        for index in range(self.layer_count - 2, -1, -1):
            layer = self.layers[index]
            next_weights = self.layers[index + 1].weights
            node_values = layer.hidden_layer_node_values(caches[index], next_weights, node_values)
            layer.update_gradients(caches[index], node_values)

        target = np.asarray(target, dtype=np.float64).reshape(-1)
        return float(np.sum(Layer.node_cost(output, target)))

    def learn(
        self,
        inputs_batch: Sequence[Sequence[float]],
        targets_batch: Sequence[Sequence[float]],
        current_epoch: int,
        total_epochs: int,
    ) -> float:
        """Run one gradient-descent step over a whole batch and return its mean cost."""

        if len(inputs_batch) != len(targets_batch):
            raise ShapeMismatchError("batch", (len(inputs_batch),), (len(targets_batch),))
        if len(inputs_batch) == 0:
            raise ValueError("Cannot learn from an empty batch")

        total_cost = 0.0
        for sample, target in zip(inputs_batch, targets_batch):
            total_cost += self.update_all_gradients(sample, target)

        rate = self.learning_rate / len(inputs_batch)
        for layer in self.layers:
            layer.apply_gradients(rate)
            layer.clear_gradients()

        cost = total_cost / len(inputs_batch)
        self._emit_epoch(
            current_epoch,
            {"cost": cost, "batch_size": len(inputs_batch), "total_epochs": total_epochs},
        )
        return cost

    def train_with_batch(
        self,
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        epochs: int,
        batch_size: int,
    ) -> None:
        """Train on fixed-size batches, one batch per epoch, cycling round-robin.

        Samples past the last full batch are never used.
        """

        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        batches = list(self._split_batches(inputs, targets, batch_size))
        if not batches:
            raise ValueError(
                f"Need at least {batch_size} samples for one batch, got {len(inputs)}"
            )
        for epoch in range(epochs):
            batch_inputs, batch_targets = batches[epoch % len(batches)]
            self.learn(batch_inputs, batch_targets, epoch + 1, epochs)

    def train(
        self,
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        epochs: int,
    ) -> None:
        """Full-batch gradient descent: every epoch uses the whole dataset."""

        for epoch in range(epochs):
            self.learn(inputs, targets, epoch + 1, epochs)

    @staticmethod
    def _split_batches(
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        batch_size: int,
    ) -> Iterable[tuple[list, list]]:
        if len(inputs) != len(targets):
            raise ShapeMismatchError("batch", (len(inputs),), (len(targets),))
        for start in range(0, (len(inputs) // batch_size) * batch_size, batch_size):
            end = start + batch_size
            yield list(inputs[start:end]), list(targets[start:end])

    # ------------------------------------------------------------------
    # Persistence

    def save(self, path: str | Path) -> Path:
        parameters = [(layer.weights, layer.biases) for layer in self.layers]
        return persistence.save_model(path, self.sizes, parameters)

    @classmethod
    def load_from_file(
        cls,
        path: str | Path,
        learning_rate: float = 1.0,
        activation: Activation | str = Activation.SIGMOID,
        *,
        callbacks: Sequence[object] | None = None,
    ) -> "Network":
        sizes, parameters = persistence.load_model(path)
        network = cls(sizes, learning_rate, activation, callbacks=callbacks)
        for layer, (weights, biases) in zip(network.layers, parameters):
            layer.weights = Matrix(weights.data)
            layer.biases = Matrix(biases.data)
        return network

    # ------------------------------------------------------------------
    # Callback plumbing

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)

    def _emit_step(self, step: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(step, metrics)  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return (
            f"Network(sizes={self.sizes}, learning_rate={self.learning_rate}, "
            f"activation={self.activation.value})"
        )


__all__ = ["Network"]
