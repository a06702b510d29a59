from __future__ import annotations

import numpy as np
import pytest

from digitnet.core.activations import Activation
from digitnet.core.matrix import Matrix
from digitnet.core.network import Network
from digitnet.data.fixtures import fixture_arrays
from digitnet.data.idx import one_hot
from digitnet.reporting.metrics import MetricsCapture


def _separable_dataset():
    inputs = [np.array(x, dtype=np.float64) for x in ([0, 0], [0, 1], [1, 0], [1, 1])]
    targets = [one_hot(int(x[0]), num_classes=2) for x in inputs]
    return inputs, targets


def test_full_batch_training_converges_on_separable_data() -> None:
    inputs, targets = _separable_dataset()
    network = Network([2, 3, 2], learning_rate=1.0, seed=0)
    network.train(inputs, targets, epochs=3000)
    assert network.test_accuracy(inputs, targets) == 1.0


def test_single_layer_leaky_relu_converges() -> None:
    inputs, targets = _separable_dataset()
    network = Network([2, 2], learning_rate=0.3, activation=Activation.LEAKY_RELU, seed=1)
    # zero start: both units begin on the leaky side of the kink
    network.layers[0].weights = Matrix.zeros(2, 2)
    network.layers[0].biases = Matrix.zeros(2, 1)
    network.train(inputs, targets, epochs=2000)
    assert network.test_accuracy(inputs, targets) == 1.0


def test_mini_batch_training_lowers_cost() -> None:
    inputs, targets = _separable_dataset()
    capture = MetricsCapture()
    network = Network([2, 4, 2], learning_rate=1.0, seed=2, callbacks=[capture])
    network.train_with_batch(inputs * 3, targets * 3, epochs=1500, batch_size=4)

    assert len(capture.history) == 1500
    first = np.mean([m["cost"] for _, m in capture.history[:20]])
    last = np.mean([m["cost"] for _, m in capture.history[-20:]])
    assert last < first
    assert network.test_accuracy(inputs, targets) == 1.0


@pytest.mark.parametrize("batch_size", [5, None])
def test_fixture_training_records_every_epoch(batch_size) -> None:
    images, labels = fixture_arrays(count=20, rows=3, cols=4, seed=0)
    inputs = [image.astype(np.float64) for image in images]
    targets = [one_hot(int(label)) for label in labels]
    capture = MetricsCapture()
    network = Network([12, 6, 10], learning_rate=0.5, seed=0, callbacks=[capture])
    if batch_size:
        network.train_with_batch(inputs, targets, epochs=8, batch_size=batch_size)
    else:
        network.train(inputs, targets, epochs=8)
    assert [epoch for epoch, _ in capture.history] == list(range(1, 9))
    assert all(np.isfinite(m["cost"]) for _, m in capture.history)
    assert 0.0 <= network.test_accuracy(inputs, targets) <= 1.0
