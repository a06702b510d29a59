import warnings

import numpy as np
import pytest

from digitnet.core.activations import (
    Activation,
    leaky_relu,
    leaky_relu_prime,
    sigmoid,
    sigmoid_prime,
)


def test_sigmoid_stays_inside_open_unit_interval():
    xs = np.linspace(-30.0, 30.0, 121)
    values = sigmoid(xs)
    assert np.all(values > 0.0)
    assert np.all(values < 1.0)
    assert sigmoid(0.0) == 0.5


@pytest.mark.parametrize("x", [-6.0, -2.5, -0.3, 0.0, 0.7, 1.9, 4.2])
def test_sigmoid_derivative_matches_finite_difference(x):
    h = 1e-5
    numeric = (sigmoid(x + h) - sigmoid(x - h)) / (2 * h)
    assert abs(sigmoid_prime(x) - numeric) < 1e-4


def test_sigmoid_saturates_without_overflow_warning():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert sigmoid(-1000.0) == 0.0
        assert sigmoid(1000.0) == 1.0


def test_leaky_relu_values_and_derivative():
    assert leaky_relu(3.0) == 3.0
    assert leaky_relu(-2.0) == pytest.approx(-0.02)
    assert leaky_relu(0.0) == 0.0
    assert leaky_relu_prime(3.0) == 1.0
    assert leaky_relu_prime(-2.0) == 0.01
    assert leaky_relu_prime(0.0) == 0.01


def test_enum_dispatches_to_free_functions():
    assert Activation.SIGMOID.function(0.0) == 0.5
    assert Activation.SIGMOID.derivative(0.0) == 0.25
    assert Activation.LEAKY_RELU.function(-1.0) == pytest.approx(-0.01)
    assert Activation.LEAKY_RELU.derivative(2.0) == 1.0


def test_activation_from_name():
    assert Activation.from_name("sigmoid") is Activation.SIGMOID
    assert Activation.from_name("Leaky-ReLU") is Activation.LEAKY_RELU
    assert Activation.from_name("relu") is Activation.LEAKY_RELU
    assert Activation.from_name(Activation.SIGMOID) is Activation.SIGMOID
    with pytest.raises(ValueError):
        Activation.from_name("tanh")
