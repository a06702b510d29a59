"""Activation functions for DigitNet."""

from __future__ import annotations

from enum import Enum

import numpy as np

LEAKY_SLOPE = 0.01


def sigmoid(x):
    """Return the logistic sigmoid of ``x``."""

    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def sigmoid_prime(x):
    s = sigmoid(x)
    return s * (1.0 - s)


def leaky_relu(x):
    return np.where(x > 0, x, LEAKY_SLOPE * x)[()]


def leaky_relu_prime(x):
    return np.where(x > 0, 1.0, LEAKY_SLOPE)[()]


class Activation(Enum):
    """Closed set of activations a network can be built with."""

    SIGMOID = "sigmoid"
    LEAKY_RELU = "leaky_relu"

    def function(self, x):
        return _FUNCTIONS[self][0](x)

    def derivative(self, x):
        return _FUNCTIONS[self][1](x)

    @classmethod
    def from_name(cls, name: "str | Activation") -> "Activation":
        if isinstance(name, Activation):
            return name
        key = str(name).strip().lower().replace("-", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown activation {name!r}. Available: {choices}") from exc


_FUNCTIONS = {
    Activation.SIGMOID: (sigmoid, sigmoid_prime),
    Activation.LEAKY_RELU: (leaky_relu, leaky_relu_prime),
}

_ALIASES = {"relu": "leaky_relu", "leakyrelu": "leaky_relu"}


__all__ = [
    "Activation",
    "sigmoid",
    "sigmoid_prime",
    "leaky_relu",
    "leaky_relu_prime",
]
