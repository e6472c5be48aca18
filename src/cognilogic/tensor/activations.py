"""
Activation functions shared by the truth-value algebra, rules and attention.
"""

import numpy as np
from typing import Sequence, Union

ArrayLike = Union[float, np.ndarray]

SIGMOID_SATURATION = 20.0


def sigmoid(x: ArrayLike) -> ArrayLike:
    """
    Logistic sigmoid, saturating to exactly 1 above +20 and 0 below -20.

    Args:
        x: Scalar or array

    Returns:
        Same shape as x, values in [0, 1]
    """
    arr = np.asarray(x, dtype=float)
    clipped = np.clip(arr, -SIGMOID_SATURATION, SIGMOID_SATURATION)
    out = 1.0 / (1.0 + np.exp(-clipped))
    out = np.where(arr > SIGMOID_SATURATION, 1.0, out)
    out = np.where(arr < -SIGMOID_SATURATION, 0.0, out)
    if np.ndim(x) == 0:
        return float(out)
    return out


def tanh(x: ArrayLike) -> ArrayLike:
    """Hyperbolic tangent (the saturating nonlinearity used by rule application)."""
    if np.ndim(x) == 0:
        return float(np.tanh(x))
    return np.tanh(x)


def relu(x: ArrayLike) -> ArrayLike:
    if np.ndim(x) == 0:
        return float(max(x, 0.0))
    return np.maximum(x, 0.0)


def softmax(values: np.ndarray, axis: int = -1) -> np.ndarray:
    """
    Numerically stable softmax.

    The maximum along the axis is subtracted before exponentiation so large
    scores never overflow.

    Args:
        values: Array of scores
        axis: Axis to normalise over (default last)

    Returns:
        np.ndarray: Same shape as values, summing to 1 along axis
    """
    values = np.asarray(values, dtype=float)
    shifted = values - np.max(values, axis=axis, keepdims=True)
    exps = np.exp(shifted)
    return exps / np.sum(exps, axis=axis, keepdims=True)


def softmax_single(x: float, values: Sequence[float]) -> float:
    """Softmax probability of a single score x against a set of scores."""
    values = np.asarray(values, dtype=float)
    max_val = np.max(values)
    return float(np.exp(x - max_val) / np.sum(np.exp(values - max_val)))
