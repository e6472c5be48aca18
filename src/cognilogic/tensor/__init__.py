"""Numeric primitives: activations and similarity."""

from cognilogic.tensor.activations import relu, sigmoid, softmax, softmax_single, tanh
from cognilogic.tensor.similarity import (
    cosine_similarity_matrix,
    cosine_similarity_pairwise,
)

__all__ = [
    "sigmoid",
    "tanh",
    "relu",
    "softmax",
    "softmax_single",
    "cosine_similarity_pairwise",
    "cosine_similarity_matrix",
]
