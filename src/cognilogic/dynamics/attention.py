"""
Scaled dot-product self-attention over atom embeddings.

For N atoms with embeddings X (N×E) and projections W_q, W_k, W_v (E×H),
W_o (H×E):

Q = X W_q,  K = X W_k,  V = X W_v
A = softmax_rows(Q Kᵀ / (√H · T))
out = A (V W_o)

This primitive stands apart from the inference loop, which uses the store's
own query-vs-embedding attention.
"""

import numpy as np
from typing import Sequence

from cognilogic.config import EMBED_DIM, HIDDEN_DIM
from cognilogic.memory.atom import Atom
from cognilogic.tensor.activations import softmax

BACKWARD_SCALE = 0.1


def attention_forward(engine, atoms: Sequence[Atom]) -> np.ndarray:
    """
    Self-attention over a set of atoms.

    Args:
        engine: TensorLogicEngine supplying projection weights and temperature
        atoms: Atoms to attend over

    Returns:
        np.ndarray: Shape (N, E) - attended, re-projected embeddings
    """
    n = len(atoms)
    if n == 0:
        return np.empty((0, EMBED_DIM))

    X = np.stack([atom.embedding for atom in atoms])

    queries = X @ engine.query_weights
    keys = X @ engine.key_weights
    values = X @ engine.value_weights

    scale = 1.0 / (np.sqrt(HIDDEN_DIM) * engine.temperature)
    scores = softmax(queries @ keys.T * scale, axis=1)

    return scores @ (values @ engine.output_weights)


def attention_backward(grad_output: np.ndarray, atoms: Sequence[Atom]):
    """
    Push output gradients into each atom's truth-value gradient accumulator.

    Args:
        grad_output: Shape (N, E) - gradient w.r.t. attention output
        atoms: Atoms the forward pass attended over
    """
    grad_output = np.asarray(grad_output, dtype=float)
    assert grad_output.shape == (len(atoms), EMBED_DIM), \
        f"Expected shape ({len(atoms)}, {EMBED_DIM}), got {grad_output.shape}"
    for i, atom in enumerate(atoms):
        atom.tv.gradient += grad_output[i] * BACKWARD_SCALE
