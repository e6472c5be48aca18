"""
Similarity metrics over embeddings.

Cosine similarity as used throughout the engine:
σ(a, b) = a^T b / (||a|| ||b||)

Near-zero norms yield a neutral similarity of 0 instead of a division error.
"""

import numpy as np

NORM_EPSILON = 1e-10


def cosine_similarity_pairwise(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    Compute cosine similarity between two vectors.

    The denominator is taken as sqrt(||a||² ||b||²) so that a vector compared
    with itself scores exactly 1.0.

    Args:
        v1: Shape (d,) - first vector
        v2: Shape (d,) - second vector

    Returns:
        float: Cosine similarity in [-1, 1], or 0.0 if either norm is ~0
    """
    sq1 = float(np.dot(v1, v1))
    sq2 = float(np.dot(v2, v2))

    if np.sqrt(sq1) < NORM_EPSILON or np.sqrt(sq2) < NORM_EPSILON:
        return 0.0

    return float(np.dot(v1, v2)) / float(np.sqrt(sq1 * sq2))


def cosine_similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """
    Compute pairwise cosine similarity for all rows.

    Rows with a near-zero norm get similarity 0 against everything.

    Args:
        vectors: Shape (N, d) - N vectors of dimension d

    Returns:
        np.ndarray: Shape (N, N) - similarity matrix where S_ij = σ(v_i, v_j)
    """
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    safe = np.where(norms < NORM_EPSILON, 1.0, norms)
    units = np.where(norms < NORM_EPSILON, 0.0, vectors / safe)
    return units @ units.T
