"""
Adam optimizer over flat gradient buffers.

For each parameter θ_i with gradient g_i at step t:

m_i ← β₁ m_i + (1 - β₁) g_i
v_i ← β₂ v_i + (1 - β₂) g_i²
θ_i ← θ_i - lr · m̂_i / (√v̂_i + ε),  m̂ = m / (1 - β₁ᵗ),  v̂ = v / (1 - β₂ᵗ)
"""

import logging
import numpy as np

logger = logging.getLogger(__name__)


class GradientContext:
    """
    Gradient buffer and Adam state shared by the engine's projection weights.

    Attributes:
        gradients (np.ndarray): Shape (size,) - accumulated gradients
        m (np.ndarray): Shape (size,) - first moment estimates
        v (np.ndarray): Shape (size,) - second moment estimates
        loss (float): Loss of the most recent training step
        num_steps (int): Adam updates applied so far
    """

    beta1 = 0.9
    beta2 = 0.999
    epsilon = 1e-8
    learning_rate = 0.001

    def __init__(self, size: int):
        """
        Args:
            size: Length of the flat gradient buffer
        """
        assert size > 0, f"Gradient buffer size must be positive, got {size}"
        self.grad_size = size
        self.gradients = np.zeros(size)
        self.m = np.zeros(size)
        self.v = np.zeros(size)
        self.loss = 0.0
        self.num_steps = 0

    def zero(self):
        """Clear the gradient buffer."""
        self.gradients[:] = 0.0

    def accumulate(self, grads: np.ndarray):
        """Add gradients over the overlapping prefix of the buffer."""
        grads = np.asarray(grads, dtype=float).ravel()
        n = min(len(grads), self.grad_size)
        self.gradients[:n] += grads[:n]

    def apply_adam(self, weights: np.ndarray):
        """
        One Adam update of a parameter buffer, in place.

        Only the first min(weights.size, grad_size) parameters are touched,
        reading the same leading slots of the gradient and moment buffers.

        Args:
            weights: Parameter array (any shape, must be contiguous)
        """
        flat = weights.reshape(-1)
        assert np.shares_memory(flat, weights), "Weights must be a contiguous array"

        self.num_steps += 1
        bias_correction1 = 1.0 - self.beta1 ** self.num_steps
        bias_correction2 = 1.0 - self.beta2 ** self.num_steps

        n = min(flat.size, self.grad_size)
        g = self.gradients[:n]

        self.m[:n] = self.beta1 * self.m[:n] + (1.0 - self.beta1) * g
        self.v[:n] = self.beta2 * self.v[:n] + (1.0 - self.beta2) * g * g

        m_hat = self.m[:n] / bias_correction1
        v_hat = self.v[:n] / bias_correction2

        flat[:n] -= self.learning_rate * m_hat / (np.sqrt(v_hat) + self.epsilon)

        logger.debug("Adam step %d over %d parameters", self.num_steps, n)

    def __repr__(self):
        return (f"GradientContext(size={self.grad_size}, steps={self.num_steps}, "
                f"loss={self.loss:.6f})")
