"""Learning dynamics: the Adam optimizer and the self-attention primitive."""

from cognilogic.dynamics.attention import attention_backward, attention_forward
from cognilogic.dynamics.optimizer import GradientContext

__all__ = [
    "GradientContext",
    "attention_forward",
    "attention_backward",
]
