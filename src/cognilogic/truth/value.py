"""
Truth values: probabilistic belief with an attached embedding.

A truth value carries strength s, confidence c and evidence
e = c / (1 - c + ε), plus an embedding in the angular basis

embedding[i] = s·cos(iπ/E) + c·sin(iπ/E)

and a same-sized gradient accumulator.
"""

import numpy as np
from dataclasses import dataclass, field

from cognilogic.config import EMBED_DIM

EVIDENCE_EPSILON = 1e-10

_ANGLES = np.arange(EMBED_DIM) * np.pi / EMBED_DIM


def evidence_from_confidence(confidence: float) -> float:
    """Evidence count for a confidence, guarded as confidence approaches 1."""
    return confidence / (1.0 - confidence + EVIDENCE_EPSILON)


def angular_embedding(strength: float, confidence: float) -> np.ndarray:
    """Deterministic embedding of a (strength, confidence) pair."""
    return strength * np.cos(_ANGLES) + confidence * np.sin(_ANGLES)


@dataclass(eq=False)
class TruthValue:
    """
    Probabilistic truth value.

    Attributes:
        strength: Truth strength (nominally in [0, 1])
        confidence: Confidence in the strength (nominally in [0, 1])
        evidence: Evidence count backing the confidence
        embedding: Shape (E,) - neural embedding
        gradient: Shape (E,) - accumulated gradient for learning
    """
    strength: float
    confidence: float
    evidence: float
    embedding: np.ndarray
    gradient: np.ndarray = field(default_factory=lambda: np.zeros(EMBED_DIM))

    @classmethod
    def create(cls, strength: float, confidence: float) -> "TruthValue":
        """
        Create a truth value with its angular-basis embedding.

        Args:
            strength: Truth strength
            confidence: Confidence in the strength

        Returns:
            TruthValue with a zeroed gradient
        """
        return cls(
            strength=float(strength),
            confidence=float(confidence),
            evidence=evidence_from_confidence(confidence),
            embedding=angular_embedding(strength, confidence),
        )

    def copy(self) -> "TruthValue":
        return TruthValue(
            strength=self.strength,
            confidence=self.confidence,
            evidence=self.evidence,
            embedding=self.embedding.copy(),
            gradient=self.gradient.copy(),
        )

    def as_tuple(self):
        return self.strength, self.confidence, self.evidence

    def __repr__(self):
        return (f"TruthValue(strength={self.strength:.4f}, "
                f"confidence={self.confidence:.4f}, evidence={self.evidence:.4f})")
