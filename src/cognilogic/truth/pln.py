"""
Probabilistic Logic Network combinators over truth values.

Merge and revision pool two estimates of the same statement. Deduction,
induction and abduction combine estimates of two linked statements:

deduction:  (A->B), (B->C) => (A->C)
induction:  (A->B), (A->C) => (B->C)
abduction:  (A->B), (C->B) => (A->C)

Each combinator is pure and returns a fresh TruthValue with a zeroed
gradient, or None when either input is absent.
"""

import numpy as np
from typing import Optional

from cognilogic.tensor.activations import sigmoid
from cognilogic.truth.value import TruthValue


def merge(tv1: Optional[TruthValue], tv2: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Confidence-weighted merge.

    s = (c1·s1 + c2·s2) / (c1 + c2)
    c = (c1 + c2) / (1 + c1 + c2)
    e = e1 + e2
    """
    if tv1 is None or tv2 is None:
        return None

    w1 = tv1.confidence
    w2 = tv2.confidence
    confidence = (w1 + w2) / (1.0 + w1 + w2)
    if w1 + w2 <= 0:
        # Neither side is weighted: plain average
        w1 = w2 = 0.5
    total = w1 + w2

    return TruthValue(
        strength=(w1 * tv1.strength + w2 * tv2.strength) / total,
        confidence=confidence,
        evidence=tv1.evidence + tv2.evidence,
        embedding=(w1 * tv1.embedding + w2 * tv2.embedding) / total,
    )


def revision(tv1: Optional[TruthValue], tv2: Optional[TruthValue]) -> Optional[TruthValue]:
    """
    Evidence-weighted revision.

    w_i = e_i / (e1 + e2),  c = k / (k + 1) with k = e1 + e2
    """
    if tv1 is None or tv2 is None:
        return None

    k = tv1.evidence + tv2.evidence
    if k > 0:
        w1 = tv1.evidence / k
        w2 = tv2.evidence / k
    else:
        # No evidence on either side: plain average
        w1 = w2 = 0.5

    return TruthValue(
        strength=w1 * tv1.strength + w2 * tv2.strength,
        confidence=k / (k + 1.0),
        evidence=k,
        embedding=w1 * tv1.embedding + w2 * tv2.embedding,
    )


def deduction(tv1: Optional[TruthValue], tv2: Optional[TruthValue]) -> Optional[TruthValue]:
    """Deduction; the embedding is the elementwise product."""
    if tv1 is None or tv2 is None:
        return None

    s1, s2 = tv1.strength, tv2.strength
    c1, c2 = tv1.confidence, tv2.confidence

    return TruthValue(
        strength=s1 * s2,
        confidence=c1 * c2 * (s1 * s2 + (1.0 - s1) * (1.0 - s2)),
        evidence=min(tv1.evidence, tv2.evidence),
        embedding=tv1.embedding * tv2.embedding,
    )


def induction(tv1: Optional[TruthValue], tv2: Optional[TruthValue]) -> Optional[TruthValue]:
    """Induction; the embedding is the mean of both, scaled by s1."""
    if tv1 is None or tv2 is None:
        return None

    s1 = tv1.strength

    return TruthValue(
        strength=tv2.strength,
        confidence=tv1.confidence * tv2.confidence * s1,
        evidence=min(tv1.evidence, tv2.evidence) * s1,
        embedding=(tv1.embedding + tv2.embedding) * 0.5 * s1,
    )


def abduction(tv1: Optional[TruthValue], tv2: Optional[TruthValue]) -> Optional[TruthValue]:
    """Abduction; tv1's embedding gated by sigmoid(tv1·tv2)."""
    if tv1 is None or tv2 is None:
        return None

    s2 = tv2.strength
    gate = sigmoid(float(np.dot(tv1.embedding, tv2.embedding)))

    return TruthValue(
        strength=tv1.strength,
        confidence=tv1.confidence * tv2.confidence * s2,
        evidence=min(tv1.evidence, tv2.evidence) * s2,
        embedding=tv1.embedding * gate,
    )
