"""
Differentiable inference rules.

A rule maps weighted premises to a conclusion:

combined_strength   = Σ_i w_i · s(premise_i)
combined_confidence = Π_i c(premise_i)
new_strength        = combined_strength · rule.weight
new_confidence      = combined_confidence · rule.confidence

Applying a rule moves the conclusion halfway towards (new_strength,
new_confidence) and nudges its embedding towards tanh(Σ_i w_i · emb_i).
Rule and premise weights are learned through update_rule_weights.
"""

import itertools
import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from cognilogic.config import EMBED_DIM, HIDDEN_DIM, MAX_PREMISES
from cognilogic.errors import InvalidInputError
from cognilogic.memory.atom import Atom
from cognilogic.memory.atomspace import AtomSpace, random_embedding
from cognilogic.tensor.activations import tanh
from cognilogic.truth.value import evidence_from_confidence

logger = logging.getLogger(__name__)

RULE_WEIGHT_STEP = 0.01
PREMISE_WEIGHT_STEP = 0.001
MIN_PREMISE_WEIGHT = 0.01
MAX_RULE_WEIGHT = 2.0
CONCLUSION_BLEND = 0.5
EMBEDDING_RETENTION = 0.9

_rule_ids = itertools.count(1)


@dataclass(eq=False)
class Rule:
    """
    Weighted premises → conclusion inference unit.

    Attributes:
        id: Rule identifier
        name: Rule name
        premises: Ids of premise atoms (1 to 16)
        conclusion: Id of the conclusion atom
        weight: Learned rule weight in [0, 2]
        confidence: Rule confidence
        premise_weights: Shape (num_premises,) - sums to 1
        hidden_state: Shape (H,) - optimizer scratch state
        gradient: Shape (H,) - gradient of the hidden state
    """
    id: int
    name: str
    premises: List[int]
    conclusion: int
    premise_weights: np.ndarray
    weight: float = 1.0
    confidence: float = 0.8
    hidden_state: np.ndarray = field(default_factory=lambda: np.zeros(HIDDEN_DIM))
    gradient: np.ndarray = field(default_factory=lambda: np.zeros(HIDDEN_DIM))

    @property
    def num_premises(self) -> int:
        return len(self.premises)

    def __repr__(self):
        return (f"Rule(id={self.id}, name={self.name!r}, premises={self.premises}, "
                f"conclusion={self.conclusion}, weight={self.weight:.3f})")


def create_rule(name: str, premises: Sequence[Optional[Atom]], conclusion: Optional[Atom],
                random_state: Optional[np.random.RandomState] = None) -> Rule:
    """
    Build a rule over existing atoms.

    Args:
        name: Rule name (non-empty)
        premises: 1 to 16 premise atoms
        conclusion: Conclusion atom
        random_state: Optional random state for the hidden state

    Returns:
        Rule with uniform premise weights

    Raises:
        InvalidInputError: For an empty name, an empty or oversized premise
            list, or an absent atom
    """
    if not name:
        raise InvalidInputError("Rule name must be non-empty")
    if premises is None or len(premises) == 0:
        raise InvalidInputError("A rule needs at least one premise")
    if len(premises) > MAX_PREMISES:
        raise InvalidInputError(
            f"A rule takes at most {MAX_PREMISES} premises, got {len(premises)}")
    if conclusion is None:
        raise InvalidInputError("A rule needs a conclusion atom")
    if any(p is None for p in premises):
        raise InvalidInputError("Premise atoms must not be absent")

    if random_state is None:
        random_state = np.random.RandomState()

    n = len(premises)
    return Rule(
        id=next(_rule_ids),
        name=name,
        premises=[p.id for p in premises],
        conclusion=conclusion.id,
        premise_weights=np.full(n, 1.0 / n),
        hidden_state=random_embedding(HIDDEN_DIM, random_state),
    )


def apply_rule(rule: Rule, atomspace: AtomSpace) -> float:
    """
    Apply a rule to its conclusion in place.

    Args:
        rule: Rule to apply
        atomspace: Store owning the rule's atoms

    Returns:
        float: new_strength (combined premise strength times rule weight)
    """
    premises = [atomspace.get(pid) for pid in rule.premises]
    conclusion = atomspace.get(rule.conclusion)

    strengths = np.array([p.tv.strength for p in premises])
    confidences = np.array([p.tv.confidence for p in premises])

    combined_strength = float(np.dot(rule.premise_weights, strengths))
    combined_confidence = float(np.prod(confidences))

    new_strength = combined_strength * rule.weight
    new_confidence = combined_confidence * rule.confidence

    tv = conclusion.tv
    tv.strength = (1 - CONCLUSION_BLEND) * tv.strength + CONCLUSION_BLEND * new_strength
    tv.confidence = (1 - CONCLUSION_BLEND) * tv.confidence + CONCLUSION_BLEND * new_confidence
    tv.evidence = evidence_from_confidence(tv.confidence)

    combined_embedding = np.zeros(EMBED_DIM)
    for w, premise in zip(rule.premise_weights, premises):
        combined_embedding += w * premise.embedding
    conclusion.embedding[:] = (EMBEDDING_RETENTION * conclusion.embedding
                               + (1 - EMBEDDING_RETENTION) * tanh(combined_embedding))

    logger.debug("Applied rule %s -> atom %d (new_strength=%.4f)",
                 rule.name, conclusion.id, new_strength)
    return new_strength


def update_rule_weights(rule: Rule, gradients: np.ndarray):
    """
    Gradient step on rule and premise weights.

    gradients[0] drives the rule weight (clamped to [0, 2]); gradients[i+1]
    drives premise weight i (floored at 0.01). Premise weights are then
    renormalised to sum to 1. Missing gradient slots count as zero.
    """
    gradients = np.asarray(gradients, dtype=float)
    n = rule.num_premises

    padded = np.zeros(n + 1)
    m = min(len(gradients), n + 1)
    padded[:m] = gradients[:m]

    rule.weight = float(np.clip(rule.weight - padded[0] * RULE_WEIGHT_STEP,
                                0.0, MAX_RULE_WEIGHT))

    weights = rule.premise_weights - padded[1:] * PREMISE_WEIGHT_STEP
    rule.premise_weights = _renormalize(np.maximum(weights, MIN_PREMISE_WEIGHT))


def _renormalize(weights: np.ndarray) -> np.ndarray:
    """
    Scale weights to sum to 1 while keeping each at or above the floor.

    Weights that scaling would push under the floor are pinned to it and the
    remaining mass is spread over the others.
    """
    weights = weights.astype(float)
    pinned = np.zeros(len(weights), dtype=bool)
    while True:
        free = ~pinned
        free_mass = 1.0 - MIN_PREMISE_WEIGHT * np.sum(pinned)
        weights[free] *= free_mass / np.sum(weights[free])
        low = free & (weights < MIN_PREMISE_WEIGHT)
        if not low.any():
            return weights
        weights[low] = MIN_PREMISE_WEIGHT
        pinned |= low
