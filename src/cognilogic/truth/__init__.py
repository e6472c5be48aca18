"""Truth values and the PLN combinators over them."""

from cognilogic.truth.pln import abduction, deduction, induction, merge, revision
from cognilogic.truth.value import TruthValue, evidence_from_confidence

__all__ = [
    "TruthValue",
    "evidence_from_confidence",
    "merge",
    "revision",
    "deduction",
    "induction",
    "abduction",
]
