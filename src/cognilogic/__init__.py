"""
cognilogic: neural-symbolic reasoning over an embedding-indexed AtomSpace.

Knowledge is held as typed, named atoms carrying a probabilistic truth value
(strength, confidence, evidence) and a learned embedding. Differentiable rules
map weighted premises to conclusions; inference selects rules by embedding
similarity to the atoms an attention pass marks as relevant, and training
updates rule weights and the engine's projection weights with Adam.
"""

__version__ = "0.1.0"

from cognilogic.bridge import EngineStats, ReasoningBridge
from cognilogic.engine import TensorLogicEngine, aggregate_engines
from cognilogic.memory import Atom, AtomSpace
from cognilogic.reasoning import InferenceChain, Rule, create_rule
from cognilogic.truth import TruthValue

__all__ = [
    "TruthValue",
    "Atom",
    "AtomSpace",
    "Rule",
    "create_rule",
    "InferenceChain",
    "TensorLogicEngine",
    "aggregate_engines",
    "ReasoningBridge",
    "EngineStats",
]
