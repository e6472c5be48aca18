"""Rules and inference records."""

from cognilogic.reasoning.inference import InferenceChain, InferenceStep
from cognilogic.reasoning.rules import Rule, apply_rule, create_rule, update_rule_weights

__all__ = [
    "Rule",
    "create_rule",
    "apply_rule",
    "update_rule_weights",
    "InferenceStep",
    "InferenceChain",
]
