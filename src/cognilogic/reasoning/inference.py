"""
Inference records produced by one call to the engine's infer.
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterator, List, Optional

from cognilogic.memory.atom import Atom
from cognilogic.reasoning.rules import Rule


@dataclass(eq=False)
class InferenceStep:
    """
    One rule application.

    Attributes:
        rule: Rule that fired
        conclusion: Conclusion atom it updated
        confidence: new_strength times the rule's confidence
        attention_pattern: Attention weights of the relevant set when
            inference started
    """
    rule: Rule
    conclusion: Atom
    confidence: float
    attention_pattern: np.ndarray


class InferenceChain:
    """
    Ordered, append-only record of inference steps.

    An empty chain is a valid result: no rule was satisfied.
    """

    def __init__(self, query: Optional[Atom] = None):
        self.query = query
        self._steps: List[InferenceStep] = []

    def append(self, step: InferenceStep):
        self._steps.append(step)

    @property
    def steps(self) -> List[InferenceStep]:
        return list(self._steps)

    @property
    def first(self) -> Optional[InferenceStep]:
        return self._steps[0] if self._steps else None

    @property
    def last(self) -> Optional[InferenceStep]:
        return self._steps[-1] if self._steps else None

    def is_empty(self) -> bool:
        return not self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[InferenceStep]:
        return iter(self._steps)

    def __getitem__(self, index: int) -> InferenceStep:
        return self._steps[index]

    def __repr__(self):
        names = [step.rule.name for step in self._steps]
        return f"InferenceChain(steps={len(self._steps)}, rules={names})"
