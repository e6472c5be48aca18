"""
Reasoning bridge: the narrow in-process contract used by host systems.

A host (an OS extension, an agent runtime, a test harness) talks to a
store/engine pair only through this class: lifecycle, knowledge sync by name,
queries, rule authoring, training, introspection and distributed hooks. The
bridge performs no locking; hosts serialise calls per bridge.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from cognilogic.config import MAX_PREMISES, Settings
from cognilogic.engine import TensorLogicEngine, aggregate_engines
from cognilogic.errors import CapacityError, CognilogicError, InferenceError, InvalidInputError
from cognilogic.memory.atom import Atom
from cognilogic.memory.atomspace import AtomSpace
from cognilogic.reasoning.rules import Rule, create_rule
from cognilogic.truth.pln import merge
from cognilogic.truth.value import TruthValue

logger = logging.getLogger(__name__)

NEUTRAL_STRENGTH = 0.5
NEUTRAL_CONFIDENCE = 0.1


@dataclass
class EngineStats:
    """Introspection counters for a bridge."""
    num_atoms: int
    num_rules: int
    training_steps: int
    avg_attention: float


class ReasoningBridge:
    """
    Host-facing wrapper around one AtomSpace and its TensorLogicEngine.

    Attributes:
        atomspace: Knowledge store (None after shutdown)
        engine: Reasoning engine (None after shutdown)
    """

    def __init__(self, atomspace: AtomSpace, engine: TensorLogicEngine):
        self.atomspace = atomspace
        self.engine = engine

    @classmethod
    def initialize(cls, max_atoms: Optional[int] = None,
                   settings: Optional[Settings] = None) -> "ReasoningBridge":
        """
        Create a store and engine.

        Args:
            max_atoms: Store capacity (overrides settings.max_atoms)
            settings: Optional settings; defaults apply when omitted

        Returns:
            ReasoningBridge

        Raises:
            InvalidInputError: If the capacity is not positive
        """
        settings = settings or Settings()
        capacity = max_atoms if max_atoms is not None else settings.max_atoms

        atomspace = AtomSpace(capacity, random_seed=settings.random_seed)
        engine = TensorLogicEngine(
            atomspace,
            temperature=settings.temperature,
            max_rules=settings.max_rules,
            random_seed=settings.random_seed,
        )

        logger.info("Reasoning bridge initialised (capacity=%d)", capacity)
        return cls(atomspace, engine)

    def shutdown(self):
        """Release the store and engine; later calls raise CognilogicError."""
        if self.engine is not None:
            logger.info("Reasoning bridge shut down (%d atoms, %d rules)",
                        len(self.atomspace), self.engine.num_rules)
        self.engine = None
        self.atomspace = None

    @property
    def is_active(self) -> bool:
        return self.engine is not None

    def _require_active(self):
        if self.engine is None:
            raise CognilogicError("Reasoning bridge has been shut down")

    # =========================================================================
    # Knowledge sync
    # =========================================================================

    def upsert_atom(self, name: str, strength: float, confidence: float,
                    atom_type: int = 0) -> Atom:
        """
        Create an atom, or merge a truth value into an existing one by name.

        Returns:
            The created or updated atom
        """
        self._require_active()
        incoming = TruthValue.create(strength, confidence)

        atom = self.atomspace.find_by_name(name)
        if atom is None:
            return self.atomspace.create_atom(atom_type, name, incoming)

        atom.tv = merge(atom.tv, incoming)
        return atom

    def export_atom(self, atom: Atom) -> Tuple[float, float, float]:
        """Current (strength, confidence, evidence) of an atom."""
        if atom is None:
            raise InvalidInputError("Cannot export an absent atom")
        return atom.tv.as_tuple()

    def sync_atoms(self, records: Iterable[Tuple[int, str, float, float]]):
        """
        Upsert (type, name, strength, confidence) records, then refresh relations.
        """
        self._require_active()
        for atom_type, name, strength, confidence in records:
            self.upsert_atom(name, strength, confidence, atom_type=atom_type)
        self.atomspace.update_relations()

    def export_atoms(self, names: Iterable[str]) -> Dict[str, Tuple[float, float, float]]:
        """Exported truth values for every name known to the store."""
        self._require_active()
        exported = {}
        for name in names:
            atom = self.atomspace.find_by_name(name)
            if atom is not None:
                exported[name] = self.export_atom(atom)
        return exported

    # =========================================================================
    # Inference and rules
    # =========================================================================

    def _find_or_create(self, name: str) -> Atom:
        atom = self.atomspace.find_by_name(name)
        if atom is None:
            atom = self.atomspace.create_atom(
                0, name, TruthValue.create(NEUTRAL_STRENGTH, NEUTRAL_CONFIDENCE))
        return atom

    def query(self, name: str) -> Tuple[float, float]:
        """
        Run inference towards a named atom.

        The atom is created with a neutral truth value if absent.

        Returns:
            (strength, confidence) of the first inference step's conclusion

        Raises:
            InferenceError: If no rule was satisfied
        """
        self._require_active()
        if not name:
            raise InvalidInputError("Query name must be non-empty")

        query_atom = self._find_or_create(name)
        chain = self.engine.infer(query_atom, self.engine.max_depth)

        if chain.is_empty():
            logger.warning("Query %r produced no inference chain", name)
            raise InferenceError(f"No inference chain for {name!r}")

        tv = chain.first.conclusion.tv
        return tv.strength, tv.confidence

    def add_rule(self, name: str, premise_names: Sequence[str],
                 conclusion_name: str) -> Rule:
        """
        Author a rule by atom names, creating missing atoms with a neutral value.

        Input and capacity are checked before any atom is created, so a
        rejected rule leaves the store untouched.

        Returns:
            The installed rule
        """
        self._require_active()

        if not name or not conclusion_name:
            raise InvalidInputError("Rule and conclusion names must be non-empty")
        if not premise_names or len(premise_names) > MAX_PREMISES:
            raise InvalidInputError(
                f"A rule takes 1 to {MAX_PREMISES} premises, got {len(premise_names or [])}")
        if any(not p for p in premise_names):
            raise InvalidInputError("Premise names must be non-empty")
        if self.engine.num_rules >= self.engine.max_rules:
            raise CapacityError(f"Rule capacity reached ({self.engine.max_rules})")

        missing = {n for n in list(premise_names) + [conclusion_name]
                   if self.atomspace.find_by_name(n) is None}
        free = self.atomspace.capacity - len(self.atomspace)
        if len(missing) > free:
            logger.warning("Rule %r needs %d new atoms, only %d slots left",
                           name, len(missing), free)
            raise CapacityError(f"Not enough capacity for rule {name!r}")

        premises = [self._find_or_create(p) for p in premise_names]
        conclusion = self._find_or_create(conclusion_name)

        rule = create_rule(name, premises, conclusion, random_state=self.engine.random_state)
        self.engine.add_rule(rule)
        return rule

    def train(self, name: str, target_strength: float,
              target_confidence: float) -> Optional[float]:
        """
        Train towards a target truth value for an existing atom.

        Returns:
            The loss, or None if inference produced no chain

        Raises:
            InvalidInputError: If no atom has this name
        """
        self._require_active()
        query_atom = self.atomspace.find_by_name(name)
        if query_atom is None:
            raise InvalidInputError(f"Unknown atom {name!r}")

        target = TruthValue.create(target_strength, target_confidence)
        return self.engine.train_step(query_atom, target)

    # =========================================================================
    # Introspection and distribution
    # =========================================================================

    def stats(self) -> EngineStats:
        self._require_active()
        return EngineStats(
            num_atoms=len(self.atomspace),
            num_rules=self.engine.num_rules,
            training_steps=self.atomspace.training_steps,
            avg_attention=self.atomspace.mean_attention(),
        )

    def sync_node(self, node_id: int):
        self._require_active()
        self.engine.sync(node_id)

    def aggregate(self, bridges: Sequence["ReasoningBridge"]) -> TensorLogicEngine:
        """Average the projection weights of several bridges into this one."""
        self._require_active()
        if any(not bridge.is_active for bridge in bridges):
            logger.warning("Aggregation over %d bridges includes a shut-down bridge",
                           len(bridges))
            raise CognilogicError("Cannot aggregate a shut-down bridge")
        engines = [bridge.engine for bridge in bridges]
        return aggregate_engines(engines, output=self.engine)

    def __repr__(self):
        if self.engine is None:
            return "ReasoningBridge(shut down)"
        return f"ReasoningBridge({self.engine!r})"
