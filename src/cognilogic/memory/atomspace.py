"""
AtomSpace: capacity-bounded knowledge store.

Atoms are append-only. Ids 1..N are exactly the N atoms present, so an atom's
id minus one is also its row in every dense buffer:

- embeddings: (capacity, E) table; each atom's embedding is a view of its row
- relation_matrix: (capacity, capacity) pairwise similarities
- attention_scores: (capacity,) softmax scores from the last attention pass

Atoms are additionally chained into capacity buckets keyed by id mod capacity.
"""

import logging
import numpy as np
from typing import Iterator, List, Optional

from cognilogic.config import EMBED_DIM
from cognilogic.errors import CapacityError, InvalidInputError
from cognilogic.memory.atom import Atom, atom_similarity, name_embedding
from cognilogic.tensor.activations import softmax
from cognilogic.tensor.similarity import cosine_similarity_matrix
from cognilogic.truth.value import TruthValue, evidence_from_confidence

logger = logging.getLogger(__name__)

UNIFY_THRESHOLD = 0.7
DEFAULT_STRENGTH = 0.5
DEFAULT_CONFIDENCE = 0.1


def random_embedding(size: int, random_state: np.random.RandomState) -> np.ndarray:
    """Xavier-style uniform initialisation in ±sqrt(2/size)."""
    scale = np.sqrt(2.0 / size)
    return random_state.uniform(-scale, scale, size)


class AtomSpace:
    """
    Neural-symbolic knowledge base.

    Attributes:
        capacity (int): Maximum number of atoms
        embeddings (np.ndarray): Shape (capacity, E) - atom embedding table
        relation_matrix (np.ndarray): Shape (capacity, capacity) - learned relations,
            allocated up front (8·capacity² bytes)
        attention_scores (np.ndarray): Shape (capacity,) - current attention
        training_steps (int): Completed training/sync steps
    """

    def __init__(self, capacity: int, random_seed: Optional[int] = None):
        """
        Initialize an empty store.

        Args:
            capacity: Maximum number of atoms (must be positive)
            random_seed: Optional seed for default-embedding initialisation

        Raises:
            InvalidInputError: If capacity is not positive
        """
        if capacity <= 0:
            raise InvalidInputError(f"AtomSpace capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.next_id = 1

        self._atoms: List[Atom] = []
        self._buckets: List[List[int]] = [[] for _ in range(capacity)]

        # Neural components
        self.embeddings = np.zeros((capacity, EMBED_DIM))
        self.relation_matrix = np.zeros((capacity, capacity))
        self.attention_scores = np.zeros(capacity)

        # Learning state
        self.learning_rate = 0.001
        self.momentum = 0.9
        self.training_steps = 0

        self.random_state = np.random.RandomState(random_seed)

    # =========================================================================
    # Atom lifecycle and lookup
    # =========================================================================

    def create_atom(self, atom_type: int, name: str,
                    tv: Optional[TruthValue] = None) -> Atom:
        """
        Create and store a new atom.

        Args:
            atom_type: Integer type tag
            name: Atom name (must be non-empty, need not be unique)
            tv: Optional truth value to copy; defaults to strength 0.5,
                confidence 0.1 with a random embedding

        Returns:
            The new atom

        Raises:
            CapacityError: If the store is full
            InvalidInputError: If name is empty
        """
        if not name:
            raise InvalidInputError("Atom name must be non-empty")
        if len(self._atoms) >= self.capacity:
            raise CapacityError(f"AtomSpace capacity reached ({self.capacity})")

        if tv is not None:
            tv = tv.copy()
        else:
            tv = TruthValue(
                strength=DEFAULT_STRENGTH,
                confidence=DEFAULT_CONFIDENCE,
                evidence=evidence_from_confidence(DEFAULT_CONFIDENCE),
                embedding=random_embedding(EMBED_DIM, self.random_state),
            )

        atom_id = self.next_id
        self.next_id += 1

        row = self.embeddings[atom_id - 1]
        row[:] = 0.5 * tv.embedding + 0.5 * name_embedding(name)

        atom = Atom(
            id=atom_id,
            type=atom_type,
            name=name,
            tv=tv,
            embedding=row,
            attention_weight=1.0 / self.capacity,
        )

        self._atoms.append(atom)
        self._buckets[atom_id % self.capacity].insert(0, atom_id)

        logger.debug("Created atom %d (%s, type=%d)", atom_id, name, atom_type)
        return atom

    def find_by_name(self, name: str) -> Optional[Atom]:
        """
        Find an atom by name with a full bucket scan.

        Buckets are visited in index order and each chain head-first, so with
        duplicate names the first atom met in that order wins.
        """
        if not name:
            return None
        for bucket in self._buckets:
            for atom_id in bucket:
                atom = self._atoms[atom_id - 1]
                if atom.name == name:
                    return atom
        return None

    def find_by_id(self, atom_id: int) -> Optional[Atom]:
        """Find an atom through its bucket."""
        for candidate in self._buckets[atom_id % self.capacity]:
            if candidate == atom_id:
                return self._atoms[candidate - 1]
        return None

    def get(self, atom_id: int) -> Atom:
        """
        Resolve an atom id.

        Raises:
            KeyError: If no atom has this id
        """
        if not 1 <= atom_id <= len(self._atoms):
            raise KeyError(atom_id)
        return self._atoms[atom_id - 1]

    def __len__(self) -> int:
        return len(self._atoms)

    def __iter__(self) -> Iterator[Atom]:
        return iter(self._atoms)

    def is_full(self) -> bool:
        return len(self._atoms) >= self.capacity

    # =========================================================================
    # Structure
    # =========================================================================

    def add_link(self, atom: Atom, target: Atom):
        """
        Append an outgoing link and fold the target into the atom's embedding.

        With n the new arity: embedding ← (embedding·n + target) / (n + 1)
        """
        if atom is None or target is None:
            raise InvalidInputError("add_link requires two atoms")

        atom.outgoing.append(target.id)
        n = atom.arity
        atom.embedding[:] = (atom.embedding * n + target.embedding) / (n + 1)

    def children(self, atom: Atom) -> List[Atom]:
        return [self._atoms[i - 1] for i in atom.outgoing]

    def similarity(self, a1: Optional[Atom], a2: Optional[Atom]) -> float:
        return atom_similarity(a1, a2)

    def unify(self, pattern: Optional[Atom], target: Optional[Atom]) -> bool:
        """
        Conservative structural match.

        Requires equal type, embedding similarity of at least 0.7, equal arity
        and pairwise-unifiable children.
        """
        if pattern is None or target is None:
            return False
        if pattern.type != target.type:
            return False
        if atom_similarity(pattern, target) < UNIFY_THRESHOLD:
            return False
        if pattern.arity != target.arity:
            return False

        return all(
            self.unify(p, t)
            for p, t in zip(self.children(pattern), self.children(target))
        )

    def update_embedding(self, atom: Atom, new_embedding: np.ndarray):
        """Overwrite an atom's embedding."""
        new_embedding = np.asarray(new_embedding, dtype=float)
        assert new_embedding.shape == (EMBED_DIM,), \
            f"Expected shape ({EMBED_DIM},), got {new_embedding.shape}"
        atom.embedding[:] = new_embedding

    def update_relations(self):
        """
        Fill the relation matrix with pairwise similarities of present atoms.

        R[:N, :N] = cosine similarity of the embedding rows, with a zero diagonal
        """
        n = len(self._atoms)
        relations = cosine_similarity_matrix(self.embeddings[:n])
        np.fill_diagonal(relations, 0.0)
        self.relation_matrix[:n, :n] = relations

    # =========================================================================
    # Attention
    # =========================================================================

    def compute_attention(self, query: np.ndarray):
        """
        Score every atom against a query and normalise with softmax.

        score_i = query · embedding_i / sqrt(E)

        Overwrites the attention score buffer and every atom's attention weight.
        """
        n = len(self._atoms)
        if n == 0:
            return

        query = np.asarray(query, dtype=float)
        scores = self.embeddings[:n] @ query / np.sqrt(EMBED_DIM)
        self.attention_scores[:n] = softmax(scores)

        for atom in self._atoms:
            atom.attention_weight = float(self.attention_scores[atom.index])

    def top_k(self, k: int) -> List[Atom]:
        """
        Atoms with the highest attention weights, in descending order.

        Repeated max-selection; ties go to the lowest id.
        """
        if k <= 0:
            return []
        k = min(k, len(self._atoms))

        selected = set()
        result = []
        for _ in range(k):
            best = None
            best_weight = -1.0
            for atom in self._atoms:
                if atom.id in selected:
                    continue
                if atom.attention_weight > best_weight:
                    best_weight = atom.attention_weight
                    best = atom
            if best is None:
                break
            selected.add(best.id)
            result.append(best)

        return result

    def mean_attention(self) -> float:
        """Mean attention weight across all atoms (0.0 when empty)."""
        if not self._atoms:
            return 0.0
        return float(np.mean([atom.attention_weight for atom in self._atoms]))

    def __repr__(self):
        return (f"AtomSpace(atoms={len(self._atoms)}, capacity={self.capacity}, "
                f"training_steps={self.training_steps})")
