"""
Atoms: named, typed knowledge units with a truth value and an embedding.

Atoms never reference each other directly. Outgoing links are stored as atom
ids, resolved through the owning AtomSpace, so the store stays the sole owner
of every atom.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

from cognilogic.config import EMBED_DIM
from cognilogic.tensor.similarity import cosine_similarity_pairwise
from cognilogic.truth.value import TruthValue

_HASH_MASK = 0xFFFFFFFFFFFFFFFF


def name_hash(name: str) -> int:
    """djb2 hash of the UTF-8 bytes of a name, as a 64-bit unsigned integer."""
    h = 5381
    for byte in name.encode("utf-8"):
        h = ((h << 5) + h + byte) & _HASH_MASK
    return h


def name_embedding(name: str) -> np.ndarray:
    """
    Spread a name hash across the embedding dimensions.

    h_i = ((hash >> (i mod 32)) & 0xFF) / 255

    Returns:
        np.ndarray: Shape (E,) with values in [0, 1]
    """
    h = name_hash(name)
    return np.array([((h >> (i % 32)) & 0xFF) / 255.0 for i in range(EMBED_DIM)])


@dataclass(eq=False)
class Atom:
    """
    Knowledge unit stored in an AtomSpace.

    Attributes:
        id: Sequential identifier (1-based, never reused)
        type: Integer type tag
        name: Symbolic name (not required to be unique)
        tv: Owned truth value
        embedding: Shape (E,) - learned representation; a view into the
            owning store's embedding table
        attention_weight: Current relevance score
        outgoing: Ids of linked atoms, in insertion order
    """
    id: int
    type: int
    name: str
    tv: TruthValue
    embedding: np.ndarray
    attention_weight: float
    outgoing: List[int] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.outgoing)

    @property
    def index(self) -> int:
        """Position in the store's dense buffers."""
        return self.id - 1

    def __repr__(self):
        return (f"Atom(id={self.id}, type={self.type}, name={self.name!r}, "
                f"strength={self.tv.strength:.3f}, confidence={self.tv.confidence:.3f})")


def atom_similarity(a1: Optional[Atom], a2: Optional[Atom]) -> float:
    """Cosine similarity of two atoms' embeddings; 0.0 if either is absent."""
    if a1 is None or a2 is None:
        return 0.0
    return cosine_similarity_pairwise(a1.embedding, a2.embedding)
