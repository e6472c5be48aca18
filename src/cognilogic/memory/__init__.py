"""Knowledge store: atoms, the AtomSpace and its relational view."""

from cognilogic.memory.atom import Atom, atom_similarity
from cognilogic.memory.atomspace import AtomSpace
from cognilogic.memory.relations import build_link_graph, relation_degrees, relation_density

__all__ = [
    "Atom",
    "AtomSpace",
    "atom_similarity",
    "build_link_graph",
    "relation_density",
    "relation_degrees",
]
