"""
Relational view of an AtomSpace.

Two kinds of structure connect atoms: explicit outgoing links, and the learned
relation matrix of pairwise embedding similarities. This module summarises the
relation matrix and exports both as a networkx graph for analysis and plotting.
"""

import networkx as nx
import numpy as np

from cognilogic.memory.atomspace import AtomSpace


def active_relations(atomspace: AtomSpace) -> np.ndarray:
    """
    Relation matrix restricted to present atoms.

    Returns:
        np.ndarray: Shape (N, N) copy of the relation matrix
    """
    n = len(atomspace)
    return atomspace.relation_matrix[:n, :n].copy()


def relation_density(atomspace: AtomSpace, threshold: float = 0.01) -> float:
    """
    Proportion of atom pairs whose relation exceeds threshold in magnitude.

    Args:
        atomspace: Store whose relation matrix is inspected
        threshold: Minimum absolute weight to count a relation as present

    Returns:
        float: Density in [0, 1]
    """
    relations = active_relations(atomspace)
    n = len(relations)
    mask = np.abs(relations) > threshold
    np.fill_diagonal(mask, False)
    num_edges = np.sum(mask) / 2
    max_edges = n * (n - 1) / 2
    return float(num_edges / max_edges) if max_edges > 0 else 0.0


def relation_degrees(atomspace: AtomSpace) -> np.ndarray:
    """
    Sum of absolute relation weights per atom.

    Returns:
        np.ndarray: Shape (N,) - degree of each atom
    """
    return np.sum(np.abs(active_relations(atomspace)), axis=1)


def build_link_graph(atomspace: AtomSpace, relation_threshold: float = None) -> nx.DiGraph:
    """
    Export atoms and their connections as a directed graph.

    Nodes are atom ids carrying name, type, strength, confidence, attention
    and relation degree.
    Outgoing links become edges with kind='link'. If relation_threshold is
    given, relation-matrix entries above it are added as kind='relation'
    edges in both directions.

    Args:
        atomspace: Store to export
        relation_threshold: Optional minimum relation weight to include

    Returns:
        nx.DiGraph
    """
    G = nx.DiGraph()
    degrees = relation_degrees(atomspace)

    for atom in atomspace:
        G.add_node(
            atom.id,
            name=atom.name,
            type=atom.type,
            strength=atom.tv.strength,
            confidence=atom.tv.confidence,
            attention=atom.attention_weight,
            degree=float(degrees[atom.index]),
        )

    for atom in atomspace:
        for target in atom.outgoing:
            G.add_edge(atom.id, target, kind="link", weight=1.0)

    if relation_threshold is not None:
        relations = active_relations(atomspace)
        n = len(relations)
        for i in range(n):
            for j in range(i + 1, n):
                weight = relations[i, j]
                if weight > relation_threshold:
                    for u, v in ((i + 1, j + 1), (j + 1, i + 1)):
                        if not G.has_edge(u, v):
                            G.add_edge(u, v, kind="relation", weight=float(weight))

    return G
