"""
Graph visualization for the AtomSpace.

Draws explicit links and learned relations between atoms, and the relation
matrix as a heatmap.
"""

import numpy as np
import matplotlib.pyplot as plt
import networkx as nx
from typing import Optional

from cognilogic.memory.atomspace import AtomSpace
from cognilogic.memory.relations import active_relations, build_link_graph, relation_density


def plot_atom_graph(atomspace: AtomSpace,
                    relation_threshold: Optional[float] = 0.5,
                    title: str = "AtomSpace Graph",
                    figsize: tuple = (12, 10),
                    save_path: Optional[str] = None):
    """
    Plot atoms as nodes sized by attention and coloured by strength.

    Link edges are solid; relation edges above relation_threshold are dashed.

    Args:
        atomspace: Store to draw
        relation_threshold: Minimum relation weight to draw (None = links only)
        title: Plot title
        figsize: Figure size
        save_path: Optional path to save figure
    """
    G = build_link_graph(atomspace, relation_threshold=relation_threshold)

    fig, ax = plt.subplots(figsize=figsize)

    n = max(G.number_of_nodes(), 1)
    pos = nx.spring_layout(G, k=2 / np.sqrt(n), iterations=50, seed=42)

    attention = np.array([G.nodes[i]['attention'] for i in G.nodes()])
    strength = [G.nodes[i]['strength'] for i in G.nodes()]
    max_attention = attention.max() if len(attention) else 1.0
    node_sizes = 100 + 900 * attention / max(max_attention, 1e-12)

    nx.draw_networkx_nodes(G, pos, node_size=node_sizes, node_color=strength,
                           cmap='viridis', vmin=0.0, vmax=1.0, alpha=0.8, ax=ax)

    links = [(u, v) for u, v, kind in G.edges(data='kind') if kind == 'link']
    relations = [(u, v) for u, v, kind in G.edges(data='kind') if kind == 'relation']
    nx.draw_networkx_edges(G, pos, edgelist=links, edge_color='#2E86AB',
                           width=2, arrows=True, ax=ax)
    nx.draw_networkx_edges(G, pos, edgelist=relations, edge_color='#C73E1D',
                           style='dashed', alpha=0.4, arrows=False, ax=ax)

    if G.number_of_nodes() <= 50:
        labels = {i: G.nodes[i]['name'] for i in G.nodes()}
        nx.draw_networkx_labels(G, pos, labels, font_size=8, ax=ax)

    ax.set_title(f'{title}\n{len(links)} links, {len(relations)} relations',
                 fontsize=14, fontweight='bold')
    ax.axis('off')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig


def plot_relation_matrix(atomspace: AtomSpace,
                         title: str = "Relation Matrix",
                         figsize: tuple = (10, 8),
                         save_path: Optional[str] = None):
    """
    Heatmap of pairwise relation weights between present atoms.
    """
    relations = active_relations(atomspace)

    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(relations, cmap='RdBu_r', vmin=-1, vmax=1, aspect='auto')
    plt.colorbar(im, ax=ax, label='Similarity')

    if len(relations) <= 30:
        names = [atom.name for atom in atomspace]
        ax.set_xticks(range(len(names)))
        ax.set_yticks(range(len(names)))
        ax.set_xticklabels(names, rotation=90, fontsize=8)
        ax.set_yticklabels(names, fontsize=8)

    ax.set_title(f'{title} (density={relation_density(atomspace):.2f})',
                 fontsize=14, fontweight='bold')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig
