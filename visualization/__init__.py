"""
Visualization tools for the reasoning engine.

Static matplotlib plots of training progress, attention and AtomSpace
structure.
"""

# Training visualizations
from visualization.training_plots import (
    plot_loss_history,
    plot_metrics_dashboard,
    plot_attention_distribution
)

# Graph visualizations
from visualization.graph_plots import (
    plot_atom_graph,
    plot_relation_matrix
)

__all__ = [
    # Training
    'plot_loss_history',
    'plot_metrics_dashboard',
    'plot_attention_distribution',
    # Graph
    'plot_atom_graph',
    'plot_relation_matrix',
]
