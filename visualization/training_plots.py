"""
Training visualization for the reasoning engine.

Plots loss history, the metrics recorded after every backward pass, and the
attention distribution over the AtomSpace.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import List, Dict, Optional

from cognilogic.utils import analyze_attention_distribution


def plot_loss_history(loss_history: List[float],
                      title: str = "Training Loss",
                      figsize: tuple = (10, 6),
                      save_path: Optional[str] = None):
    """
    Plot squared-error loss over training steps.

    Args:
        loss_history: Loss of each training step that produced a chain
        title: Plot title
        figsize: Figure size
        save_path: Optional path to save figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    steps = np.arange(len(loss_history))
    ax.plot(steps, loss_history, linewidth=2, color='#2E86AB')
    ax.set_xlabel('Training Step', fontsize=12)
    ax.set_ylabel('Loss $(s_{pred} - s_{target})^2$', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)

    if loss_history:
        ax.annotate(f'Final: {loss_history[-1]:.4f}',
                    xy=(len(loss_history) - 1, loss_history[-1]),
                    xytext=(-80, 20), textcoords='offset points',
                    fontsize=10, color='red',
                    bbox=dict(boxstyle='round,pad=0.5', facecolor='white', alpha=0.8))

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig


def plot_metrics_dashboard(metrics_history: List[Dict],
                           figsize: tuple = (14, 8),
                           save_path: Optional[str] = None):
    """
    2x2 dashboard of engine metrics over backward passes.

    Panels: attention entropy, projection weight norm, mean rule weight and
    inference chain length.
    """
    panels = [
        ('attention_entropy', 'Attention Entropy', '#F18F01'),
        ('weight_norm', 'Projection Weight Norm', '#C73E1D'),
        ('mean_rule_weight', 'Mean Rule Weight', '#6A994E'),
        ('chain_length', 'Chain Length', '#2E86AB'),
    ]

    fig, axes = plt.subplots(2, 2, figsize=figsize)
    steps = np.arange(len(metrics_history))

    for ax, (key, label, color) in zip(axes.flat, panels):
        values = [m[key] for m in metrics_history]
        ax.plot(steps, values, linewidth=2, color=color)
        ax.set_title(label, fontsize=12)
        ax.set_xlabel('Backward Pass')
        ax.grid(True, alpha=0.3)

    fig.suptitle('Engine Metrics', fontsize=14, fontweight='bold')
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig


def plot_attention_distribution(weights: np.ndarray,
                                num_bins: int = 20,
                                title: str = "Attention Distribution",
                                figsize: tuple = (10, 6),
                                save_path: Optional[str] = None):
    """
    Histogram of atom attention weights with summary statistics.
    """
    stats = analyze_attention_distribution(weights, num_bins=num_bins)
    hist, bin_edges = stats['hist']

    fig, ax = plt.subplots(figsize=figsize)
    centers = (bin_edges[:-1] + bin_edges[1:]) / 2
    width = bin_edges[1] - bin_edges[0] if len(bin_edges) > 1 else 1.0
    ax.bar(centers, hist, width=width, color='#2E86AB', alpha=0.7, edgecolor='black')

    ax.axvline(stats['mean'], color='red', linestyle='--',
               label=f"Mean: {stats['mean']:.4f}")
    ax.set_xlabel('Attention Weight', fontsize=12)
    ax.set_ylabel('Atoms', fontsize=12)
    ax.set_title(f"{title} (entropy={stats['entropy']:.3f})", fontsize=14, fontweight='bold')
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    return fig
