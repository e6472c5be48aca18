"""
Utility functions for the reasoning engine.

Includes metrics computation and analysis helpers used for training history
and visualisation.
"""

import numpy as np
from typing import Dict


def attention_entropy(weights: np.ndarray) -> float:
    """
    Shannon entropy of an attention distribution (nats).

    Low entropy means attention is concentrated on few atoms.
    """
    weights = np.asarray(weights, dtype=float)
    weights = weights[weights > 0]
    if len(weights) == 0:
        return 0.0
    return float(-np.sum(weights * np.log(weights)))


def compute_metrics(engine) -> Dict[str, float]:
    """
    Compute engine metrics for monitoring and analysis.

    Metrics include:
    - mean_attention / attention_entropy over all atoms
    - weight_norm: Frobenius norm of the four projection matrices combined
    - mean_rule_weight across installed rules
    - chain_length of the current inference chain
    - loss from the optimizer

    Args:
        engine: TensorLogicEngine to inspect

    Returns:
        dict: Computed metrics
    """
    atomspace = engine.atomspace
    weights = np.array([atom.attention_weight for atom in atomspace])

    weight_norm = np.sqrt(sum(
        np.linalg.norm(W) ** 2 for W in engine.projection_weights()
    ))

    rule_weights = [rule.weight for rule in engine.rules]

    return {
        'mean_attention': float(np.mean(weights)) if len(weights) else 0.0,
        'attention_entropy': attention_entropy(weights),
        'weight_norm': float(weight_norm),
        'mean_rule_weight': float(np.mean(rule_weights)) if rule_weights else 0.0,
        'chain_length': len(engine.inference_chain),
        'loss': float(engine.grad_ctx.loss),
    }


def analyze_attention_distribution(weights: np.ndarray, num_bins: int = 20) -> Dict:
    """
    Analyze distribution of attention weights.

    Args:
        weights: Shape (N,) - attention weights
        num_bins: Number of histogram bins

    Returns:
        dict: Statistics including histogram, mean, std, max and entropy
    """
    weights = np.asarray(weights, dtype=float)

    if len(weights) == 0:
        return {
            'hist': (np.zeros(num_bins), np.zeros(num_bins + 1)),
            'mean': 0.0,
            'std': 0.0,
            'max': 0.0,
            'entropy': 0.0
        }

    hist, bin_edges = np.histogram(weights, bins=num_bins)

    return {
        'hist': (hist, bin_edges),
        'mean': float(np.mean(weights)),
        'std': float(np.std(weights)),
        'max': float(np.max(weights)),
        'entropy': attention_entropy(weights)
    }
