"""
Syllogism experiment for the reasoning engine.

Builds a small taxonomy through the reasoning bridge, demonstrating:
- Knowledge sync with confidence-weighted merging
- Rule authoring by atom name
- Attention-guided inference towards a query
- Training towards a target truth value

Settings are read from the environment (and a .env file at the repository
root), e.g. COGNILOGIC_SEED=42.
"""

import time
from pathlib import Path

from cognilogic import ReasoningBridge
from cognilogic.config import configure_logging, load_settings
from cognilogic.errors import InferenceError
from cognilogic.truth.pln import deduction


FACTS = [
    (0, "human", 0.9, 0.8),
    (0, "mortal", 0.7, 0.6),
    (0, "socrates", 1.0, 0.9),
    (0, "philosopher", 0.8, 0.7),
]

RULES = [
    ("socrates_is_human", ["socrates"], "human"),
    ("humans_are_mortal", ["human"], "mortal"),
    ("philosophers_are_human", ["philosopher", "socrates"], "human"),
]


def run_syllogism_demo(max_atoms: int = 64,
                       num_epochs: int = 20,
                       target_strength: float = 0.95,
                       target_confidence: float = 0.9,
                       save_dir: str = None,
                       verbose: bool = True):
    """
    Run the syllogism experiment.

    Args:
        max_atoms: Store capacity
        num_epochs: Number of training steps towards the target
        target_strength: Target strength for "mortal"
        target_confidence: Target confidence for "mortal"
        save_dir: Optional directory for loss and graph plots
        verbose: Whether to print progress

    Returns:
        dict: Query results, loss history, final stats and engine state
    """
    settings = load_settings(Path(__file__).parent.parent / '.env')
    configure_logging(settings.log_level)

    if verbose:
        print("=" * 70)
        print("REASONING ENGINE - Syllogism Demo")
        print("=" * 70)
        print(f"  Capacity: {max_atoms}")
        print(f"  Training epochs: {num_epochs}")
        print(f"  Target (mortal): s={target_strength}, c={target_confidence}")
        print(f"  Random seed: {settings.random_seed}")
        print("=" * 70)

    bridge = ReasoningBridge.initialize(max_atoms, settings=settings)

    # Knowledge
    if verbose:
        print("\n[1/4] Syncing facts...")
    bridge.sync_atoms(FACTS)
    # A second, weaker observation merges into the existing atom
    bridge.upsert_atom("mortal", 0.6, 0.3)

    human = bridge.atomspace.find_by_name("human")
    mortal = bridge.atomspace.find_by_name("mortal")
    direct = deduction(human.tv, mortal.tv)

    if verbose:
        print(f"  ✓ {len(bridge.atomspace)} atoms")
        print(f"  Direct deduction human→mortal: s={direct.strength:.3f}, c={direct.confidence:.3f}")

    # Rules
    if verbose:
        print("\n[2/4] Adding rules...")
    for name, premises, conclusion in RULES:
        bridge.add_rule(name, premises, conclusion)
    if verbose:
        print(f"  ✓ {bridge.engine.num_rules} rules")

    # Inference
    if verbose:
        print("\n[3/4] Querying...")
    answers = {}
    for name in ("mortal", "human"):
        try:
            answers[name] = bridge.query(name)
        except InferenceError:
            answers[name] = None
        if verbose:
            answer = answers[name]
            if answer is None:
                print(f"  {name}: no inference chain")
            else:
                print(f"  {name}: s={answer[0]:.3f}, c={answer[1]:.3f}")

    # Training
    if verbose:
        print(f"\n[4/4] Training towards mortal ({num_epochs} steps)...")
    start_time = time.time()
    losses = []
    for epoch in range(num_epochs):
        loss = bridge.train("mortal", target_strength, target_confidence)
        if loss is not None:
            losses.append(loss)
        if verbose and loss is not None and (epoch + 1) % 5 == 0:
            print(f"  Epoch {epoch + 1:3d}: loss={loss:.6f}")
    train_time = time.time() - start_time

    stats = bridge.stats()
    if verbose:
        print(f"  ✓ Trained in {train_time:.2f}s")
        print(f"\nFinal stats: atoms={stats.num_atoms}, rules={stats.num_rules}, "
              f"training_steps={stats.training_steps}, avg_attention={stats.avg_attention:.4f}")

    if save_dir:
        from visualization import plot_atom_graph, plot_loss_history

        out = Path(save_dir)
        out.mkdir(parents=True, exist_ok=True)
        bridge.atomspace.update_relations()
        plot_loss_history(bridge.engine.loss_history, save_path=str(out / 'loss.png'))
        plot_atom_graph(bridge.atomspace, save_path=str(out / 'atoms.png'))
        if verbose:
            print(f"  Plots saved to {out}")

    results = {
        'answers': answers,
        'direct_deduction': direct.as_tuple(),
        'losses': losses,
        'stats': stats,
        'state': bridge.engine.get_state(),
    }

    bridge.shutdown()
    return results


if __name__ == "__main__":
    run_syllogism_demo(save_dir='results/syllogism')
