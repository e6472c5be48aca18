"""
Unit tests for the relational view and plotting functions.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy as np
import pytest
from cognilogic import ReasoningBridge
from cognilogic.config import Settings
from cognilogic.memory import AtomSpace, build_link_graph, relation_degrees, relation_density
from visualization import (
    plot_atom_graph,
    plot_attention_distribution,
    plot_loss_history,
    plot_metrics_dashboard,
    plot_relation_matrix,
)


@pytest.fixture
def trained_bridge():
    bridge = ReasoningBridge.initialize(16, settings=Settings(random_seed=0))
    bridge.sync_atoms([(0, "human", 0.9, 0.8), (0, "mortal", 0.7, 0.6), (0, "socrates", 1.0, 0.9)])
    bridge.add_rule("humans_are_mortal", ["human"], "mortal")
    bridge.atomspace.add_link(bridge.atomspace.find_by_name("socrates"),
                              bridge.atomspace.find_by_name("human"))
    for _ in range(3):
        bridge.train("mortal", 1.0, 0.9)
    yield bridge
    plt.close('all')


class TestRelations:
    """Test relation summaries and graph export."""

    def test_empty_store(self):
        space = AtomSpace(4)

        assert relation_density(space) == 0.0
        assert relation_degrees(space).shape == (0,)
        assert build_link_graph(space).number_of_nodes() == 0

    def test_density_and_degrees(self, trained_bridge):
        space = trained_bridge.atomspace
        space.update_relations()

        assert 0.0 < relation_density(space) <= 1.0
        assert relation_degrees(space).shape == (3,)
        assert relation_density(space, threshold=2.0) == 0.0

    def test_link_graph(self, trained_bridge):
        space = trained_bridge.atomspace
        socrates = space.find_by_name("socrates")
        human = space.find_by_name("human")

        G = build_link_graph(space)

        assert G.number_of_nodes() == 3
        assert G.nodes[socrates.id]['name'] == "socrates"
        assert G.has_edge(socrates.id, human.id)
        assert G.edges[socrates.id, human.id]['kind'] == 'link'
        assert G.number_of_edges() == 1

    def test_node_degrees(self, trained_bridge):
        """Test nodes carry their summed relation weight."""
        space = trained_bridge.atomspace
        space.update_relations()

        G = build_link_graph(space)
        degrees = relation_degrees(space)

        for atom in space:
            assert G.nodes[atom.id]['degree'] == pytest.approx(degrees[atom.index])

    def test_relation_edges(self, trained_bridge):
        space = trained_bridge.atomspace
        space.update_relations()

        G = build_link_graph(space, relation_threshold=-1.0)
        kinds = [kind for _, _, kind in G.edges(data='kind')]

        # Every ordered pair is connected; the socrates→human link keeps its kind
        assert G.number_of_edges() == 6
        assert kinds.count('link') == 1
        assert kinds.count('relation') == 5


class TestPlots:
    """Test plotting functions return figures."""

    def test_loss_history(self, trained_bridge, tmp_path):
        path = tmp_path / "loss.png"
        fig = plot_loss_history(trained_bridge.engine.loss_history, save_path=str(path))

        assert fig is not None
        assert path.exists()

    def test_metrics_dashboard(self, trained_bridge):
        fig = plot_metrics_dashboard(trained_bridge.engine.metrics_history)

        assert len(fig.axes) == 4

    def test_attention_distribution(self, trained_bridge):
        weights = np.array([atom.attention_weight for atom in trained_bridge.atomspace])

        assert plot_attention_distribution(weights) is not None

    def test_atom_graph(self, trained_bridge):
        trained_bridge.atomspace.update_relations()

        assert plot_atom_graph(trained_bridge.atomspace, relation_threshold=0.5) is not None

    def test_relation_matrix(self, trained_bridge):
        trained_bridge.atomspace.update_relations()

        fig = plot_relation_matrix(trained_bridge.atomspace)

        assert fig is not None
