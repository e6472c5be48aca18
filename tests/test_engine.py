"""
Unit tests for the TensorLogicEngine.

Tests inference, training, backward, the attention primitive, distribution
hooks and cognitive integration.
"""

import numpy as np
import pytest
from cognilogic.config import EMBED_DIM, HIDDEN_DIM
from cognilogic.engine import COGNITIVE_QUERY_NAME, TensorLogicEngine, aggregate_engines
from cognilogic.errors import CapacityError, InvalidInputError
from cognilogic.memory import AtomSpace
from cognilogic.reasoning import create_rule
from cognilogic.truth import TruthValue


def axis(i, scale=1.0):
    v = np.zeros(EMBED_DIM)
    v[i] = scale
    return v


def pinned_atom(space, name, embedding, tv=None):
    """Create an atom and overwrite its embedding."""
    atom = space.create_atom(0, name, tv)
    space.update_embedding(atom, embedding)
    return atom


def near_cluster(space, size=10):
    """Atoms along the first axis; a query on that axis attends to them first."""
    return [pinned_atom(space, f"near_{i}", axis(0)) for i in range(size)]


@pytest.fixture
def space():
    return AtomSpace(10, random_seed=42)


@pytest.fixture
def engine(space):
    return TensorLogicEngine(space, random_seed=42)


@pytest.fixture
def mortal_rule(space, engine):
    """human ⇒ mortal, installed on the engine."""
    human = space.create_atom(0, "human", TruthValue.create(0.9, 0.8))
    mortal = space.create_atom(0, "mortal", TruthValue.create(0.7, 0.6))
    rule = create_rule("humans_are_mortal", [human], mortal)
    engine.add_rule(rule)
    return rule, human, mortal


class TestInitialization:
    """Test engine construction."""

    def test_weight_shapes(self, engine):
        assert engine.query_weights.shape == (EMBED_DIM, HIDDEN_DIM)
        assert engine.key_weights.shape == (EMBED_DIM, HIDDEN_DIM)
        assert engine.value_weights.shape == (EMBED_DIM, HIDDEN_DIM)
        assert engine.output_weights.shape == (HIDDEN_DIM, EMBED_DIM)
        assert engine.grad_ctx.grad_size == 4 * EMBED_DIM * HIDDEN_DIM

    def test_weight_init_range(self, engine):
        """Test weights lie in ±sqrt(2/(E·H))."""
        bound = np.sqrt(2.0 / (EMBED_DIM * HIDDEN_DIM))

        for W in engine.projection_weights():
            assert np.all(np.abs(W) <= bound)

    def test_reproducibility(self, space):
        e1 = TensorLogicEngine(space, random_seed=3)
        e2 = TensorLogicEngine(space, random_seed=3)

        for W1, W2 in zip(e1.projection_weights(), e2.projection_weights()):
            assert np.allclose(W1, W2)

    def test_requires_atomspace(self):
        with pytest.raises(InvalidInputError):
            TensorLogicEngine(None)


class TestRules:
    """Test rule installation."""

    def test_newest_first(self, space, engine):
        a = space.create_atom(0, "a")
        r1 = create_rule("r1", [a], a)
        r2 = create_rule("r2", [a], a)
        engine.add_rule(r1)
        engine.add_rule(r2)

        assert engine.rules == [r2, r1]
        assert engine.num_rules == 2

    def test_rule_capacity(self, space):
        engine = TensorLogicEngine(space, max_rules=1)
        a = space.create_atom(0, "a")
        engine.add_rule(create_rule("r1", [a], a))

        with pytest.raises(CapacityError):
            engine.add_rule(create_rule("r2", [a], a))
        assert engine.num_rules == 1


class TestInference:
    """Test infer."""

    @pytest.mark.parametrize("max_steps", [0, 1, 10, 100])
    def test_no_rules_empty_chain(self, space, engine, max_steps):
        """Test zero rules always yields an empty chain."""
        query = space.create_atom(0, "query")
        space.create_atom(0, "other")

        chain = engine.infer(query, max_steps)

        assert chain.is_empty()
        assert engine.inference_chain is chain

    def test_goal_reached(self, engine, mortal_rule):
        """Test inference stops once the conclusion matches the query."""
        rule, _, mortal = mortal_rule

        chain = engine.infer(mortal, 10)

        assert len(chain) == 1
        assert chain.first.rule is rule
        assert chain.first.conclusion is mortal
        assert chain.query is mortal

    def test_step_record(self, engine, mortal_rule):
        """Test step confidence = new_strength · rule confidence."""
        _, _, mortal = mortal_rule

        chain = engine.infer(mortal, 10)
        step = chain.first

        assert step.confidence == pytest.approx(0.9 * 1.0 * 0.8)
        assert len(step.attention_pattern) == 2
        assert np.sum(step.attention_pattern) == pytest.approx(1.0)

    def test_conclusion_updated(self, engine, mortal_rule):
        _, _, mortal = mortal_rule

        engine.infer(mortal, 10)

        assert mortal.tv.strength == pytest.approx(0.5 * 0.7 + 0.5 * 0.9)

    def test_step_budget(self, engine, mortal_rule):
        """Test chains never exceed max_steps."""
        _, human, _ = mortal_rule

        for max_steps in (0, 1, 3):
            assert len(engine.infer(human, max_steps)) <= max_steps

    def test_tie_goes_to_newest_rule(self, space, engine):
        """Test equally scored rules resolve to the most recently added."""
        a = space.create_atom(0, "a", TruthValue.create(0.9, 0.8))
        b = space.create_atom(0, "b", TruthValue.create(0.7, 0.6))
        engine.add_rule(create_rule("old", [a], b))
        newest = create_rule("new", [b], a)
        engine.add_rule(newest)

        chain = engine.infer(a, 1)

        assert chain.first.rule is newest

    def test_absent_query(self, engine):
        with pytest.raises(InvalidInputError):
            engine.infer(None, 5)

    def test_premise_outside_relevant_set(self):
        """Test a premise unlike every top-10 atom leaves its rule unsatisfied."""
        space = AtomSpace(16)
        engine = TensorLogicEngine(space, random_seed=0)
        near = near_cluster(space)
        far = pinned_atom(space, "far", axis(1))
        engine.add_rule(create_rule("unreachable", [far], near[1]))

        chain = engine.infer(near[0], 5)

        assert chain.is_empty()
        assert far not in space.top_k(10)

        reachable = create_rule("reachable", [near[2]], near[1])
        engine.add_rule(reachable)

        assert engine.infer(near[0], 5).first.rule is reachable

    def test_higher_score_beats_earlier_rule(self):
        """Test a later-scanned rule wins when its score is strictly higher."""
        space = AtomSpace(16)
        engine = TensorLogicEngine(space, random_seed=0)
        cluster = near_cluster(space)
        partial = pinned_atom(space, "partial", axis(0, 0.8) + axis(1, 0.6))
        direct = create_rule("direct", [cluster[3]], cluster[1])
        engine.add_rule(direct)
        engine.add_rule(create_rule("partial", [partial], cluster[2]))

        chain = engine.infer(cluster[0], 1)

        # partial scores 0.8 and is scanned first; direct scores 1.0
        assert engine.rules[1] is direct
        assert chain.first.rule is direct

    def test_partial_match_fires_alone(self):
        """Test a premise at similarity 0.8 satisfies its rule on its own."""
        space = AtomSpace(16)
        engine = TensorLogicEngine(space, random_seed=0)
        cluster = near_cluster(space)
        partial = pinned_atom(space, "partial", axis(0, 0.8) + axis(1, 0.6))
        rule = create_rule("partial", [partial], cluster[2])
        engine.add_rule(rule)

        chain = engine.infer(cluster[0], 1)

        assert partial not in space.top_k(10)
        assert chain.first.rule is rule

    def test_chain_runs_to_max_steps(self):
        """Test a goal that is never reached uses the whole step budget."""
        space = AtomSpace(10)
        engine = TensorLogicEngine(space, random_seed=0)
        query = pinned_atom(space, "query", axis(1))
        premise = pinned_atom(space, "premise", axis(0), TruthValue.create(0.9, 0.8))
        conclusion = pinned_atom(space, "conclusion", axis(2), TruthValue.create(0.5, 0.5))
        engine.add_rule(create_rule("premise_to_conclusion", [premise], conclusion))

        chain = engine.infer(query, 4)

        assert len(chain) == 4
        assert all(step.conclusion is conclusion for step in chain.steps)


class TestTraining:
    """Test train_step and backward."""

    def test_train_step_loss(self, engine, mortal_rule):
        """Test loss is the squared strength error of the first conclusion."""
        _, _, mortal = mortal_rule
        target = TruthValue.create(1.0, 0.9)

        loss = engine.train_step(mortal, target)

        assert loss == pytest.approx((mortal.tv.strength - 1.0) ** 2)
        assert engine.loss_history == [loss]
        assert engine.grad_ctx.loss == loss
        assert engine.training_mode is False

    def test_train_step_counters(self, space, engine, mortal_rule):
        _, _, mortal = mortal_rule

        engine.train_step(mortal, TruthValue.create(1.0, 0.9))

        assert space.training_steps == 1
        assert engine.grad_ctx.num_steps == 4
        assert len(engine.metrics_history) == 1

    def test_train_step_full_chain_loss(self):
        """Test a five-step chain scores the first step's conclusion."""
        space = AtomSpace(10)
        engine = TensorLogicEngine(space, random_seed=0)
        query = pinned_atom(space, "query", axis(1))
        premise = pinned_atom(space, "premise", axis(0), TruthValue.create(0.9, 0.8))
        conclusion = pinned_atom(space, "conclusion", axis(2), TruthValue.create(0.5, 0.5))
        engine.add_rule(create_rule("premise_to_conclusion", [premise], conclusion))

        loss = engine.train_step(query, TruthValue.create(1.0, 0.9))
        chain = engine.inference_chain

        # Five blends towards 0.9 starting from 0.5
        assert len(chain) == 5
        assert conclusion.tv.strength == pytest.approx(0.9 - 0.4 * 0.5 ** 5)
        assert loss == pytest.approx((chain.first.conclusion.tv.strength - 1.0) ** 2)
        assert loss == pytest.approx(0.01265625)
        assert chain.first.confidence == pytest.approx(0.9 * 0.8)

    def test_train_step_without_chain(self, space, engine):
        """Test an empty chain gives no loss and no update."""
        query = space.create_atom(0, "query")

        assert engine.train_step(query, TruthValue.create(1.0, 0.9)) is None
        assert space.training_steps == 0
        assert engine.loss_history == []

    def test_backward_zero_gradients(self, engine, mortal_rule):
        """Test backward with zero gradients leaves weights unchanged."""
        _, _, mortal = mortal_rule
        engine.infer(mortal, 10)
        before = [W.copy() for W in engine.projection_weights()]
        rule_weight = mortal_rule[0].weight

        engine.backward()

        for W_before, W_after in zip(before, engine.projection_weights()):
            assert np.array_equal(W_before, W_after)
        assert engine.grad_ctx.num_steps == 4
        assert mortal_rule[0].weight == rule_weight

    def test_backward_empty_chain(self, space, engine):
        query = space.create_atom(0, "query")
        engine.infer(query, 5)

        engine.backward()

        assert engine.grad_ctx.num_steps == 0
        assert space.training_steps == 0

    def test_backward_supplied_gradients(self, engine, mortal_rule):
        """Test supplied gradients reach the rule and the projections."""
        rule, _, mortal = mortal_rule
        engine.infer(mortal, 10)
        before = engine.query_weights.copy()
        gradients = np.zeros(engine.grad_ctx.grad_size)
        gradients[0] = 1.0

        engine.backward(gradients)

        assert rule.weight == pytest.approx(0.99)
        assert engine.query_weights[0, 0] == pytest.approx(before[0, 0] - 0.001, abs=1e-6)
        assert engine.query_weights[0, 1] == before[0, 1]

    def test_repeated_training_stable(self, engine, mortal_rule):
        """Test repeated steps converge to a fixed loss."""
        _, _, mortal = mortal_rule
        target = TruthValue.create(1.0, 0.9)

        losses = [engine.train_step(mortal, target) for _ in range(10)]

        assert all(np.isfinite(losses))
        assert losses[-1] == pytest.approx((0.9 - 1.0) ** 2, abs=1e-3)


class TestAttentionPrimitive:
    """Test the engine's self-attention."""

    def test_output_shape(self, space, engine):
        atoms = [space.create_atom(0, f"atom_{i}") for i in range(4)]

        out = engine.attention(atoms)

        assert out.shape == (4, EMBED_DIM)
        assert np.all(np.isfinite(out))

    def test_empty(self, engine):
        assert engine.attention([]).shape == (0, EMBED_DIM)

    def test_single_atom(self, space, engine):
        """Test one atom attends fully to itself."""
        atom = space.create_atom(0, "solo")

        out = engine.attention([atom])
        expected = atom.embedding @ engine.value_weights @ engine.output_weights

        assert np.allclose(out[0], expected)

    def test_backward(self, space, engine):
        """Test 0.1·grad lands in each atom's tv gradient."""
        atoms = [space.create_atom(0, f"atom_{i}") for i in range(3)]
        grad = np.ones((3, EMBED_DIM))

        engine.attention_backward(grad, atoms)
        engine.attention_backward(grad, atoms)

        for atom in atoms:
            assert np.allclose(atom.tv.gradient, 0.2)

    def test_backward_shape_mismatch(self, space, engine):
        """Test a gradient with the wrong row count is rejected before any update."""
        atoms = [space.create_atom(0, f"atom_{i}") for i in range(3)]

        with pytest.raises(AssertionError):
            engine.attention_backward(np.ones((2, EMBED_DIM)), atoms)
        with pytest.raises(AssertionError):
            engine.attention_backward(np.ones((3, EMBED_DIM + 1)), atoms)
        for atom in atoms:
            assert np.all(atom.tv.gradient == 0.0)


class TestDistribution:
    """Test sync and aggregation."""

    def test_sync(self, space, engine):
        engine.sync(3)
        engine.sync(4)

        assert space.training_steps == 2

    def test_aggregate_mean(self, space):
        e1 = TensorLogicEngine(space, random_seed=1)
        e2 = TensorLogicEngine(space, random_seed=2)

        out = aggregate_engines([e1, e2])

        for W, W1, W2 in zip(out.projection_weights(), e1.projection_weights(),
                             e2.projection_weights()):
            assert np.allclose(W, (W1 + W2) / 2)

    def test_aggregate_identical_is_identity(self, space):
        e1 = TensorLogicEngine(space, random_seed=5)
        e2 = TensorLogicEngine(space, random_seed=5)
        out = TensorLogicEngine(space, random_seed=9)

        result = aggregate_engines([e1, e2], output=out)

        assert result is out
        for W, W1 in zip(out.projection_weights(), e1.projection_weights()):
            assert np.allclose(W, W1)

    def test_aggregate_empty(self):
        with pytest.raises(InvalidInputError):
            aggregate_engines([])


class TestCognitiveIntegration:
    """Test cognitive_update and goal_gradient."""

    def test_cognitive_update_without_rules(self, space, engine):
        """Test the state is returned unchanged when no rule fires."""
        state = np.linspace(-1, 1, 80)

        out = engine.cognitive_update(state)

        assert out is not state
        assert np.allclose(out, state)
        atom = space.find_by_name(COGNITIVE_QUERY_NAME)
        assert atom is not None
        assert np.allclose(atom.embedding, state[:EMBED_DIM])

    def test_cognitive_update_short_state(self, space, engine):
        """Test states shorter than E are zero-padded for the query."""
        state = np.ones(10)

        out = engine.cognitive_update(state)

        atom = space.find_by_name(COGNITIVE_QUERY_NAME)
        assert out.shape == (10,)
        assert np.allclose(atom.embedding[:10], 1.0)
        assert np.allclose(atom.embedding[10:], 0.0)

    def test_cognitive_query_reused(self, space, engine):
        engine.cognitive_update(np.ones(EMBED_DIM))
        engine.cognitive_update(np.zeros(EMBED_DIM))

        assert len(space) == 1

    def test_cognitive_update_blends(self, space, engine, mortal_rule):
        """Test a fired rule moves the state 20% towards its conclusion."""
        _, _, mortal = mortal_rule
        state = np.full(EMBED_DIM, 0.5)

        out = engine.cognitive_update(state)

        chain = engine.inference_chain
        assert not chain.is_empty()
        expected = 0.8 * state + 0.2 * chain.first.conclusion.embedding
        assert np.allclose(out, expected)
        assert np.allclose(state, 0.5)

    def test_goal_gradient(self, space, engine):
        for i in range(8):
            space.create_atom(0, f"atom_{i}")
        goal = np.random.RandomState(0).randn(EMBED_DIM)

        gradient = engine.goal_gradient(goal)

        expected = sum((goal - atom.embedding) * atom.attention_weight
                       for atom in space.top_k(5))
        assert gradient.shape == (EMBED_DIM,)
        assert np.allclose(gradient, expected)

    def test_goal_gradient_empty(self, engine):
        assert np.allclose(engine.goal_gradient(np.ones(EMBED_DIM)), 0.0)


class TestState:
    """Test get_state."""

    def test_state_contents(self, engine, mortal_rule):
        rule, _, mortal = mortal_rule
        engine.train_step(mortal, TruthValue.create(1.0, 0.9))

        state = engine.get_state()

        assert state['chain'][0][0] == rule.name
        assert state['chain'][0][1] == mortal.id
        assert state['optimizer_steps'] == 4
        assert state['training_steps'] == 1
        assert state['parameters']['E'] == EMBED_DIM
        assert len(state['loss_history']) == 1
