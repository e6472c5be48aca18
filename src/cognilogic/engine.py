"""
Tensor Logic Engine: attention-guided inference over an AtomSpace.

Each call to infer:
1. scores every atom against the query embedding (softmax attention)
2. captures the top 10 atoms as the relevant set
3. repeatedly fires the best-matching rule, recording one inference step per
   application, until no rule is satisfied, the conclusion matches the query,
   or the step budget runs out

Training wraps inference with a loss on the first step's conclusion and an
Adam update of the projection weights.
"""

import logging
import numpy as np
from typing import Dict, List, Optional, Sequence

from cognilogic.config import EMBED_DIM, HIDDEN_DIM, MAX_RULES, RELEVANT_K
from cognilogic.dynamics.attention import attention_backward, attention_forward
from cognilogic.dynamics.optimizer import GradientContext
from cognilogic.errors import CapacityError, InvalidInputError
from cognilogic.memory.atom import Atom, atom_similarity
from cognilogic.memory.atomspace import AtomSpace, random_embedding
from cognilogic.reasoning.inference import InferenceChain, InferenceStep
from cognilogic.reasoning.rules import Rule, apply_rule, update_rule_weights
from cognilogic.truth.value import TruthValue
from cognilogic.utils import compute_metrics

logger = logging.getLogger(__name__)

PREMISE_THRESHOLD = 0.5
GOAL_THRESHOLD = 0.9
TRAIN_STEPS = 5
COGNITIVE_QUERY_NAME = "cognitive_query"
COGNITIVE_BLEND = 0.2
GOAL_TOP_K = 5


class TensorLogicEngine:
    """
    Neural-symbolic reasoning engine.

    Attributes:
        atomspace: Knowledge store the engine reads and mutates (not owned)
        rules: Installed rules, most recently added first
        inference_chain: Chain produced by the latest infer call
        query_weights, key_weights, value_weights: Shape (E, H) projections
        output_weights: Shape (H, E) projection
        grad_ctx: Adam state shared by the four projections
        temperature: Softmax temperature of the attention primitive
        training_mode: True while a training step is running
    """

    def __init__(self, atomspace: AtomSpace, temperature: float = 1.0,
                 max_rules: int = MAX_RULES, random_seed: Optional[int] = None):
        """
        Initialize the engine.

        Args:
            atomspace: Store to reason over
            temperature: Attention softmax temperature
            max_rules: Maximum number of rules accepted by add_rule
            random_seed: Optional seed for weight initialisation
        """
        if atomspace is None:
            raise InvalidInputError("An engine needs an AtomSpace")

        self.atomspace = atomspace
        self.rules: List[Rule] = []
        self.max_rules = max_rules
        self.inference_chain = InferenceChain()
        self.max_depth = 10

        self.random_state = np.random.RandomState(random_seed)

        qkv_size = EMBED_DIM * HIDDEN_DIM
        self.query_weights = random_embedding(qkv_size, self.random_state).reshape(EMBED_DIM, HIDDEN_DIM)
        self.key_weights = random_embedding(qkv_size, self.random_state).reshape(EMBED_DIM, HIDDEN_DIM)
        self.value_weights = random_embedding(qkv_size, self.random_state).reshape(EMBED_DIM, HIDDEN_DIM)
        self.output_weights = random_embedding(qkv_size, self.random_state).reshape(HIDDEN_DIM, EMBED_DIM)

        self.grad_ctx = GradientContext(qkv_size * 4)
        self.temperature = temperature
        self.training_mode = False

        # History tracking
        self.loss_history: List[float] = []
        self.metrics_history: List[Dict] = []

    @property
    def num_rules(self) -> int:
        return len(self.rules)

    def projection_weights(self) -> List[np.ndarray]:
        """Query, key, value and output matrices, in that order."""
        return [self.query_weights, self.key_weights, self.value_weights, self.output_weights]

    def add_rule(self, rule: Rule):
        """
        Install a rule ahead of all existing ones.

        Raises:
            CapacityError: If the engine already holds max_rules rules
            InvalidInputError: If rule is None
        """
        if rule is None:
            raise InvalidInputError("Cannot add an absent rule")
        if len(self.rules) >= self.max_rules:
            raise CapacityError(f"Rule capacity reached ({self.max_rules})")
        self.rules.insert(0, rule)
        logger.debug("Added rule %s (%d rules)", rule.name, len(self.rules))

    # =========================================================================
    # Inference
    # =========================================================================

    def _select_rule(self, relevant: Sequence[Atom]) -> Optional[Rule]:
        """
        Best satisfied rule against the relevant set.

        A rule is satisfied when every premise reaches similarity 0.5 with some
        relevant atom; its score is Σ max_sim_i · w_i. Only a strictly higher
        score displaces the current best, which starts at 0.
        """
        best_rule = None
        best_score = 0.0

        for rule in self.rules:
            score = 0.0
            satisfied = True

            for pid, weight in zip(rule.premises, rule.premise_weights):
                premise = self.atomspace.get(pid)
                max_sim = 0.0
                for atom in relevant:
                    sim = atom_similarity(premise, atom)
                    if sim > max_sim:
                        max_sim = sim

                if max_sim < PREMISE_THRESHOLD:
                    satisfied = False
                    break
                score += max_sim * weight

            if satisfied and score > best_score:
                best_score = score
                best_rule = rule

        return best_rule

    def infer(self, query: Atom, max_steps: int) -> InferenceChain:
        """
        Run attention-guided inference towards a query atom.

        Args:
            query: Atom whose embedding drives attention and the goal check
            max_steps: Maximum number of rule applications

        Returns:
            InferenceChain (possibly empty), also installed on the engine
        """
        if query is None:
            raise InvalidInputError("Inference needs a query atom")

        self.atomspace.compute_attention(query.embedding)
        relevant = self.atomspace.top_k(RELEVANT_K)
        attention_pattern = np.array([atom.attention_weight for atom in relevant])

        chain = InferenceChain(query)

        for _ in range(max_steps):
            rule = self._select_rule(relevant)
            if rule is None:
                break

            new_strength = apply_rule(rule, self.atomspace)
            conclusion = self.atomspace.get(rule.conclusion)

            chain.append(InferenceStep(
                rule=rule,
                conclusion=conclusion,
                confidence=new_strength * rule.confidence,
                attention_pattern=attention_pattern.copy(),
            ))

            if atom_similarity(query, conclusion) > GOAL_THRESHOLD:
                break

        logger.debug("Inference for %s produced %d steps", query.name, len(chain))

        self.inference_chain = chain
        return chain

    # =========================================================================
    # Training
    # =========================================================================

    def train_step(self, query: Atom, target: TruthValue) -> Optional[float]:
        """
        One training step: infer, compute loss, backpropagate.

        The loss is the squared error between the strength of the first
        step's conclusion and the target strength.

        Args:
            query: Query atom
            target: Target truth value

        Returns:
            The loss, or None if inference produced no chain
        """
        if query is None or target is None:
            raise InvalidInputError("train_step needs a query atom and a target")

        self.training_mode = True
        loss = None
        try:
            chain = self.infer(query, TRAIN_STEPS)
            if not chain.is_empty():
                predicted = chain.first.conclusion.tv.strength
                loss = (predicted - target.strength) ** 2

                self.grad_ctx.loss = loss
                self.loss_history.append(loss)

                self.backward()
                logger.info("Training step %d on %s: loss=%.6f",
                            self.atomspace.training_steps, query.name, loss)
        finally:
            self.training_mode = False

        return loss

    def backward(self, gradients: Optional[np.ndarray] = None):
        """
        Backpropagate through the current inference chain.

        Zeroes the gradient buffer, accumulates any supplied gradients, updates
        the weights of every rule in the chain (oldest first), then applies one
        Adam step to each projection matrix.

        Args:
            gradients: Optional flat gradients to load into the buffer. The
                training path passes none, so Adam sees zero gradients.
        """
        if self.inference_chain.is_empty():
            return

        self.grad_ctx.zero()
        if gradients is not None:
            self.grad_ctx.accumulate(gradients)

        for step in self.inference_chain:
            update_rule_weights(step.rule, self.grad_ctx.gradients)

        for weights in self.projection_weights():
            self.grad_ctx.apply_adam(weights)

        self.atomspace.training_steps += 1
        self.metrics_history.append(compute_metrics(self))

    # =========================================================================
    # Attention primitive
    # =========================================================================

    def attention(self, atoms: Sequence[Atom]) -> np.ndarray:
        """Self-attention over atoms; see dynamics.attention."""
        return attention_forward(self, atoms)

    def attention_backward(self, grad_output: np.ndarray, atoms: Sequence[Atom]):
        attention_backward(grad_output, atoms)

    # =========================================================================
    # Distribution and cognitive integration
    # =========================================================================

    def sync(self, node_id: int):
        """
        Mark the engine as synchronised with a peer node.

        No state is transmitted; only the training-step counter advances.
        """
        self.atomspace.training_steps += 1
        logger.debug("Synced with node %d", node_id)

    def cognitive_update(self, cognitive_state: np.ndarray) -> np.ndarray:
        """
        Run inference from an external state vector and blend the result back.

        The first E entries of the state (zero-padded) become the embedding of
        the 'cognitive_query' atom, created on first use. When inference yields
        a chain, those entries move 20% towards the first conclusion's
        embedding.

        Args:
            cognitive_state: Shape (S,) - caller's state vector

        Returns:
            np.ndarray: Updated copy of the state
        """
        state = np.array(cognitive_state, dtype=float)
        n = min(EMBED_DIM, len(state))

        query = np.zeros(EMBED_DIM)
        query[:n] = state[:n]

        self.atomspace.compute_attention(query)

        query_atom = self.atomspace.find_by_name(COGNITIVE_QUERY_NAME)
        if query_atom is None:
            query_atom = self.atomspace.create_atom(
                0, COGNITIVE_QUERY_NAME, TruthValue.create(0.8, 0.5))

        self.atomspace.update_embedding(query_atom, query)
        chain = self.infer(query_atom, TRAIN_STEPS)

        if not chain.is_empty():
            result = chain.first.conclusion.embedding
            state[:n] = (1 - COGNITIVE_BLEND) * state[:n] + COGNITIVE_BLEND * result[:n]

        return state

    def goal_gradient(self, goal_embedding: np.ndarray) -> np.ndarray:
        """
        Attention-weighted direction from the most relevant atoms to a goal.

        gradient = Σ_j (goal - emb_j) · attention_j over the top 5 atoms

        Returns:
            np.ndarray: Shape (E,)
        """
        goal = np.asarray(goal_embedding, dtype=float)
        self.atomspace.compute_attention(goal)

        gradient = np.zeros(EMBED_DIM)
        for atom in self.atomspace.top_k(GOAL_TOP_K):
            gradient += (goal - atom.embedding) * atom.attention_weight
        return gradient

    def get_state(self) -> Dict:
        """
        Get current engine state.

        Returns:
            dict: Weights, chain summary, optimizer state and history
        """
        return {
            'query_weights': self.query_weights.copy(),
            'key_weights': self.key_weights.copy(),
            'value_weights': self.value_weights.copy(),
            'output_weights': self.output_weights.copy(),
            'chain': [(step.rule.name, step.conclusion.id, step.confidence)
                      for step in self.inference_chain],
            'loss': self.grad_ctx.loss,
            'optimizer_steps': self.grad_ctx.num_steps,
            'loss_history': self.loss_history.copy(),
            'metrics_history': self.metrics_history.copy(),
            'training_steps': self.atomspace.training_steps,
            'parameters': {
                'E': EMBED_DIM,
                'H': HIDDEN_DIM,
                'temperature': self.temperature,
                'num_rules': self.num_rules,
                'max_rules': self.max_rules,
            }
        }

    def __repr__(self):
        return (f"TensorLogicEngine(atoms={len(self.atomspace)}, rules={self.num_rules}, "
                f"steps={self.atomspace.training_steps})")


def aggregate_engines(engines: Sequence[TensorLogicEngine],
                      output: Optional[TensorLogicEngine] = None) -> TensorLogicEngine:
    """
    Federated averaging of projection weights.

    Each projection matrix of the output becomes the elementwise mean of the
    corresponding matrices across all input engines.

    Args:
        engines: Engines to average (at least one)
        output: Engine to write into; a new engine over the first input's
            store when omitted

    Returns:
        The output engine
    """
    if not engines:
        raise InvalidInputError("aggregate_engines needs at least one engine")

    if output is None:
        output = TensorLogicEngine(engines[0].atomspace, temperature=engines[0].temperature)

    means = [
        np.mean([engine.projection_weights()[i] for engine in engines], axis=0)
        for i in range(4)
    ]
    for target, mean in zip(output.projection_weights(), means):
        target[:] = mean

    logger.debug("Aggregated %d engines", len(engines))
    return output
