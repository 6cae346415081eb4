"""
Monte Carlo Tree Search (MCTS) algorithm for Hexaequo.

This module implements policy/value guided MCTS with the four standard phases:
1. Selection: Descend from the root by PUCT score to an unexpanded or terminal node
2. Expansion: Query the evaluator once and create one child per legal action
3. Evaluation: Use the terminal reward or the evaluator's value estimate
4. Backpropagation: Update visits and values on the path back to the root

The evaluator is the only suspension point. mcts_search() calls it directly;
mcts_search_async() also awaits evaluators that return awaitables. The search
stops on its simulation budget, its wall-clock budget or an optional stop
event, and always completes at least one simulation.
"""
from __future__ import annotations
import inspect
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from hexaequo_ai.core.actions import Action
from hexaequo_ai.core.codec import ActionCodec, DEFAULT_CODEC
from hexaequo_ai.core.exceptions import EvaluatorError, NoLegalActionsError
from hexaequo_ai.core.game import GameState
from hexaequo_ai.mcts.config import MCTSConfig, RewardMode, SearchBudget
from hexaequo_ai.mcts.evaluator import Evaluator, validate_evaluation
from hexaequo_ai.mcts.node import MCTSNode

logger = logging.getLogger(__name__)


def select_leaf(root: MCTSNode, exploration_constant: float) -> MCTSNode:
    """
    Descend from the root to a node that is unexpanded or terminal.

    Args:
        root: Root node of the tree
        exploration_constant: PUCT exploration weight

    Returns:
        Selected leaf
    """
    node = root
    while node.is_expanded and not node.is_terminal():
        node = node.select_child(exploration_constant)
    return node


def compute_priors(
    state: GameState,
    policy: np.ndarray,
    codec: ActionCodec = DEFAULT_CODEC
) -> List[Tuple[Action, float]]:
    """
    Mask a policy vector to the legal actions of a state.

    Actions the codec cannot encode (jumps and ring hops) get the uniform share
    1/n before renormalization. If the legal mass is zero the priors are uniform.

    Args:
        state: Non-terminal state
        policy: Policy over the full action index space
        codec: Codec relating actions to policy slots

    Returns:
        (action, prior) pairs in legal-action order, priors summing to 1
    """
    legal = state.legal_actions()
    n = len(legal)
    raw = []
    for action in legal:
        index = codec.try_encode(action)
        raw.append(1.0 / n if index is None else float(policy[index]))

    total = sum(raw)
    if total <= 0:
        return [(action, 1.0 / n) for action in legal]
    return [(action, p / total) for action, p in zip(legal, raw)]


def expand_node(
    node: MCTSNode,
    policy: np.ndarray,
    codec: ActionCodec = DEFAULT_CODEC
) -> None:
    """
    Expand a node using an evaluator policy.

    Args:
        node: Unexpanded, non-terminal node
        policy: Policy over the full action index space
        codec: Codec relating actions to policy slots
    """
    node.expand(compute_priors(node.state, policy, codec))


def evaluate_leaf(node: MCTSNode, value: float, config: MCTSConfig) -> float:
    """
    Combine an evaluator value with the shaped reward when configured.

    Args:
        node: Expanded leaf
        value: Evaluator value for the leaf's side to move
        config: Search configuration

    Returns:
        Leaf value for the leaf's side to move, in [-1, 1]
    """
    if config.reward_mode == RewardMode.SHAPED:
        shaped = node.state.shaped_reward(node.player, config.shaping)
        value = value + config.shaping_discount * shaped
    return float(np.clip(value, -1.0, 1.0))


def backpropagate(node: MCTSNode, value: float) -> None:
    """
    Update statistics from a leaf back to the root.

    Args:
        node: Leaf the simulation ended at
        value: Value from the perspective of the leaf's side to move
    """
    leaf_player = node.player
    current = node
    while current is not None:
        current.update(value if current.player == leaf_player else -value)
        current = current.parent


def _call_evaluator(evaluator: Evaluator, state: GameState) -> Any:
    try:
        return evaluator.evaluate(state)
    except EvaluatorError:
        raise
    except Exception as e:
        raise EvaluatorError(f"Evaluator raised {type(e).__name__}: {e}") from e


def _complete_simulation(
    root: MCTSNode,
    leaf: MCTSNode,
    raw: Any,
    config: MCTSConfig,
    codec: ActionCodec,
    rng: np.random.Generator,
) -> None:
    evaluation = validate_evaluation(raw, codec.size)
    expand_node(leaf, evaluation.policy, codec)
    if leaf is root and config.add_root_noise:
        root.add_dirichlet_noise(config.dirichlet_alpha, config.dirichlet_fraction, rng)
    backpropagate(leaf, evaluate_leaf(leaf, evaluation.value, config))


class _SearchRun:
    """Bookkeeping shared by the synchronous and asynchronous searches."""

    def __init__(
        self,
        state: GameState,
        config: Optional[MCTSConfig],
        budget: Optional[SearchBudget],
        stop_event: Any,
    ):
        if state.is_terminal():
            raise NoLegalActionsError("Cannot search from a terminal state")

        self.config = config or MCTSConfig()
        self.budget = budget or self.config.budget
        self.stop_event = stop_event
        self.root = MCTSNode(state)
        self.rng = np.random.default_rng(self.config.seed)
        self.simulations = 0
        self.max_depth = 0
        self.stopped_by = "simulations"
        self.start_time = time.monotonic()

    def should_continue(self) -> bool:
        if self.simulations >= self.budget.max_simulations:
            self.stopped_by = "simulations"
            return False
        if self.simulations == 0:
            return True
        if self.stop_event is not None and self.stop_event.is_set():
            self.stopped_by = "stop_event"
            return False
        if (self.budget.max_time_ms is not None
                and self.simulations >= self.budget.min_simulations_before_clock_check
                and self.elapsed_ms() > self.budget.max_time_ms):
            self.stopped_by = "time"
            return False
        return True

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000.0

    def select(self) -> Optional[MCTSNode]:
        """Select a leaf; terminal leaves are backed up here and None is returned."""
        leaf = select_leaf(self.root, self.config.exploration_constant)
        self.max_depth = max(self.max_depth, leaf.depth)
        if leaf.is_terminal():
            backpropagate(leaf, leaf.state.reward(leaf.player))
            self.simulations += 1
            return None
        return leaf

    def complete(self, leaf: MCTSNode, raw: Any, codec: ActionCodec) -> None:
        _complete_simulation(self.root, leaf, raw, self.config, codec, self.rng)
        self.simulations += 1

    def fail(self, error: EvaluatorError) -> EvaluatorError:
        best = self.root.best_child()
        # Children expanded but never visited carry no search result
        error.partial_action = best.action if best is not None and best.visits > 0 else None
        error.simulations = self.simulations
        logger.warning("Search aborted after %d simulations: %s", self.simulations, error)
        return error

    def statistics(self) -> Dict[str, Any]:
        elapsed = self.elapsed_ms() / 1000.0
        stats = {
            "simulations": self.simulations,
            "time_elapsed": elapsed,
            "simulations_per_second": self.simulations / max(0.001, elapsed),
            "node_count": count_nodes(self.root),
            "max_depth": self.max_depth,
            "stopped_by": self.stopped_by,
            "root_value": self.root.mean_value,
            "action_visits": {
                str(child.action): child.visits for child in self.root.children.values()
            },
            "root": self.root,
        }
        logger.debug(
            "Search finished: %d simulations in %.3fs (%s), best %s",
            self.simulations, elapsed, self.stopped_by, self.root.best_action(),
        )
        return stats


def run_search(
    state: GameState,
    evaluator: Evaluator,
    config: Optional[MCTSConfig] = None,
    budget: Optional[SearchBudget] = None,
    stop_event: Any = None,
    codec: ActionCodec = DEFAULT_CODEC,
) -> Tuple[MCTSNode, Dict[str, Any]]:
    """
    Build a search tree from ``state``.

    Args:
        state: Non-terminal root state
        evaluator: Synchronous evaluator
        config: Search configuration (defaults to MCTSConfig())
        budget: Budget overriding ``config.budget``
        stop_event: Object with ``is_set()`` (e.g. threading.Event) that stops the search
        codec: Codec relating actions to policy slots

    Returns:
        Tuple of (root node, search statistics)

    Raises:
        NoLegalActionsError: If ``state`` is terminal
        EvaluatorError: If the evaluator fails or returns malformed data
    """
    run = _SearchRun(state, config, budget, stop_event)

    while run.should_continue():
        leaf = run.select()
        if leaf is None:
            continue

        try:
            raw = _call_evaluator(evaluator, leaf.state)
            if inspect.isawaitable(raw):
                if inspect.iscoroutine(raw):
                    raw.close()
                raise EvaluatorError("Evaluator returned an awaitable; use mcts_search_async")
            run.complete(leaf, raw, codec)
        except EvaluatorError as e:
            raise run.fail(e)

    return run.root, run.statistics()


async def run_search_async(
    state: GameState,
    evaluator: Evaluator,
    config: Optional[MCTSConfig] = None,
    budget: Optional[SearchBudget] = None,
    stop_event: Any = None,
    codec: ActionCodec = DEFAULT_CODEC,
) -> Tuple[MCTSNode, Dict[str, Any]]:
    """
    Asynchronous version of run_search().

    The evaluator may return its result directly or as an awaitable. Only one
    evaluation is in flight at a time, so tree updates happen in a fixed order.
    ``stop_event`` may be an asyncio.Event.
    """
    run = _SearchRun(state, config, budget, stop_event)

    while run.should_continue():
        leaf = run.select()
        if leaf is None:
            continue

        try:
            raw = _call_evaluator(evaluator, leaf.state)
            if inspect.isawaitable(raw):
                try:
                    raw = await raw
                except EvaluatorError:
                    raise
                except Exception as e:
                    raise EvaluatorError(f"Evaluator raised {type(e).__name__}: {e}") from e
            run.complete(leaf, raw, codec)
        except EvaluatorError as e:
            raise run.fail(e)

    return run.root, run.statistics()


def mcts_search(
    state: GameState,
    evaluator: Evaluator,
    config: Optional[MCTSConfig] = None,
    budget: Optional[SearchBudget] = None,
    stop_event: Any = None,
    codec: ActionCodec = DEFAULT_CODEC,
) -> Tuple[Action, Dict[str, Any]]:
    """
    Run Monte Carlo Tree Search to find the best action.

    This function runs the full MCTS algorithm:
    1. Create a root node from the current state
    2. Repeatedly run selection, expansion, evaluation and backpropagation
    3. Return the most visited root action (ties go to the first legal action)

    Args:
        state: Current game state (must not be terminal)
        evaluator: Policy/value evaluator
        config: MCTS configuration parameters
        budget: Budget overriding ``config.budget``
        stop_event: Optional event that stops the search early
        codec: Codec relating actions to policy slots

    Returns:
        Tuple of (best action, search statistics)
    """
    root, stats = run_search(state, evaluator, config, budget, stop_event, codec)
    return root.best_action(), stats


async def mcts_search_async(
    state: GameState,
    evaluator: Evaluator,
    config: Optional[MCTSConfig] = None,
    budget: Optional[SearchBudget] = None,
    stop_event: Any = None,
    codec: ActionCodec = DEFAULT_CODEC,
) -> Tuple[Action, Dict[str, Any]]:
    """Asynchronous version of mcts_search()."""
    root, stats = await run_search_async(state, evaluator, config, budget, stop_event, codec)
    return root.best_action(), stats


def count_nodes(node: MCTSNode) -> int:
    """
    Count the total number of nodes in the tree.

    Args:
        node: Root node of the tree

    Returns:
        Total number of nodes
    """
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        count += 1
        stack.extend(current.children.values())
    return count


def get_principal_variation(root: MCTSNode, max_depth: int = 10) -> List[Tuple[Action, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        max_depth: Maximum depth to explore

    Returns:
        List of (action, value) pairs, each value seen by the side that chose the action
    """
    result = []
    current = root

    while current.children and len(result) < max_depth:
        best_child = current.best_child()
        if best_child.visits == 0:
            break
        result.append((best_child.action, best_child.value_for(current.player)))
        current = best_child

    return result


def get_action_statistics(root: MCTSNode, exploration_constant: float = 2.0) -> Dict[str, Dict[str, float]]:
    """
    Get statistics for all actions from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        exploration_constant: Weight used for the reported PUCT score

    Returns:
        Dictionary mapping action strings to statistics
    """
    result = {}

    for action, child in root.children.items():
        result[str(action)] = {
            "visits": child.visits,
            "prior": child.prior,
            "value": child.value_for(root.player) if child.visits > 0 else 0.0,
            "score": root.ucb_score(child, exploration_constant),
        }

    return result


def visit_distribution(
    root: MCTSNode,
    temperature: float = 1.0,
    codec: ActionCodec = DEFAULT_CODEC
) -> np.ndarray:
    """
    Turn root visit counts into a policy vector over the action index space.

    Children the codec cannot encode are left out. With a temperature of 0 the
    most visited encodable child gets all the mass.

    Args:
        root: Searched root node
        temperature: Visit count exponent is 1 / temperature
        codec: Codec relating actions to policy slots

    Returns:
        Array of length ``codec.size`` summing to 1, or all zeros when no
        visited child is encodable
    """
    distribution = np.zeros(codec.size, dtype=np.float64)
    indexed = []
    for action, child in root.children.items():
        index = codec.try_encode(action)
        if index is not None:
            indexed.append((index, child.visits))

    if not indexed:
        return distribution

    if temperature <= 0:
        best_index, best_visits = indexed[0]
        for index, visits in indexed[1:]:
            if visits > best_visits:
                best_index, best_visits = index, visits
        if best_visits > 0:
            distribution[best_index] = 1.0
        return distribution

    indices = np.array([i for i, _ in indexed])
    visits = np.array([v for _, v in indexed], dtype=np.float64)
    if visits.sum() <= 0:
        return distribution
    weights = (visits / visits.max()) ** (1.0 / temperature)
    distribution[indices] = weights / weights.sum()
    return distribution
