"""
Monte Carlo Tree Search (MCTS) implementation for Hexaequo.

This package provides evaluator-guided MCTS. Each simulation:

1. Selection: Starting from the root, descend by PUCT score until reaching
   an unexpanded or terminal node.
2. Expansion: Query the evaluator once and create a child for every legal
   action, with priors taken from the evaluator's policy.
3. Evaluation: Use the terminal reward, or the evaluator's value estimate.
4. Backpropagation: Update visit counts and values on the path to the root,
   flipping the sign whenever the side to move changes.

The final action is the most visited child of the root.
"""

from hexaequo_ai.mcts.node import MCTSNode
from hexaequo_ai.mcts.agent import MCTSAgent, MCTSAgentFactory
from hexaequo_ai.mcts.evaluator import (
    Evaluation, Evaluator, UniformEvaluator, MaterialEvaluator,
    ThreadedEvaluator, validate_evaluation
)
from hexaequo_ai.mcts.search import (
    mcts_search,
    mcts_search_async,
    run_search,
    run_search_async,
    select_leaf,
    expand_node,
    evaluate_leaf,
    backpropagate,
    visit_distribution
)
from hexaequo_ai.mcts.config import MCTSConfig, SearchBudget, RewardMode

# Default configuration
DEFAULT_CONFIG = MCTSConfig()

__all__ = [
    'MCTSAgent',
    'MCTSAgentFactory',
    'MCTSNode',
    'MCTSConfig',
    'SearchBudget',
    'RewardMode',
    'Evaluation',
    'Evaluator',
    'UniformEvaluator',
    'MaterialEvaluator',
    'ThreadedEvaluator',
    'validate_evaluation',
    'mcts_search',
    'mcts_search_async',
    'run_search',
    'run_search_async',
    'select_leaf',
    'expand_node',
    'evaluate_leaf',
    'backpropagate',
    'visit_distribution',
    'DEFAULT_CONFIG'
]
