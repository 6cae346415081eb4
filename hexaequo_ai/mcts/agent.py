"""
Monte Carlo Tree Search Agent for Hexaequo.

This module provides the MCTSAgent class, a ready-to-use player that picks
actions with evaluator-guided tree search, and a factory for agents of
different strengths. The agent keeps the tree and statistics of its last
search for analysis.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import logging
import time

from hexaequo_ai.core.actions import Action
from hexaequo_ai.core.constants import Color
from hexaequo_ai.core.game import Game, GameState
from hexaequo_ai.mcts.config import MCTSConfig, SearchBudget
from hexaequo_ai.mcts.evaluator import Evaluator, MaterialEvaluator
from hexaequo_ai.mcts.node import MCTSNode
from hexaequo_ai.mcts.search import (
    run_search, get_action_statistics, get_principal_variation
)

logger = logging.getLogger(__name__)


class MCTSAgent:
    """
    Monte Carlo Tree Search agent for playing Hexaequo.

    This agent uses MCTS to select actions. It can be configured with
    different parameters and evaluators and records statistics about
    its search process.
    """

    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        config: Optional[MCTSConfig] = None,
        name: str = "MCTS Agent",
        verbose: bool = False
    ):
        """
        Initialize an MCTS agent.

        Args:
            evaluator: Policy/value evaluator (defaults to MaterialEvaluator)
            config: MCTS configuration parameters
            name: Name of the agent
            verbose: Whether to log a summary of every search at INFO level
        """
        self.evaluator = evaluator or MaterialEvaluator()
        self.config = config or MCTSConfig()
        self.name = name
        self.verbose = verbose

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}

        # History of all actions and their statistics
        self.action_history: List[Tuple[Action, Dict[str, Any]]] = []

        # Root node of the last search
        self.last_root: Optional[MCTSNode] = None

    def select_action(self, state: GameState, color: Optional[Color] = None) -> Action:
        """
        Select an action using Monte Carlo Tree Search.

        Args:
            state: Current game state
            color: Color the agent plays (checked against the side to move if given)

        Returns:
            Selected action
        """
        if color is not None and state.side_to_move != color:
            raise ValueError(f"Not {color.value}'s turn")

        legal_actions = state.legal_actions()

        # If there's only one legal action, no need to search
        if len(legal_actions) == 1:
            self.last_stats = {"simulations": 0, "forced_move": True}
            self.last_root = None
            return legal_actions[0]

        start_time = time.time()
        root, stats = run_search(state, self.evaluator, self.config)
        action = root.best_action()
        stats["total_time"] = time.time() - start_time

        self.last_root = root
        self.last_stats = stats
        self.action_history.append((action, stats))

        self._log_search_info(action, stats)
        return action

    def _log_search_info(self, action: Action, stats: Dict[str, Any]) -> None:
        level = logging.INFO if self.verbose else logging.DEBUG
        if not logger.isEnabledFor(level):
            return

        logger.log(level, "%s selected: %s", self.name, action)
        logger.log(level, "Simulations: %d, time: %.3fs (%.1f sims/s), nodes: %d, max depth: %d",
                   stats["simulations"], stats["time_elapsed"], stats["simulations_per_second"],
                   stats["node_count"], stats["max_depth"])

        top = sorted(stats["action_visits"].items(), key=lambda x: x[1], reverse=True)[:5]
        for i, (action_str, visits) in enumerate(top):
            logger.log(level, "%d. %s - %d visits", i + 1, action_str, visits)

    def get_action_callback(self) -> Callable[[GameState, Color], Action]:
        """
        Get a callback function for selecting actions.

        This is useful for registering the agent with a Game object.

        Returns:
            Callback taking a game state and color and returning an action
        """
        return lambda state, color: self.select_action(state, color)

    def register_with_game(self, game: Game, color: Color) -> None:
        """
        Register this agent with a game.

        Args:
            game: Game object
            color: Color to play
        """
        game.register_agent(color, self.get_action_callback())

    def get_last_statistics(self) -> Dict[str, Any]:
        return self.last_stats

    def get_principal_variation(self) -> List[Tuple[Action, float]]:
        """
        Get the principal variation (most visited path) from the last search.

        Returns:
            List of (action, value) pairs
        """
        if self.last_root is None:
            return []
        return get_principal_variation(self.last_root)

    def get_action_statistics(self) -> Dict[str, Dict[str, float]]:
        if self.last_root is None:
            return {}
        return get_action_statistics(self.last_root, self.config.exploration_constant)

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_stats = {}
        self.action_history = []
        self.last_root = None

    def save_statistics(self, filename: str) -> None:
        """
        Save statistics to a file.

        Args:
            filename: Name of the file to save to
        """
        history = []
        for action, stats in self.action_history:
            history.append({
                "action": action.to_dict(),
                "stats": {
                    k: v for k, v in stats.items()
                    if isinstance(v, (int, float, str, bool))
                }
            })

        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": history,
            "total_actions": len(self.action_history)
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        return f"{self.name} (MCTS, {self.config.budget.max_simulations} simulations)"


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents with different configurations.

    This class provides methods for creating MCTS agents with different
    strengths and configurations.
    """

    @staticmethod
    def create_fast(evaluator: Optional[Evaluator] = None) -> MCTSAgent:
        """Create a fast MCTS agent with few simulations."""
        return MCTSAgent(evaluator, MCTSConfig.fast(), name="Fast MCTS")

    @staticmethod
    def create_standard(evaluator: Optional[Evaluator] = None) -> MCTSAgent:
        """Create a standard MCTS agent with balanced parameters."""
        return MCTSAgent(evaluator, MCTSConfig.default(), name="Standard MCTS")

    @staticmethod
    def create_strong(evaluator: Optional[Evaluator] = None) -> MCTSAgent:
        """Create a strong MCTS agent with many simulations."""
        return MCTSAgent(evaluator, MCTSConfig.deep(), name="Strong MCTS")

    @staticmethod
    def create_custom(
        evaluator: Optional[Evaluator] = None,
        max_simulations: int = 400,
        max_time_ms: Optional[float] = None,
        exploration_constant: float = 2.0,
        name: str = "Custom MCTS"
    ) -> MCTSAgent:
        """
        Create a custom MCTS agent.

        Args:
            evaluator: Policy/value evaluator
            max_simulations: Simulations per move
            max_time_ms: Optional time limit in milliseconds
            exploration_constant: PUCT exploration constant
            name: Name of the agent

        Returns:
            MCTSAgent
        """
        config = MCTSConfig(
            budget=SearchBudget(max_simulations=max_simulations, max_time_ms=max_time_ms),
            exploration_constant=exploration_constant,
        )
        return MCTSAgent(evaluator, config, name=name)
