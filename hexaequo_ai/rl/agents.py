"""
Agents built on the learned evaluator, plus baselines for evaluation.

This module provides:
- RandomAgent: uniform choice among legal actions, the usual baseline
- create_network_agent: an MCTS agent guided by a trained network
- play_match: a series of games between two agents with alternating colors
"""
import logging
import random
from typing import Any, Callable, Dict, Optional

from hexaequo_ai.core.actions import Action
from hexaequo_ai.core.constants import Color
from hexaequo_ai.core.game import Game, GameState
from hexaequo_ai.mcts.agent import MCTSAgent
from hexaequo_ai.mcts.config import MCTSConfig
from hexaequo_ai.rl.models import HexaequoNetwork, NetworkEvaluator

logger = logging.getLogger(__name__)


class RandomAgent:
    """
    Agent that selects random legal actions.

    This agent serves as a baseline for evaluating other agents.
    """

    def __init__(self, name: str = "Random Agent", seed: Optional[int] = None):
        self.name = name
        self.rng = random.Random(seed)

    def select_action(self, state: GameState, color: Optional[Color] = None) -> Action:
        """
        Select a random legal action.

        Args:
            state: Current game state
            color: Color the agent plays (unused)

        Returns:
            Selected action
        """
        return self.rng.choice(state.legal_actions())

    def get_action_callback(self) -> Callable[[GameState, Color], Action]:
        return lambda state, color: self.select_action(state, color)

    def __str__(self) -> str:
        return self.name


def create_network_agent(
    network: HexaequoNetwork,
    config: Optional[MCTSConfig] = None,
    device: str = "cpu",
    name: str = "Network MCTS"
) -> MCTSAgent:
    """
    Create an MCTS agent guided by a network.

    Args:
        network: Trained policy/value network
        config: Search configuration (defaults to MCTSConfig())
        device: Device for network inference
        name: Name of the agent

    Returns:
        MCTSAgent
    """
    return MCTSAgent(NetworkEvaluator(network, device), config or MCTSConfig(), name=name)


def play_match(
    agent_a: Any,
    agent_b: Any,
    num_games: int = 10,
    max_turns: int = 200
) -> Dict[str, Any]:
    """
    Play a series of games between two agents, alternating colors.

    Agent A plays black (moving first) in even-numbered games.

    Args:
        agent_a: Agent with a get_action_callback() method
        agent_b: Agent with a get_action_callback() method
        num_games: Number of games
        max_turns: Action limit per game; unfinished games count as draws

    Returns:
        Dictionary with wins of each agent, draws and win rate of agent A
    """
    results = {"a_wins": 0, "b_wins": 0, "draws": 0}

    for i in range(num_games):
        a_color = Color.BLACK if i % 2 == 0 else Color.WHITE
        game = Game()
        game.register_agent(a_color, agent_a.get_action_callback())
        game.register_agent(a_color.opponent, agent_b.get_action_callback())
        game.run_game(max_turns=max_turns)

        winner = game.get_winner()
        if winner is None:
            results["draws"] += 1
        elif winner == a_color:
            results["a_wins"] += 1
        else:
            results["b_wins"] += 1
        logger.info("Match game %d/%d: %s", i + 1, num_games,
                    winner.value if winner else "draw")

    results["games"] = num_games
    results["a_win_rate"] = results["a_wins"] / max(1, num_games)
    return results
