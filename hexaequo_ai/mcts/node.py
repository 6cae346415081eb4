"""
Monte Carlo Tree Search Node for Hexaequo.

This module defines the MCTSNode class which represents a node in the search tree.
Each node holds a game state, its visit statistics and the prior probability
the evaluator gave to the action leading to it.

Values are stored from the perspective of the side to move at the node. A
parent reading a child's value flips the sign when the child's side to move
differs from its own; during a chain capture the same side moves twice in a
row and no flip happens.
"""
from __future__ import annotations
import math
import weakref
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from hexaequo_ai.core.actions import Action
from hexaequo_ai.core.constants import Color
from hexaequo_ai.core.game import GameState


class MCTSNode:
    """
    A node in the Monte Carlo Tree Search.

    A node starts unexpanded. Expansion creates one child per legal action and
    is done at most once; terminal nodes are never expanded. The parent is held
    through a weak reference, so a node never keeps its ancestors alive.
    """

    def __init__(
        self,
        state: GameState,
        parent: Optional['MCTSNode'] = None,
        action: Optional[Action] = None,
        prior: float = 1.0,
    ):
        """
        Initialize an MCTS node.

        Args:
            state: The game state this node represents
            parent: The parent node (None for root)
            action: The action that led to this state (None for root)
            prior: Prior probability of ``action`` at the parent
        """
        self.state = state
        self._parent = weakref.ref(parent) if parent is not None else None
        self.action = action
        self.prior = prior
        self.depth = parent.depth + 1 if parent is not None else 0

        # Node statistics
        self.visits = 0
        self.value_sum = 0.0
        self.children: Dict[Action, MCTSNode] = {}
        self.is_expanded = False

    @property
    def parent(self) -> Optional['MCTSNode']:
        return self._parent() if self._parent is not None else None

    @property
    def player(self) -> Color:
        """Side to move at this node."""
        return self.state.side_to_move

    def is_terminal(self) -> bool:
        return self.state.is_terminal()

    @property
    def mean_value(self) -> float:
        """Average value from the perspective of this node's side to move."""
        if self.visits == 0:
            return 0.0
        return self.value_sum / self.visits

    def value_for(self, color: Color) -> float:
        """Average value from the perspective of ``color``."""
        return self.mean_value if color == self.player else -self.mean_value

    def expand(self, actions_with_priors: Iterable[Tuple[Action, float]]) -> None:
        """
        Create one child per legal action.

        Args:
            actions_with_priors: (action, prior) pairs in legal-action order

        Raises:
            ValueError: If the node is terminal or already expanded
        """
        if self.is_expanded:
            raise ValueError("Node is already expanded")
        if self.is_terminal():
            raise ValueError("Cannot expand a terminal node")

        for action, prior in actions_with_priors:
            child_state = self.state.apply_action(action)
            self.children[action] = MCTSNode(child_state, parent=self, action=action, prior=prior)
        self.is_expanded = True

    def ucb_score(self, child: 'MCTSNode', exploration_constant: float) -> float:
        """
        Calculate the PUCT score of a child.

        score = q + c * prior * sqrt(parent visits) / (1 + child visits)

        where q is the child's mean value seen by this node's side to move
        (0 for an unvisited child).

        Args:
            child: Child node to score
            exploration_constant: Weight of the exploration term

        Returns:
            PUCT score
        """
        q = child.value_for(self.player) if child.visits > 0 else 0.0
        exploration = exploration_constant * child.prior * math.sqrt(self.visits) / (1 + child.visits)
        return q + exploration

    def select_child(self, exploration_constant: float) -> 'MCTSNode':
        """
        Select the child with the highest PUCT score.

        Ties go to the first child in legal-action order.

        Returns:
            Selected child node
        """
        if not self.children:
            raise ValueError("Cannot select child from node with no children")

        best = None
        best_score = -math.inf
        for child in self.children.values():
            score = self.ucb_score(child, exploration_constant)
            if score > best_score:
                best, best_score = child, score
        return best

    def update(self, value: float) -> None:
        """
        Record one visit with a value from this node's perspective.

        Args:
            value: Simulation value for this node's side to move
        """
        self.visits += 1
        self.value_sum += value

    def best_child(self) -> Optional['MCTSNode']:
        """
        Get the most visited child, ties going to the first one seen.

        Returns:
            Best child node, or None if the node has no children
        """
        best = None
        for child in self.children.values():
            if best is None or child.visits > best.visits:
                best = child
        return best

    def best_action(self) -> Optional[Action]:
        """
        Get the action of the most visited child.

        This is called at the root to choose the move to play.

        Returns:
            The best action, or None if no children
        """
        best = self.best_child()
        return best.action if best is not None else None

    def add_dirichlet_noise(
        self,
        alpha: float,
        fraction: float,
        rng: Optional[np.random.Generator] = None
    ) -> None:
        """
        Mix Dirichlet noise into the priors of the children.

        prior = (1 - fraction) * prior + fraction * noise

        Args:
            alpha: Dirichlet concentration
            fraction: Weight of the noise
            rng: Random generator (defaults to a fresh one)
        """
        if not self.children:
            return
        rng = rng or np.random.default_rng()
        noise = rng.dirichlet([alpha] * len(self.children))
        for child, eta in zip(self.children.values(), noise):
            child.prior = (1 - fraction) * child.prior + fraction * float(eta)

    def __str__(self) -> str:
        return (f"MCTSNode(player={self.player.value}, "
                f"action={self.action}, "
                f"visits={self.visits}, "
                f"value={self.mean_value:.3f}, "
                f"prior={self.prior:.3f}, "
                f"children={len(self.children)})")
