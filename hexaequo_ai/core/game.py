"""
Game state and flow management for Hexaequo.

This module defines the core game mechanics, including:
- GameState: Immutable snapshot of a game (board, inventories, side to move)
- Game: Manager for game flow, agents and persistence
- Helper functions for simulating games

A GameState is never modified after construction. apply_action() validates the
action against legal_actions() first, then copies the board and inventories and
mutates only the copies, so any number of hypothetical futures can share the
same ancestor safely.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import logging
import random
import time

from hexaequo_ai.core.constants import (
    Color, BOARD_SIZE, DISCS_TO_WIN, RINGS_TO_WIN, FIRST_PLAYER,
    STARTING_TILES, STARTING_DISCS, PieceKind,
    DISC_CAPTURE_REWARD, RING_CAPTURE_REWARD
)
from hexaequo_ai.core.board import Board, Piece, Position
from hexaequo_ai.core.inventory import Inventory
from hexaequo_ai.core.actions import Action, Move, create_action_from_dict
from hexaequo_ai.core.exceptions import IllegalActionError
from hexaequo_ai.core import rules

logger = logging.getLogger(__name__)


class GameResult(Enum):
    """Enum representing possible game results."""
    IN_PROGRESS = auto()
    WINNER = auto()  # A color reached a capture threshold
    DRAW = auto()  # The side to move has no legal action


@dataclass(frozen=True)
class RewardShaping:
    """
    Weights of the intermediate capture reward.

    The shaped reward of a non-terminal state for a color is
    ``disc_weight * (own captured discs - enemy captured discs)
    + ring_weight * (own captured rings - enemy captured rings)``.
    """
    disc_weight: float = DISC_CAPTURE_REWARD
    ring_weight: float = RING_CAPTURE_REWARD

    def __post_init__(self):
        if self.disc_weight < 0 or self.ring_weight < 0:
            raise ValueError("reward weights must be non-negative")


@dataclass(frozen=True)
class GameState:
    """
    Complete representation of a Hexaequo position.

    Instances are immutable; use apply_action() to obtain successor states.
    States compare by value but are not hashable, since the board and
    inventories are held in dictionaries.
    """
    board: Board
    inventories: Dict[Color, Inventory]
    side_to_move: Color = FIRST_PLAYER

    must_continue_jump_from: Optional[Position] = None
    """Disc that just captured and has further captures to make"""

    move_history: Tuple[Move, ...] = ()
    """Reversible moves played since the last placement or capture"""

    ply: int = 0
    """Number of actions applied since the initial position"""

    _legal_cache: Optional[Tuple[Action, ...]] = field(
        default=None, init=False, repr=False, compare=False
    )

    __hash__ = None

    @classmethod
    def initial(cls) -> "GameState":
        """
        Create the standard starting position.

        Each color starts with two tiles and one disc on the board; black moves first.

        Returns:
            Initial GameState
        """
        board = Board()
        inventories = {}
        for color in Color:
            for row, col in STARTING_TILES[color]:
                board.place_tile(Position(row, col), color)
            for row, col in STARTING_DISCS[color]:
                board.place_piece(Position(row, col), Piece(color, PieceKind.DISC))
            inventories[color] = Inventory().adjust(
                tiles=-len(STARTING_TILES[color]),
                discs=-len(STARTING_DISCS[color]),
            )
        return cls(board=board, inventories=inventories, side_to_move=FIRST_PLAYER)

    # Queries

    def inventory(self, color: Color) -> Inventory:
        return self.inventories[color]

    def legal_actions(self) -> Tuple[Action, ...]:
        """
        Get every legal action for the side to move.

        The result is computed once per state and cached, so repeated calls
        return the same sequence.

        Returns:
            Tuple of legal actions (empty if the game is won)
        """
        if self._legal_cache is None:
            if self._capture_winner() is not None:
                actions: Tuple[Action, ...] = ()
            else:
                actions = tuple(rules.generate_legal_actions(
                    self.board,
                    self.inventories,
                    self.side_to_move,
                    self.must_continue_jump_from,
                    self.move_history,
                ))
            object.__setattr__(self, "_legal_cache", actions)
        return self._legal_cache

    def has_legal_moves(self, color: Color) -> bool:
        """
        Check whether ``color`` would have any legal action here.

        For the side to move this is the same as ``bool(legal_actions())``.
        For the other color a pending chain capture is ignored.

        Args:
            color: Color to probe

        Returns:
            True if at least one action is available
        """
        if color == self.side_to_move:
            return bool(self.legal_actions())
        return bool(rules.generate_legal_actions(
            self.board, self.inventories, color, None, self.move_history
        ))

    def _capture_winner(self) -> Optional[Color]:
        for color in Color:
            inventory = self.inventories[color]
            if inventory.captured_discs >= DISCS_TO_WIN or inventory.captured_rings >= RINGS_TO_WIN:
                return color
        return None

    def is_terminal(self) -> bool:
        """
        Check whether the game is over.

        The game ends when a color has captured enough enemy discs or rings,
        or when the side to move has no legal action.
        """
        return not self.legal_actions()

    def winner(self) -> Optional[Color]:
        """
        Get the winning color.

        Returns:
            The color that reached a capture threshold, or None while the game
            is running or when it ended in a draw
        """
        return self._capture_winner()

    @property
    def result(self) -> GameResult:
        if not self.is_terminal():
            return GameResult.IN_PROGRESS
        if self.winner() is not None:
            return GameResult.WINNER
        return GameResult.DRAW

    def shaped_reward(self, perspective: Color, shaping: Optional[RewardShaping] = None) -> float:
        """
        Weighted capture difference from ``perspective``.

        Args:
            perspective: Color the reward is for
            shaping: Weights to use (defaults to RewardShaping())

        Returns:
            Shaped reward
        """
        shaping = shaping or RewardShaping()
        own = self.inventories[perspective]
        opp = self.inventories[perspective.opponent]
        return (shaping.disc_weight * (own.captured_discs - opp.captured_discs)
                + shaping.ring_weight * (own.captured_rings - opp.captured_rings))

    def reward(self, perspective: Color, shaping: Optional[RewardShaping] = None) -> float:
        """
        Reward of this state for ``perspective``.

        Terminal states give +1 for a win, -1 for a loss and 0 for a draw.
        Non-terminal states give 0, or the shaped capture reward when
        ``shaping`` is provided.

        Args:
            perspective: Color the reward is for
            shaping: Optional intermediate reward weights

        Returns:
            Reward value
        """
        if self.is_terminal():
            winner = self.winner()
            if winner is None:
                return 0.0
            return 1.0 if winner == perspective else -1.0

        if shaping is None:
            return 0.0
        return self.shaped_reward(perspective, shaping)

    # Transition

    def apply_action(self, action: Action) -> "GameState":
        """
        Apply an action and return the resulting state.

        The receiver is left unchanged.

        Args:
            action: One of legal_actions()

        Returns:
            Successor GameState

        Raises:
            IllegalActionError: If the action is not currently legal
        """
        if action not in self.legal_actions():
            if self.is_terminal():
                raise IllegalActionError(action, "the game is over")
            raise IllegalActionError(action)

        color = self.side_to_move
        board = self.board.copy()
        inventories = dict(self.inventories)
        captured, landed = rules.apply_action_to(board, inventories, color, action)

        must_continue = None
        if action.is_placement or captured is not None:
            history: Tuple[Move, ...] = ()
        else:
            history = self.move_history + (action,)

        if captured is not None and board.piece_at(landed).kind == PieceKind.DISC:
            if rules.capturing_jumps(board, landed):
                must_continue = landed

        next_side = color if must_continue is not None else color.opponent
        return GameState(
            board=board,
            inventories=inventories,
            side_to_move=next_side,
            must_continue_jump_from=must_continue,
            move_history=history,
            ply=self.ply + 1,
        )

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the game state to a dictionary for serialization.

        Returns:
            Dictionary representation of the game state
        """
        jump = self.must_continue_jump_from
        return {
            "board": self.board.to_dict(),
            "inventories": {color.value: inv.to_dict() for color, inv in self.inventories.items()},
            "side_to_move": self.side_to_move.value,
            "must_continue_jump_from": None if jump is None else {"row": jump.row, "col": jump.col},
            "move_history": [move.to_dict() for move in self.move_history],
            "ply": self.ply,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """
        Create a game state from a dictionary representation.

        Args:
            data: Dictionary representation of a game state

        Returns:
            GameState object
        """
        jump = data.get("must_continue_jump_from")
        return cls(
            board=Board.from_dict(data["board"]),
            inventories={
                Color(name): Inventory.from_dict(inv)
                for name, inv in data["inventories"].items()
            },
            side_to_move=Color(data["side_to_move"]),
            must_continue_jump_from=None if jump is None else Position(jump["row"], jump["col"]),
            move_history=tuple(create_action_from_dict(m) for m in data.get("move_history", [])),
            ply=data.get("ply", 0),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "GameState":
        return cls.from_dict(json.loads(json_str))

    def __str__(self) -> str:
        lines = [str(self.board), ""]
        for color in Color:
            marker = "*" if color == self.side_to_move else " "
            lines.append(f"{marker} {color.value:<5} {self.inventories[color]}")
        if self.must_continue_jump_from is not None:
            lines.append(f"  must continue jumping from {self.must_continue_jump_from.notation}")
        return "\n".join(lines)


AgentCallback = Callable[[GameState, Color], Action]


class Game:
    """
    Manager for Hexaequo game flow.

    This class holds the current state and the list of played actions, and
    drives agents registered for each color.
    """

    def __init__(self, state: Optional[GameState] = None):
        """
        Initialize a new game.

        Args:
            state: Starting position (defaults to the standard setup)
        """
        self.initial_state = state or GameState.initial()
        self.state = self.initial_state
        self.history: List[Tuple[Color, Action]] = []
        self.agent_callbacks: Dict[Color, AgentCallback] = {}
        self.start_time = time.time()

    def reset(self) -> GameState:
        """Return to the starting position."""
        self.state = self.initial_state
        self.history = []
        self.start_time = time.time()
        return self.state

    def register_agent(self, color: Color, agent_callback: AgentCallback) -> None:
        """
        Register an agent for a color.

        The callback receives the game state and the color to move and returns an action.

        Args:
            color: Color the agent plays
            agent_callback: Function that selects an action given the game state
        """
        self.agent_callbacks[color] = agent_callback

    @property
    def game_over(self) -> bool:
        return self.state.is_terminal()

    def step(self, action: Optional[Action] = None) -> Tuple[GameState, bool]:
        """
        Advance the game by one action.

        If no action is given, the agent registered for the side to move chooses one.

        Args:
            action: Optional action to apply

        Returns:
            Tuple of (new game state, whether the game is over)

        Raises:
            ValueError: If no action is given and no agent is registered
            IllegalActionError: If the action is not legal
        """
        if self.state.is_terminal():
            return self.state, True

        color = self.state.side_to_move
        if action is None and color in self.agent_callbacks:
            action = self.agent_callbacks[color](self.state, color)

        if action is None:
            raise ValueError(f"No action provided and no agent registered for {color.value}")

        self.state = self.state.apply_action(action)
        self.history.append((color, action))
        logger.debug("%s plays %s", color.value, action)

        return self.state, self.state.is_terminal()

    def run_game(self, max_turns: int = 200) -> GameState:
        """
        Run the game until it ends or ``max_turns`` actions have been played.

        Both colors must have an agent registered.

        Args:
            max_turns: Maximum number of actions to apply

        Returns:
            Final game state
        """
        for color in Color:
            if color not in self.agent_callbacks:
                raise ValueError(f"No agent registered for {color.value}")

        while not self.state.is_terminal() and len(self.history) < max_turns:
            self.step()

        logger.info("Game finished after %d actions: %s", len(self.history), self.state.result.name)
        return self.state

    def get_winner(self) -> Optional[Color]:
        """
        Get the winning color, if any.

        Returns:
            Winning color, or None if the game is not over or ended in a draw
        """
        return self.state.winner()

    def get_result(self) -> GameResult:
        return self.state.result

    def get_game_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the game.

        Returns:
            Dictionary of game statistics
        """
        stats: Dict[str, Any] = {
            "actions": len(self.history),
            "duration": time.time() - self.start_time,
            "result": self.state.result.name,
        }
        winner = self.state.winner()
        if winner is not None:
            stats["winner"] = winner.value
        for color in Color:
            inventory = self.state.inventory(color)
            stats[f"{color.value}_captured_discs"] = inventory.captured_discs
            stats[f"{color.value}_captured_rings"] = inventory.captured_rings
        return stats

    def save_game(self, filename: str) -> None:
        """
        Save the starting position and the played actions to a JSON file.

        Args:
            filename: Name of the file to save to
        """
        data = {
            "initial_state": self.initial_state.to_dict(),
            "actions": [action.to_dict() for _, action in self.history],
        }
        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load_game(cls, filename: str) -> "Game":
        """
        Load a game from a file and replay its actions.

        Args:
            filename: Name of the file to load from

        Returns:
            Loaded Game object
        """
        with open(filename, 'r') as f:
            data = json.load(f)

        game = cls(GameState.from_dict(data["initial_state"]))
        for action_data in data["actions"]:
            game.step(create_action_from_dict(action_data))
        return game

    def __str__(self) -> str:
        header = f"Hexaequo ({BOARD_SIZE}x{BOARD_SIZE}), action {len(self.history)}"
        status = ""
        if self.state.is_terminal():
            winner = self.state.winner()
            status = f"\nWinner: {winner.value}" if winner else "\nResult: Draw"
        return f"{header}\n{self.state}{status}"


def random_agent(state: GameState, color: Color) -> Action:
    """Agent callback choosing uniformly among the legal actions."""
    return random.choice(state.legal_actions())


def simulate_random_game(
    max_turns: int = 200,
    random_seed: Optional[int] = None
) -> Tuple[GameState, Optional[Color]]:
    """
    Simulate a game between two random agents.

    Args:
        max_turns: Maximum number of actions
        random_seed: Random seed for reproducibility

    Returns:
        Tuple of (final game state, winner or None)
    """
    if random_seed is not None:
        random.seed(random_seed)

    game = Game()
    for color in Color:
        game.register_agent(color, random_agent)

    final_state = game.run_game(max_turns=max_turns)
    return final_state, game.get_winner()
