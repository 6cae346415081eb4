"""
Hexaequo AI Core Package

This package contains the core game logic for Hexaequo, including:
- Board, positions and pieces
- Per-color inventories
- Player actions and their integer encoding
- Game rules and the immutable game state
- Constants, enums and error types

All core components can be imported directly from this package.
"""

# Game and game state
from hexaequo_ai.core.game import (
    Game, GameState, GameResult, RewardShaping,
    random_agent, simulate_random_game
)

# Board
from hexaequo_ai.core.board import Board, Piece, Position
from hexaequo_ai.core.inventory import Inventory

# Actions
from hexaequo_ai.core.actions import (
    Action, ActionType,
    PlaceTile, PlaceDisc, PlaceRing, Move,
    create_action_from_dict, parse_action
)
from hexaequo_ai.core.codec import (
    ActionCodec, DEFAULT_CODEC, encode_action, decode_action
)

# Errors
from hexaequo_ai.core.exceptions import (
    HexaequoError, IllegalActionError, UnknownDirectionError,
    NoLegalActionsError, EvaluatorError
)

# Constants
from hexaequo_ai.core.constants import (
    Color, PieceKind,
    BOARD_SIZE, ACTION_SPACE_SIZE, HEX_DIRECTIONS, RING_OFFSETS,
    DISCS_TO_WIN, RINGS_TO_WIN, MAX_REPETITIONS
)

__all__ = [
    # Game
    'Game', 'GameState', 'GameResult', 'RewardShaping',
    'random_agent', 'simulate_random_game',

    # Board
    'Board', 'Piece', 'Position', 'Inventory',

    # Actions
    'Action', 'ActionType',
    'PlaceTile', 'PlaceDisc', 'PlaceRing', 'Move',
    'create_action_from_dict', 'parse_action',
    'ActionCodec', 'DEFAULT_CODEC', 'encode_action', 'decode_action',

    # Errors
    'HexaequoError', 'IllegalActionError', 'UnknownDirectionError',
    'NoLegalActionsError', 'EvaluatorError',

    # Constants
    'Color', 'PieceKind',
    'BOARD_SIZE', 'ACTION_SPACE_SIZE', 'HEX_DIRECTIONS', 'RING_OFFSETS',
    'DISCS_TO_WIN', 'RINGS_TO_WIN', 'MAX_REPETITIONS'
]
