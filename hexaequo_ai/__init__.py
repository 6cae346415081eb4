"""
Hexaequo AI - Monte Carlo Tree Search and self-play learning for the board game Hexaequo.

This package provides a complete implementation of the Hexaequo rules, a
policy/value guided tree search, and a trainable neural network evaluator.
"""

__version__ = "0.1.0"
__author__ = "Hexaequo AI Team"

# Make key components available at package level
from hexaequo_ai.core.game import Game, GameState
from hexaequo_ai.core.actions import Action
from hexaequo_ai.core.codec import ActionCodec

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
