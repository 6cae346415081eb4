"""
Self-play learning for Hexaequo.

This package trains a policy/value network to serve as the evaluator of the
tree search:

- config: NetworkConfig and TrainingConfig dataclasses
- models: board encoding, HexaequoNetwork and NetworkEvaluator
- training: self-play games, replay buffer, update step, SelfPlayTrainer
- agents: random baseline, network-guided MCTS agent and matches
"""

from hexaequo_ai.rl.config import NetworkConfig, TrainingConfig
from hexaequo_ai.rl.models import (
    HexaequoNetwork, NetworkEvaluator, encode_state, encode_states,
    create_network, NUM_PLANES
)
from hexaequo_ai.rl.training import (
    TrainingExample, GameRecord, ReplayBuffer, TrainingMetrics,
    SelfPlayTrainer, play_self_play_game, sample_action, train_step,
    save_model, load_model, set_seed
)
from hexaequo_ai.rl.agents import RandomAgent, create_network_agent, play_match

__all__ = [
    # Configuration
    'NetworkConfig', 'TrainingConfig',

    # Models
    'HexaequoNetwork', 'NetworkEvaluator', 'encode_state', 'encode_states',
    'create_network', 'NUM_PLANES',

    # Training
    'TrainingExample', 'GameRecord', 'ReplayBuffer', 'TrainingMetrics',
    'SelfPlayTrainer', 'play_self_play_game', 'sample_action', 'train_step',
    'save_model', 'load_model', 'set_seed',

    # Agents
    'RandomAgent', 'create_network_agent', 'play_match'
]
