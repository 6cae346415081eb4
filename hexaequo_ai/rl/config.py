"""
Configuration classes for self-play learning.

This module provides dataclasses for configuring the policy/value network and
the self-play training process. Each configuration class includes validation
and sensible defaults.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional, Union
import json
import os
from pathlib import Path

from hexaequo_ai.core.constants import BOARD_SIZE, ACTION_SPACE_SIZE
from hexaequo_ai.mcts.config import MCTSConfig


@dataclass
class NetworkConfig:
    """
    Configuration for the policy/value network.

    The network is a convolutional trunk over the board planes followed by a
    policy head (one logit per action index) and a tanh value head.
    """
    board_size: int = BOARD_SIZE
    """Side length of the board"""

    action_space_size: int = ACTION_SPACE_SIZE
    """Length of the policy output"""

    filters: int = 64
    """Channels of each convolution"""

    conv_layers: int = 2
    """Number of 3x3 convolution layers in the trunk"""

    value_hidden: int = 256
    """Units in the hidden layer of the value head"""

    use_batch_norm: bool = False
    """Whether to add batch normalization after each convolution"""

    dropout_rate: float = 0.0
    """Dropout before the heads (0 = no dropout)"""

    init_type: str = "kaiming"
    """Weight initialization method (orthogonal, xavier, kaiming, default)"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.board_size <= 0:
            raise ValueError("board_size must be positive")

        if self.action_space_size <= 0:
            raise ValueError("action_space_size must be positive")

        if self.filters <= 0 or self.conv_layers <= 0 or self.value_hidden <= 0:
            raise ValueError("filters, conv_layers and value_hidden must be positive")

        if self.dropout_rate < 0 or self.dropout_rate >= 1:
            raise ValueError("dropout_rate must be in [0, 1)")

        if self.init_type not in ["orthogonal", "xavier", "kaiming", "default"]:
            raise ValueError("init_type must be one of: orthogonal, xavier, kaiming, default")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'NetworkConfig':
        """Create configuration from dictionary."""
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__dataclass_fields__})


@dataclass
class TrainingConfig:
    """
    Configuration for the self-play training process.

    This class defines parameters for game generation, the replay buffer,
    optimization, logging and checkpointing.
    """
    # Self-play parameters
    num_games: int = 100
    """Number of self-play games to generate"""

    max_game_length: int = 100
    """Actions after which a self-play game is stopped and scored as a draw"""

    temperature: float = 1.0
    """Sampling temperature for the opening moves"""

    final_temperature: float = 0.5
    """Sampling temperature once ``temperature_threshold`` actions have been played"""

    temperature_threshold: int = 30
    """Action count at which the temperature drops"""

    mcts: MCTSConfig = field(default_factory=MCTSConfig.self_play)
    """Search configuration used to choose self-play moves"""

    # Optimization parameters
    replay_capacity: int = 100
    """Number of most recent games kept for training"""

    min_games_before_training: int = 5
    """Games that must be stored before the first update"""

    batch_size: int = 32
    """Examples per gradient step"""

    updates_per_game: int = 1
    """Gradient steps after each self-play game"""

    learning_rate: float = 1e-3
    """Adam learning rate"""

    weight_decay: float = 1e-4
    """L2 regularization"""

    value_loss_coef: float = 1.0
    """Weight of the value loss relative to the policy loss"""

    max_grad_norm: float = 1.0
    """Maximum gradient norm for clipping"""

    device: str = "cpu"
    """Device to run the model on (cpu or cuda)"""

    # Logging and checkpointing
    log_dir: str = "runs"
    """Directory for logs"""

    use_tensorboard: bool = True
    """Whether to use TensorBoard for logging"""

    checkpoint_dir: str = "checkpoints"
    """Directory for checkpoints"""

    save_interval: int = 10
    """Games between checkpoints"""

    # Reproducibility
    seed: Optional[int] = None
    """Random seed for reproducibility"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if isinstance(self.mcts, dict):
            self.mcts = MCTSConfig.from_dict(self.mcts)

        if self.num_games <= 0:
            raise ValueError("num_games must be positive")

        if self.max_game_length <= 0:
            raise ValueError("max_game_length must be positive")

        if self.temperature < 0 or self.final_temperature < 0:
            raise ValueError("temperatures must be non-negative")

        if self.temperature_threshold < 0:
            raise ValueError("temperature_threshold must be non-negative")

        if self.replay_capacity <= 0:
            raise ValueError("replay_capacity must be positive")

        if self.min_games_before_training <= 0:
            raise ValueError("min_games_before_training must be positive")

        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")

        if self.updates_per_game <= 0:
            raise ValueError("updates_per_game must be positive")

        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")

        if self.max_grad_norm <= 0:
            raise ValueError("max_grad_norm must be positive")

        if self.save_interval <= 0:
            raise ValueError("save_interval must be positive")

        if self.device not in ["cpu", "cuda"]:
            if not self.device.startswith("cuda:"):
                raise ValueError("device must be 'cpu', 'cuda', or 'cuda:n'")

    def temperature_for(self, actions_played: int) -> float:
        """Sampling temperature after ``actions_played`` actions."""
        if actions_played < self.temperature_threshold:
            return self.temperature
        return self.final_temperature

    def create_directories(self) -> None:
        """Create necessary directories for logs and checkpoints."""
        os.makedirs(self.log_dir, exist_ok=True)
        os.makedirs(self.checkpoint_dir, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        data = {k: v for k, v in self.__dict__.items() if k != "mcts"}
        data["mcts"] = self.mcts.to_dict()
        return data

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'TrainingConfig':
        """Create configuration from dictionary."""
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__dataclass_fields__})

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'TrainingConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)
