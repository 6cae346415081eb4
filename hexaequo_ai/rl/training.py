"""
Self-play training for the Hexaequo evaluator network.

This module provides the training infrastructure, including:

1. Self-play game generation with tree search and temperature sampling
2. A replay buffer holding the most recent games
3. The policy/value update step
4. Training metrics (win rates, capture rates, losses)
5. Model management for saving and loading

Every position of a self-play game becomes a training example: the encoded
state, the root visit distribution as policy target, and the final outcome
from the perspective of the side to move as value target.
"""
import os
import time
import random
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import json
import pickle

import numpy as np
from tqdm import tqdm

import torch
import torch.nn.functional as F
from torch.utils.tensorboard import SummaryWriter

from hexaequo_ai.core.actions import Action
from hexaequo_ai.core.constants import Color, DISCS_PER_COLOR, RINGS_PER_COLOR
from hexaequo_ai.core.game import GameState
from hexaequo_ai.mcts.evaluator import Evaluator
from hexaequo_ai.mcts.node import MCTSNode
from hexaequo_ai.mcts.search import run_search, visit_distribution
from hexaequo_ai.rl.config import NetworkConfig, TrainingConfig
from hexaequo_ai.rl.models import HexaequoNetwork, NetworkEvaluator, encode_state

logger = logging.getLogger(__name__)


@dataclass
class TrainingExample:
    """One position of a self-play game."""
    planes: np.ndarray
    """Encoded state"""

    policy: np.ndarray
    """Root visit distribution over the action index space"""

    value: float
    """Game outcome for the side to move at this position"""


@dataclass
class GameRecord:
    """Examples and summary of one self-play game."""
    examples: List[TrainingExample]
    winner: Optional[Color]
    length: int
    captured_discs: Dict[Color, int] = field(default_factory=dict)
    captured_rings: Dict[Color, int] = field(default_factory=dict)


class ReplayBuffer:
    """
    Buffer of the most recent self-play games.

    Capacity is counted in games; once full, the oldest game is replaced.
    Sampling draws individual positions uniformly from all stored games.
    """

    def __init__(self, capacity: int = 100):
        """
        Initialize the replay buffer.

        Args:
            capacity: Maximum number of games to store
        """
        self.capacity = capacity
        self.buffer: List[GameRecord] = []
        self.position = 0

    def add(self, record: GameRecord) -> None:
        """
        Add a game to the buffer.

        Args:
            record: Finished self-play game
        """
        if len(self.buffer) < self.capacity:
            self.buffer.append(None)
        self.buffer[self.position] = record
        self.position = (self.position + 1) % self.capacity

    @property
    def num_examples(self) -> int:
        return sum(len(record.examples) for record in self.buffer)

    def sample(self, batch_size: int) -> Dict[str, torch.Tensor]:
        """
        Sample a batch of positions from the buffer.

        Args:
            batch_size: Number of positions to sample

        Returns:
            Dictionary with "planes", "policy" and "value" tensors
        """
        examples = [example for record in self.buffer for example in record.examples]
        if not examples:
            raise ValueError("Cannot sample from an empty replay buffer")

        batch_size = min(batch_size, len(examples))
        samples = random.sample(examples, batch_size)

        return {
            "planes": torch.from_numpy(np.stack([s.planes for s in samples])),
            "policy": torch.from_numpy(np.stack([s.policy for s in samples]).astype(np.float32)),
            "value": torch.tensor([s.value for s in samples], dtype=torch.float32),
        }

    def games(self) -> List[GameRecord]:
        """Stored games, oldest first."""
        return self.buffer[self.position:] + self.buffer[:self.position]

    def __len__(self) -> int:
        """Get the number of games in the buffer."""
        return len(self.buffer)

    def save(self, path: Union[str, Path]) -> None:
        """
        Save the buffer to disk.

        Args:
            path: Path to save the buffer
        """
        with open(path, 'wb') as f:
            pickle.dump(self.games(), f)

    def load(self, path: Union[str, Path]) -> None:
        """
        Load the buffer from disk.

        Args:
            path: Path to load the buffer from
        """
        with open(path, 'rb') as f:
            self.buffer = pickle.load(f)[-self.capacity:]
        self.position = len(self.buffer) % self.capacity


@dataclass
class TrainingMetrics:
    """Running statistics of a training session."""
    games_played: int = 0
    white_wins: int = 0
    black_wins: int = 0
    draws: int = 0
    total_moves: int = 0
    captured_discs: int = 0
    captured_rings: int = 0
    updates: int = 0
    policy_losses: List[float] = field(default_factory=list)
    value_losses: List[float] = field(default_factory=list)

    def record_game(self, record: GameRecord) -> None:
        self.games_played += 1
        self.total_moves += record.length
        if record.winner == Color.WHITE:
            self.white_wins += 1
        elif record.winner == Color.BLACK:
            self.black_wins += 1
        else:
            self.draws += 1
        self.captured_discs += sum(record.captured_discs.values())
        self.captured_rings += sum(record.captured_rings.values())

    def record_losses(self, losses: Dict[str, float]) -> None:
        self.updates += 1
        self.policy_losses.append(losses["policy_loss"])
        self.value_losses.append(losses["value_loss"])

    def win_rates(self) -> Dict[str, float]:
        """Fraction of games won by each color and drawn."""
        games = max(1, self.games_played)
        return {
            "white": self.white_wins / games,
            "black": self.black_wins / games,
            "draw": self.draws / games,
        }

    def capture_rates(self) -> Dict[str, float]:
        """
        Average share of all pieces captured per game.

        A game can capture at most 2 * 6 discs and 2 * 3 rings.
        """
        games = max(1, self.games_played)
        return {
            "discs": self.captured_discs / (games * 2 * DISCS_PER_COLOR),
            "rings": self.captured_rings / (games * 2 * RINGS_PER_COLOR),
        }

    def average_game_length(self) -> float:
        return self.total_moves / max(1, self.games_played)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingMetrics':
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def sample_action(
    root: MCTSNode,
    temperature: float,
    rng: Optional[np.random.Generator] = None
) -> Action:
    """
    Sample a root action in proportion to visits ** (1 / temperature).

    A temperature of 0 picks the most visited action.

    Args:
        root: Searched root node
        temperature: Sampling temperature
        rng: Random generator

    Returns:
        Sampled action
    """
    if temperature <= 0:
        return root.best_action()

    actions = list(root.children.keys())
    visits = np.array([child.visits for child in root.children.values()], dtype=np.float64)
    if visits.sum() <= 0:
        return root.best_action()

    rng = rng or np.random.default_rng()
    weights = (visits / visits.max()) ** (1.0 / temperature)
    return actions[rng.choice(len(actions), p=weights / weights.sum())]


def play_self_play_game(
    evaluator: Evaluator,
    config: Optional[TrainingConfig] = None,
    rng: Optional[np.random.Generator] = None
) -> GameRecord:
    """
    Play one game of the evaluator against itself.

    Forced moves are played without search and produce no example. Games
    reaching ``max_game_length`` are scored as draws.

    Args:
        evaluator: Evaluator guiding the search for both colors
        config: Training configuration
        rng: Random generator for move sampling

    Returns:
        Finished game record
    """
    config = config or TrainingConfig()
    rng = rng or np.random.default_rng()
    state = GameState.initial()
    pending: List[Tuple[np.ndarray, np.ndarray, Color]] = []
    moves = 0

    while not state.is_terminal() and moves < config.max_game_length:
        legal_actions = state.legal_actions()
        if len(legal_actions) == 1:
            action = legal_actions[0]
        else:
            root, _ = run_search(state, evaluator, config.mcts)
            target = visit_distribution(root, 1.0)
            if target.sum() > 0:
                pending.append((encode_state(state), target, state.side_to_move))
            action = sample_action(root, config.temperature_for(moves), rng)

        state = state.apply_action(action)
        moves += 1

    winner = state.winner()
    examples = []
    for planes, policy, color in pending:
        if winner is None:
            value = 0.0
        else:
            value = 1.0 if color == winner else -1.0
        examples.append(TrainingExample(planes, policy, value))

    return GameRecord(
        examples=examples,
        winner=winner,
        length=moves,
        captured_discs={c: state.inventory(c).captured_discs for c in Color},
        captured_rings={c: state.inventory(c).captured_rings for c in Color},
    )


def train_step(
    network: HexaequoNetwork,
    optimizer: torch.optim.Optimizer,
    batch: Dict[str, torch.Tensor],
    value_loss_coef: float = 1.0,
    max_grad_norm: float = 1.0,
    device: Union[str, torch.device] = "cpu"
) -> Dict[str, float]:
    """
    Run one gradient step on a batch.

    The loss is the cross-entropy between the visit distribution and the
    policy plus the weighted squared error of the value.

    Args:
        network: Network to train
        optimizer: Optimizer over the network parameters
        batch: Output of ReplayBuffer.sample()
        value_loss_coef: Weight of the value loss
        max_grad_norm: Maximum gradient norm for clipping
        device: Device holding the network

    Returns:
        Dictionary of loss values
    """
    network.train()
    planes = batch["planes"].to(device)
    target_policy = batch["policy"].to(device)
    target_value = batch["value"].to(device)

    logits, values = network(planes)
    policy_loss = -(target_policy * F.log_softmax(logits, dim=-1)).sum(dim=-1).mean()
    value_loss = F.mse_loss(values, target_value)
    loss = policy_loss + value_loss_coef * value_loss

    optimizer.zero_grad()
    loss.backward()
    torch.nn.utils.clip_grad_norm_(network.parameters(), max_grad_norm)
    optimizer.step()

    return {
        "loss": loss.item(),
        "policy_loss": policy_loss.item(),
        "value_loss": value_loss.item(),
    }


class SelfPlayTrainer:
    """
    Trainer improving a network by playing against itself.

    After each self-play game the game is stored in the replay buffer and,
    once enough games are stored, the network takes a few gradient steps.
    """

    def __init__(
        self,
        network: Optional[HexaequoNetwork] = None,
        config: Optional[TrainingConfig] = None,
        network_config: Optional[NetworkConfig] = None
    ):
        """
        Initialize the trainer.

        Args:
            network: Network to train (created from ``network_config`` if None)
            config: Training configuration
            network_config: Configuration for a new network
        """
        self.config = config or TrainingConfig()
        self.network = network or HexaequoNetwork(network_config)
        self.device = torch.device(self.config.device)
        self.evaluator = NetworkEvaluator(self.network, self.config.device)
        self.optimizer = torch.optim.Adam(
            self.network.parameters(),
            lr=self.config.learning_rate,
            weight_decay=self.config.weight_decay,
        )

        self.config.create_directories()

        # Set random seed
        if self.config.seed is not None:
            set_seed(self.config.seed)
        self.rng = np.random.default_rng(self.config.seed)

        self.replay_buffer = ReplayBuffer(capacity=self.config.replay_capacity)
        self.metrics = TrainingMetrics()

        # Create tensorboard writer
        if self.config.use_tensorboard:
            self.writer = SummaryWriter(
                log_dir=os.path.join(self.config.log_dir, f"hexaequo_{time.strftime('%Y%m%d_%H%M%S')}")
            )
        else:
            self.writer = None

    def self_play_game(self) -> GameRecord:
        """Play one self-play game and store it."""
        record = play_self_play_game(self.evaluator, self.config, self.rng)
        self.replay_buffer.add(record)
        self.metrics.record_game(record)
        logger.info(
            "Game %d: %s after %d moves, %d examples",
            self.metrics.games_played,
            record.winner.value if record.winner else "draw",
            record.length,
            len(record.examples),
        )
        return record

    def update(self) -> Optional[Dict[str, float]]:
        """
        Run the configured number of gradient steps.

        Returns:
            Averaged losses, or None if the buffer does not hold enough games yet
        """
        if len(self.replay_buffer) < self.config.min_games_before_training:
            return None
        if self.replay_buffer.num_examples == 0:
            return None

        totals: Dict[str, float] = {}
        for _ in range(self.config.updates_per_game):
            batch = self.replay_buffer.sample(self.config.batch_size)
            losses = train_step(
                self.network, self.optimizer, batch,
                self.config.value_loss_coef, self.config.max_grad_norm, self.device,
            )
            for key, value in losses.items():
                totals[key] = totals.get(key, 0.0) + value

        averaged = {key: value / self.config.updates_per_game for key, value in totals.items()}
        self.metrics.record_losses(averaged)
        return averaged

    def _log_scalars(self, losses: Optional[Dict[str, float]]) -> None:
        if self.writer is None:
            return
        step = self.metrics.games_played
        for key, value in self.metrics.win_rates().items():
            self.writer.add_scalar(f"win_rate/{key}", value, step)
        for key, value in self.metrics.capture_rates().items():
            self.writer.add_scalar(f"capture_rate/{key}", value, step)
        self.writer.add_scalar("game/length", self.metrics.average_game_length(), step)
        if losses is not None:
            for key, value in losses.items():
                self.writer.add_scalar(f"train/{key}", value, step)

    def train(
        self,
        num_games: Optional[int] = None,
        callback: Optional[Callable[[int, TrainingMetrics], None]] = None
    ) -> TrainingMetrics:
        """
        Alternate self-play and network updates.

        Args:
            num_games: Number of games to play (defaults to config.num_games)
            callback: Called with (games played, metrics) after each game

        Returns:
            Training metrics
        """
        num_games = num_games or self.config.num_games

        pbar = tqdm(total=num_games, desc="Self-play training")
        for _ in range(num_games):
            self.self_play_game()
            losses = self.update()
            self._log_scalars(losses)

            if self.metrics.games_played % self.config.save_interval == 0:
                self.save_checkpoint(os.path.join(
                    self.config.checkpoint_dir, f"hexaequo_{self.metrics.games_played}.pt"
                ))

            pbar.update(1)
            postfix = {"white": self.metrics.white_wins, "black": self.metrics.black_wins,
                       "draws": self.metrics.draws}
            if losses is not None:
                postfix["loss"] = f"{losses['loss']:.3f}"
            pbar.set_postfix(postfix)

            if callback is not None:
                callback(self.metrics.games_played, self.metrics)

        pbar.close()

        self.save_checkpoint(os.path.join(self.config.checkpoint_dir, "hexaequo_final.pt"))

        return self.metrics

    def close(self) -> None:
        """Flush and close the tensorboard writer."""
        if self.writer is not None:
            self.writer.close()
            self.writer = None

    def save_checkpoint(self, path: Union[str, Path]) -> None:
        """
        Save the network, optimizer and metrics.

        Args:
            path: Path to save to
        """
        save_model(self.network, path, self.optimizer, extra_data=self.metrics.to_dict())
        logger.info("Saved checkpoint to %s", path)

    def load_checkpoint(self, path: Union[str, Path]) -> None:
        """
        Restore the network, optimizer and metrics.

        Args:
            path: Path to load from
        """
        _, extra_data = load_model(path, self.network, self.optimizer, self.config.device)
        if extra_data:
            self.metrics = TrainingMetrics.from_dict(extra_data)


def save_model(
    network: HexaequoNetwork,
    path: Union[str, Path],
    optimizer: Optional[torch.optim.Optimizer] = None,
    extra_data: Optional[Dict[str, Any]] = None
) -> None:
    """
    Save a model to disk.

    Args:
        network: Network to save
        path: Path to save the model
        optimizer: Optional optimizer to save
        extra_data: Optional additional JSON-serializable data to save
    """
    directory = os.path.dirname(str(path))
    if directory:
        os.makedirs(directory, exist_ok=True)

    checkpoint = {
        "model_state_dict": network.state_dict(),
        "network_config": network.config.to_dict(),
    }
    if optimizer is not None:
        checkpoint["optimizer_state_dict"] = optimizer.state_dict()
    torch.save(checkpoint, path)

    if extra_data is not None:
        with open(f"{path}_extra.json", 'w') as f:
            json.dump(extra_data, f)


def load_model(
    path: Union[str, Path],
    network: Optional[HexaequoNetwork] = None,
    optimizer: Optional[torch.optim.Optimizer] = None,
    device: str = "cpu"
) -> Tuple[HexaequoNetwork, Dict[str, Any]]:
    """
    Load a model from disk.

    Args:
        path: Path to load the model from
        network: Network to load into (created from the saved config if None)
        optimizer: Optional optimizer to load into
        device: Device to map the weights to

    Returns:
        Tuple of (network, additional data if available)
    """
    checkpoint = torch.load(path, map_location=device)

    if network is None:
        network = HexaequoNetwork(NetworkConfig.from_dict(checkpoint["network_config"]))
    network.load_state_dict(checkpoint["model_state_dict"])
    network.to(device)

    if optimizer is not None and "optimizer_state_dict" in checkpoint:
        optimizer.load_state_dict(checkpoint["optimizer_state_dict"])

    # Load additional data if available
    extra_data = {}
    try:
        with open(f"{path}_extra.json", 'r') as f:
            extra_data = json.load(f)
    except FileNotFoundError:
        pass

    return network, extra_data


def set_seed(seed: int) -> None:
    """
    Set random seed for reproducibility.

    Args:
        seed: Random seed
    """
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed(seed)
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False
