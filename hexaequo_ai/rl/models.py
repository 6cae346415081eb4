"""
Neural network models for Hexaequo.

This module defines the policy/value network used as a learned evaluator for
the tree search. It includes:

1. The board encoding turning a GameState into input planes
2. Weight initialization helpers
3. HexaequoNetwork, a convolutional trunk with policy and value heads
4. NetworkEvaluator, which adapts a network to the search's Evaluator interface

Planes are relative to the side to move: "own" means the color about to play.
The policy head is not mirrored, so a plane marks which color that is.
"""
from typing import List, Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn as nn

from hexaequo_ai.core.constants import (
    Color, PieceKind, TILES_PER_COLOR, DISCS_PER_COLOR, RINGS_PER_COLOR,
    DISCS_TO_WIN, RINGS_TO_WIN
)
from hexaequo_ai.core.game import GameState
from hexaequo_ai.mcts.evaluator import Evaluation
from hexaequo_ai.rl.config import NetworkConfig

# own/opp tiles, own/opp discs, own/opp rings, chain origin, black to move
NUM_BOARD_PLANES = 8
# own/opp supplies of tiles, discs, rings and own/opp captured discs, rings
NUM_INVENTORY_PLANES = 10
NUM_PLANES = NUM_BOARD_PLANES + NUM_INVENTORY_PLANES


def encode_state(state: GameState) -> np.ndarray:
    """
    Encode a game state as input planes.

    Args:
        state: Game state to encode

    Returns:
        Float32 array of shape (NUM_PLANES, board_size, board_size)
    """
    size = state.board.size
    planes = np.zeros((NUM_PLANES, size, size), dtype=np.float32)
    own = state.side_to_move
    opp = own.opponent

    for pos, color in state.board.tiles.items():
        planes[0 if color == own else 1, pos.row, pos.col] = 1.0

    for pos, piece in state.board.pieces.items():
        offset = 2 if piece.kind == PieceKind.DISC else 4
        planes[offset + (0 if piece.color == own else 1), pos.row, pos.col] = 1.0

    if state.must_continue_jump_from is not None:
        jump = state.must_continue_jump_from
        planes[6, jump.row, jump.col] = 1.0

    if own == Color.BLACK:
        planes[7] = 1.0

    plane = NUM_BOARD_PLANES
    for color in (own, opp):
        inventory = state.inventory(color)
        for count, scale in (
            (inventory.tiles, TILES_PER_COLOR),
            (inventory.discs, DISCS_PER_COLOR),
            (inventory.rings, RINGS_PER_COLOR),
            (inventory.captured_discs, DISCS_TO_WIN),
            (inventory.captured_rings, RINGS_TO_WIN),
        ):
            planes[plane] = count / scale
            plane += 1

    return planes


def encode_states(states: Sequence[GameState]) -> torch.Tensor:
    """Stack encoded states into a batch tensor."""
    return torch.from_numpy(np.stack([encode_state(s) for s in states]))


def init_weights(module: nn.Module, init_type: str = 'kaiming') -> None:
    """
    Initialize network weights using various methods.

    Args:
        module: The module to initialize
        init_type: Initialization method ('orthogonal', 'xavier', 'kaiming', 'default')
    """
    if isinstance(module, (nn.Linear, nn.Conv2d)):
        if init_type == 'orthogonal':
            nn.init.orthogonal_(module.weight.data)
        elif init_type == 'xavier':
            nn.init.xavier_uniform_(module.weight.data)
        elif init_type == 'kaiming':
            nn.init.kaiming_normal_(module.weight.data, nonlinearity='relu')
        else:
            return

        if module.bias is not None:
            nn.init.constant_(module.bias.data, 0)


class HexaequoNetwork(nn.Module):
    """
    Policy/value network for Hexaequo.

    A stack of 3x3 convolutions feeds two heads: a policy head producing one
    logit per action index and a value head producing a scalar in [-1, 1]
    for the side to move.
    """

    def __init__(self, config: Optional[NetworkConfig] = None):
        """
        Initialize the network.

        Args:
            config: Network configuration
        """
        super().__init__()
        self.config = config or NetworkConfig()
        size = self.config.board_size
        filters = self.config.filters

        layers: List[nn.Module] = []
        in_channels = NUM_PLANES
        for _ in range(self.config.conv_layers):
            layers.append(nn.Conv2d(in_channels, filters, kernel_size=3, padding=1))
            if self.config.use_batch_norm:
                layers.append(nn.BatchNorm2d(filters))
            layers.append(nn.ReLU())
            in_channels = filters
        if self.config.dropout_rate > 0:
            layers.append(nn.Dropout(self.config.dropout_rate))
        self.trunk = nn.Sequential(*layers)

        self.policy_head = nn.Sequential(
            nn.Conv2d(filters, 2, kernel_size=1),
            nn.ReLU(),
            nn.Flatten(),
            nn.Linear(2 * size * size, self.config.action_space_size),
        )

        self.value_head = nn.Sequential(
            nn.Conv2d(filters, 1, kernel_size=1),
            nn.ReLU(),
            nn.Flatten(),
            nn.Linear(size * size, self.config.value_hidden),
            nn.ReLU(),
            nn.Linear(self.config.value_hidden, 1),
            nn.Tanh(),
        )

        self.apply(lambda m: init_weights(m, self.config.init_type))

    def forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Forward pass through the network.

        Args:
            x: Batch of encoded states, shape (batch, NUM_PLANES, size, size)

        Returns:
            Tuple of (policy logits (batch, actions), values (batch,))
        """
        features = self.trunk(x)
        logits = self.policy_head(features)
        value = self.value_head(features).squeeze(-1)
        return logits, value


class NetworkEvaluator:
    """
    Evaluator backed by a HexaequoNetwork.

    The policy is the softmax of the network's logits over the whole action
    space; the search masks it to the legal actions.
    """

    def __init__(self, network: HexaequoNetwork, device: str = "cpu"):
        self.network = network
        self.device = torch.device(device)
        self.network.to(self.device)

    @torch.no_grad()
    def evaluate_batch(self, states: Sequence[GameState]) -> List[Evaluation]:
        """
        Evaluate several states in one forward pass.

        Args:
            states: States to evaluate

        Returns:
            One Evaluation per state
        """
        self.network.eval()
        batch = encode_states(states).to(self.device)
        logits, values = self.network(batch)
        policies = torch.softmax(logits, dim=-1).cpu().numpy().astype(np.float64)
        values = values.cpu().numpy()
        return [
            Evaluation(policy=policy, value=float(np.clip(value, -1.0, 1.0)))
            for policy, value in zip(policies, values)
        ]

    def evaluate(self, state: GameState) -> Evaluation:
        return self.evaluate_batch([state])[0]


def create_network(config: Optional[NetworkConfig] = None) -> HexaequoNetwork:
    """
    Create a policy/value network.

    Args:
        config: Network configuration

    Returns:
        HexaequoNetwork
    """
    return HexaequoNetwork(config)
