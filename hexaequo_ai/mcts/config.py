"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the configuration parameters for the search: the budget
bounding one search call, the PUCT exploration constant, how leaf values are
computed, and the optional root exploration noise used in self-play.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional

from hexaequo_ai.core.constants import DEFAULT_MCTS_SIMULATIONS, DEFAULT_MCTS_EXPLORATION
from hexaequo_ai.core.game import RewardShaping


class RewardMode(Enum):
    """How leaf values are computed during search."""
    TERMINAL_ONLY = "terminal_only"
    """Terminal states score +1/-1/0, other leaves use the evaluator value"""

    SHAPED = "shaped"
    """Evaluator values are combined with the discounted capture reward"""


@dataclass
class SearchBudget:
    """
    Limits on a single search call.

    The search stops at ``max_simulations``, or once at least
    ``min_simulations_before_clock_check`` simulations have run and more than
    ``max_time_ms`` milliseconds have elapsed.
    """
    max_simulations: int = DEFAULT_MCTS_SIMULATIONS
    """Maximum number of simulations"""

    max_time_ms: Optional[float] = None
    """Wall-clock limit in milliseconds (None = no limit)"""

    min_simulations_before_clock_check: int = 1
    """Simulations that always run before the clock is consulted"""

    def __post_init__(self):
        """Validate budget parameters."""
        if self.max_simulations <= 0:
            raise ValueError("max_simulations must be positive")

        if self.max_time_ms is not None and self.max_time_ms <= 0:
            raise ValueError("max_time_ms must be positive or None")

        if self.min_simulations_before_clock_check < 1:
            raise ValueError("min_simulations_before_clock_check must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchBudget":
        valid = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**valid)


@dataclass
class MCTSConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    This class defines all tunable parameters for the search,
    with validation and sensible defaults.
    """
    budget: SearchBudget = field(default_factory=SearchBudget)
    """Default budget used when a search call does not pass its own"""

    exploration_constant: float = DEFAULT_MCTS_EXPLORATION
    """PUCT exploration constant"""

    # Leaf evaluation
    reward_mode: RewardMode = RewardMode.TERMINAL_ONLY
    """Whether leaf values include the shaped capture reward"""

    shaping: RewardShaping = field(default_factory=RewardShaping)
    """Capture reward weights used in SHAPED mode"""

    shaping_discount: float = 0.5
    """Factor applied to the shaped reward before adding it to the evaluator value"""

    # Root exploration noise
    add_root_noise: bool = False
    """Whether to mix Dirichlet noise into the root priors"""

    dirichlet_alpha: float = 0.5
    """Concentration of the root Dirichlet noise"""

    dirichlet_fraction: float = 0.3
    """Weight of the noise in the mixed root priors"""

    seed: Optional[int] = None
    """Seed for the noise generator (None = nondeterministic)"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if isinstance(self.budget, dict):
            self.budget = SearchBudget.from_dict(self.budget)

        if isinstance(self.reward_mode, str):
            self.reward_mode = RewardMode(self.reward_mode)

        if isinstance(self.shaping, dict):
            self.shaping = RewardShaping(**self.shaping)

        if self.exploration_constant <= 0:
            raise ValueError("exploration_constant must be positive")

        if not 0 <= self.shaping_discount <= 1:
            raise ValueError("shaping_discount must be between 0 and 1")

        if self.dirichlet_alpha <= 0:
            raise ValueError("dirichlet_alpha must be positive")

        if not 0 <= self.dirichlet_fraction <= 1:
            raise ValueError("dirichlet_fraction must be between 0 and 1")

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """
        Get the default configuration.

        Returns:
            Default MCTSConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for speed (fewer simulations).

        Returns:
            Fast MCTSConfig object
        """
        return cls(budget=SearchBudget(max_simulations=50, max_time_ms=500))

    @classmethod
    def self_play(cls) -> 'MCTSConfig':
        """
        Get the configuration used when generating self-play games.

        Returns:
            Self-play MCTSConfig object with root noise enabled
        """
        return cls(
            budget=SearchBudget(
                max_simulations=50,
                max_time_ms=500,
                min_simulations_before_clock_check=10,
            ),
            add_root_noise=True,
        )

    @classmethod
    def deep(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for deep search.

        Returns:
            Deep MCTSConfig object
        """
        return cls(
            budget=SearchBudget(max_simulations=2000, max_time_ms=10000,
                                min_simulations_before_clock_check=100),
            exploration_constant=1.5,  # Slightly less exploration
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'MCTSConfig':
        """
        Create a configuration from a dictionary.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            MCTSConfig object
        """
        # Filter out any keys that aren't valid parameters
        valid_params = {k: v for k, v in config_dict.items()
                        if k in cls.__dataclass_fields__}
        return cls(**valid_params)

    def to_dict(self) -> dict:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {
            "budget": self.budget.to_dict(),
            "exploration_constant": self.exploration_constant,
            "reward_mode": self.reward_mode.value,
            "shaping": {
                "disc_weight": self.shaping.disc_weight,
                "ring_weight": self.shaping.ring_weight,
            },
            "shaping_discount": self.shaping_discount,
            "add_root_noise": self.add_root_noise,
            "dirichlet_alpha": self.dirichlet_alpha,
            "dirichlet_fraction": self.dirichlet_fraction,
            "seed": self.seed,
        }

    def __str__(self) -> str:
        params = ", ".join(f"{name}={value}" for name, value in self.to_dict().items())
        return f"MCTSConfig({params})"
