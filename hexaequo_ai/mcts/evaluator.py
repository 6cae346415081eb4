"""
Evaluator interface consumed by the search.

An evaluator maps a game state to a policy over the whole action index space
and a value estimate in [-1, 1] for the side to move. The search masks the
policy to the legal actions itself, so evaluators need not know the rules.

Evaluators may be synchronous or asynchronous: ``evaluate`` may return the
result directly or an awaitable producing it. The synchronous search only
accepts direct results; the asynchronous search accepts both.
"""
from __future__ import annotations
import asyncio
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Protocol, Union, runtime_checkable

import numpy as np

from hexaequo_ai.core.constants import ACTION_SPACE_SIZE
from hexaequo_ai.core.exceptions import EvaluatorError
from hexaequo_ai.core.game import GameState, RewardShaping


@dataclass
class Evaluation:
    """Output of an evaluator for one state."""
    policy: np.ndarray
    """Probabilities over the full action index space"""

    value: float
    """Expected outcome for the side to move, in [-1, 1]"""


RawEvaluation = Union[Evaluation, Mapping[str, Any], tuple]


@runtime_checkable
class Evaluator(Protocol):
    """Anything with an ``evaluate(state)`` method."""

    def evaluate(self, state: GameState) -> Union[RawEvaluation, Awaitable[RawEvaluation]]:
        ...


def validate_evaluation(raw: Any, action_space_size: int = ACTION_SPACE_SIZE) -> Evaluation:
    """
    Check and normalize an evaluator result.

    Accepts an Evaluation, a ``(policy, value)`` pair or a mapping with
    ``"policy"`` and ``"value"`` keys.

    Args:
        raw: Evaluator output
        action_space_size: Expected policy length

    Returns:
        Evaluation with a float64 policy vector and a float value

    Raises:
        EvaluatorError: If the result is malformed
    """
    if isinstance(raw, Evaluation):
        policy, value = raw.policy, raw.value
    elif isinstance(raw, Mapping):
        if "policy" not in raw or "value" not in raw:
            raise EvaluatorError("Evaluator result is missing 'policy' or 'value'")
        policy, value = raw["policy"], raw["value"]
    elif isinstance(raw, (tuple, list)) and len(raw) == 2:
        policy, value = raw
    else:
        raise EvaluatorError(f"Unsupported evaluator result of type {type(raw).__name__}")

    try:
        policy = np.asarray(policy, dtype=np.float64).ravel()
        value_array = np.asarray(value, dtype=np.float64).ravel()
    except (TypeError, ValueError) as e:
        raise EvaluatorError(f"Evaluator result is not numeric: {e}") from e

    if policy.shape[0] != action_space_size:
        raise EvaluatorError(
            f"Policy has length {policy.shape[0]}, expected {action_space_size}"
        )
    if not np.all(np.isfinite(policy)):
        raise EvaluatorError("Policy contains NaN or infinite entries")
    if np.any(policy < 0):
        raise EvaluatorError("Policy contains negative probabilities")
    if policy.sum() <= 0:
        raise EvaluatorError("Policy sums to zero")

    if value_array.shape[0] != 1:
        raise EvaluatorError(f"Value must be a scalar, got {value_array.shape[0]} entries")
    value = float(value_array[0])
    if not math.isfinite(value):
        raise EvaluatorError("Value is NaN or infinite")
    if not -1.0 <= value <= 1.0:
        raise EvaluatorError(f"Value {value} outside [-1, 1]")

    return Evaluation(policy=policy, value=value)


class UniformEvaluator:
    """Uniform policy and a neutral value; turns the search into plain PUCT with no prior."""

    def __init__(self, action_space_size: int = ACTION_SPACE_SIZE):
        self.action_space_size = action_space_size
        self._policy = np.full(action_space_size, 1.0 / action_space_size)

    def evaluate(self, state: GameState) -> Evaluation:
        return Evaluation(policy=self._policy.copy(), value=0.0)


class MaterialEvaluator:
    """
    Uniform policy with a value taken from the capture balance.

    The value is the shaped capture reward of the side to move, scaled and
    clipped to [-1, 1]. This is a cheap baseline that needs no training.
    """

    def __init__(
        self,
        shaping: RewardShaping = RewardShaping(),
        scale: float = 1.0,
        action_space_size: int = ACTION_SPACE_SIZE,
    ):
        self.shaping = shaping
        self.scale = scale
        self.action_space_size = action_space_size
        self._policy = np.full(action_space_size, 1.0 / action_space_size)

    def evaluate(self, state: GameState) -> Evaluation:
        value = self.scale * state.shaped_reward(state.side_to_move, self.shaping)
        return Evaluation(policy=self._policy.copy(), value=float(np.clip(value, -1.0, 1.0)))


class ThreadedEvaluator:
    """
    Run a synchronous evaluator in a worker thread.

    Wrapping a blocking evaluator (for example a network forward pass) keeps the
    event loop responsive while the asynchronous search awaits it.
    """

    def __init__(self, evaluator: Evaluator):
        self.evaluator = evaluator

    async def evaluate(self, state: GameState) -> RawEvaluation:
        return await asyncio.to_thread(self.evaluator.evaluate, state)
