"""
Error types raised by the Hexaequo engine.

Every error is recoverable by the caller: rules errors leave the original state
untouched, and search errors still expose the best answer found so far.
"""
from typing import Any, Optional


class HexaequoError(Exception):
    """Base class for all Hexaequo engine errors."""


class IllegalActionError(HexaequoError, ValueError):
    """An action was applied that is not in the state's legal actions."""

    def __init__(self, action: Any, reason: str = "action is not legal in this state"):
        self.action = action
        self.reason = reason
        super().__init__(f"Illegal action {action}: {reason}")


class UnknownDirectionError(HexaequoError, ValueError):
    """A move displacement does not match any of the six hex directions."""

    def __init__(self, delta: Any):
        self.delta = delta
        super().__init__(f"Move displacement {delta} is not a unit hex direction")


class NoLegalActionsError(HexaequoError, ValueError):
    """Search was started from a terminal state."""


class EvaluatorError(HexaequoError, RuntimeError):
    """
    The evaluator failed or returned malformed data.

    Attributes:
        partial_action: Most visited root action when the search was aborted,
            or None if no root child had been visited yet
        simulations: Number of simulations completed before the failure
    """

    def __init__(
        self,
        message: str,
        partial_action: Optional[Any] = None,
        simulations: int = 0,
    ):
        super().__init__(message)
        self.partial_action = partial_action
        self.simulations = simulations
