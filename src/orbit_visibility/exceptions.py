"""
Exception types raised by the visibility engine.

Per-sample propagation failures are absorbed inside the scans; only
whole-satellite failures and programming errors reach the caller.
"""

from typing import Optional


class OrbitVisibilityError(Exception):
    """Base class for all engine errors."""


class InvalidElementFormat(OrbitVisibilityError, ValueError):
    """Orbital element text has no usable line 1 / line 2 pair."""


class PropagationError(OrbitVisibilityError, RuntimeError):
    """The orbit model could not produce a state vector for a given time."""

    def __init__(self, message: str, time_ms: Optional[int] = None) -> None:
        super().__init__(message)
        self.time_ms = time_ms
