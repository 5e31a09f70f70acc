"""Errors raised by the hunt progression engine.

Each subclass maps to one class of caller-visible failure so the HTTP layer can
translate it to a distinct status code.
"""


class HuntError(Exception):
    """Base class for progression failures."""


class ValidationError(HuntError):
    """Malformed input (empty answer, bad coordinates)."""


class NotFoundError(HuntError):
    """The referenced run or checkpoint does not exist."""


class MismatchedHuntError(HuntError):
    """The checkpoint does not belong to the run's hunt."""


class RunNotActiveError(HuntError):
    """The run is completed or abandoned and accepts no more attempts."""


class AttemptLimitExceededError(HuntError):
    """The checkpoint's max-attempts cap has been reached."""

    def __init__(self, max_attempts: int):
        super().__init__(f"No attempts remaining (limit {max_attempts})")
        self.max_attempts = max_attempts


class OutOfRangeError(HuntError):
    """The submission was made outside the checkpoint's geofence."""

    def __init__(self, distance_m: float, tolerance_m: float):
        super().__init__(
            f"You are {distance_m:.0f} m from the checkpoint (must be within {tolerance_m:.0f} m)"
        )
        self.distance_m = distance_m
        self.tolerance_m = tolerance_m


class StorageError(HuntError):
    """Transient persistence failure; nothing was written and the call may be retried."""
