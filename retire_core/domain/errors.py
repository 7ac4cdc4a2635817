from __future__ import annotations


class SimulationError(Exception):
    """Base class for every error raised by the simulation engine."""


class ValidationError(SimulationError, ValueError):
    """The user financial profile is malformed."""


class ConfigurationError(SimulationError, ValueError):
    """Simulation settings or market parameters are unusable."""


class CancelledError(SimulationError):
    def __init__(self, completed: int, requested: int):
        super().__init__(f"Simulation cancelled after {completed} of {requested} scenarios")
        self.completed = completed
        self.requested = requested


class ComputationError(SimulationError, ArithmeticError):
    """A scenario produced a non-finite value, or there is nothing to aggregate."""
