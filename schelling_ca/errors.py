"""Exception types raised by the Schelling-Sakoda simulation."""


class SimulationError(Exception):
    """Base class for all simulation errors."""


class ConfigurationError(SimulationError, ValueError):
    """Configuration rejected at setup time. Engine state is left untouched."""


class InvalidOperationError(SimulationError, RuntimeError):
    """Command issued in a state that does not allow it (e.g. step before setup)."""


class InvariantViolationError(SimulationError, RuntimeError):
    """Internal consistency check failed. The run cannot continue."""
