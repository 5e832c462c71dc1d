"""
Exception types raised by the simulator backend.
"""


class SimulatorError(Exception):
    """Base class for all simulator errors."""


class InvalidConfiguration(SimulatorError, ValueError):
    """Bad process parameters, duplicate ids, unknown policy or bad quantum."""


class NotCompleted(SimulatorError, RuntimeError):
    """Metrics were requested before the run finished."""


class AlreadyCompleted(SimulatorError, RuntimeError):
    """A finished run was started again without a reset."""


class InvalidSlot(SimulatorError, IndexError):
    """A mutex slot id outside [0, slot_count)."""
