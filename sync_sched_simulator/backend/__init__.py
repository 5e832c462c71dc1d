"""
Simulation backend: scheduling engine, mutex arbiter and their helpers.
"""

from .core import Policy, ProcessRecord, ProcessState
from .engine import SchedulerEngine
from .arbiter import ArbiterStatus, MutexArbiter, SlotState
from .errors import (
    AlreadyCompleted, InvalidConfiguration, InvalidSlot, NotCompleted, SimulatorError,
)
from .events import ContextSwitch, Idle, ProcessCompleted, ProcessProgress, ProcessStarted
from .metrics import MetricsReport, ProcessMetrics
from .simulator import simulate, simulate_automatic

__all__ = [
    'Policy', 'ProcessRecord', 'ProcessState',
    'SchedulerEngine',
    'ArbiterStatus', 'MutexArbiter', 'SlotState',
    'AlreadyCompleted', 'InvalidConfiguration', 'InvalidSlot', 'NotCompleted', 'SimulatorError',
    'ContextSwitch', 'Idle', 'ProcessCompleted', 'ProcessProgress', 'ProcessStarted',
    'MetricsReport', 'ProcessMetrics',
    'simulate', 'simulate_automatic',
]
