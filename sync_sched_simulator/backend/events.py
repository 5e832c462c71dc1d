"""
Step events emitted by a scheduling run.

A run is consumed as a sequence of these values; renderers and drivers react
to them instead of reading the engine's internal fields.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class ProcessStarted:
    time: float
    pid: int


@dataclass(frozen=True)
class ProcessProgress:
    time: float
    pid: int
    fraction_complete: float


@dataclass(frozen=True)
class ProcessCompleted:
    time: float
    pid: int


@dataclass(frozen=True)
class ContextSwitch:
    """Round Robin dispatch; ``from_pid`` is the preempted process, if any."""
    time: float
    from_pid: Optional[int]
    to_pid: int


@dataclass(frozen=True)
class Idle:
    """The clock advanced from ``time`` to ``until`` with nothing eligible to run."""
    time: float
    until: float


StepEvent = Union[ProcessStarted, ProcessProgress, ProcessCompleted, ContextSwitch, Idle]


def event_to_dict(event: StepEvent) -> Dict[str, Any]:
    data = asdict(event)
    data["event"] = type(event).__name__
    return data
