"""
Core data structures for the scheduling simulator.
Includes the process record, process states and the policy selector.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import random


EPSILON = 1e-9
DEFAULT_TIME_QUANTUM = 2.0


class ProcessState(Enum):
    """Process states during a scheduling run."""
    NEW = "NEW"                # not yet arrived
    READY = "READY"
    RUNNING = "RUNNING"
    TERMINATED = "TERMINATED"


class Policy(Enum):
    """Scheduling policies supported by the engine."""
    FCFS = "FCFS"
    SJF = "SJF"
    ROUND_ROBIN = "RR"

    @property
    def title(self) -> str:
        return _POLICY_TITLES[self]

    @classmethod
    def parse(cls, value) -> "Policy":
        """Resolve a Policy from an enum member or a loose name ("rr", "Round Robin")."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace("-", " ").replace("_", " ")
        for policy in cls:
            if key in (policy.value, policy.name.replace("_", " "), policy.title.upper()):
                return policy
        raise ValueError(f"unknown scheduling policy: {value!r}")


_POLICY_TITLES = {
    Policy.FCFS: "First Come First Serve",
    Policy.SJF: "Shortest Job First",
    Policy.ROUND_ROBIN: "Round Robin",
}


def stable_color(pid: int) -> str:
    """Generate a stable display colour from a pid."""
    rng = random.Random(pid)
    r = rng.randint(50, 220)
    g = rng.randint(50, 220)
    b = rng.randint(50, 220)
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass
class ProcessRecord:
    """One schedulable unit and its accumulated timing statistics."""
    pid: int
    burst_time: float
    arrival_time: float = 0.0
    remaining_time: float = field(init=False)
    waiting_time: float = field(init=False, default=0.0)
    turnaround_time: float = field(init=False, default=0.0)
    completion_time: float = field(init=False, default=0.0)
    start_time: Optional[float] = field(init=False, default=None)
    state: ProcessState = field(init=False, default=ProcessState.NEW)
    color: Optional[str] = None

    def __post_init__(self) -> None:
        self.remaining_time = self.burst_time
        if self.color is None:
            self.color = stable_color(self.pid)

    def reset(self) -> None:
        """Restore the record to its pre-run state, keeping pid and colour."""
        self.remaining_time = self.burst_time
        self.waiting_time = 0.0
        self.turnaround_time = 0.0
        self.completion_time = 0.0
        self.start_time = None
        self.state = ProcessState.NEW

    @property
    def is_finished(self) -> bool:
        return self.state is ProcessState.TERMINATED

    @property
    def fraction_complete(self) -> float:
        if self.burst_time <= 0:
            return 1.0
        return 1.0 - self.remaining_time / self.burst_time

    def complete(self, now: float) -> None:
        """Mark the record finished at simulated time ``now`` and derive its metrics."""
        self.remaining_time = 0.0
        self.state = ProcessState.TERMINATED
        self.completion_time = now
        self.turnaround_time = now - self.arrival_time
        self.waiting_time = self.turnaround_time - self.burst_time
