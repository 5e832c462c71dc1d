from __future__ import annotations

from typing import List, Optional, Iterable, Union
from dataclasses import dataclass

import pandas as pd

from .arbiter import ArbiterStatus, MutexArbiter, DEFAULT_SLOT_COUNT, DEFAULT_SWITCH_INTERVAL
from .core import DEFAULT_TIME_QUANTUM, Policy, ProcessRecord
from .engine import ProcessSpec, SchedulerEngine
from .errors import InvalidConfiguration
from .events import StepEvent, event_to_dict
from .metrics import MetricsReport
from .utils import EventLogger


@dataclass
class SimulationResult:
    processes: List[ProcessRecord]
    events: List[StepEvent]
    report: MetricsReport
    total_time: float
    logger: EventLogger

    @property
    def avg_waiting_time(self) -> float:
        return self.report.avg_waiting_time

    @property
    def avg_turnaround_time(self) -> float:
        return self.report.avg_turnaround_time

    @property
    def throughput(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return len(self.processes) / self.total_time

    def events_frame(self) -> pd.DataFrame:
        """One row per step event, with an ``event`` column naming its type."""
        return pd.DataFrame([event_to_dict(e) for e in self.events])


def simulate(
    processes: Iterable[ProcessSpec],
    policy: Union[Policy, str] = Policy.FCFS,
    time_quantum: float = DEFAULT_TIME_QUANTUM,
    tick: Optional[float] = None,
) -> SimulationResult:
    """Run one policy over ``processes`` to completion and collect the results."""
    engine = SchedulerEngine(processes, policy=policy, quantum=time_quantum)
    events = engine.run_to_completion(tick)
    return SimulationResult(
        processes=list(engine.processes),
        events=events,
        report=engine.compute_metrics(),
        total_time=engine.clock,
        logger=engine.logger,
    )


@dataclass
class ArbiterTrace:
    statuses: List[ArbiterStatus]
    logger: EventLogger

    def occupants(self) -> List[int]:
        """Distinct successive occupants, e.g. [0, 1, 2, 3, 0, ...]."""
        seen: List[int] = []
        for status in self.statuses:
            if status.occupant != -1 and (not seen or seen[-1] != status.occupant):
                seen.append(status.occupant)
        return seen


def simulate_automatic(
    duration: float,
    dt: float = 0.1,
    slot_count: int = DEFAULT_SLOT_COUNT,
    switch_interval: float = DEFAULT_SWITCH_INTERVAL,
) -> ArbiterTrace:
    """Tick an arbiter in automatic mode for ``duration`` time units."""
    if not dt > 0:
        raise InvalidConfiguration(f"dt must be positive, got {dt!r}")
    arbiter = MutexArbiter(slot_count=slot_count, switch_interval=switch_interval)
    arbiter.toggle_automatic(True)
    statuses: List[ArbiterStatus] = []
    steps = int(round(duration / dt))
    for _ in range(steps):
        statuses.append(arbiter.tick(dt))
    return ArbiterTrace(statuses=statuses, logger=arbiter.logger)
