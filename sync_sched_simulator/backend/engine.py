"""
SchedulerEngine: owns the process set and the selected policy.

The engine validates configuration, delegates stepping to one scheduler
object per policy and exposes the resulting events and metrics to drivers.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union
import logging
import math
import numbers

from .core import DEFAULT_TIME_QUANTUM, Policy, ProcessRecord, ProcessState
from .errors import InvalidConfiguration
from .events import StepEvent
from .metrics import MetricsReport
from .schedulers import BaseScheduler, create_scheduler
from .utils import EventLogger

log = logging.getLogger(__name__)

ProcessSpec = Union[ProcessRecord, Tuple[int, float, float]]


_EXPLANATIONS = {
    Policy.FCFS: (
        "First Come First Serve (FCFS)\n"
        "• Non-preemptive algorithm\n"
        "• Processes are executed in order of arrival\n"
        "• Simple but may cause convoy effect"
    ),
    Policy.SJF: (
        "Shortest Job First (SJF)\n"
        "• Non-preemptive algorithm\n"
        "• Selects process with shortest burst time\n"
        "• Optimal average waiting time"
    ),
    Policy.ROUND_ROBIN: (
        "Round Robin\n"
        "• Preemptive algorithm\n"
        "• Each process gets a time quantum\n"
        "• Fair but has context switching overhead\n"
        "• Current quantum: {quantum:g}s"
    ),
}


class SchedulerEngine:
    """Drives one scheduling policy over a fixed set of processes.

    ``speed`` only scales how fast ``advance`` moves the simulated clock for a
    given amount of wall time; it never changes the outcome of a run.
    """

    def __init__(self, processes: Optional[Iterable[ProcessSpec]] = None,
                 policy: Union[Policy, str] = Policy.FCFS,
                 quantum: float = DEFAULT_TIME_QUANTUM,
                 speed: float = 1.0):
        self.logger = EventLogger()
        self._processes: List[ProcessRecord] = []
        self._policy = Policy.FCFS
        self._quantum = DEFAULT_TIME_QUANTUM
        self._scheduler: BaseScheduler = create_scheduler(self._policy, [], self._quantum, self.logger)
        self.speed = 1.0
        self.set_speed(speed)
        self.configure(processes or [], policy, quantum)

    # configuration

    def configure(self, processes: Iterable[ProcessSpec], policy: Union[Policy, str] = Policy.FCFS,
                  quantum: float = DEFAULT_TIME_QUANTUM) -> None:
        """Replace the process set and policy.

        Everything is validated before any state changes, so a rejected
        configuration leaves the engine exactly as it was.
        """
        try:
            resolved = Policy.parse(policy)
        except ValueError as e:
            raise InvalidConfiguration(str(e)) from e
        records = [_to_record(spec) for spec in processes]
        _validate(records, resolved, quantum)
        if quantum is None:
            quantum = DEFAULT_TIME_QUANTUM
        try:
            quantum = float(quantum)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"time quantum must be a number, got {quantum!r}") from e

        for pcb in records:
            pcb.reset()
        self._processes = records
        self._policy = resolved
        self._quantum = quantum
        self.logger.clear()
        self._scheduler = create_scheduler(resolved, records, self._quantum, self.logger)
        log.debug("configured %s with %d processes (quantum=%s)", resolved.value, len(records), quantum)

    def set_policy(self, policy: Union[Policy, str], quantum: Optional[float] = None) -> None:
        """Switch policy (and optionally quantum) keeping the current process set."""
        self.configure(self._processes, policy, self._quantum if quantum is None else quantum)

    def set_speed(self, speed: float) -> None:
        if not (isinstance(speed, numbers.Real) and speed > 0 and math.isfinite(speed)):
            raise InvalidConfiguration(f"speed must be a positive number, got {speed!r}")
        self.speed = float(speed)

    # run control

    def run(self, tick: Optional[float] = None) -> Iterator[StepEvent]:
        return self._scheduler.run(tick)

    def step(self, dt: Optional[float] = None) -> List[StepEvent]:
        return self._scheduler.step(dt)

    def advance(self, wall_dt: float) -> List[StepEvent]:
        """Advance by ``wall_dt`` seconds of driver time, scaled by ``speed``."""
        return self._scheduler.step(wall_dt * self.speed)

    def run_to_completion(self, tick: Optional[float] = None) -> List[StepEvent]:
        return list(self.run(tick))

    def reset(self) -> None:
        self._scheduler.reset()

    def compute_metrics(self) -> MetricsReport:
        return self._scheduler.compute_metrics()

    def explain(self) -> str:
        return _EXPLANATIONS[self._policy].format(quantum=self._quantum)

    # read-only state

    @property
    def processes(self) -> Sequence[ProcessRecord]:
        return tuple(self._processes)

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def quantum(self) -> float:
        return self._quantum

    @property
    def clock(self) -> float:
        return self._scheduler.clock

    @property
    def completed(self) -> bool:
        return self._scheduler.completed

    @property
    def running(self) -> Optional[ProcessRecord]:
        return self._scheduler.running

    @property
    def ready_queue(self) -> List[ProcessRecord]:
        """Processes eligible to run; Round Robin returns its FIFO order."""
        queue = getattr(self._scheduler, "ready_queue", None)
        if queue is not None:
            return list(queue)
        return [p for p in self._processes if p.state is ProcessState.READY]


def _to_record(spec: ProcessSpec) -> ProcessRecord:
    if isinstance(spec, ProcessRecord):
        return spec
    try:
        pid, burst, arrival = spec
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"expected (pid, burst_time, arrival_time), got {spec!r}") from e
    _check_pid(pid)
    _check_number("burst_time", burst, pid)
    _check_number("arrival_time", arrival, pid)
    return ProcessRecord(pid=pid, burst_time=float(burst), arrival_time=float(arrival))


def _check_pid(pid) -> None:
    if isinstance(pid, bool) or not isinstance(pid, numbers.Integral) or pid <= 0:
        raise InvalidConfiguration(f"process id must be a positive integer, got {pid!r}")


def _check_number(name: str, value, pid) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise InvalidConfiguration(f"process {pid!r}: {name} must be a finite number, got {value!r}")


def _validate(records: Sequence[ProcessRecord], policy: Policy, quantum) -> None:
    if policy is Policy.ROUND_ROBIN:
        if isinstance(quantum, bool) or not isinstance(quantum, numbers.Real) \
                or not math.isfinite(quantum) or quantum <= 0:
            raise InvalidConfiguration(f"Round Robin needs a positive time quantum, got {quantum!r}")
    seen = set()
    for pcb in records:
        _check_pid(pcb.pid)
        if pcb.pid in seen:
            raise InvalidConfiguration(f"duplicate process id {pcb.pid}")
        seen.add(pcb.pid)
        _check_number("burst_time", pcb.burst_time, pcb.pid)
        _check_number("arrival_time", pcb.arrival_time, pcb.pid)
        if pcb.burst_time < 0:
            raise InvalidConfiguration(f"process {pcb.pid}: negative burst_time {pcb.burst_time}")
        if pcb.arrival_time < 0:
            raise InvalidConfiguration(f"process {pcb.pid}: negative arrival_time {pcb.arrival_time}")
