"""
Scheduler implementations: FCFS, SJF (non-preemptive) and Round Robin.

Every scheduler shares the same stepping loop in ``BaseScheduler``; the
subclasses only decide which process runs next, for how long, and what
happens to a process whose slice ends before it finishes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Iterator, List, Optional, Sequence, Set
import logging
import math

from .core import DEFAULT_TIME_QUANTUM, EPSILON, Policy, ProcessRecord, ProcessState
from .errors import AlreadyCompleted, InvalidConfiguration, NotCompleted
from .events import (
    ContextSwitch, Idle, ProcessCompleted, ProcessProgress, ProcessStarted, StepEvent,
)
from .metrics import MetricsReport, build_report
from .utils import EventLogger

log = logging.getLogger(__name__)


class BaseScheduler(ABC):
    """Abstract base class for all schedulers."""

    policy: Policy
    # When nothing has arrived yet, jump straight to the next arrival.
    # FCFS instead idles one tick at a time.
    idle_jumps: bool = True

    def __init__(self, processes: Sequence[ProcessRecord], time_quantum: Optional[float] = None,
                 logger: Optional[EventLogger] = None):
        self.processes: List[ProcessRecord] = list(processes)
        self.time_quantum = time_quantum
        self.logger = logger if logger is not None else EventLogger()
        self.clock: float = 0.0
        self.current_process: Optional[ProcessRecord] = None
        self.slice_remaining: float = 0.0
        self._done = False

    @property
    def completed(self) -> bool:
        return self._done

    @property
    def running(self) -> Optional[ProcessRecord]:
        return self.current_process

    def reset(self) -> None:
        """Return every record and the clock to their initial state."""
        for pcb in self.processes:
            pcb.reset()
        self.clock = 0.0
        self.current_process = None
        self.slice_remaining = 0.0
        self._done = False
        self.logger.clear()
        self._reset_policy()

    def run(self, tick: Optional[float] = None) -> Iterator[StepEvent]:
        """Lazily produce step events until every process has completed.

        With ``tick=None`` the clock moves from one decision point to the next;
        otherwise it moves ``tick`` time units per step.
        """
        if self._done:
            raise AlreadyCompleted("run already completed; call reset() first")
        _check_tick(tick)
        return self._iter_steps(tick)

    def _iter_steps(self, tick: Optional[float]) -> Iterator[StepEvent]:
        while not self._done:
            for event in self.step(tick):
                yield event

    def step(self, dt: Optional[float] = None) -> List[StepEvent]:
        """Advance the simulation by up to ``dt`` and return the events produced.

        ``dt=None`` advances to the next decision point (end of a slice or of
        an idle period). Schedulers with ``idle_jumps`` set (SJF, Round Robin)
        move an idle CPU straight to the next arrival, which can carry the
        clock past ``dt``; FCFS idles within the budget.
        """
        if self._done:
            raise AlreadyCompleted("run already completed; call reset() first")
        _check_tick(dt)
        budget = math.inf if dt is None else dt
        events: List[StepEvent] = []

        while not self._all_finished():
            if self.current_process is None:
                if budget <= EPSILON:
                    break
                self._mark_arrivals()
                pcb = self._select()
                if pcb is None:
                    budget -= self._idle(budget, events)
                    if dt is None:
                        break
                    continue
                self._dispatch(pcb, events)

            run_for = min(self.slice_remaining, budget)
            if run_for > 0:
                self._execute(run_for, events)
                budget -= run_for

            if self.slice_remaining <= EPSILON:
                self._finish_slice(events)
                if dt is None:
                    break
            elif budget <= EPSILON:
                break

        if self._all_finished():
            self._done = True
            log.info("%s run completed at t=%.3f", self.policy.value, self.clock)
        return events

    def compute_metrics(self) -> MetricsReport:
        if not self._done:
            raise NotCompleted("metrics are only available once the run has completed")
        return build_report(self.policy.value, self.processes, self.clock)

    def _all_finished(self) -> bool:
        return all(pcb.is_finished for pcb in self.processes)

    def _mark_arrivals(self) -> None:
        for pcb in self.processes:
            if pcb.state is ProcessState.NEW and pcb.arrival_time <= self.clock + EPSILON:
                pcb.state = ProcessState.READY

    def _next_arrival(self) -> Optional[float]:
        pending = [p.arrival_time for p in self.processes
                   if p.state is ProcessState.NEW and p.arrival_time > self.clock + EPSILON]
        return min(pending) if pending else None

    def _idle(self, budget: float, events: List[StepEvent]) -> float:
        """Advance the clock with the CPU idle; returns the time consumed."""
        target = self._next_arrival()
        if target is None:
            # unreachable while unfinished processes remain
            raise RuntimeError(f"{self.policy.value} scheduler stalled at t={self.clock}")
        until = target if self.idle_jumps else min(target, self.clock + budget)
        start = self.clock
        events.append(Idle(time=start, until=until))
        self.logger.log_timeline_slice(start, until, None, self.policy.value, reason="idle")
        self.clock = until
        return until - start

    def _dispatch(self, pcb: ProcessRecord, events: List[StepEvent]) -> None:
        self._on_dispatch(pcb, events)
        pcb.state = ProcessState.RUNNING
        self.current_process = pcb
        self.slice_remaining = self._slice_length(pcb)
        if pcb.start_time is None:
            pcb.start_time = self.clock
            events.append(ProcessStarted(time=self.clock, pid=pcb.pid))
            self.logger.log_process_event(self.clock, pcb.pid, "start")
        log.debug("t=%.3f dispatch P%d for %.3f", self.clock, pcb.pid, self.slice_remaining)

    def _execute(self, run_for: float, events: List[StepEvent]) -> None:
        pcb = self.current_process
        start = self.clock
        pcb.remaining_time = max(0.0, pcb.remaining_time - run_for)
        self.slice_remaining -= run_for
        self.clock += run_for
        self.logger.log_timeline_slice(start, self.clock, pcb.pid, self.policy.value)
        events.append(ProcessProgress(time=self.clock, pid=pcb.pid, fraction_complete=pcb.fraction_complete))

    def _finish_slice(self, events: List[StepEvent]) -> None:
        pcb = self.current_process
        self.current_process = None
        self.slice_remaining = 0.0
        if pcb.remaining_time <= EPSILON:
            pcb.complete(self.clock)
            events.append(ProcessCompleted(time=self.clock, pid=pcb.pid))
            self.logger.log_process_event(self.clock, pcb.pid, "complete")
            log.debug("t=%.3f P%d completed", self.clock, pcb.pid)
            self._on_complete(pcb)
        else:
            pcb.state = ProcessState.READY
            self.logger.log_process_event(self.clock, pcb.pid, "preempt")
            self._on_preempt(pcb)

    @abstractmethod
    def _select(self) -> Optional[ProcessRecord]:
        """Pick the next process to run, or None if nothing is eligible."""

    def _slice_length(self, pcb: ProcessRecord) -> float:
        return pcb.remaining_time

    def _reset_policy(self) -> None:
        pass

    def _on_dispatch(self, pcb: ProcessRecord, events: List[StepEvent]) -> None:
        pass

    def _on_complete(self, pcb: ProcessRecord) -> None:
        pass

    def _on_preempt(self, pcb: ProcessRecord) -> None:
        raise RuntimeError(f"{self.policy.value} is non-preemptive; P{pcb.pid} cannot be preempted")


class FCFSScheduler(BaseScheduler):
    """First Come First Serve: arrival order, pid breaks ties, no preemption."""

    policy = Policy.FCFS
    idle_jumps = False

    def __init__(self, processes: Sequence[ProcessRecord], time_quantum: Optional[float] = None,
                 logger: Optional[EventLogger] = None):
        super().__init__(processes, time_quantum, logger)
        self._order = sorted(self.processes, key=lambda p: (p.arrival_time, p.pid))

    def _select(self) -> Optional[ProcessRecord]:
        for pcb in self._order:
            if pcb.is_finished:
                continue
            # later processes never overtake the head, even if it has not arrived
            return pcb if pcb.state is ProcessState.READY else None
        return None


class SJFScheduler(BaseScheduler):
    """Shortest Job First (non-preemptive) scheduler.

    Jobs that arrived strictly before a decision instant take precedence over
    jobs arriving exactly at it. This differs from a plain ``arrival <= clock``
    rule on some inputs: ``[(1, 4, 0), (2, 5, 1), (3, 1, 4)]`` runs 1, 2, 3
    here, where the plain rule would run 1, 3, 2.
    """

    policy = Policy.SJF

    def _select(self) -> Optional[ProcessRecord]:
        ready = [p for p in self.processes if p.state is ProcessState.READY]
        if not ready:
            return None
        # A job arriving at the very instant of the decision only competes
        # when nothing that arrived earlier is waiting.
        earlier = [p for p in ready if p.arrival_time < self.clock - EPSILON]
        return min(earlier or ready, key=lambda p: (p.burst_time, p.arrival_time, p.pid))


class RoundRobinScheduler(BaseScheduler):
    """Round Robin scheduler with a fixed time quantum."""

    policy = Policy.ROUND_ROBIN

    def __init__(self, processes: Sequence[ProcessRecord], time_quantum: Optional[float] = DEFAULT_TIME_QUANTUM,
                 logger: Optional[EventLogger] = None):
        if time_quantum is None:
            time_quantum = DEFAULT_TIME_QUANTUM
        super().__init__(processes, time_quantum, logger)
        self.ready_queue: Deque[ProcessRecord] = deque()
        self._admitted: Set[int] = set()
        self._dispatches = 0
        self._preempted_pid: Optional[int] = None

    def _reset_policy(self) -> None:
        self.ready_queue.clear()
        self._admitted.clear()
        self._dispatches = 0
        self._preempted_pid = None

    def _select(self) -> Optional[ProcessRecord]:
        arrived = sorted(
            (p for p in self.processes if p.state is ProcessState.READY and p.pid not in self._admitted),
            key=lambda p: p.pid,
        )
        for pcb in arrived:
            self._admitted.add(pcb.pid)
            self.ready_queue.append(pcb)
        if not self.ready_queue:
            return None
        return self.ready_queue.popleft()

    def _slice_length(self, pcb: ProcessRecord) -> float:
        return min(self.time_quantum, pcb.remaining_time)

    def _on_dispatch(self, pcb: ProcessRecord, events: List[StepEvent]) -> None:
        if self._dispatches:
            events.append(ContextSwitch(time=self.clock, from_pid=self._preempted_pid, to_pid=pcb.pid))
        self._dispatches += 1
        self._preempted_pid = None

    def _on_preempt(self, pcb: ProcessRecord) -> None:
        self.ready_queue.append(pcb)
        self._preempted_pid = pcb.pid


SCHEDULERS = {
    Policy.FCFS: FCFSScheduler,
    Policy.SJF: SJFScheduler,
    Policy.ROUND_ROBIN: RoundRobinScheduler,
}


def create_scheduler(policy: Policy, processes: Sequence[ProcessRecord], time_quantum: Optional[float] = None,
                     logger: Optional[EventLogger] = None) -> BaseScheduler:
    cls = SCHEDULERS[Policy.parse(policy)]
    return cls(processes, time_quantum=time_quantum, logger=logger)


def _check_tick(tick: Optional[float]) -> None:
    if tick is not None and not (tick > 0 and math.isfinite(tick)):
        raise InvalidConfiguration(f"tick must be a positive finite number, got {tick!r}")
