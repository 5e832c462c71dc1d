"""
Per-process and aggregate timing metrics for a completed run.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import List, Sequence

import pandas as pd

from .core import ProcessRecord
from .utils import compute_avg


@dataclass(frozen=True)
class ProcessMetrics:
    pid: int
    arrival_time: float
    burst_time: float
    waiting_time: float
    turnaround_time: float
    completion_time: float


@dataclass(frozen=True)
class MetricsReport:
    """Final report of a scheduling run."""
    policy: str
    processes: List[ProcessMetrics]
    avg_waiting_time: float
    avg_turnaround_time: float
    total_time: float

    @property
    def total_processes(self) -> int:
        return len(self.processes)

    def by_pid(self, pid: int) -> ProcessMetrics:
        for entry in self.processes:
            if entry.pid == pid:
                return entry
        raise KeyError(pid)

    def completion_order(self) -> List[int]:
        """Pids sorted by completion time (pid breaks ties)."""
        return [m.pid for m in sorted(self.processes, key=lambda m: (m.completion_time, m.pid))]

    def to_dataframe(self) -> pd.DataFrame:
        columns = list(ProcessMetrics.__dataclass_fields__)
        df = pd.DataFrame([asdict(m) for m in self.processes], columns=columns)
        return df.set_index("pid")

    def format(self) -> str:
        lines = ["Process Statistics:", ""]
        for m in self.processes:
            lines.append(f"Process {m.pid}:")
            lines.append(f"Waiting Time: {m.waiting_time:.2f}")
            lines.append(f"Turnaround Time: {m.turnaround_time:.2f}")
            lines.append(f"Completion Time: {m.completion_time:.2f}")
            lines.append("")
        lines.append("")
        lines.append(f"Average Waiting Time: {self.avg_waiting_time:.2f}")
        lines.append(f"Average Turnaround Time: {self.avg_turnaround_time:.2f}")
        lines.append("")
        lines.append(f"Total Processes: {self.total_processes}")
        return "\n".join(lines)


def build_report(policy: str, processes: Sequence[ProcessRecord], total_time: float) -> MetricsReport:
    entries = [
        ProcessMetrics(
            pid=p.pid,
            arrival_time=p.arrival_time,
            burst_time=p.burst_time,
            waiting_time=p.waiting_time,
            turnaround_time=p.turnaround_time,
            completion_time=p.completion_time,
        )
        for p in processes
    ]
    return MetricsReport(
        policy=policy,
        processes=entries,
        avg_waiting_time=compute_avg([m.waiting_time for m in entries]),
        avg_turnaround_time=compute_avg([m.turnaround_time for m in entries]),
        total_time=total_time,
    )
