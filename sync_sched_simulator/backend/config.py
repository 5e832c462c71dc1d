from __future__ import annotations

from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, List, Mapping, Optional
import csv
import json

from .arbiter import DEFAULT_SLOT_COUNT, DEFAULT_SWITCH_INTERVAL
from .core import DEFAULT_TIME_QUANTUM, Policy, ProcessRecord
from .errors import InvalidConfiguration


# (pid, burst_time, arrival_time)
DEFAULT_PROCESSES = [
    (1, 6.0, 0.0),
    (2, 4.0, 2.0),
    (3, 8.0, 4.0),
    (4, 3.0, 6.0),
]


@dataclass
class SimulationConfig:
    policy: str = Policy.FCFS.value
    time_quantum: float = DEFAULT_TIME_QUANTUM
    tick: Optional[float] = None
    speed: float = 1.0
    slot_count: int = DEFAULT_SLOT_COUNT
    switch_interval: float = DEFAULT_SWITCH_INTERVAL

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfiguration(f"unknown config keys: {', '.join(sorted(unknown))}")
        config = cls(**dict(data))
        try:
            config.policy = Policy.parse(config.policy).value
        except ValueError as e:
            raise InvalidConfiguration(str(e)) from e
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: str) -> SimulationConfig:
    """Read a SimulationConfig from a JSON object file."""
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfiguration(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path}: expected a JSON object")
    return SimulationConfig.from_mapping(data)


def save_config(config: SimulationConfig, path: str) -> None:
    """Write ``config`` as a JSON object that load_config() reads back."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)


def make_processes(specs=None) -> List[ProcessRecord]:
    """Fresh records from (pid, burst, arrival) tuples, defaulting to the demo workload."""
    specs = DEFAULT_PROCESSES if specs is None else specs
    return [ProcessRecord(pid=pid, burst_time=burst, arrival_time=arrival) for pid, burst, arrival in specs]


def load_processes_csv(path: str, limit: Optional[int] = None) -> List[ProcessRecord]:
    """Load processes from a CSV with ``pid``, ``burst_time`` and ``arrival_time`` columns."""
    procs: List[ProcessRecord] = []
    with open(path, newline='', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for i, row in enumerate(reader):
            if limit and i >= limit:
                break
            try:
                pid = int(row['pid'])
                burst = float(row['burst_time'])
                arrival = float(row.get('arrival_time') or 0.0)
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidConfiguration(f"{path}: bad row {i + 1}: {row}") from e
            procs.append(ProcessRecord(pid=pid, burst_time=burst, arrival_time=arrival))
    return procs
