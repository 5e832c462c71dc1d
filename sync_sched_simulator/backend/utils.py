from __future__ import annotations

from typing import List, Dict, Optional, Any
import json
import csv

import numpy as np


class EventLogger:
    """Records what happened during a run so it can be plotted or exported."""

    def __init__(self) -> None:
        self.process_events: List[Dict[str, Any]] = []
        self.timeline: List[Dict[str, Any]] = []
        self.lock_events: List[Dict[str, Any]] = []

    def clear(self) -> None:
        self.process_events.clear()
        self.timeline.clear()
        self.lock_events.clear()

    def log_process_event(self, time_s: float, pid: int, event: str) -> None:
        self.process_events.append({
            "time": time_s,
            "pid": pid,
            "event": event,
        })

    def log_timeline_slice(self, start: float, end: float, pid: Optional[int], policy: str, reason: Optional[str] = None) -> None:
        # Consecutive ticks of the same process are merged into one slice
        if self.timeline:
            last = self.timeline[-1]
            if last["pid"] == pid and last["reason"] == reason and abs(last["end"] - start) < 1e-9:
                last["end"] = end
                return
        self.timeline.append({
            "start": start,
            "end": end,
            "pid": pid,
            "policy": policy,
            "reason": reason,
        })

    def log_lock_event(self, time_s: float, slot: int, event: str, occupant: int, waiter: int) -> None:
        self.lock_events.append({
            "time": time_s,
            "slot": slot,
            "event": event,
            "occupant": occupant,
            "waiter": waiter,
        })

    def export_json(self, path: str) -> None:
        data = {
            "process_events": self.process_events,
            "timeline": self.timeline,
            "lock_events": self.lock_events,
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def export_csv(self, base_path_no_ext: str) -> None:
        with open(f"{base_path_no_ext}_events.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "pid", "event"])
            writer.writeheader()
            for row in self.process_events:
                writer.writerow(row)
        with open(f"{base_path_no_ext}_timeline.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["start", "end", "pid", "policy", "reason"])
            writer.writeheader()
            for row in self.timeline:
                writer.writerow(row)
        with open(f"{base_path_no_ext}_locks.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "slot", "event", "occupant", "waiter"])
            writer.writeheader()
            for row in self.lock_events:
                writer.writerow(row)


def compute_avg(values: List[float]) -> float:
    return float(np.mean(values)) if values else 0.0


def slot_label(slot: int) -> str:
    """Display label for a mutex slot: 0 -> 'A', 1 -> 'B', ..."""
    if 0 <= slot < 26:
        return chr(ord("A") + slot)
    return str(slot)
