from __future__ import annotations

from typing import List, Optional, Dict, Sequence
import os
import matplotlib.pyplot as plt

from .core import ProcessRecord
from .utils import EventLogger, slot_label


def ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def _finish(fig, out_path: Optional[str]) -> None:
    fig.tight_layout()
    if out_path:
        ensure_dir(out_path)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()


def plot_gantt(processes: Sequence[ProcessRecord], logger: EventLogger, out_path: Optional[str] = None,
               title: Optional[str] = None) -> None:
    fig, ax = plt.subplots(figsize=(12, 3 + 0.3 * max(1, len(processes))))

    pid_to_color = {p.pid: p.color for p in processes}
    pids_order = sorted(p.pid for p in processes)
    y_positions: Dict[int, int] = {pid: i for i, pid in enumerate(pids_order)}

    for seg in logger.timeline:
        pid = seg.get("pid")
        start = seg["start"]
        end = seg["end"]
        if pid is None:
            # idle CPU shown as a shaded band behind the bars
            ax.axvspan(start, end, color="#dddddd", alpha=0.5)
            continue
        ax.barh(y_positions[pid], end - start, left=start, color=pid_to_color.get(pid, "#777777"),
                edgecolor="black", alpha=0.9)

    for ev in logger.process_events:
        if ev["event"] == "complete":
            ax.plot(ev["time"], y_positions[ev["pid"]], marker="|", color="black", markersize=14)

    ax.set_yticks([y_positions[pid] for pid in pids_order])
    ax.set_yticklabels([f"P{pid}" for pid in pids_order])
    ax.set_xlabel("Time")
    policy = logger.timeline[0]["policy"] if logger.timeline else ""
    ax.set_title(title or f"Gantt Chart ({policy})")
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    _finish(fig, out_path)


def plot_lock_occupancy(logger: EventLogger, slot_count: int, out_path: Optional[str] = None) -> None:
    """Critical-section occupancy over time, one row per slot."""
    fig, ax = plt.subplots(figsize=(12, 1.5 + 0.5 * slot_count))

    entered: Dict[int, float] = {}
    spans: List[tuple] = []
    last_time = 0.0
    for ev in logger.lock_events:
        last_time = ev["time"]
        if ev["event"] == "enter":
            entered[ev["slot"]] = ev["time"]
        elif ev["event"] == "exit" and ev["slot"] in entered:
            spans.append((ev["slot"], entered.pop(ev["slot"]), ev["time"]))
    for slot, start in entered.items():
        spans.append((slot, start, max(last_time, start)))

    for slot, start, end in spans:
        # zero-length stays still get a visible sliver
        ax.barh(slot, max(end - start, 0.05), left=start, color="#c0392b", edgecolor="black")
    for ev in logger.lock_events:
        if ev["event"] == "wait":
            ax.plot(ev["time"], ev["slot"], marker="o", color="#f39c12")

    ax.set_yticks(list(range(slot_count)))
    ax.set_yticklabels([f"Process {slot_label(i)}" for i in range(slot_count)])
    ax.set_xlabel("Time")
    ax.set_title("Critical Section Occupancy")
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    _finish(fig, out_path)
