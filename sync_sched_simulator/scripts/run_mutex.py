from __future__ import annotations

import argparse
import logging
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sync_sched_simulator.backend.errors import SimulatorError
from sync_sched_simulator.backend.simulator import simulate_automatic
from sync_sched_simulator.backend.utils import slot_label
from sync_sched_simulator.backend.visualizer import plot_lock_occupancy


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Automatic critical-section cycling demo")
    p.add_argument("--slots", type=int, default=4)
    p.add_argument("--interval", type=float, default=4.0, help="Seconds between automatic switches")
    p.add_argument("--duration", type=float, default=40.0)
    p.add_argument("--dt", type=float, default=0.5)
    p.add_argument("--out", type=str, default=None, help="Save an occupancy chart to this path")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        trace = simulate_automatic(args.duration, dt=args.dt, slot_count=args.slots,
                                   switch_interval=args.interval)
    except SimulatorError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for ev in trace.logger.lock_events:
        print(f"t={ev['time']:6.2f}  Process {slot_label(ev['slot'])}: {ev['event']}")
    print("Occupancy order:", " -> ".join(slot_label(s) for s in trace.occupants()))
    if args.out:
        plot_lock_occupancy(trace.logger, args.slots, args.out)
        print(f"Saved plot to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
