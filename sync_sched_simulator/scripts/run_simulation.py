from __future__ import annotations

import argparse
import logging
import os
import sys

# Ensure project root is on sys.path when running as a script
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sync_sched_simulator.backend.config import (
    SimulationConfig, load_config, load_processes_csv, make_processes, save_config,
)
from sync_sched_simulator.backend.errors import SimulatorError
from sync_sched_simulator.backend.simulator import simulate
from sync_sched_simulator.backend.visualizer import plot_gantt


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CPU scheduling simulator")
    p.add_argument("--policy", choices=["FCFS", "SJF", "RR"], default=None)
    p.add_argument("--quantum", type=float, default=None)
    p.add_argument("--tick", type=float, default=None, help="Clock granularity (default: event to event)")
    p.add_argument("--workload", type=str, default=None, help="CSV with pid,burst_time,arrival_time columns")
    p.add_argument("--config", type=str, default=None, help="JSON file with SimulationConfig fields")
    p.add_argument("--out", type=str, default=None, help="Save a Gantt chart to this path")
    p.add_argument("--export", type=str, default=None, help="Base path for JSON/CSV event logs")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = load_config(args.config) if args.config else SimulationConfig()
        policy = args.policy or config.policy
        quantum = args.quantum if args.quantum is not None else config.time_quantum
        tick = args.tick if args.tick is not None else config.tick
        procs = load_processes_csv(args.workload) if args.workload else make_processes()
        config = SimulationConfig.from_mapping(
            {**config.to_dict(), "policy": policy, "time_quantum": quantum, "tick": tick})
        result = simulate(procs, policy=policy, time_quantum=quantum, tick=tick)
    except (OSError, SimulatorError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(result.report.format())
    print(f"\nTotal time: {result.total_time:.2f}, Throughput: {result.throughput:.3f}")
    if args.out:
        plot_gantt(result.processes, result.logger, args.out)
        print(f"Saved plot to {args.out}")
    if args.export:
        result.logger.export_json(f"{args.export}.json")
        result.logger.export_csv(args.export)
        save_config(config, f"{args.export}_config.json")
        print(f"Logs written to {args.export}.json / {args.export}_*.csv / {args.export}_config.json")
    return 0


if __name__ == "__main__":
    sys.exit(main())
