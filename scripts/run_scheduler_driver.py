from __future__ import annotations
import os, sys, time
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from sync_sched_simulator.backend.config import make_processes
from sync_sched_simulator.backend.engine import SchedulerEngine
from sync_sched_simulator.backend.events import ProcessProgress, ProcessCompleted, ContextSwitch


def run(policy='RR', speed=4.0, frame=0.05):
    # Paced like a render loop: every frame advances frame * speed simulated time
    engine = SchedulerEngine(make_processes(), policy=policy, quantum=2.0, speed=speed)
    while not engine.completed:
        for ev in engine.advance(frame):
            if isinstance(ev, ProcessProgress):
                bar = '#' * int(ev.fraction_complete * 20)
                print(f'\rt={ev.time:6.2f} P{ev.pid} [{bar:<20}] {ev.fraction_complete * 100:3.0f}%', end='')
            elif isinstance(ev, ContextSwitch):
                print(f'\n-- context switch {ev.from_pid} -> {ev.to_pid}')
            elif isinstance(ev, ProcessCompleted):
                print(f'\nP{ev.pid} completed at t={ev.time:.2f}')
        time.sleep(frame)
    print()
    print(engine.compute_metrics().format())


if __name__ == '__main__':
    run(*sys.argv[1:2])
