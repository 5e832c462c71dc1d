from __future__ import annotations

import shlex
from typing import List, Optional
from colorama import Fore, Style, init as colorama_init

from .arbiter import MutexArbiter, SlotState
from .config import DEFAULT_PROCESSES, SimulationConfig
from .core import ProcessRecord
from .engine import SchedulerEngine
from .errors import SimulatorError
from .events import ContextSwitch, Idle, ProcessCompleted, ProcessStarted
from .visualizer import plot_gantt


_SLOT_COLORS = {
    SlotState.IDLE: Fore.WHITE,
    SlotState.WAITING: Fore.YELLOW,
    SlotState.IN_CRITICAL_SECTION: Fore.RED,
}


class ManualTerminal:
    def __init__(self, config: Optional[SimulationConfig] = None) -> None:
        colorama_init(autoreset=True)
        self.config = config or SimulationConfig()
        self.processes: List[ProcessRecord] = [
            ProcessRecord(pid=pid, burst_time=burst, arrival_time=arrival) for pid, burst, arrival in DEFAULT_PROCESSES
        ]
        self.engine = SchedulerEngine(self.processes, policy=self.config.policy,
                                      quantum=self.config.time_quantum, speed=self.config.speed)
        self.arbiter = MutexArbiter(slot_count=self.config.slot_count,
                                    switch_interval=self.config.switch_interval)

    def prompt(self) -> None:
        print(Fore.CYAN + "Scheduling & mutex terminal. Type 'help' for commands.")
        while True:
            try:
                raw = input(Fore.GREEN + "> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not raw.strip():
                continue
            self.handle_command(raw)

    def handle_command(self, raw: str) -> None:
        try:
            parts = shlex.split(raw)
        except ValueError as e:
            print(Fore.RED + f"Parse error: {e}")
            return
        if not parts:
            return
        cmd, *args = parts
        cmd = cmd.lower()
        handler = self._commands().get(cmd)
        if cmd in ("exit", "quit"):
            raise SystemExit(0)
        if handler is None:
            print(Fore.YELLOW + "Unknown command. Type 'help'.")
            return
        try:
            handler(args)
        except SimulatorError as e:
            print(Fore.RED + f"{type(e).__name__}: {e}")

    def _commands(self):
        return {
            "help": self._help,
            "add": self._add,
            "clear": self._clear,
            "list": self._list,
            "policy": self._policy,
            "explain": self._explain,
            "run": self._run,
            "stats": self._stats,
            "reset": self._reset,
            "request": self._request,
            "release": self._release,
            "auto": self._auto,
            "tick": self._tick,
            "pause": self._pause,
            "status": self._status,
            "mreset": self._mutex_reset,
        }

    def _help(self, args: List[str]) -> None:
        print("Scheduling:")
        print("  add <pid> <burst> [arrival=0]")
        print("  clear | list")
        print("  policy FCFS|SJF|RR [--quantum Q]")
        print("  explain")
        print("  run [--tick T] [--out path]")
        print("  stats | reset")
        print("Mutual exclusion:")
        print("  request <slot> | release <slot>     (slot: A-Z or 0..N-1)")
        print("  auto [on|off] | tick <dt> | pause | status | mreset")
        print("  exit")

    # scheduling commands

    def _add(self, args: List[str]) -> None:
        if len(args) < 2:
            print(Fore.RED + "Usage: add <pid> <burst> [arrival]")
            return
        try:
            pid = int(args[0])
            burst = float(args[1])
            arrival = float(args[2]) if len(args) >= 3 else 0.0
        except ValueError:
            print(Fore.RED + "Invalid numeric values")
            return
        candidate = self.processes + [ProcessRecord(pid=pid, burst_time=burst, arrival_time=arrival)]
        self.engine.configure(candidate, self.engine.policy, self.engine.quantum)
        self.processes = candidate
        print(Fore.CYAN + f"Process {pid} added: burst={burst}, arrival={arrival}")

    def _clear(self, args: List[str]) -> None:
        self.processes = []
        self.engine.configure([], self.engine.policy, self.engine.quantum)
        print("Process list cleared")

    def _list(self, args: List[str]) -> None:
        if not self.processes:
            print("No processes yet")
            return
        for p in self.processes:
            print(f"P{p.pid}: burst={p.burst_time}, arrival={p.arrival_time}, "
                  f"remaining={p.remaining_time:.2f}, state={p.state.value}")

    def _policy(self, args: List[str]) -> None:
        if not args:
            print(f"Current policy: {self.engine.policy.title} (quantum={self.engine.quantum:g})")
            return
        quantum = None
        if "--quantum" in args:
            idx = args.index("--quantum")
            try:
                quantum = float(args[idx + 1])
            except (IndexError, ValueError):
                print(Fore.RED + "Usage: policy <name> --quantum <Q>")
                return
        self.engine.set_policy(args[0], quantum)
        print(Fore.CYAN + f"Policy set to {self.engine.policy.title}")

    def _explain(self, args: List[str]) -> None:
        print(self.engine.explain())

    def _run(self, args: List[str]) -> None:
        tick = self.config.tick
        out_path: Optional[str] = None
        it = iter(args)
        for token in it:
            if token == "--tick":
                try:
                    tick = float(next(it))
                except (TypeError, ValueError, StopIteration):
                    print(Fore.RED + "Usage: run --tick <T>")
                    return
            elif token == "--out":
                out_path = next(it, None)

        if self.engine.completed:
            self.engine.reset()
        for event in self.engine.run(tick):
            if isinstance(event, ProcessStarted):
                print(Fore.GREEN + f"[{event.time:6.2f}] P{event.pid} started")
            elif isinstance(event, ProcessCompleted):
                print(Fore.CYAN + f"[{event.time:6.2f}] P{event.pid} completed")
            elif isinstance(event, ContextSwitch):
                src = "-" if event.from_pid is None else f"P{event.from_pid}"
                print(Fore.MAGENTA + f"[{event.time:6.2f}] context switch {src} -> P{event.to_pid}")
            elif isinstance(event, Idle):
                print(Fore.WHITE + f"[{event.time:6.2f}] idle until {event.until:.2f}")

        report = self.engine.compute_metrics()
        print(Style.BRIGHT + f"Simulation finished. Avg waiting: {report.avg_waiting_time:.2f}, "
                             f"Avg turnaround: {report.avg_turnaround_time:.2f}")
        if out_path:
            plot_gantt(self.engine.processes, self.engine.logger, out_path)
            print(Fore.CYAN + f"Saved plot to {out_path}")

    def _stats(self, args: List[str]) -> None:
        if not self.engine.completed:
            print("No completed simulation yet")
            return
        print(self.engine.compute_metrics().format())

    def _reset(self, args: List[str]) -> None:
        self.engine.reset()
        print("Simulation reset")

    # mutex commands

    def _slot(self, args: List[str]) -> Optional[int]:
        if not args:
            print(Fore.RED + "Missing slot")
            return None
        token = args[0].strip()
        if len(token) == 1 and token.isalpha():
            return ord(token.upper()) - ord("A")
        try:
            return int(token)
        except ValueError:
            print(Fore.RED + f"Invalid slot: {token}")
            return None

    def _request(self, args: List[str]) -> None:
        slot = self._slot(args)
        if slot is not None:
            self.arbiter.request(slot)
            self._status([])

    def _release(self, args: List[str]) -> None:
        slot = self._slot(args)
        if slot is not None:
            self.arbiter.release(slot)
            self._status([])

    def _auto(self, args: List[str]) -> None:
        enabled = None
        if args:
            enabled = args[0].lower() in ("on", "1", "true", "start")
        state = self.arbiter.toggle_automatic(enabled)
        print(Fore.CYAN + ("Automatic simulation started" if state else "Automatic simulation stopped"))

    def _tick(self, args: List[str]) -> None:
        try:
            dt = float(args[0]) if args else 1.0
        except ValueError:
            print(Fore.RED + "Usage: tick <dt>")
            return
        self.arbiter.tick(dt)
        self._status([])

    def _pause(self, args: List[str]) -> None:
        paused = self.arbiter.toggle_pause()
        print("Paused" if paused else "Resumed")

    def _status(self, args: List[str]) -> None:
        status = self.arbiter.status()
        header, *lines = status.describe()
        print((Fore.GREEN if status.is_free else Fore.RED) + header)
        for state, line in zip(status.slots, lines):
            print(_SLOT_COLORS[state] + line)

    def _mutex_reset(self, args: List[str]) -> None:
        self.arbiter.reset()
        self._status([])


def main() -> None:
    ManualTerminal().prompt()


if __name__ == "__main__":
    main()
