"""
N-slot critical-section arbiter built on turn/flag arbitration.

All calls come from one driver in sequence, so the arbiter keeps no locks;
it only has to guarantee that at most one slot is ever inside the critical
section and that the recorded waiter is admitted on the next release.

Only one waiter is remembered at a time. A later request from a third slot
replaces the recorded waiter; the displaced slot keeps its flag raised (it is
still shown as waiting) but is not admitted until it requests again.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import logging
import math

from .errors import InvalidConfiguration, InvalidSlot
from .utils import EventLogger, slot_label

log = logging.getLogger(__name__)

FREE = -1
DEFAULT_SLOT_COUNT = 4
DEFAULT_SWITCH_INTERVAL = 4.0


class SlotState(Enum):
    IDLE = "Idle"
    WAITING = "Waiting..."
    IN_CRITICAL_SECTION = "In Critical Section"


@dataclass(frozen=True)
class ArbiterStatus:
    """Snapshot of the arbiter after a call, for rendering."""
    occupant: int
    waiter: int
    slots: Tuple[SlotState, ...]
    flags: Tuple[bool, ...]
    turn: int
    automatic: bool
    paused: bool

    @property
    def is_free(self) -> bool:
        return self.occupant == FREE

    def holders(self) -> List[int]:
        return [i for i, state in enumerate(self.slots) if state is SlotState.IN_CRITICAL_SECTION]

    def describe(self) -> List[str]:
        if self.is_free:
            lines = ["Critical Section: Free"]
        else:
            lines = [f"Critical Section: Process {slot_label(self.occupant)} is in"]
        for i, state in enumerate(self.slots):
            lines.append(f"Process {slot_label(i)}: {state.value}")
        return lines


class MutexArbiter:
    """Arbitrates one critical section between ``slot_count`` processes."""

    def __init__(self, slot_count: int = DEFAULT_SLOT_COUNT,
                 switch_interval: float = DEFAULT_SWITCH_INTERVAL,
                 logger: Optional[EventLogger] = None):
        if isinstance(slot_count, bool) or not isinstance(slot_count, int) or slot_count < 2:
            raise InvalidConfiguration(f"slot_count must be an integer >= 2, got {slot_count!r}")
        if not (isinstance(switch_interval, (int, float)) and switch_interval > 0
                and math.isfinite(switch_interval)):
            raise InvalidConfiguration(f"switch_interval must be positive, got {switch_interval!r}")
        self.slot_count = slot_count
        self.switch_interval = float(switch_interval)
        self.logger = logger if logger is not None else EventLogger()
        self.reset()

    def reset(self) -> None:
        """Return to the idle state; automatic mode is switched off."""
        self.flags: List[bool] = [False] * self.slot_count
        self.turn = 0
        self.occupant = FREE
        self.waiter = FREE
        self.automatic = False
        self.paused = False
        self.auto_timer = 0.0
        self.elapsed = 0.0
        self.logger.lock_events.clear()

    # requests

    def request(self, pid: int) -> ArbiterStatus:
        """Ask for the critical section on behalf of slot ``pid``.

        A free section admits immediately; a held one records ``pid`` as the
        waiter. A request from the current holder, or any request while
        paused, changes nothing.
        """
        self._check_slot(pid)
        if self.paused:
            log.debug("request from %s ignored while paused", slot_label(pid))
        elif self.occupant == FREE:
            self._enter(pid)
        elif self.occupant != pid:
            self.waiter = pid
            self.flags[pid] = True
            self._record(pid, "wait")
        return self.status()

    def release(self, pid: int) -> ArbiterStatus:
        """Leave the critical section; a recorded waiter is admitted at once.

        Calls from a slot that does not hold the section are ignored.
        """
        if pid != self.occupant or pid == FREE:
            return self.status()
        self.flags[pid] = False
        self.occupant = FREE
        self._record(pid, "exit")
        if self.waiter != FREE:
            self._enter(self.waiter)
        return self.status()

    def _enter(self, pid: int) -> None:
        self.flags[pid] = True
        # advisory only: yields priority to the next slot as the two-process protocol does
        self.turn = (pid + 1) % self.slot_count
        self.occupant = pid
        if self.waiter == pid:
            self.waiter = FREE
        self._record(pid, "enter")

    # automatic mode

    def toggle_automatic(self, enabled: Optional[bool] = None) -> bool:
        """Switch automatic cycling on/off (flip when ``enabled`` is None)."""
        self.automatic = (not self.automatic) if enabled is None else bool(enabled)
        if not self.automatic:
            self.auto_timer = 0.0
        log.debug("automatic mode %s", "on" if self.automatic else "off")
        return self.automatic

    def tick(self, dt: float) -> ArbiterStatus:
        """Advance the automatic-mode timer by ``dt``.

        Each time the switch interval is reached the holder releases and the
        next slot in A -> B -> C -> ... order requests, or slot A requests if
        the section is free. At most one switch happens per call.
        """
        if not (dt >= 0 and math.isfinite(dt)):
            raise InvalidConfiguration(f"dt must be a non-negative finite number, got {dt!r}")
        if self.paused:
            return self.status()
        self.elapsed += dt
        if not self.automatic:
            return self.status()
        self.auto_timer += dt
        if self.auto_timer >= self.switch_interval:
            self.auto_timer = 0.0
            if self.occupant == FREE:
                self.request(0)
            else:
                holder = self.occupant
                self.release(holder)
                self.request((holder + 1) % self.slot_count)
        return self.status()

    # pause

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    # status

    def slot_state(self, pid: int) -> SlotState:
        self._check_slot(pid)
        if self.occupant == pid:
            return SlotState.IN_CRITICAL_SECTION
        return SlotState.WAITING if self.flags[pid] else SlotState.IDLE

    def status(self) -> ArbiterStatus:
        return ArbiterStatus(
            occupant=self.occupant,
            waiter=self.waiter,
            slots=tuple(self.slot_state(i) for i in range(self.slot_count)),
            flags=tuple(self.flags),
            turn=self.turn,
            automatic=self.automatic,
            paused=self.paused,
        )

    def _check_slot(self, pid: int) -> None:
        if isinstance(pid, bool) or not isinstance(pid, int) or not 0 <= pid < self.slot_count:
            raise InvalidSlot(f"slot {pid!r} outside [0, {self.slot_count})")

    def _record(self, pid: int, event: str) -> None:
        log.debug("%s %s (occupant=%d waiter=%d)", slot_label(pid), event, self.occupant, self.waiter)
        self.logger.log_lock_event(self.elapsed, pid, event, self.occupant, self.waiter)
