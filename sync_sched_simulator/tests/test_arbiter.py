"""
Tests for the critical-section arbiter.
"""

import random

import pytest

from ..backend.arbiter import FREE, MutexArbiter, SlotState
from ..backend.errors import InvalidConfiguration, InvalidSlot
from ..backend.simulator import simulate_automatic


@pytest.fixture
def arbiter():
    return MutexArbiter(slot_count=4, switch_interval=4.0)


def assert_exclusive(status):
    assert len(status.holders()) <= 1
    assert status.waiter == FREE or status.waiter != status.occupant


class TestRequestRelease:

    def test_request_free_section(self, arbiter):
        status = arbiter.request(0)
        assert status.occupant == 0
        assert status.flags[0] is True
        assert status.slots[0] is SlotState.IN_CRITICAL_SECTION
        assert status.turn == 1

    def test_request_while_held_records_waiter(self, arbiter):
        arbiter.request(0)
        status = arbiter.request(2)
        assert status.occupant == 0
        assert status.waiter == 2
        assert status.slots[2] is SlotState.WAITING

    def test_release_hands_off_to_waiter(self, arbiter):
        arbiter.request(1)
        arbiter.request(3)
        status = arbiter.release(1)
        assert status.occupant == 3
        assert status.waiter == FREE
        assert status.flags[1] is False
        assert status.flags[3] is True
        assert status.slots[1] is SlotState.IDLE

    def test_release_without_waiter_frees_section(self, arbiter):
        arbiter.request(0)
        status = arbiter.release(0)
        assert status.is_free
        assert status.slots == (SlotState.IDLE,) * 4

    def test_later_request_replaces_waiter(self, arbiter):
        arbiter.request(0)
        arbiter.request(1)
        arbiter.request(2)
        assert arbiter.waiter == 2
        status = arbiter.release(0)
        assert status.occupant == 2
        # displaced slot keeps its flag and still shows as waiting
        assert status.slots[1] is SlotState.WAITING
        assert status.waiter == FREE

    def test_holder_request_is_noop(self, arbiter):
        arbiter.request(0)
        arbiter.request(1)
        before = arbiter.status()
        assert arbiter.request(0) == before

    def test_release_by_non_holder_is_noop(self, arbiter):
        arbiter.request(0)
        arbiter.request(1)
        before = arbiter.status()
        assert arbiter.release(1) == before
        assert arbiter.release(3) == before
        assert arbiter.release(FREE) == before

    def test_release_on_free_section_is_noop(self, arbiter):
        assert arbiter.release(0) == MutexArbiter(4).status()

    @pytest.mark.parametrize("slot", [-1, 4, 10, True, "A"])
    def test_invalid_slot(self, arbiter, slot):
        with pytest.raises(InvalidSlot):
            arbiter.request(slot)

    @pytest.mark.parametrize("count", [0, 1, 2.5, "4"])
    def test_invalid_slot_count(self, count):
        with pytest.raises(InvalidConfiguration):
            MutexArbiter(slot_count=count)

    def test_invalid_interval(self):
        with pytest.raises(InvalidConfiguration):
            MutexArbiter(switch_interval=0)

    def test_waiter_admitted_on_next_release(self):
        for holder in range(4):
            for requester in range(4):
                if requester == holder:
                    continue
                arb = MutexArbiter(4)
                arb.request(holder)
                arb.request(requester)
                assert arb.release(holder).occupant == requester

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_mutual_exclusion_random_sequences(self, seed):
        rng = random.Random(seed)
        arb = MutexArbiter(slot_count=rng.randint(2, 6))
        for _ in range(500):
            slot = rng.randrange(arb.slot_count)
            op = rng.choice([arb.request, arb.release, arb.release])
            status = op(slot)
            assert_exclusive(status)
            if status.occupant != FREE:
                assert status.flags[status.occupant]


class TestAutomaticMode:

    def test_cycles_through_slots(self):
        trace = simulate_automatic(duration=40.0, dt=1.0, slot_count=4, switch_interval=4.0)
        assert trace.occupants() == [0, 1, 2, 3, 0, 1, 2, 3, 0, 1]
        for status in trace.statuses:
            assert_exclusive(status)

    def test_switches_at_fixed_interval(self, arbiter):
        arbiter.toggle_automatic(True)
        for _ in range(3):
            assert arbiter.tick(1.0).is_free
        assert arbiter.tick(1.0).occupant == 0
        for _ in range(3):
            assert arbiter.tick(1.0).occupant == 0
        assert arbiter.tick(1.0).occupant == 1

    def test_one_switch_per_tick(self, arbiter):
        arbiter.toggle_automatic(True)
        assert arbiter.tick(100.0).occupant == 0
        assert arbiter.auto_timer == 0.0

    @pytest.mark.parametrize("dt", [-1.0, float("nan"), float("inf")])
    def test_bad_dt_rejected(self, arbiter, dt):
        arbiter.toggle_automatic(True)
        with pytest.raises(InvalidConfiguration):
            arbiter.tick(dt)
        assert arbiter.auto_timer == 0.0
        assert arbiter.elapsed == 0.0

    def test_cycling_continues_after_rejected_dt(self, arbiter):
        arbiter.toggle_automatic(True)
        with pytest.raises(InvalidConfiguration):
            arbiter.tick(float("nan"))
        for _ in range(4):
            status = arbiter.tick(1.0)
        assert status.occupant == 0

    def test_disabled_mode_does_nothing(self, arbiter):
        for _ in range(20):
            assert arbiter.tick(1.0).is_free

    def test_toggle_without_argument_flips(self, arbiter):
        assert arbiter.toggle_automatic() is True
        arbiter.tick(2.0)
        assert arbiter.toggle_automatic() is False
        assert arbiter.auto_timer == 0.0

    def test_automatic_with_recorded_waiter(self, arbiter):
        arbiter.request(0)
        arbiter.request(2)
        arbiter.toggle_automatic(True)
        status = arbiter.tick(4.0)
        # the release hands off to the waiter; the cycling request then waits
        assert status.occupant == 2
        assert status.waiter == 1
        assert_exclusive(status)

    def test_manual_requests_during_automatic_mode(self):
        rng = random.Random(11)
        arb = MutexArbiter(4, switch_interval=2.0)
        arb.toggle_automatic(True)
        for _ in range(300):
            choice = rng.random()
            if choice < 0.3:
                status = arb.request(rng.randrange(4))
            elif choice < 0.5:
                status = arb.release(rng.randrange(4))
            else:
                status = arb.tick(0.5)
            assert_exclusive(status)


class TestPauseAndReset:

    def test_paused_requests_ignored(self, arbiter):
        arbiter.pause()
        assert arbiter.request(1).is_free
        assert arbiter.status().paused

    def test_paused_timer_frozen(self, arbiter):
        arbiter.toggle_automatic(True)
        arbiter.pause()
        for _ in range(10):
            assert arbiter.tick(1.0).is_free
        arbiter.resume()
        arbiter.tick(4.0)
        assert arbiter.occupant == 0

    def test_release_allowed_while_paused(self, arbiter):
        arbiter.request(0)
        assert arbiter.toggle_pause() is True
        assert arbiter.release(0).is_free

    def test_reset_matches_fresh_instance(self, arbiter):
        arbiter.request(0)
        arbiter.request(3)
        arbiter.toggle_automatic(True)
        arbiter.tick(1.5)
        arbiter.pause()
        arbiter.reset()
        fresh = MutexArbiter(slot_count=4, switch_interval=4.0)
        assert arbiter.status() == fresh.status()
        assert arbiter.auto_timer == 0.0
        assert arbiter.logger.lock_events == []

    def test_describe(self, arbiter):
        arbiter.request(0)
        arbiter.request(1)
        assert arbiter.status().describe() == [
            "Critical Section: Process A is in",
            "Process A: In Critical Section",
            "Process B: Waiting...",
            "Process C: Idle",
            "Process D: Idle",
        ]
        arbiter.reset()
        assert arbiter.status().describe()[0] == "Critical Section: Free"

    def test_lock_events_logged(self, arbiter):
        arbiter.request(0)
        arbiter.request(1)
        arbiter.release(0)
        assert [(e["slot"], e["event"]) for e in arbiter.logger.lock_events] == [
            (0, "enter"), (1, "wait"), (0, "exit"), (1, "enter"),
        ]
