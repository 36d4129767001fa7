"""
Tests for the cancellable scheduler and the TEXT/RING mode state machine.
"""

import unittest

import numpy as np

from swarm.layout import ring_layout
from swarm.modes import Mode, ModeStateMachine
from swarm.store import ParticleStore
from swarm.timers import ManualClock, Scheduler
from utils.config import ModeConfig


class TestScheduler(unittest.TestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.scheduler = Scheduler(self.clock)
        self.calls = []

    def test_timers_fire_in_deadline_order(self):
        self.scheduler.call_later(0.5, lambda: self.calls.append("b"))
        self.scheduler.call_later(0.1, lambda: self.calls.append("a"))
        self.scheduler.call_later(0.5, lambda: self.calls.append("c"))
        self.assertEqual(self.scheduler.run_due(), 0)
        self.clock.advance(0.2)
        self.scheduler.run_due()
        self.assertEqual(self.calls, ["a"])
        self.clock.advance(0.4)
        self.scheduler.run_due()
        self.assertEqual(self.calls, ["a", "b", "c"])

    def test_cancelled_timer_never_fires(self):
        handle = self.scheduler.call_later(0.1, lambda: self.calls.append("x"))
        handle.cancel()
        self.clock.advance(1.0)
        self.assertEqual(self.scheduler.run_due(), 0)
        self.assertEqual(self.calls, [])
        self.assertFalse(handle.pending)

    def test_cancelled_entries_do_not_pile_up(self):
        live = self.scheduler.call_later(1.0, lambda: self.calls.append("live"))
        for _ in range(100):
            self.scheduler.call_later(0.5, lambda: self.calls.append("dead")).cancel()
        self.assertEqual(self.scheduler.pending, 1)
        self.assertLessEqual(len(self.scheduler._queue), 18)
        self.clock.advance(1.0)
        self.assertEqual(self.scheduler.run_due(), 1)
        self.assertEqual(self.calls, ["live"])
        self.assertFalse(live.pending)
        self.assertEqual(self.scheduler.pending, 0)

    def test_frame_request_replaces_previous(self):
        first = self.scheduler.request_frame(lambda: self.calls.append(1))
        self.scheduler.request_frame(lambda: self.calls.append(2))
        self.assertTrue(first.cancelled)
        self.assertTrue(self.scheduler.run_frame())
        self.assertFalse(self.scheduler.run_frame())
        self.assertEqual(self.calls, [2])

    def test_cancel_all(self):
        self.scheduler.call_later(0.1, lambda: self.calls.append("t"))
        self.scheduler.request_frame(lambda: self.calls.append("f"))
        self.scheduler.cancel_all()
        self.clock.advance(1.0)
        self.scheduler.run_due()
        self.scheduler.run_frame()
        self.assertEqual(self.calls, [])
        self.assertEqual(self.scheduler.pending, 0)

    def test_manual_clock_is_monotonic(self):
        with self.assertRaises(ValueError):
            self.clock.advance(-1.0)


class TestModeStateMachine(unittest.TestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.scheduler = Scheduler(self.clock)
        self.store = ParticleStore()
        points = np.stack([np.arange(12) * 10.0 + 100.0, np.full(12, 250.0)], axis=1)
        self.store.populate(points, np.random.default_rng(0))
        self.config = ModeConfig()
        self.modes = ModeStateMachine(self.store, self.scheduler, self.config, bounds=lambda: (800, 600))
        self.snapshots = []
        self.modes.add_listener(self.snapshots.append)

    def advance(self, seconds):
        self.clock.advance(seconds)
        self.scheduler.run_due()

    def test_enter_ring_assigns_ring_targets(self):
        self.assertTrue(self.modes.toggle())
        self.assertIs(self.modes.mode, Mode.RING)
        np.testing.assert_allclose(self.store.rest, ring_layout((400.0, 300.0), 210.0, 12))
        self.assertTrue(self.modes.action_visible)
        self.assertFalse(self.modes.action_clickable)
        self.advance(0.59)
        self.assertFalse(self.modes.action_clickable)
        self.advance(0.02)
        self.assertTrue(self.modes.action_clickable)

    def test_enter_text_restores_text_targets(self):
        self.modes.toggle()
        self.advance(0.6)
        self.assertTrue(self.modes.toggle())
        self.assertIs(self.modes.mode, Mode.TEXT)
        np.testing.assert_array_equal(self.store.rest, self.store.text_targets)
        self.assertFalse(self.modes.action_visible)
        self.assertFalse(self.modes.action_clickable)

    def test_reentrant_toggle_is_ignored(self):
        self.assertTrue(self.modes.toggle())
        self.assertFalse(self.modes.toggle())
        self.advance(0.3)
        self.assertFalse(self.modes.toggle())
        self.assertIs(self.modes.mode, Mode.RING)
        self.assertTrue(self.modes.snapshot().transitioning)
        self.advance(0.31)
        self.assertFalse(self.modes.snapshot().transitioning)
        self.assertTrue(self.modes.toggle())
        self.assertIs(self.modes.mode, Mode.TEXT)

    def test_auto_revert_after_inactivity(self):
        self.modes.toggle()
        self.advance(4.9)
        self.assertIs(self.modes.mode, Mode.RING)
        self.advance(0.2)
        self.assertIs(self.modes.mode, Mode.TEXT)

    def test_activity_postpones_auto_revert(self):
        self.modes.toggle()
        self.advance(4.0)
        self.modes.note_activity()
        self.advance(4.0)
        self.assertIs(self.modes.mode, Mode.RING)
        self.advance(1.1)
        self.assertIs(self.modes.mode, Mode.TEXT)

    def test_repeated_activity_keeps_one_inactivity_timer(self):
        self.modes.toggle()
        for _ in range(1000):
            self.modes.note_activity()
        self.assertEqual(self.scheduler.pending, 3)
        self.assertLessEqual(len(self.scheduler._queue), 20)
        self.advance(4.9)
        self.assertIs(self.modes.mode, Mode.RING)
        self.advance(0.2)
        self.assertIs(self.modes.mode, Mode.TEXT)

    def test_activity_in_text_mode_schedules_nothing(self):
        self.modes.note_activity()
        self.assertEqual(self.scheduler.pending, 0)

    def test_leaving_ring_cancels_ring_timers(self):
        self.modes.toggle()
        self.advance(0.6)
        self.modes.toggle()
        # Only the cooldown release is left.
        self.assertEqual(self.scheduler.pending, 1)
        self.advance(10.0)
        self.assertIs(self.modes.mode, Mode.TEXT)
        self.assertFalse(self.modes.action_clickable)

    def test_force_text_skips_the_cooldown(self):
        self.modes.toggle()
        self.assertTrue(self.modes.force_text())
        self.assertIs(self.modes.mode, Mode.TEXT)
        self.assertFalse(self.modes.force_text())
        self.advance(0.6)
        self.assertFalse(self.modes.snapshot().transitioning)
        self.assertEqual(self.scheduler.pending, 0)

    def test_shutdown_silences_pending_timers(self):
        self.modes.toggle()
        count = len(self.snapshots)
        self.modes.shutdown()
        self.assertEqual(self.scheduler.pending, 0)
        self.advance(10.0)
        self.assertIs(self.modes.mode, Mode.RING)
        self.assertEqual(len(self.snapshots), count)
        self.assertFalse(self.modes.toggle())

    def test_listeners_see_each_change(self):
        self.modes.toggle()
        self.advance(0.6)
        modes = [s.mode for s in self.snapshots]
        self.assertEqual(modes[0], Mode.RING)
        self.assertTrue(any(s.action_clickable for s in self.snapshots))
        self.assertFalse(self.snapshots[-1].transitioning)

    def test_empty_store_can_still_toggle(self):
        modes = ModeStateMachine(ParticleStore(), self.scheduler, self.config, bounds=lambda: (800, 600))
        self.assertTrue(modes.toggle())
        self.assertIs(modes.mode, Mode.RING)


if __name__ == "__main__":
    unittest.main()
