"""
Smoke tests for the headless host.
"""

import tempfile
import unittest
from pathlib import Path

import cv2

from interaction.router import InputRouter
from rendering.headless import HeadlessHost
from swarm.engine import GlyphEngine
from swarm.modes import Mode
from swarm.timers import ManualClock, Scheduler
from ui.hud import ActionBadge, HUDOverlay
from utils.config import EngineConfig, HUDConfig, ModeConfig


class TestHeadlessHost(unittest.TestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.engine = GlyphEngine(scheduler=Scheduler(self.clock), config=EngineConfig(seed=11))
        hud_cfg = HUDConfig()
        badge = ActionBadge(hud_cfg)
        self.router = InputRouter(
            self.engine,
            ModeConfig(),
            action_hit=lambda x, y: badge.contains(x, y, self.engine.surface.width, self.engine.surface.height),
        )
        self.host = HeadlessHost(self.engine, self.router, badge, HUDOverlay(hud_cfg), self.clock)

    def test_run_writes_last_frame(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "frames" / "last.png"
            frame = self.host.run(400, 300, frames=30, press=(200.0, 150.0), output=output)
            self.assertTrue(output.exists())
            written = cv2.imread(str(output))
            self.assertEqual(written.shape, (300, 400, 3))
        self.assertEqual(frame.shape, (300, 400, 3))
        self.assertGreater(int(frame.max()), 0)
        self.assertEqual(self.engine.frames, 30)
        self.assertFalse(self.engine.active)

    def test_scripted_toggle(self):
        self.host.run(400, 300, frames=20, toggle_at=5)
        self.assertIs(self.engine.mode, Mode.RING)
        self.assertGreater(self.engine.particle_count, 0)


if __name__ == "__main__":
    unittest.main()
