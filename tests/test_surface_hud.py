"""
Tests for the raster surface, the action element and the overlay composition.
"""

import unittest

import numpy as np

from rendering.surface import RasterSurface, SurfaceError
from swarm.engine import GlyphEngine
from swarm.timers import ManualClock, Scheduler
from ui.hud import ActionBadge, HUDOverlay, compose
from utils.config import EngineConfig, HUDConfig


class TestRasterSurface(unittest.TestCase):
    def test_resize_clears(self):
        surface = RasterSurface(10, 8)
        surface.fill_rect((255, 255, 255))
        surface.resize(12, 6)
        self.assertEqual((surface.width, surface.height), (12, 6))
        self.assertEqual(int(surface.pixels.max()), 0)

    def test_readback_validation(self):
        with self.assertRaises(SurfaceError):
            RasterSurface(0, 0).read_alpha()
        surface = RasterSurface(10, 10)
        with self.assertRaises(SurfaceError):
            surface.read_alpha(5, 5, 10, 10)
        self.assertEqual(surface.read_alpha(2, 3, 4, 5).shape, (5, 4))

    def test_repeated_fade_decays_to_black(self):
        surface = RasterSurface(4, 4)
        surface.fill_rect((255, 255, 255))
        for _ in range(200):
            surface.fill_rect((0, 0, 0), 0.05)
        self.assertEqual(int(surface.pixels[..., :3].max()), 0)

    def test_small_discs_ignore_out_of_bounds(self):
        surface = RasterSurface(10, 10)
        centers = np.array([[2.4, 3.6], [-5.0, 2.0], [40.0, 40.0]])
        surface.fill_circles(centers, 0.9, (255, 255, 255), 1.0)
        self.assertEqual(int(surface.pixels[4, 2, 0]), 255)
        self.assertEqual(int(np.count_nonzero(surface.pixels[..., 0])), 1)

    def test_large_disc(self):
        surface = RasterSurface(20, 20)
        surface.fill_circles(np.array([[10.0, 10.0]]), 4.0, (255, 255, 255))
        self.assertEqual(int(surface.pixels[10, 10, 0]), 255)
        self.assertEqual(int(surface.pixels[0, 0, 0]), 0)

    def test_rgb_conversion(self):
        surface = RasterSurface(3, 2)
        surface.fill_rect((255, 0, 0))
        np.testing.assert_array_equal(surface.to_rgb()[0, 0], [0, 0, 255])
        self.assertEqual(RasterSurface(0, 0).to_rgb().shape, (0, 0, 3))


class TestActionBadge(unittest.TestCase):
    def test_hit_box_is_centred(self):
        badge = ActionBadge(HUDConfig())
        self.assertEqual(badge.bounds(800, 600), (320, 220, 480, 380))
        self.assertTrue(badge.contains(400, 300, 800, 600))
        self.assertFalse(badge.contains(10, 10, 800, 600))

    def test_fades_in_and_out(self):
        badge = ActionBadge(HUDConfig())
        frame = np.zeros((300, 400, 3), dtype=np.uint8)
        badge.draw(frame, visible=False, clickable=False)
        self.assertEqual(int(frame.max()), 0)
        for _ in range(10):
            badge.draw(frame, visible=True, clickable=True)
        self.assertEqual(badge.opacity, 1.0)
        self.assertGreater(int(frame.max()), 0)
        for _ in range(10):
            badge.draw(np.zeros_like(frame), visible=False, clickable=False)
        self.assertEqual(badge.opacity, 0.0)


class TestComposition(unittest.TestCase):
    def test_overlay_draws_hint(self):
        frame = np.zeros((200, 800, 3), dtype=np.uint8)
        HUDOverlay(HUDConfig()).apply(frame)
        self.assertGreater(int(frame.max()), 0)

    def test_compose_leaves_particle_surface_alone(self):
        engine = GlyphEngine(scheduler=Scheduler(ManualClock()), config=EngineConfig(seed=1))
        engine.start(400, 300)
        engine.request_toggle()
        engine.scheduler.run_frame()
        before = engine.surface.pixels.copy()
        badge = ActionBadge(HUDConfig())
        for _ in range(3):
            frame = compose(engine, badge, HUDOverlay(HUDConfig(), show_fps=True), fps=60.0)
        self.assertEqual(frame.shape, (300, 400, 3))
        np.testing.assert_array_equal(engine.surface.pixels, before)
        engine.stop()


if __name__ == "__main__":
    unittest.main()
