from __future__ import annotations

import argparse
import logging
import signal
import threading
import time
import webbrowser
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from interaction.router import InputRouter
from rendering.headless import HeadlessHost
from rendering.renderer import WindowHost
from swarm.engine import GlyphEngine
from swarm.timers import ManualClock, Scheduler
from ui.hud import ActionBadge, HUDOverlay
from utils.config import (
    EngineConfig,
    GestureConfig,
    HUDConfig,
    ModeConfig,
    PhysicsConfig,
    RenderConfig,
    SamplerConfig,
    SharedState,
    VisionConfig,
)

logger = logging.getLogger("glyph_swarm")


def _vision_loop(webcam, detector, classifier, shared_state: SharedState, stop_event: threading.Event) -> None:
    while not stop_event.is_set() and not shared_state.shutdown_requested():
        frame = webcam.get_frame()
        if frame is None:
            time.sleep(0.002)
            continue
        detection = detector.process(frame)
        shared_state.update(classifier.classify(detection))
    stop_event.set()


def _start_hand_tracking(shared_state: SharedState) -> Callable[[], None]:
    # Imported lazily so that runs without --hand never load MediaPipe.
    from camera.webcam import WebcamCapture
    from hand_tracking.detector import HandDetector
    from hand_tracking.gestures import PinchClassifier

    vision_cfg = VisionConfig()
    webcam = WebcamCapture(vision_cfg.width, vision_cfg.height, vision_cfg.camera_index)
    detector = HandDetector(vision_cfg)
    classifier = PinchClassifier(GestureConfig())
    stop_event = threading.Event()
    webcam.start()
    worker = threading.Thread(
        target=_vision_loop,
        args=(webcam, detector, classifier, shared_state, stop_event),
        name="hand-tracking",
        daemon=True,
    )
    worker.start()

    def _shutdown() -> None:
        stop_event.set()
        worker.join(timeout=1.0)
        webcam.stop()
        detector.close()

    return _shutdown


def build_app(
    sampler_cfg: SamplerConfig,
    hud_cfg: HUDConfig,
    engine_cfg: EngineConfig,
    scheduler: Scheduler,
    show_fps: bool = False,
    on_action: Optional[Callable[[], None]] = None,
) -> Tuple[GlyphEngine, InputRouter, ActionBadge, HUDOverlay]:
    mode_cfg = ModeConfig()
    engine = GlyphEngine(
        scheduler=scheduler,
        sampler_config=sampler_cfg,
        physics_config=PhysicsConfig(),
        mode_config=mode_cfg,
        config=engine_cfg,
    )
    badge = ActionBadge(hud_cfg)
    overlay = HUDOverlay(hud_cfg, show_fps=show_fps)
    router = InputRouter(
        engine,
        mode_cfg,
        action_hit=lambda x, y: badge.contains(x, y, engine.surface.width, engine.surface.height),
        on_action=on_action,
    )
    return engine, router, badge, overlay


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Glyph rendered as an interactive particle swarm.")
    parser.add_argument("--text", default=SamplerConfig.text, help="glyph text to sample")
    parser.add_argument("--max-particles", type=int, default=SamplerConfig.max_particles)
    parser.add_argument("--width", type=int, default=RenderConfig.window_width)
    parser.add_argument("--height", type=int, default=RenderConfig.window_height)
    parser.add_argument("--seed", type=int, default=None, help="seed shuffling and particle responsiveness")
    parser.add_argument("--hand", action="store_true", help="steer with a webcam-tracked fingertip, pinch to scatter")
    parser.add_argument("--show-fps", action="store_true")
    parser.add_argument("--headless", action="store_true", help="run without a window on a virtual clock")
    parser.add_argument("--frames", type=int, default=120, help="frames to run in headless mode")
    parser.add_argument("--press", type=float, nargs=2, metavar=("X", "Y"), help="hold contact at X Y (headless)")
    parser.add_argument("--toggle-at", type=int, default=None, metavar="FRAME", help="request a layout toggle (headless)")
    parser.add_argument("--output", type=Path, default=None, help="PNG path for the last headless frame")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def run(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sampler_cfg = replace(SamplerConfig(), text=args.text, max_particles=args.max_particles)
    engine_cfg = replace(EngineConfig(), seed=args.seed)
    render_cfg = replace(RenderConfig(), window_width=args.width, window_height=args.height)
    hud_cfg = HUDConfig()

    if args.headless:
        clock = ManualClock()
        engine, router, badge, overlay = build_app(sampler_cfg, hud_cfg, engine_cfg, Scheduler(clock))
        host = HeadlessHost(engine, router, badge, overlay, clock, render_cfg.frame_interval)
        press = tuple(args.press) if args.press else None
        host.run(args.width, args.height, args.frames, press=press, toggle_at=args.toggle_at, output=args.output)
        return

    engine, router, badge, overlay = build_app(
        sampler_cfg,
        hud_cfg,
        engine_cfg,
        Scheduler(),
        show_fps=args.show_fps,
        on_action=lambda: webbrowser.open(hud_cfg.action_url),
    )
    shared_state: Optional[SharedState] = SharedState() if args.hand else None
    cleanups: List[Callable[[], None]] = []
    if shared_state is not None:
        cleanups.append(_start_hand_tracking(shared_state))

    host = WindowHost(render_cfg, engine, router, badge, overlay, shared_state)

    def _handle_exit(signum, frame):  # pragma: no cover - signal handling
        host.stop()

    signal.signal(signal.SIGINT, _handle_exit)
    signal.signal(signal.SIGTERM, _handle_exit)

    try:
        host.run()
    finally:
        if shared_state is not None:
            shared_state.request_shutdown()
        for cleanup in cleanups:
            cleanup()


if __name__ == "__main__":
    run()
