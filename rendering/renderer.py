from __future__ import annotations

import ctypes
import logging
from typing import Optional, Tuple

import glfw
import numpy as np
from OpenGL import GL

from interaction.router import InputRouter
from swarm.engine import GlyphEngine
from swarm.modes import ModeSnapshot
from ui.hud import ActionBadge, HUDOverlay, compose
from utils.config import RenderConfig, SharedState
from utils.fps import FPSCounter

logger = logging.getLogger(__name__)


class WindowHost:
    """GLFW window presenting the particle raster as a full-screen textured quad.

    Runs on the calling thread: GLFW callbacks, scheduler timers and the
    engine frame step all execute inside :meth:`run`'s loop.
    """

    def __init__(
        self,
        config: RenderConfig,
        engine: GlyphEngine,
        router: InputRouter,
        badge: ActionBadge,
        overlay: HUDOverlay,
        shared_state: Optional[SharedState] = None,
    ) -> None:
        self._config = config
        self._engine = engine
        self._router = router
        self._badge = badge
        self._overlay = overlay
        self._state = shared_state
        self._window = None
        self._quad_program = None
        self._quad_vao: Optional[int] = None
        self._texture: Optional[int] = None
        self._texture_size: Optional[Tuple[int, int]] = None
        self._stop_requested = False

    def stop(self) -> None:
        self._stop_requested = True
        if self._state is not None:
            self._state.request_shutdown()

    def run(self) -> None:
        if not glfw.init():
            raise RuntimeError("Failed to initialize GLFW. Ensure a valid OpenGL context is available.")
        glfw.window_hint(glfw.SAMPLES, 4)
        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, glfw.TRUE)
        glfw.window_hint(glfw.RESIZABLE, glfw.TRUE if self._config.resizable else glfw.FALSE)
        self._window = glfw.create_window(
            self._config.window_width,
            self._config.window_height,
            self._config.title,
            None,
            None,
        )
        if not self._window:
            glfw.terminate()
            raise RuntimeError("Unable to create GLFW window.")
        glfw.make_context_current(self._window)
        glfw.set_cursor_pos_callback(self._window, self._on_cursor_pos)
        glfw.set_mouse_button_callback(self._window, self._on_mouse_button)
        glfw.set_cursor_enter_callback(self._window, self._on_cursor_enter)
        glfw.set_key_callback(self._window, self._on_key)
        glfw.set_window_size_callback(self._window, self._on_window_size)
        glfw.swap_interval(self._config.swap_interval)

        try:
            self._quad_program = self._build_program_from_source(_QUAD_VERT, _QUAD_FRAG)
            self._setup_quad()
            self._engine.add_listener(self._on_mode_change)
            width, height = glfw.get_window_size(self._window)
            self._engine.start(width, height)
            scheduler = self._engine.scheduler
            fps = FPSCounter()
            announced = False

            while not glfw.window_should_close(self._window) and not self._stop_requested:
                glfw.poll_events()
                self._consume_hand()
                scheduler.run_due()
                scheduler.run_frame()
                frame = compose(self._engine, self._badge, self._overlay, fps.fps)
                self._present(frame)
                glfw.swap_buffers(self._window)
                fps.tick()
                if not announced:
                    # Glyph rasterization only depends on built-in fonts, ready once a frame is up.
                    self._engine.notify_assets_ready()
                    announced = True
        finally:
            self._router.close()
            self._engine.stop()
            if self._state is not None:
                self._state.request_shutdown()
            glfw.terminate()

    def _consume_hand(self) -> None:
        if self._state is None:
            return
        fresh, sample = self._state.consume()
        if not fresh:
            return
        if sample is None:
            self._router.hand_lost()
            return
        surface = self._engine.surface
        self._router.hand_update(sample.x * surface.width, sample.y * surface.height, sample.pinched)

    def _setup_quad(self) -> None:
        quad_vertices = np.array(
            [
                -1.0, -1.0, 0.0, 0.0,
                1.0, -1.0, 1.0, 0.0,
                -1.0, 1.0, 0.0, 1.0,
                1.0, 1.0, 1.0, 1.0,
            ],
            dtype=np.float32,
        )
        self._quad_vao = GL.glGenVertexArrays(1)
        quad_vbo = GL.glGenBuffers(1)
        GL.glBindVertexArray(self._quad_vao)
        GL.glBindBuffer(GL.GL_ARRAY_BUFFER, quad_vbo)
        GL.glBufferData(GL.GL_ARRAY_BUFFER, quad_vertices.nbytes, quad_vertices, GL.GL_STATIC_DRAW)
        stride = 4 * quad_vertices.itemsize
        GL.glEnableVertexAttribArray(0)
        GL.glVertexAttribPointer(0, 2, GL.GL_FLOAT, GL.GL_FALSE, stride, ctypes.c_void_p(0))
        GL.glEnableVertexAttribArray(1)
        GL.glVertexAttribPointer(1, 2, GL.GL_FLOAT, GL.GL_FALSE, stride, ctypes.c_void_p(8))
        self._texture = GL.glGenTextures(1)
        GL.glBindTexture(GL.GL_TEXTURE_2D, self._texture)
        GL.glTexParameteri(GL.GL_TEXTURE_2D, GL.GL_TEXTURE_MIN_FILTER, GL.GL_LINEAR)
        GL.glTexParameteri(GL.GL_TEXTURE_2D, GL.GL_TEXTURE_MAG_FILTER, GL.GL_LINEAR)
        GL.glTexParameteri(GL.GL_TEXTURE_2D, GL.GL_TEXTURE_WRAP_S, GL.GL_CLAMP_TO_EDGE)
        GL.glTexParameteri(GL.GL_TEXTURE_2D, GL.GL_TEXTURE_WRAP_T, GL.GL_CLAMP_TO_EDGE)
        GL.glPixelStorei(GL.GL_UNPACK_ALIGNMENT, 1)
        GL.glUseProgram(self._quad_program)
        GL.glUniform1i(GL.glGetUniformLocation(self._quad_program, "uFrame"), 0)

    def _present(self, frame_rgb: np.ndarray) -> None:
        fb_width, fb_height = glfw.get_framebuffer_size(self._window)
        GL.glViewport(0, 0, fb_width, fb_height)
        GL.glClearColor(0.0, 0.0, 0.0, 1.0)
        GL.glClear(GL.GL_COLOR_BUFFER_BIT)
        h, w = frame_rgb.shape[:2]
        if w == 0 or h == 0:
            return
        GL.glActiveTexture(GL.GL_TEXTURE0)
        GL.glBindTexture(GL.GL_TEXTURE_2D, self._texture)
        if self._texture_size != (w, h):
            GL.glTexImage2D(GL.GL_TEXTURE_2D, 0, GL.GL_RGB, w, h, 0, GL.GL_RGB, GL.GL_UNSIGNED_BYTE, frame_rgb)
            self._texture_size = (w, h)
        else:
            GL.glTexSubImage2D(GL.GL_TEXTURE_2D, 0, 0, 0, w, h, GL.GL_RGB, GL.GL_UNSIGNED_BYTE, frame_rgb)
        GL.glUseProgram(self._quad_program)
        GL.glBindVertexArray(self._quad_vao)
        GL.glDrawArrays(GL.GL_TRIANGLE_STRIP, 0, 4)

    def _build_program_from_source(self, vert_src: str, frag_src: str) -> int:
        vertex_shader = GL.glCreateShader(GL.GL_VERTEX_SHADER)
        GL.glShaderSource(vertex_shader, vert_src)
        GL.glCompileShader(vertex_shader)
        self._assert_shader(vertex_shader)
        fragment_shader = GL.glCreateShader(GL.GL_FRAGMENT_SHADER)
        GL.glShaderSource(fragment_shader, frag_src)
        GL.glCompileShader(fragment_shader)
        self._assert_shader(fragment_shader)
        program = GL.glCreateProgram()
        GL.glAttachShader(program, vertex_shader)
        GL.glAttachShader(program, fragment_shader)
        GL.glLinkProgram(program)
        self._assert_program(program)
        GL.glDeleteShader(vertex_shader)
        GL.glDeleteShader(fragment_shader)
        return program

    def _assert_shader(self, shader: int) -> None:
        status = GL.glGetShaderiv(shader, GL.GL_COMPILE_STATUS)
        if status != GL.GL_TRUE:
            log = GL.glGetShaderInfoLog(shader).decode()
            raise RuntimeError(f"Shader compilation failed: {log}")

    def _assert_program(self, program: int) -> None:
        status = GL.glGetProgramiv(program, GL.GL_LINK_STATUS)
        if status != GL.GL_TRUE:
            log = GL.glGetProgramInfoLog(program).decode()
            raise RuntimeError(f"Program link failed: {log}")

    # GLFW callbacks, window coordinates match surface coordinates

    def _on_cursor_pos(self, window, x, y) -> None:  # pragma: no cover - GLFW callback
        self._router.pointer_move(x, y)

    def _on_mouse_button(self, window, button, action, mods) -> None:  # pragma: no cover - GLFW callback
        if button != glfw.MOUSE_BUTTON_LEFT:
            return
        x, y = glfw.get_cursor_pos(window)
        if action == glfw.PRESS:
            self._router.pointer_down(x, y)
        elif action == glfw.RELEASE:
            self._router.pointer_up()
            self._router.click(x, y)

    def _on_cursor_enter(self, window, entered) -> None:  # pragma: no cover - GLFW callback
        if not entered:
            self._router.pointer_leave()

    def _on_window_size(self, window, width, height) -> None:  # pragma: no cover - GLFW callback
        logger.debug("Window resized to %dx%d", width, height)
        self._engine.resize(width, height)

    def _on_mode_change(self, snapshot: ModeSnapshot) -> None:
        if self._window is not None:
            glfw.set_window_title(self._window, f"{self._config.title} [{snapshot.mode.value}]")

    def _on_key(self, window, key, scancode, action, mods) -> None:  # pragma: no cover - GLFW callback
        if action != glfw.PRESS:
            return
        if key == glfw.KEY_ESCAPE:
            self.stop()
            glfw.set_window_should_close(window, True)
            return
        name = glfw.get_key_name(key, scancode)
        if name:
            self._router.key_press(name)


_QUAD_VERT = """
#version 330 core
layout(location = 0) in vec2 in_position;
layout(location = 1) in vec2 in_uv;
out vec2 v_uv;
void main() {
    v_uv = vec2(in_uv.x, 1.0 - in_uv.y);
    gl_Position = vec4(in_position, 0.0, 1.0);
}
"""

_QUAD_FRAG = """
#version 330 core
in vec2 v_uv;
out vec4 fragColor;
uniform sampler2D uFrame;
void main() {
    fragColor = vec4(texture(uFrame, v_uv).rgb, 1.0);
}
"""
