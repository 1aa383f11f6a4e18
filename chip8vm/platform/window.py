"""
Main application window for the CHIP-8 VM.
Uses pygame to create a display, drive the emulation main loop, and
coordinate audio, video, and input subsystems.

Typical usage::

    from chip8vm.platform.window import Window

    machine = MachineFactory.create("pong.ch8")
    window = Window(machine, scale=10)
    window.run()
"""

from __future__ import annotations

import logging
import time

import pygame

from chip8vm.core.input_state import Keypad
from chip8vm.core.machine import Machine
from chip8vm.core.types import EventKind
from chip8vm.platform.audio import AudioDevice
from chip8vm.platform.input_handler import InputHandler
from chip8vm.shell.frame_renderer import FrameRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "CHIP-8"

# Minimum / maximum allowed display scale factors.
_MIN_SCALE: int = 1
_MAX_SCALE: int = 32


class Window:
    """Pygame window that owns the emulation main loop.

    Parameters
    ----------
    machine:
        A machine with a program loaded.
    scale:
        Integer scale factor applied to the native 64x32 resolution.
    enable_audio:
        Set to ``False`` to mute the buzzer entirely.
    title:
        Shown in the window caption, typically the ROM name.
    """

    def __init__(
        self,
        machine: Machine,
        scale: int = 10,
        *,
        enable_audio: bool = True,
        title: str = "",
    ) -> None:
        # ---- basic state -------------------------------------------------
        self._machine = machine
        self._scale: int = max(_MIN_SCALE, min(_MAX_SCALE, scale))
        self._running: bool = False
        self._paused: bool = False
        self._tick_rate: int = machine.config.tick_rate
        self._title: str = f"{_WINDOW_TITLE} - {title}" if title else _WINDOW_TITLE

        # ---- init pygame display -----------------------------------------
        if not pygame.get_init():
            pygame.init()
        if not pygame.joystick.get_init():
            pygame.joystick.init()

        self._frame_renderer: FrameRenderer = FrameRenderer(machine)
        self._display_width: int = self._frame_renderer.width * self._scale
        self._display_height: int = self._frame_renderer.height * self._scale

        self._screen: pygame.Surface = pygame.display.set_mode(
            (self._display_width, self._display_height),
            pygame.RESIZABLE,
        )
        pygame.display.set_caption(self._title)

        self._clock: pygame.time.Clock = pygame.time.Clock()

        # ---- subsystems --------------------------------------------------
        self._keypad: Keypad = Keypad()
        self._audio: AudioDevice = AudioDevice(enabled=enable_audio)
        self._input: InputHandler = InputHandler(self._keypad)

        # ---- performance counters ----------------------------------------
        self._tick_count: int = 0
        self._fps_update_time: float = 0.0
        self._fps_display: float = 0.0

        logger.info(
            "Window: %dx%d display (scale=%d, %d Hz, %d cycles/tick)",
            self._display_width,
            self._display_height,
            self._scale,
            self._tick_rate,
            machine.cycles_per_tick,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @paused.setter
    def paused(self, value: bool) -> None:
        self._paused = value
        self._update_caption()

    @property
    def fps(self) -> float:
        """The measured ticks-per-second (updated once per second)."""
        return self._fps_display

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Enter the main emulation loop.

        Blocks until the user closes the window or presses Escape.  Each
        iteration polls input, ticks the machine, updates the buzzer,
        redraws if the picture changed and throttles to the tick rate.

        Raises:
            Chip8Error: If the program faults; the window is closed first.
        """
        self._running = True
        self._fps_update_time = time.monotonic()
        self._tick_count = 0

        logger.info("Entering main loop (target %d Hz)", self._tick_rate)

        try:
            while self._running:
                self._tick()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._shutdown()

    # ------------------------------------------------------------------
    # Per-tick work
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        """Execute one iteration of the main loop."""
        # ---- input -------------------------------------------------------
        self._input.poll()
        if self._input.quit_requested:
            self._running = False
            return
        if self._input.take_pause_toggle():
            self.paused = not self._paused
            # Keys released while paused would otherwise stay held.
            self._input.clear_all()
        if self._input.take_reset_request():
            logger.info("Resetting machine")
            self._machine.reset()

        # ---- emulation ---------------------------------------------------
        if not self._paused:
            self._keypad.capture()
            events = self._machine.tick(self._keypad.is_pressed)
            for event in events:
                if event.kind == EventKind.UNKNOWN_OPCODE:
                    logger.debug("%s", event)
                else:
                    logger.debug("beep")
            self._audio.update(self._machine.sound_active)
        else:
            self._audio.update(False)

        # ---- video -------------------------------------------------------
        if self._machine.frame_buffer.dirty or self._screen.get_size() != (
            self._display_width,
            self._display_height,
        ):
            self._present()

        # ---- timing ------------------------------------------------------
        self._clock.tick(self._tick_rate)
        self._update_fps()

    def _present(self) -> None:
        surface = self._frame_renderer.render()
        current_size = self._screen.get_size()
        self._display_width, self._display_height = current_size
        scaled = pygame.transform.scale(surface, current_size)
        self._screen.blit(scaled, (0, 0))
        pygame.display.flip()

    # ------------------------------------------------------------------
    # FPS tracking
    # ------------------------------------------------------------------

    def _update_fps(self) -> None:
        """Update the displayed tick rate roughly once per second."""
        self._tick_count += 1
        now = time.monotonic()
        elapsed = now - self._fps_update_time
        if elapsed >= 1.0:
            self._fps_display = self._tick_count / elapsed
            self._tick_count = 0
            self._fps_update_time = now
            self._update_caption()

    def _update_caption(self) -> None:
        caption = f"{self._title}  [{self._fps_display:.1f} Hz]"
        if self._paused:
            caption += "  (paused)"
        pygame.display.set_caption(caption)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        """Clean up all subsystems."""
        logger.info("Shutting down")
        self._audio.shutdown()
        pygame.quit()
