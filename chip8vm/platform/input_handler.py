"""
Input handler for the CHIP-8 VM.
Maps keyboard keys and gamepad buttons to the 16 logical CHIP-8 keys.

Keyboard layout
---------------

The COSMAC VIP hex keypad is mapped onto the left side of a QWERTY
keyboard, row for row::

    Keypad          Keyboard
    1 2 3 C         1 2 3 4
    4 5 6 D         Q W E R
    7 8 9 E         A S D F
    A 0 B F         Z X C V

===================  ============================
Key                  Action
===================  ============================
P                    Pause / resume
F5                   Reset the machine
Escape               Quit
===================  ============================

When a pygame joystick / gamepad is connected, the D-pad maps to keys
2 / 8 / 4 / 6 (the usual CHIP-8 directions) and buttons 0 and 1 to key 5.
"""

from __future__ import annotations

import logging

import pygame

from chip8vm.core.input_state import Keypad

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Keyboard -> logical key
# ---------------------------------------------------------------------------

_KEY_MAP: dict[int, int] = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}

# Joystick hat (D-pad) directions -> logical keys.
# Hat values are (x, y) with x: -1=left, 1=right; y: -1=down, 1=up.
_HAT_MAP: dict[tuple[int, int], list[int]] = {
    (0,  1): [0x2],
    (0, -1): [0x8],
    (-1, 0): [0x4],
    (1,  0): [0x6],
    (-1,  1): [0x4, 0x2],
    (1,   1): [0x6, 0x2],
    (-1, -1): [0x4, 0x8],
    (1,  -1): [0x6, 0x8],
    (0,   0): [],  # centre -- release all
}

# Joystick button -> logical key.
_JOY_BUTTON_MAP: dict[int, int] = {
    0: 0x5,
    1: 0x5,
}


class InputHandler:
    """Translates pygame keyboard and joystick events into keypad state.

    Parameters
    ----------
    keypad:
        The :class:`~chip8vm.core.input_state.Keypad` whose staging buffer
        receives press / release events.
    """

    def __init__(self, keypad: Keypad) -> None:
        self._keypad = keypad
        self._quit_requested: bool = False
        self._pause_toggled: bool = False
        self._reset_requested: bool = False

        # Previous hat state for edge detection.
        self._prev_hat_keys: list[int] = []

        self._joysticks: list[pygame.joystick.Joystick] = []
        self._init_joysticks()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def take_pause_toggle(self) -> bool:
        """Return ``True`` once per press of the pause key."""
        toggled, self._pause_toggled = self._pause_toggled, False
        return toggled

    def take_reset_request(self) -> bool:
        """Return ``True`` once per press of the reset key."""
        requested, self._reset_requested = self._reset_requested, False
        return requested

    def poll(self) -> None:
        """Pump the pygame event queue and process all pending events.

        This should be called once at the top of each tick.
        """
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
            return

        if event.type == pygame.KEYDOWN:
            self._on_key_down(event)
        elif event.type == pygame.KEYUP:
            self._on_key_up(event)
        elif event.type == pygame.JOYHATMOTION:
            self._on_joy_hat(event)
        elif event.type == pygame.JOYBUTTONDOWN:
            self._on_joy_button(event, down=True)
        elif event.type == pygame.JOYBUTTONUP:
            self._on_joy_button(event, down=False)
        elif event.type in (pygame.JOYDEVICEADDED, pygame.JOYDEVICEREMOVED):
            self._init_joysticks()

    def clear_all(self) -> None:
        """Release all currently-held keys."""
        self._keypad.clear()
        self._prev_hat_keys.clear()

    # ------------------------------------------------------------------
    # Keyboard handlers
    # ------------------------------------------------------------------

    def _on_key_down(self, event: pygame.event.Event) -> None:
        key = event.key

        if key == pygame.K_ESCAPE:
            self._quit_requested = True
            return
        if key == pygame.K_p:
            self._pause_toggled = True
            return
        if key == pygame.K_F5:
            self._reset_requested = True
            return

        logical = _KEY_MAP.get(key)
        if logical is not None:
            self._keypad.press(logical)

    def _on_key_up(self, event: pygame.event.Event) -> None:
        logical = _KEY_MAP.get(event.key)
        if logical is not None:
            self._keypad.release(logical)

    # ------------------------------------------------------------------
    # Joystick handlers
    # ------------------------------------------------------------------

    def _on_joy_hat(self, event: pygame.event.Event) -> None:
        """Handle D-pad hat switch events."""
        new_keys = _HAT_MAP.get(event.value, [])

        for key in self._prev_hat_keys:
            if key not in new_keys:
                self._keypad.release(key)
        for key in new_keys:
            if key not in self._prev_hat_keys:
                self._keypad.press(key)

        self._prev_hat_keys = list(new_keys)

    def _on_joy_button(self, event: pygame.event.Event, *, down: bool) -> None:
        logical = _JOY_BUTTON_MAP.get(event.button)
        if logical is not None:
            self._keypad.set_key(logical, down)

    def _init_joysticks(self) -> None:
        self._joysticks = [
            pygame.joystick.Joystick(i) for i in range(pygame.joystick.get_count())
        ]
        for joy in self._joysticks:
            logger.info("Joystick connected: %s", joy.get_name())
