"""
Keypad state and the FX0A key-wait latch.

The VM knows nothing about physical keys; it only sees the sixteen logical
keys 0x0-0xF through a ``key_state(key) -> bool`` query supplied by the host
on every tick.

:class:`Keypad` is a ready-made source for that query.  It is
double-buffered: host code writes press / release events
into a staging buffer at any time, and :meth:`Keypad.capture` snapshots the
staging buffer once per tick so every cycle of that tick sees the same keys.

:class:`KeyWait` is the small state machine behind FX0A::

    RUNNING --FX0A--> WAITING(r) --key k pressed--> RUNNING (Vr = k)
                        |    ^
                        +----+  no key pressed: stall
"""

from __future__ import annotations

from typing import Callable, Optional

from chip8vm.core.types import KeyWaitState

KEY_COUNT: int = 16

KeyState = Callable[[int], bool]


def no_keys_pressed(key: int) -> bool:
    """Key-state query used when the host supplies none."""
    return False


class Keypad:
    """Double-buffered state of the 16 logical keys."""

    def __init__(self) -> None:
        self._next_state: list[bool] = [False] * KEY_COUNT
        self._state: list[bool] = [False] * KEY_COUNT

    # ------------------------------------------------------------------
    # Host-side input event injection (staging buffer)
    # ------------------------------------------------------------------

    def set_key(self, key: int, down: bool) -> None:
        """Record *key* as pressed (``down=True``) or released."""
        if 0 <= key < KEY_COUNT:
            self._next_state[key] = down

    def press(self, key: int) -> None:
        self.set_key(key, True)

    def release(self, key: int) -> None:
        self.set_key(key, False)

    def clear(self) -> None:
        """Release every key in the staging buffer."""
        for i in range(KEY_COUNT):
            self._next_state[i] = False

    # ------------------------------------------------------------------
    # Tick-boundary snapshot
    # ------------------------------------------------------------------

    def capture(self) -> None:
        """Copy the staging buffer to the captured buffer."""
        self._state[:] = self._next_state[:]

    # ------------------------------------------------------------------
    # Sampling (the VM reads from the *captured* buffer)
    # ------------------------------------------------------------------

    def is_pressed(self, key: int) -> bool:
        if key < 0 or key >= KEY_COUNT:
            return False
        return self._state[key]

    def pressed_keys(self) -> list[int]:
        return [k for k in range(KEY_COUNT) if self._state[k]]

    def __repr__(self) -> str:
        keys = ",".join(f"{k:X}" for k in self.pressed_keys())
        return f"Keypad(pressed=[{keys}])"


class KeyWait:
    """The FX0A latch: running, or waiting for a key to land in a register."""

    def __init__(self) -> None:
        self.state: KeyWaitState = KeyWaitState.RUNNING
        self.target: Optional[int] = None

    @property
    def waiting(self) -> bool:
        return self.state == KeyWaitState.WAITING

    def reset(self) -> None:
        self.state = KeyWaitState.RUNNING
        self.target = None

    def begin(self, register: int) -> None:
        self.state = KeyWaitState.WAITING
        self.target = register

    def poll(self, key_state: KeyState) -> Optional[int]:
        """Scan keys 0x0..0xF in order and return the first pressed one.

        When a key is found the latch is released back to RUNNING.  Returns
        ``None`` (and stays WAITING) if nothing is pressed.
        """
        for key in range(KEY_COUNT):
            if key_state(key):
                self.reset()
                return key
        return None

    def get_snapshot(self) -> dict:
        return {"state": int(self.state), "target": self.target}

    def restore_snapshot(self, snap: dict) -> None:
        self.state = KeyWaitState(snap["state"])
        self.target = snap["target"]

    def __repr__(self) -> str:
        if self.waiting:
            return f"KeyWait(WAITING V{self.target:X})"
        return "KeyWait(RUNNING)"
