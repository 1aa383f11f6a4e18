"""
Delay and sound timers.

Both are 8-bit counters that count down once per host tick (60 Hz), never
once per CPU cycle.  The sound timer reaching zero from one is reported to
the caller so the machine can emit a beep event.
"""

from __future__ import annotations


class Timers:
    def __init__(self) -> None:
        self.delay: int = 0
        self.sound: int = 0

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0

    def set_delay(self, value: int) -> None:
        self.delay = value & 0xFF

    def set_sound(self, value: int) -> None:
        self.sound = value & 0xFF

    @property
    def sound_active(self) -> bool:
        return self.sound > 0

    def tick(self) -> bool:
        """Count both timers down by one.

        Returns:
            ``True`` if the sound timer just went from 1 to 0.
        """
        if self.delay > 0:
            self.delay -= 1
        beep = False
        if self.sound > 0:
            beep = self.sound == 1
            self.sound -= 1
        return beep

    def get_snapshot(self) -> dict:
        return {"delay": self.delay, "sound": self.sound}

    def restore_snapshot(self, snap: dict) -> None:
        self.delay = snap["delay"] & 0xFF
        self.sound = snap["sound"] & 0xFF

    def __repr__(self) -> str:
        return f"Timers(delay={self.delay}, sound={self.sound})"
