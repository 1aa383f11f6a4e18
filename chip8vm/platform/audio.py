"""
Audio output device for the CHIP-8 VM.
Uses pygame.mixer to sound the CHIP-8 buzzer.

CHIP-8 has a single tone that plays for as long as the sound timer is
nonzero.  The device synthesises one period-aligned block of a square
wave with numpy, wraps it in a ``pygame.mixer.Sound`` and loops it on a
dedicated channel while the machine reports ``sound_active``.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pygame

logger = logging.getLogger(__name__)

_SAMPLE_RATE: int = 44100
_MIXER_BUFFER_SAMPLES: int = 512

# Buzzer pitch and amplitude (fraction of full scale).
_TONE_HZ: int = 440
_VOLUME: float = 0.25


def square_wave(frequency: int, sample_rate: int, volume: float) -> np.ndarray:
    """Return one second's worth of signed 16-bit square wave samples,
    trimmed to a whole number of periods so it loops without a click."""
    period = sample_rate / frequency
    periods = max(1, int(sample_rate // period))
    length = int(round(periods * period))
    t = np.arange(length)
    amplitude = int(32767 * max(0.0, min(1.0, volume)))
    wave = np.where((t % period) < period / 2, amplitude, -amplitude)
    return wave.astype(np.int16)


class AudioDevice:
    """Play the buzzer while the sound timer runs.

    Parameters
    ----------
    enabled:
        Set to ``False`` to create the device in a silent / no-op mode.
    tone_hz:
        Buzzer frequency.
    """

    def __init__(self, *, enabled: bool = True, tone_hz: int = _TONE_HZ) -> None:
        self._enabled: bool = enabled
        self._tone_hz: int = tone_hz
        self._channel: Optional[pygame.mixer.Channel] = None
        self._tone: Optional[pygame.mixer.Sound] = None
        self._playing: bool = False

        if not self._enabled:
            logger.info("AudioDevice: disabled (silent mode)")
            return

        self._init_mixer()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def playing(self) -> bool:
        return self._playing

    def update(self, sound_active: bool) -> None:
        """Start or stop the tone to match the machine's sound timer.

        Call this once per tick, after ``machine.tick()``.
        """
        if not self._enabled or self._channel is None or self._tone is None:
            return
        if sound_active and not self._playing:
            self._channel.play(self._tone, loops=-1)
            self._playing = True
        elif not sound_active and self._playing:
            self._channel.stop()
            self._playing = False

    def shutdown(self) -> None:
        """Stop playback and release the mixer."""
        if self._channel is not None:
            self._channel.stop()
        self._playing = False
        if pygame.mixer.get_init():
            pygame.mixer.quit()
        self._channel = None
        self._tone = None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _init_mixer(self) -> None:
        try:
            pygame.mixer.init(
                frequency=_SAMPLE_RATE,
                size=-16,       # signed 16-bit
                channels=1,     # mono
                buffer=_MIXER_BUFFER_SAMPLES,
            )
        except pygame.error as exc:
            logger.error("AudioDevice: mixer init failed (%s); audio disabled", exc)
            self._enabled = False
            return

        frequency, _, channels = pygame.mixer.get_init()
        samples = square_wave(self._tone_hz, frequency, _VOLUME)
        if channels > 1:
            samples = np.repeat(samples[:, np.newaxis], channels, axis=1)
        self._tone = pygame.sndarray.make_sound(samples)
        self._channel = pygame.mixer.Channel(0)
        logger.info(
            "AudioDevice: %d Hz tone at %d Hz sample rate", self._tone_hz, frequency
        )
