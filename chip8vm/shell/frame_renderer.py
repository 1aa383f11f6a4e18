"""
Frame renderer for the CHIP-8 VM.
Converts the machine's boolean framebuffer into an RGB pygame Surface.

The core exposes the display as a ``(32, 64)`` numpy ``bool`` array.  This
module maps it through a two-entry colour look-up table (off / on) and
writes the result into a native-resolution pygame Surface, which the window
then scales to the display size.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
import pygame

from chip8vm.core.frame_buffer import HEIGHT, WIDTH

logger = logging.getLogger(__name__)

Colour = Tuple[int, int, int]

DEFAULT_OFF_COLOUR: Colour = (0x10, 0x10, 0x10)
DEFAULT_ON_COLOUR: Colour = (0xE0, 0xE0, 0xE0)


class FrameRenderer:
    """Convert a machine's framebuffer into a :class:`pygame.Surface`.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected attributes:

        * ``frame_buffer`` -- a :class:`~chip8vm.core.frame_buffer.FrameBuffer`
    off_colour, on_colour:
        RGB colours for unlit and lit pixels.
    """

    def __init__(
        self,
        machine: object,
        off_colour: Colour = DEFAULT_OFF_COLOUR,
        on_colour: Colour = DEFAULT_ON_COLOUR,
    ) -> None:
        self._machine = machine
        self._lut: np.ndarray = np.zeros((2, 3), dtype=np.uint8)
        self.set_colours(off_colour, on_colour)

        # Create the output surface (RGB, no alpha needed).
        self._surface: pygame.Surface = pygame.Surface((WIDTH, HEIGHT))

        logger.info("FrameRenderer: %dx%d native", WIDTH, HEIGHT)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return WIDTH

    @property
    def height(self) -> int:
        return HEIGHT

    @property
    def surface(self) -> pygame.Surface:
        """The internal pygame Surface (updated on each :meth:`render` call)."""
        return self._surface

    def set_colours(self, off_colour: Colour, on_colour: Colour) -> None:
        """Replace the off / on colours.

        Raises:
            ValueError: If a colour is not an RGB triple of bytes.
        """
        for colour in (off_colour, on_colour):
            if len(colour) != 3 or not all(0 <= c <= 255 for c in colour):
                raise ValueError(f"Colour must be an (R, G, B) byte triple, got {colour!r}")
        self._lut[0] = off_colour
        self._lut[1] = on_colour

    def rgb_array(self) -> np.ndarray:
        """Return the current frame as a ``(HEIGHT, WIDTH, 3)`` uint8 array."""
        pixels = self._machine.frame_buffer.pixels  # type: ignore[attr-defined]
        return self._lut[pixels.astype(np.uint8)]

    def render(self) -> pygame.Surface:
        """Render the current frame and return the surface.

        The same :class:`pygame.Surface` object is reused each frame to
        avoid allocation churn.  Clears the framebuffer's ``dirty`` flag.
        """
        rgb = self.rgb_array()
        # pygame surfarray expects (W, H, 3) -- transpose width and height.
        pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))
        self._machine.frame_buffer.dirty = False  # type: ignore[attr-defined]
        return self._surface
