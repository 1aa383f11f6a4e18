"""
FrameBuffer -- the CHIP-8 64x32 monochrome display.

The buffer is a numpy ``bool`` array of shape ``(HEIGHT, WIDTH)`` laid out
row-major: ``pixels[y, x]``.  Only two operations mutate it:

* :meth:`FrameBuffer.clear` -- every pixel off (00E0).
* :meth:`FrameBuffer.draw_sprite` -- XOR-blit an 8-pixel-wide sprite (DXYN).

Edge handling
-------------

By default pixels that fall outside the grid are clipped.  With ``wrap``
enabled they re-enter from the opposite edge.  Sprite origins are the raw
register values in both modes; they are never pre-wrapped.
"""

from __future__ import annotations

import numpy as np

WIDTH: int = 64
HEIGHT: int = 32
SPRITE_WIDTH: int = 8


class FrameBuffer:
    """Holds the 64x32 one-bit-per-pixel display.

    Parameters
    ----------
    wrap:
        When ``True`` sprite pixels that leave the screen wrap around
        instead of being clipped.
    """

    def __init__(self, wrap: bool = False) -> None:
        self.wrap: bool = wrap
        self._pixels: np.ndarray = np.zeros((HEIGHT, WIDTH), dtype=bool)
        # Set whenever the picture changes; the host clears it after drawing.
        self.dirty: bool = True

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def pixels(self) -> np.ndarray:
        """A read-only view of the pixel grid, indexed ``[y, x]``."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    def __getitem__(self, xy: tuple[int, int]) -> bool:
        x, y = xy
        return bool(self._pixels[y, x])

    def to_list(self) -> list[bool]:
        """Return all 2048 pixels as a flat row-major list."""
        return self._pixels.ravel().tolist()

    def lit_count(self) -> int:
        return int(np.count_nonzero(self._pixels))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels.fill(False)
        self.dirty = True

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """XOR *rows* onto the screen with the top-left corner at (*x*, *y*).

        Each byte of *rows* is one 8-pixel row, most significant bit on the
        left.

        Returns:
            ``True`` if any lit pixel was turned off (a collision).
        """
        collision = False
        pixels = self._pixels
        for r, row in enumerate(rows):
            py = y + r
            if self.wrap:
                py %= HEIGHT
            elif py >= HEIGHT:
                break
            for c in range(SPRITE_WIDTH):
                if not row & (0x80 >> c):
                    continue
                px = x + c
                if self.wrap:
                    px %= WIDTH
                elif px >= WIDTH:
                    break
                if pixels[py, px]:
                    collision = True
                pixels[py, px] = not pixels[py, px]
        if rows:
            self.dirty = True
        return collision

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        """Return the pixel grid packed 8 pixels per byte."""
        return np.packbits(self._pixels).tobytes()

    def restore_snapshot(self, data: bytes) -> None:
        expected = WIDTH * HEIGHT // 8
        if len(data) != expected:
            raise ValueError(
                f"Snapshot size mismatch: expected {expected}, got {len(data)}"
            )
        bits = np.unpackbits(np.frombuffer(data, dtype=np.uint8))
        self._pixels[:, :] = bits.reshape((HEIGHT, WIDTH)).astype(bool)
        self.dirty = True

    def __repr__(self) -> str:
        return f"FrameBuffer({WIDTH}x{HEIGHT}, lit={self.lit_count()}, wrap={self.wrap})"
