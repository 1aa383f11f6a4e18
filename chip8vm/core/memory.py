"""
Memory and call stack for the CHIP-8 VM.

Memory is a flat 4 KB address space.  The 16 built-in hexadecimal glyphs
(5 bytes each) live at :data:`FONT_START`; programs are loaded at
:data:`PROGRAM_START`.  Unlike a real bus, accesses outside 0x000-0xFFF are
not masked: they raise :class:`MemoryAccessError`.

The call stack holds return addresses for 2NNN / 00EE and is limited to
:data:`STACK_DEPTH` entries.
"""

from __future__ import annotations

from chip8vm.core.errors import (
    CartridgeTooLargeError,
    MemoryAccessError,
    StackOverflowError,
    StackUnderflowError,
)

MEMORY_SIZE: int = 0x1000
PROGRAM_START: int = 0x200
PROGRAM_CAPACITY: int = MEMORY_SIZE - PROGRAM_START
FONT_START: int = 0x000
GLYPH_SIZE: int = 5
STACK_DEPTH: int = 16

# fmt: off
FONT: bytes = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
# fmt: on

assert len(FONT) == 16 * GLYPH_SIZE


class Memory:
    """4096 bytes of RAM with the font preloaded."""

    def __init__(self) -> None:
        self._data: bytearray = bytearray(MEMORY_SIZE)
        self.reset()

    def reset(self) -> None:
        """Zero all memory and reload the font."""
        self._data[:] = bytes(MEMORY_SIZE)
        self._data[FONT_START:FONT_START + len(FONT)] = FONT

    def __len__(self) -> int:
        return MEMORY_SIZE

    def __getitem__(self, addr: int) -> int:
        if not 0 <= addr < MEMORY_SIZE:
            raise MemoryAccessError(addr)
        return self._data[addr]

    def __setitem__(self, addr: int, value: int) -> None:
        if not 0 <= addr < MEMORY_SIZE:
            raise MemoryAccessError(addr)
        self._data[addr] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Read a big-endian 16-bit word at *addr*."""
        return (self[addr] << 8) | self[addr + 1]

    def read_block(self, addr: int, length: int) -> bytes:
        """Return *length* bytes starting at *addr*.

        Raises:
            MemoryAccessError: If any byte of the block lies outside memory.
        """
        if length <= 0:
            return b""
        if addr < 0:
            raise MemoryAccessError(addr)
        end = addr + length
        if end > MEMORY_SIZE:
            raise MemoryAccessError(end - 1)
        return bytes(self._data[addr:end])

    def load(self, data: bytes, offset: int = PROGRAM_START) -> None:
        """Copy *data* verbatim into memory at *offset*.

        Nothing is written if the image does not fit.

        Raises:
            CartridgeTooLargeError: If ``offset + len(data)`` exceeds memory.
        """
        if offset + len(data) > MEMORY_SIZE:
            raise CartridgeTooLargeError(len(data), MEMORY_SIZE - offset)
        self._data[offset:offset + len(data)] = data

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        """Return an immutable copy of the memory contents."""
        return bytes(self._data)

    def restore_snapshot(self, data: bytes) -> None:
        """Restore memory contents from a previous snapshot.

        Raises:
            ValueError: If *data* is not exactly MEMORY_SIZE bytes.
        """
        if len(data) != MEMORY_SIZE:
            raise ValueError(
                f"Snapshot size mismatch: expected {MEMORY_SIZE}, got {len(data)}"
            )
        self._data[:] = data

    def __repr__(self) -> str:
        return f"Memory(size={MEMORY_SIZE})"


class CallStack:
    """Bounded stack of return addresses."""

    def __init__(self, depth: int = STACK_DEPTH) -> None:
        self.depth: int = depth
        self._frames: list[int] = []

    def reset(self) -> None:
        self._frames.clear()

    def push(self, address: int) -> None:
        if len(self._frames) >= self.depth:
            raise StackOverflowError(
                f"call stack overflow: depth {self.depth} exceeded calling from 0x{address:03X}"
            )
        self._frames.append(address)

    def pop(self) -> int:
        if not self._frames:
            raise StackUnderflowError("return with empty call stack")
        return self._frames.pop()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self):
        return iter(self._frames)

    def get_snapshot(self) -> list[int]:
        return list(self._frames)

    def restore_snapshot(self, frames: list[int]) -> None:
        if len(frames) > self.depth:
            raise ValueError(
                f"Snapshot stack depth {len(frames)} exceeds maximum {self.depth}"
            )
        self._frames = list(frames)

    def __repr__(self) -> str:
        frames = ", ".join(f"0x{a:03X}" for a in self._frames)
        return f"CallStack([{frames}])"
