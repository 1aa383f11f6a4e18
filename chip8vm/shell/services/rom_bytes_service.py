"""
ROM loading service.

Responsibilities:
  - Read CHIP-8 program images (``.ch8``, ``.c8``, ``.rom``) from disk.
  - Reject images that cannot fit between 0x200 and the end of memory
    before a machine is ever built.
  - Describe a ROM for the ``--info`` command-line mode.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from chip8vm.core.decoder import decode, disassemble
from chip8vm.core.errors import CartridgeTooLargeError
from chip8vm.core.memory import PROGRAM_CAPACITY, PROGRAM_START
from chip8vm.core.types import Op

# Extensions commonly used for CHIP-8 programs.
KNOWN_EXTENSIONS: frozenset[str] = frozenset({".ch8", ".c8", ".rom", ".bin"})

# Number of leading instructions shown by describe().
_PREVIEW_INSTRUCTIONS: int = 4


@dataclass(frozen=True)
class RomInfo:
    """Summary of a ROM file."""

    title: str
    path: str
    rom_size: int
    capacity: int
    unknown_words: int
    preview: tuple[str, ...]

    def as_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "rom_size": f"{self.rom_size} bytes",
            "free_memory": f"{self.capacity - self.rom_size} bytes",
            "undecodable_words": str(self.unknown_words),
            "first_instructions": "; ".join(self.preview),
        }


class RomBytesService:
    """Static utility for loading ROM files."""

    @staticmethod
    def read(path: str) -> bytes:
        """Read the program image at *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            CartridgeTooLargeError: If the image exceeds the 3584 bytes
                available from 0x200.
            OSError: On general I/O failure.
        """
        with open(path, "rb") as fh:
            data = fh.read()
        if len(data) > PROGRAM_CAPACITY:
            raise CartridgeTooLargeError(len(data), PROGRAM_CAPACITY)
        return data

    @staticmethod
    def has_known_extension(path: str) -> bool:
        return os.path.splitext(path)[1].lower() in KNOWN_EXTENSIONS

    @staticmethod
    def describe(path: str) -> RomInfo:
        """Return a :class:`RomInfo` for the ROM at *path*.

        Counts the even-aligned words that do not decode to a known opcode;
        sprite data embedded in a program shows up here too, so this is a
        rough hint rather than a validity check.
        """
        data = RomBytesService.read(path)
        words = [
            (data[k] << 8) | data[k + 1] for k in range(0, len(data) - 1, 2)
        ]
        decoded = [decode(word) for word in words]
        unknown = sum(1 for ins in decoded if ins.op == Op.UNKNOWN)
        preview = tuple(
            f"{PROGRAM_START + 2 * k:03X}: {disassemble(ins)}"
            for k, ins in enumerate(decoded[:_PREVIEW_INSTRUCTIONS])
        )
        title = os.path.splitext(os.path.basename(path))[0]
        return RomInfo(
            title=title,
            path=path,
            rom_size=len(data),
            capacity=PROGRAM_CAPACITY,
            unknown_words=unknown,
            preview=preview,
        )
