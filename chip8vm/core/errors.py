"""
Fatal conditions raised by the CHIP-8 core.

Unknown opcodes are *not* errors: the CPU logs them, emits an event and
carries on.  Everything below signals a malformed or adversarial program and
propagates out of :meth:`Machine.tick`.
"""


class Chip8Error(RuntimeError):
    """Base class for all CHIP-8 VM faults."""


class StackOverflowError(Chip8Error, IndexError):
    """A CALL was executed with the call stack already at maximum depth."""


class StackUnderflowError(Chip8Error, IndexError):
    """A RET was executed with an empty call stack."""


class MemoryAccessError(Chip8Error, IndexError):
    """A memory access fell outside the 4 KB address space."""

    def __init__(self, address: int) -> None:
        super().__init__(f"memory access out of bounds: 0x{address:X}")
        self.address = address


class CartridgeTooLargeError(Chip8Error, ValueError):
    """A program image does not fit between 0x200 and the end of memory."""

    def __init__(self, size: int, capacity: int) -> None:
        super().__init__(f"program too large: {size} bytes, max {capacity}")
        self.size = size
        self.capacity = capacity
