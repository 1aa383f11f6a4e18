# CHIP-8 emulation core
"""
The CHIP-8 virtual machine: memory, CPU, display, timers and input latch.

Use :class:`Machine <machine.Machine>` as the entry point::

    machine = Machine(MachineConfig(clock_speed=700))
    machine.load_program(rom_bytes)
    events = machine.tick(keypad.is_pressed)
"""

from chip8vm.core.errors import (
    CartridgeTooLargeError,
    Chip8Error,
    MemoryAccessError,
    StackOverflowError,
    StackUnderflowError,
)
from chip8vm.core.input_state import Keypad
from chip8vm.core.machine import Machine, random_byte_source
from chip8vm.core.quirks import MachineConfig, Quirks
from chip8vm.core.types import Event, EventKind

__all__ = [
    "Machine",
    "MachineConfig",
    "Quirks",
    "Keypad",
    "Event",
    "EventKind",
    "random_byte_source",
    # errors
    "Chip8Error",
    "CartridgeTooLargeError",
    "MemoryAccessError",
    "StackOverflowError",
    "StackUnderflowError",
]
