"""
Shared helpers for the CHIP-8 test suite.

Usage:
  python -m pytest tests -v
"""

import os
import sys

import pytest

# Add the project root so ``chip8vm`` imports without an install.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chip8vm.core.machine import Machine
from chip8vm.core.quirks import MachineConfig, Quirks


def assemble(*words):
    """Pack 16-bit opcodes into a big-endian program image."""
    out = bytearray()
    for word in words:
        out += bytes([(word >> 8) & 0xFF, word & 0xFF])
    return bytes(out)


def make_machine(*words, clock_speed=540, tick_rate=60, quirks=None, random_byte=None):
    """Build a machine with *words* loaded at 0x200."""
    config = MachineConfig(
        clock_speed=clock_speed,
        tick_rate=tick_rate,
        quirks=quirks if quirks is not None else Quirks(),
    )
    machine = Machine(config, random_byte=random_byte or (lambda: 0))
    if words:
        machine.load_program(assemble(*words))
    return machine


def keys(*pressed):
    """Key-state query reporting exactly *pressed* as held."""
    held = set(pressed)
    return lambda key: key in held


@pytest.fixture
def machine():
    return make_machine()
