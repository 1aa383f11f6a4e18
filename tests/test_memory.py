"""
Unit tests for memory, font and call stack.
"""

import pytest

from chip8vm.core.errors import (
    CartridgeTooLargeError,
    MemoryAccessError,
    StackOverflowError,
    StackUnderflowError,
)
from chip8vm.core.memory import (
    FONT,
    FONT_START,
    MEMORY_SIZE,
    PROGRAM_CAPACITY,
    PROGRAM_START,
    CallStack,
    Memory,
)


# =============================================================================
#  MEMORY
# =============================================================================

def test_font_preloaded_at_construction():
    """Glyph 0 sits at address 0 and all 16 glyphs follow it."""
    mem = Memory()
    assert [mem[a] for a in range(5)] == [0xF0, 0x90, 0x90, 0x90, 0xF0]
    assert mem.read_block(FONT_START, len(FONT)) == FONT

def test_rest_of_memory_zeroed():
    mem = Memory()
    assert mem.read_block(len(FONT), MEMORY_SIZE - len(FONT)) == bytes(MEMORY_SIZE - len(FONT))

def test_writes_masked_to_byte():
    mem = Memory()
    mem[0x300] = 0x1FF
    assert mem[0x300] == 0xFF

def test_out_of_bounds_access_raises():
    mem = Memory()
    with pytest.raises(MemoryAccessError):
        mem[0x1000]
    with pytest.raises(MemoryAccessError):
        mem[0x1000] = 1
    with pytest.raises(MemoryAccessError):
        mem[-1]

def test_read_word_is_big_endian():
    mem = Memory()
    mem[0x200] = 0xA2
    mem[0x201] = 0xF0
    assert mem.read_word(0x200) == 0xA2F0

def test_read_block_past_end_raises():
    mem = Memory()
    with pytest.raises(MemoryAccessError) as info:
        mem.read_block(0xFFE, 3)
    assert info.value.address == 0x1000

def test_read_block_zero_length_is_empty():
    assert Memory().read_block(0xFFF, 0) == b""

def test_load_writes_at_program_start():
    mem = Memory()
    mem.load(b"\x12\x34")
    assert mem[PROGRAM_START] == 0x12
    assert mem[PROGRAM_START + 1] == 0x34

def test_load_full_capacity_fits():
    mem = Memory()
    mem.load(bytes([0xAA]) * PROGRAM_CAPACITY)
    assert mem[MEMORY_SIZE - 1] == 0xAA

def test_oversized_load_rejected_without_writing():
    mem = Memory()
    with pytest.raises(CartridgeTooLargeError):
        mem.load(bytes([0xAA]) * (PROGRAM_CAPACITY + 1))
    assert mem[PROGRAM_START] == 0

def test_reset_restores_font_and_clears_program():
    mem = Memory()
    mem[0] = 0
    mem[0x200] = 0x55
    mem.reset()
    assert mem[0] == 0xF0
    assert mem[0x200] == 0

def test_snapshot_round_trip():
    mem = Memory()
    mem[0x345] = 0x67
    snap = mem.get_snapshot()
    mem[0x345] = 0
    mem.restore_snapshot(snap)
    assert mem[0x345] == 0x67

def test_snapshot_wrong_size_rejected():
    with pytest.raises(ValueError):
        Memory().restore_snapshot(b"\x00" * 10)


# =============================================================================
#  CALL STACK
# =============================================================================

def test_stack_push_pop_order():
    stack = CallStack()
    stack.push(0x202)
    stack.push(0x304)
    assert len(stack) == 2
    assert stack.pop() == 0x304
    assert stack.pop() == 0x202

def test_stack_holds_sixteen_then_overflows():
    stack = CallStack()
    for k in range(16):
        stack.push(0x200 + 2 * k)
    with pytest.raises(StackOverflowError):
        stack.push(0x300)
    assert len(stack) == 16

def test_stack_underflow():
    with pytest.raises(StackUnderflowError):
        CallStack().pop()

def test_stack_errors_are_index_errors():
    assert issubclass(StackOverflowError, IndexError)
    assert issubclass(StackUnderflowError, IndexError)

def test_stack_snapshot_too_deep_rejected():
    with pytest.raises(ValueError):
        CallStack().restore_snapshot([0x200] * 17)
