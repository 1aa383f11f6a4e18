"""
Unit tests for the CHIP-8 instruction set.

Most tests poke registers directly and run a single decoded instruction
through ``CPU.execute`` so PC starts at 0x200 and nothing is fetched.
"""

import pytest

from conftest import keys, make_machine

from chip8vm.core.decoder import decode
from chip8vm.core.errors import MemoryAccessError
from chip8vm.core.quirks import Quirks


def run(machine, opcode, key_state=None):
    cpu = machine.cpu
    if key_state is not None:
        cpu._key_state = key_state
    cpu.execute(decode(opcode))
    return cpu


# =============================================================================
#  FLOW CONTROL
# =============================================================================

def test_jump(machine):
    assert run(machine, 0x1ABC).pc == 0xABC

def test_call_pushes_return_address(machine):
    cpu = machine.cpu
    cpu.pc = 0x202                  # as after fetching at 0x200
    run(machine, 0x2400)
    assert cpu.pc == 0x400
    assert list(machine.stack) == [0x202]

def test_call_then_return():
    m = make_machine(0x2206, 0x0000, 0x0000, 0x00EE)
    m.cycle()
    assert m.cpu.pc == 0x206
    m.cycle()
    assert m.cpu.pc == 0x202
    assert len(m.stack) == 0

def test_jump_v0_offset(machine):
    machine.cpu.v[0] = 0x10
    machine.cpu.v[2] = 0x40
    assert run(machine, 0xB234).pc == 0x244

def test_jump_uses_vx_quirk():
    m = make_machine(quirks=Quirks(jump_uses_vx=True))
    m.cpu.v[0] = 0x10
    m.cpu.v[2] = 0x40
    assert run(m, 0xB234).pc == 0x274


# =============================================================================
#  SKIPS
# =============================================================================

@pytest.mark.parametrize("opcode, vx, vy, skipped", [
    (0x3142, 0x42, 0, True),
    (0x3142, 0x41, 0, False),
    (0x4142, 0x42, 0, False),
    (0x4142, 0x41, 0, True),
    (0x5120, 0x33, 0x33, True),
    (0x5120, 0x33, 0x34, False),
    (0x9120, 0x33, 0x33, False),
    (0x9120, 0x33, 0x34, True),
])
def test_skips(machine, opcode, vx, vy, skipped):
    machine.cpu.v[1] = vx
    machine.cpu.v[2] = vy
    assert run(machine, opcode).pc == (0x202 if skipped else 0x200)

def test_skip_key_pressed(machine):
    machine.cpu.v[4] = 0xA
    assert run(machine, 0xE49E, keys(0xA)).pc == 0x202
    machine.cpu.pc = 0x200
    assert run(machine, 0xE49E, keys()).pc == 0x200

def test_skip_key_not_pressed(machine):
    machine.cpu.v[4] = 0xA
    assert run(machine, 0xE4A1, keys()).pc == 0x202
    machine.cpu.pc = 0x200
    assert run(machine, 0xE4A1, keys(0xA)).pc == 0x200

def test_skip_key_index_masked_to_nibble(machine):
    machine.cpu.v[4] = 0x1A
    assert run(machine, 0xE49E, keys(0xA)).pc == 0x202


# =============================================================================
#  LOADS AND ARITHMETIC
# =============================================================================

def test_load_immediate(machine):
    assert run(machine, 0x6A5C).v[0xA] == 0x5C

def test_add_immediate_wraps_and_leaves_vf(machine):
    machine.cpu.v[3] = 0xFF
    machine.cpu.v[0xF] = 0x77
    cpu = run(machine, 0x7302)
    assert cpu.v[3] == 0x01
    assert cpu.v[0xF] == 0x77

def test_register_copy(machine):
    machine.cpu.v[2] = 0x99
    assert run(machine, 0x8120).v[1] == 0x99

@pytest.mark.parametrize("opcode, expected", [
    (0x8121, 0b1110),
    (0x8122, 0b1000),
    (0x8123, 0b0110),
])
def test_logic_ops(machine, opcode, expected):
    machine.cpu.v[1] = 0b1100
    machine.cpu.v[2] = 0b1010
    machine.cpu.v[0xF] = 0x55
    cpu = run(machine, opcode)
    assert cpu.v[1] == expected
    assert cpu.v[0xF] == 0x55

def test_logic_resets_vf_quirk():
    m = make_machine(quirks=Quirks(logic_resets_vf=True))
    m.cpu.v[0xF] = 0x55
    assert run(m, 0x8121).v[0xF] == 0

def test_add_sub_subn_exhaustive(machine):
    """Every byte pair: 8XY4 carry, 8XY5 / 8XY7 not-borrow."""
    cpu = machine.cpu
    add, sub, subn = decode(0x8124), decode(0x8125), decode(0x8127)
    for a in range(256):
        for b in range(256):
            cpu.v[1], cpu.v[2] = a, b
            cpu.execute(add)
            assert (cpu.v[1], cpu.v[0xF]) == ((a + b) & 0xFF, int(a + b > 255))

            cpu.v[1], cpu.v[2] = a, b
            cpu.execute(sub)
            assert (cpu.v[1], cpu.v[0xF]) == ((a - b) & 0xFF, int(a >= b))

            cpu.v[1], cpu.v[2] = a, b
            cpu.execute(subn)
            assert (cpu.v[1], cpu.v[0xF]) == ((b - a) & 0xFF, int(b >= a))

def test_flag_written_after_result(machine):
    machine.cpu.v[0xF] = 0xFF
    machine.cpu.v[1] = 0x01
    assert run(machine, 0x8F14).v[0xF] == 1

def test_shift_right_uses_vx_by_default(machine):
    machine.cpu.v[1] = 0b0000_0101
    machine.cpu.v[2] = 0b1000_0000
    cpu = run(machine, 0x8126)
    assert cpu.v[1] == 0b0000_0010
    assert cpu.v[0xF] == 1

def test_shift_left_uses_vx_by_default(machine):
    machine.cpu.v[1] = 0b1000_0001
    machine.cpu.v[2] = 0
    cpu = run(machine, 0x812E)
    assert cpu.v[1] == 0b0000_0010
    assert cpu.v[0xF] == 1

def test_shift_flags_are_zero_or_one(machine):
    machine.cpu.v[1] = 0b0100_0000
    assert run(machine, 0x812E).v[0xF] == 0
    machine.cpu.v[1] = 0b0000_0010
    assert run(machine, 0x8126).v[0xF] == 0

def test_shift_uses_vy_quirk():
    m = make_machine(quirks=Quirks(shift_uses_vy=True))
    m.cpu.v[1] = 0
    m.cpu.v[2] = 0b0000_0011
    cpu = run(m, 0x8126)
    assert cpu.v[1] == 0b0000_0001
    assert cpu.v[0xF] == 1


# =============================================================================
#  INDEX REGISTER, RANDOM, TIMERS
# =============================================================================

def test_load_index(machine):
    assert run(machine, 0xA123).i == 0x123

def test_add_index(machine):
    machine.cpu.i = 0x100
    machine.cpu.v[5] = 0x20
    assert run(machine, 0xF51E).i == 0x120

def test_add_index_wraps_sixteen_bits(machine):
    machine.cpu.i = 0xFFFF
    machine.cpu.v[5] = 0x02
    assert run(machine, 0xF51E).i == 0x0001

def test_font_address(machine):
    machine.cpu.v[6] = 0xA
    assert run(machine, 0xF629).i == 0xA * 5

def test_random_masked():
    m = make_machine(random_byte=lambda: 0xAB)
    assert run(m, 0xC30F).v[3] == 0x0B

def test_timer_loads(machine):
    machine.cpu.v[1] = 30
    run(machine, 0xF115)
    run(machine, 0xF118)
    assert machine.timers.delay == 30
    assert machine.timers.sound == 30
    assert run(machine, 0xF207).v[2] == 30


# =============================================================================
#  MEMORY TRANSFERS
# =============================================================================

def test_bcd(machine):
    machine.cpu.v[2] = 234
    machine.cpu.i = 0x300
    run(machine, 0xF233)
    assert [machine.mem[0x300 + k] for k in range(3)] == [2, 3, 4]
    assert machine.cpu.i == 0x300

def test_bcd_small_value(machine):
    machine.cpu.v[2] = 7
    machine.cpu.i = 0x300
    run(machine, 0xF233)
    assert [machine.mem[0x300 + k] for k in range(3)] == [0, 0, 7]

def test_bcd_out_of_range_writes_nothing(machine):
    machine.cpu.v[2] = 234
    machine.cpu.i = 0xFFE
    with pytest.raises(MemoryAccessError):
        run(machine, 0xF233)
    assert machine.mem[0xFFE] == 0

def test_store_and_load_leave_index(machine):
    cpu = machine.cpu
    cpu.v[:4] = [1, 2, 3, 4]
    cpu.i = 0x400
    run(machine, 0xF355)
    assert machine.mem.read_block(0x400, 5) == bytes([1, 2, 3, 4, 0])
    assert cpu.i == 0x400

    cpu.v = [0] * 16
    run(machine, 0xF265)
    assert cpu.v[:4] == [1, 2, 3, 0]
    assert cpu.i == 0x400

def test_store_increments_index_quirk():
    m = make_machine(quirks=Quirks(load_store_increments_i=True))
    m.cpu.i = 0x400
    run(m, 0xF355)
    assert m.cpu.i == 0x404
    run(m, 0xF065)
    assert m.cpu.i == 0x405

def test_store_past_end_raises(machine):
    machine.cpu.i = 0xFFD
    with pytest.raises(MemoryAccessError):
        run(machine, 0xF555)


# =============================================================================
#  DRAWING
# =============================================================================

def test_draw_font_glyph(machine):
    machine.cpu.v[0] = 0
    machine.cpu.v[1] = 0
    run(machine, 0xF029)            # I -> glyph 0
    cpu = run(machine, 0xD015)
    assert cpu.v[0xF] == 0
    assert machine.frame_buffer.lit_count() == 14

def test_draw_twice_sets_collision(machine):
    run(machine, 0xD015)
    cpu = run(machine, 0xD015)
    assert cpu.v[0xF] == 1
    assert machine.frame_buffer.lit_count() == 0

def test_draw_reads_vf_coordinate_before_clearing_flag():
    m = make_machine(0x6F0A, 0x6100, 0xA2F0, 0xDF11, clock_speed=240)
    m.mem[0x2F0] = 0x80
    m.tick()
    lit = [(x, y) for y in range(32) for x in range(64) if m.frame_buffer[x, y]]
    assert lit == [(10, 0)]
    assert m.cpu.v[0xF] == 0

def test_draw_reads_vf_as_y_coordinate(machine):
    machine.cpu.v[0] = 3
    machine.cpu.v[0xF] = 7
    run(machine, 0xD0F1)            # I = 0: first row of glyph 0
    assert machine.frame_buffer[3, 7]
    assert not machine.frame_buffer[3, 0]
    assert machine.cpu.v[0xF] == 0

def test_draw_zero_rows_clears_flag(machine):
    machine.cpu.v[0xF] = 1
    assert run(machine, 0xD010).v[0xF] == 0

def test_draw_sprite_past_memory_raises(machine):
    machine.cpu.i = 0xFFE
    with pytest.raises(MemoryAccessError):
        run(machine, 0xD015)

def test_clear_screen(machine):
    run(machine, 0xD015)
    run(machine, 0x00E0)
    assert machine.frame_buffer.lit_count() == 0
