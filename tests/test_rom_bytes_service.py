"""
Tests for ROM loading and machine creation.
"""

import pytest

from conftest import assemble

from chip8vm.core.errors import CartridgeTooLargeError
from chip8vm.core.memory import PROGRAM_CAPACITY
from chip8vm.core.quirks import Quirks
from chip8vm.shell.services import MachineFactory, RomBytesService


@pytest.fixture
def rom(tmp_path):
    path = tmp_path / "maze.ch8"
    path.write_bytes(assemble(0xA21E, 0xC201, 0x0123, 0x1200))
    return str(path)


# =============================================================================
#  ROM BYTES
# =============================================================================

def test_read_returns_bytes(rom):
    assert RomBytesService.read(rom)[:2] == b"\xA2\x1E"

def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RomBytesService.read(str(tmp_path / "missing.ch8"))

def test_read_oversized(tmp_path):
    path = tmp_path / "huge.ch8"
    path.write_bytes(bytes(PROGRAM_CAPACITY + 1))
    with pytest.raises(CartridgeTooLargeError):
        RomBytesService.read(str(path))

def test_known_extensions():
    assert RomBytesService.has_known_extension("pong.CH8")
    assert RomBytesService.has_known_extension("pong.c8")
    assert not RomBytesService.has_known_extension("pong.txt")

def test_describe(rom):
    info = RomBytesService.describe(rom)
    assert info.title == "maze"
    assert info.rom_size == 8
    assert info.unknown_words == 1
    assert info.preview[0] == "200: LD I, 0x21E"
    assert len(info.preview) == 4


# =============================================================================
#  MACHINE FACTORY
# =============================================================================

def test_factory_loads_program(rom):
    machine = MachineFactory.create(rom)
    assert machine.mem[0x200] == 0xA2
    assert machine.program_size == 8
    assert machine.cycles_per_tick == 9

def test_factory_quirk_names(rom):
    machine = MachineFactory.create(rom, quirks=["wrap_sprites"])
    assert machine.config.quirks == Quirks(wrap_sprites=True)
    assert machine.frame_buffer.wrap

def test_factory_rejects_unknown_quirk(rom):
    with pytest.raises(ValueError):
        MachineFactory.create(rom, quirks=["nope"])

def test_factory_seed_is_repeatable(rom):
    first = MachineFactory.create(rom, seed=7)
    second = MachineFactory.create(rom, seed=7)
    assert [first.random_byte() for _ in range(8)] == [second.random_byte() for _ in range(8)]

def test_factory_describe(rom):
    description = MachineFactory.describe(rom)
    assert description["title"] == "maze"
    assert description["rom_size"] == "8 bytes"
    assert description["undecodable_words"] == "1"
