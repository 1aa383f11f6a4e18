"""
CHIP-8 instruction decoding.

:func:`decode` turns a raw 16-bit opcode into an :class:`Instruction` tagged
with an :class:`~chip8vm.core.types.Op`.  The top nibble selects the group;
groups 0, 5, 8, 9, E and F are further split on their low nibble or byte.
Anything that matches no known pattern decodes to ``Op.UNKNOWN`` and is left
to the CPU to report.
"""

from __future__ import annotations

from dataclasses import dataclass

from chip8vm.core.types import Op


@dataclass(frozen=True)
class Instruction:
    """Decoded CHIP-8 instruction with extracted operands."""

    op: Op
    raw: int
    x: int     # second nibble (VX register)
    y: int     # third nibble (VY register)
    n: int     # fourth nibble (4-bit immediate)
    nn: int    # low byte (8-bit immediate)
    nnn: int   # low 12 bits (address)

    def __str__(self) -> str:
        return disassemble(self)


_GROUP_8: dict[int, Op] = {
    0x0: Op.LD_VX_VY,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_VX_VY,
    0x5: Op.SUB_VX_VY,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_GROUP_E: dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_GROUP_F: dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.BCD,
    0x55: Op.STORE,
    0x65: Op.LOAD,
}

# Groups whose meaning depends only on the top nibble.
_SIMPLE: dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_VX_NN,
    0x4: Op.SNE_VX_NN,
    0x6: Op.LD_VX_NN,
    0x7: Op.ADD_VX_NN,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


def _classify(opcode: int) -> Op:
    group = opcode >> 12
    low_byte = opcode & 0xFF
    low_nibble = opcode & 0xF

    if group == 0x0:
        if low_byte == 0xE0:
            return Op.CLS
        if low_byte == 0xEE:
            return Op.RET
        return Op.UNKNOWN
    if group in _SIMPLE:
        return _SIMPLE[group]
    if group == 0x5:
        return Op.SE_VX_VY if low_nibble == 0 else Op.UNKNOWN
    if group == 0x8:
        return _GROUP_8.get(low_nibble, Op.UNKNOWN)
    if group == 0x9:
        return Op.SNE_VX_VY if low_nibble == 0 else Op.UNKNOWN
    if group == 0xE:
        return _GROUP_E.get(low_byte, Op.UNKNOWN)
    if group == 0xF:
        return _GROUP_F.get(low_byte, Op.UNKNOWN)
    return Op.UNKNOWN


def decode(opcode: int) -> Instruction:
    """Decode a 16-bit opcode into an :class:`Instruction`."""
    opcode &= 0xFFFF
    return Instruction(
        op=_classify(opcode),
        raw=opcode,
        x=(opcode & 0x0F00) >> 8,
        y=(opcode & 0x00F0) >> 4,
        n=opcode & 0x000F,
        nn=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )


# ---------------------------------------------------------------------------
# Disassembly
# ---------------------------------------------------------------------------

_FORMATS: dict[Op, str] = {
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.JP: "JP 0x{nnn:03X}",
    Op.CALL: "CALL 0x{nnn:03X}",
    Op.SE_VX_NN: "SE V{x:X}, 0x{nn:02X}",
    Op.SNE_VX_NN: "SNE V{x:X}, 0x{nn:02X}",
    Op.SE_VX_VY: "SE V{x:X}, V{y:X}",
    Op.LD_VX_NN: "LD V{x:X}, 0x{nn:02X}",
    Op.ADD_VX_NN: "ADD V{x:X}, 0x{nn:02X}",
    Op.LD_VX_VY: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_VX_VY: "ADD V{x:X}, V{y:X}",
    Op.SUB_VX_VY: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}, V{y:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}, V{y:X}",
    Op.SNE_VX_VY: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, 0x{nnn:03X}",
    Op.JP_V0: "JP V0, 0x{nnn:03X}",
    Op.RND: "RND V{x:X}, 0x{nn:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_VX_K: "LD V{x:X}, K",
    Op.LD_DT_VX: "LD DT, V{x:X}",
    Op.LD_ST_VX: "LD ST, V{x:X}",
    Op.ADD_I_VX: "ADD I, V{x:X}",
    Op.LD_F_VX: "LD F, V{x:X}",
    Op.BCD: "LD B, V{x:X}",
    Op.STORE: "LD [I], V{x:X}",
    Op.LOAD: "LD V{x:X}, [I]",
}


def disassemble(instruction: Instruction) -> str:
    """Render *instruction* as an assembler mnemonic."""
    fmt = _FORMATS.get(instruction.op)
    if fmt is None:
        return f"??? 0x{instruction.raw:04X}"
    return fmt.format(
        x=instruction.x,
        y=instruction.y,
        n=instruction.n,
        nn=instruction.nn,
        nnn=instruction.nnn,
    )


def disassemble_program(data: bytes, origin: int = 0x200) -> list[tuple[int, int, str]]:
    """Disassemble a program image word by word.

    Returns:
        ``(address, opcode, mnemonic)`` triples.  A trailing odd byte is
        shown as a data byte.
    """
    listing = []
    for offset in range(0, len(data) - 1, 2):
        opcode = (data[offset] << 8) | data[offset + 1]
        listing.append((origin + offset, opcode, disassemble(decode(opcode))))
    if len(data) % 2:
        last = data[-1]
        listing.append((origin + len(data) - 1, last, f"DB 0x{last:02X}"))
    return listing
