"""
Core enumerations and type definitions for the CHIP-8 VM.

``Op`` is the tag of a decoded instruction (one member per opcode family),
``KeyWaitState`` the state of the FX0A key-wait latch, and ``EventKind`` the
kind of an :class:`Event` emitted by the machine during a tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Op(IntEnum):
    UNKNOWN = 0
    # 0x0___
    CLS = 1
    RET = 2
    # 0x1___ .. 0x7___
    JP = 3
    CALL = 4
    SE_VX_NN = 5
    SNE_VX_NN = 6
    SE_VX_VY = 7
    LD_VX_NN = 8
    ADD_VX_NN = 9
    # 0x8XY_
    LD_VX_VY = 10
    OR = 11
    AND = 12
    XOR = 13
    ADD_VX_VY = 14
    SUB_VX_VY = 15
    SHR = 16
    SUBN = 17
    SHL = 18
    # 0x9___ .. 0xD___
    SNE_VX_VY = 19
    LD_I = 20
    JP_V0 = 21
    RND = 22
    DRW = 23
    # 0xEX__
    SKP = 24
    SKNP = 25
    # 0xFX__
    LD_VX_DT = 26
    LD_VX_K = 27
    LD_DT_VX = 28
    LD_ST_VX = 29
    ADD_I_VX = 30
    LD_F_VX = 31
    BCD = 32
    STORE = 33
    LOAD = 34


class KeyWaitState(IntEnum):
    RUNNING = 0
    WAITING = 1


class EventKind(IntEnum):
    BEEP = 0
    UNKNOWN_OPCODE = 1


@dataclass(frozen=True)
class Event:
    """Something the host may want to surface (sound, diagnostics).

    ``address`` and ``opcode`` locate the instruction that caused the event;
    both are ``None`` for a beep, which is produced by the timers.
    """

    kind: EventKind
    address: int | None = None
    opcode: int | None = None

    def __str__(self) -> str:
        if self.kind == EventKind.UNKNOWN_OPCODE:
            return f"unknown opcode {self.opcode:04X} at {self.address:03X}"
        return self.kind.name.lower()
