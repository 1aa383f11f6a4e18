"""
CHIP-8 interpreter core: fetch, decode, dispatch.

Each :meth:`CPU.step` reads the big-endian opcode at PC, advances PC by two,
decodes it into an :class:`~chip8vm.core.decoder.Instruction` and runs the
handler registered for its :class:`~chip8vm.core.types.Op`.  Because PC is
advanced first, jumps and calls assign an absolute address and skips simply
add another two.

Flag behaviour worth knowing:

* 8XY4 sets VF to the carry, 8XY5 / 8XY7 to NOT borrow (1 when no borrow).
* 8XY6 / 8XYE set VF to the bit shifted out (0 or 1).
* VF is written *after* the result, so ``8FY4`` and friends leave the flag
  in VF rather than the arithmetic result.
* 7XNN never touches VF.
* DXYN sets VF to 1 if any lit pixel was turned off, else 0.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

from chip8vm.core.decoder import Instruction, decode, disassemble
from chip8vm.core.errors import MemoryAccessError
from chip8vm.core.input_state import KeyState, no_keys_pressed
from chip8vm.core.memory import FONT_START, GLYPH_SIZE, MEMORY_SIZE, PROGRAM_START
from chip8vm.core.types import Event, EventKind, Op

if TYPE_CHECKING:
    from chip8vm.core.machine import Machine

REGISTER_COUNT: int = 16
VF: int = 0xF

Handler = Callable[[Instruction], None]


class CPU:
    """CHIP-8 instruction interpreter.

    Parameters
    ----------
    machine:
        Back-reference to the owning :class:`Machine`.  The CPU reaches
        memory, the call stack, the framebuffer, the timers, the key-wait
        latch, the quirk flags, the random byte source and the logger
        through it.
    """

    def __init__(self, machine: Machine) -> None:
        self.m = machine

        # Registers
        self.v: list[int] = [0] * REGISTER_COUNT
        self.i: int = 0
        self.pc: int = PROGRAM_START

        # Address of the instruction currently executing.
        self.last_pc: int = PROGRAM_START
        self.instructions_executed: int = 0

        self._key_state: KeyState = no_keys_pressed

        self._dispatch: Dict[Op, Handler] = self._build_dispatch_table()

    def reset(self) -> None:
        self.v = [0] * REGISTER_COUNT
        self.i = 0
        self.pc = PROGRAM_START
        self.last_pc = PROGRAM_START
        self.instructions_executed = 0

    # ------------------------------------------------------------------
    # Fetch / decode / execute
    # ------------------------------------------------------------------

    def fetch(self) -> int:
        """Read the opcode at PC and advance PC past it."""
        opcode = self.m.mem.read_word(self.pc)
        self.last_pc = self.pc
        self.pc = (self.pc + 2) & 0xFFFF
        return opcode

    def step(self, key_state: KeyState = no_keys_pressed) -> Instruction:
        """Execute one instruction and return it."""
        self._key_state = key_state
        instruction = decode(self.fetch())
        if self.m.logger.level >= 3:
            self.m.logger.log(
                3, f"{self.last_pc:03X}: {instruction.raw:04X}  {disassemble(instruction)}"
            )
        self.execute(instruction)
        self.instructions_executed += 1
        return instruction

    def execute(self, instruction: Instruction) -> None:
        self._dispatch[instruction.op](instruction)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def skip_if(self, condition: bool) -> None:
        if condition:
            self.pc = (self.pc + 2) & 0xFFFF

    def _check_range(self, first: int, last: int) -> None:
        # Refuse multi-byte writes that would only partly land in memory.
        if first < 0:
            raise MemoryAccessError(first)
        if last >= MEMORY_SIZE:
            raise MemoryAccessError(last)

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        """Return a serialisable snapshot of CPU state."""
        return {
            "v": list(self.v),
            "i": self.i,
            "pc": self.pc,
            "last_pc": self.last_pc,
            "instructions_executed": self.instructions_executed,
        }

    def restore_snapshot(self, snap: dict) -> None:
        """Restore CPU state from a previous snapshot."""
        if len(snap["v"]) != REGISTER_COUNT:
            raise ValueError(
                f"Snapshot register count mismatch: expected {REGISTER_COUNT}, got {len(snap['v'])}"
            )
        self.v = [value & 0xFF for value in snap["v"]]
        self.i = snap["i"]
        self.pc = snap["pc"]
        self.last_pc = snap["last_pc"]
        self.instructions_executed = snap["instructions_executed"]

    def __repr__(self) -> str:
        regs = " ".join(f"V{n:X}={val:02X}" for n, val in enumerate(self.v))
        return f"CPU(PC={self.pc:03X} I={self.i:03X} {regs})"

    # ==================================================================
    # Dispatch table -- one handler per Op
    # ==================================================================

    def _build_dispatch_table(self) -> Dict[Op, Handler]:
        """Construct the Op -> handler table.

        Each handler receives the decoded instruction.  The opcode has
        already been fetched (and PC advanced) before the handler runs.
        """
        m = self.m
        quirks = m.config.quirks

        t: Dict[Op, Handler] = {}

        # -- Unknown ---------------------------------------------------------
        def op_unknown(ins: Instruction) -> None:
            m.logger.log(1, f"Unknown opcode ${ins.raw:04X} at ${self.last_pc:03X}")
            m.emit(Event(EventKind.UNKNOWN_OPCODE, self.last_pc, ins.raw))
        t[Op.UNKNOWN] = op_unknown

        # ================================================================
        # 00E0 -- CLS / 00EE -- RET
        # ================================================================
        def op_cls(ins: Instruction) -> None:
            m.frame_buffer.clear()
        t[Op.CLS] = op_cls

        def op_ret(ins: Instruction) -> None:
            self.pc = m.stack.pop()
        t[Op.RET] = op_ret

        # ================================================================
        # 1NNN -- JP / 2NNN -- CALL
        # ================================================================
        def op_jp(ins: Instruction) -> None:
            self.pc = ins.nnn
        t[Op.JP] = op_jp

        def op_call(ins: Instruction) -> None:
            m.stack.push(self.pc)
            self.pc = ins.nnn
        t[Op.CALL] = op_call

        # ================================================================
        # 3XNN / 4XNN / 5XY0 / 9XY0 -- conditional skips
        # ================================================================
        def op_se_vx_nn(ins: Instruction) -> None:
            self.skip_if(self.v[ins.x] == ins.nn)
        t[Op.SE_VX_NN] = op_se_vx_nn

        def op_sne_vx_nn(ins: Instruction) -> None:
            self.skip_if(self.v[ins.x] != ins.nn)
        t[Op.SNE_VX_NN] = op_sne_vx_nn

        def op_se_vx_vy(ins: Instruction) -> None:
            self.skip_if(self.v[ins.x] == self.v[ins.y])
        t[Op.SE_VX_VY] = op_se_vx_vy

        def op_sne_vx_vy(ins: Instruction) -> None:
            self.skip_if(self.v[ins.x] != self.v[ins.y])
        t[Op.SNE_VX_VY] = op_sne_vx_vy

        # ================================================================
        # 6XNN -- LD / 7XNN -- ADD (no carry flag)
        # ================================================================
        def op_ld_vx_nn(ins: Instruction) -> None:
            self.v[ins.x] = ins.nn
        t[Op.LD_VX_NN] = op_ld_vx_nn

        def op_add_vx_nn(ins: Instruction) -> None:
            self.v[ins.x] = (self.v[ins.x] + ins.nn) & 0xFF
        t[Op.ADD_VX_NN] = op_add_vx_nn

        # ================================================================
        # 8XY_ -- register ALU
        # ================================================================
        def op_ld_vx_vy(ins: Instruction) -> None:
            self.v[ins.x] = self.v[ins.y]
        t[Op.LD_VX_VY] = op_ld_vx_vy

        def make_logic(fn: Callable[[int, int], int]) -> Handler:
            def handler(ins: Instruction) -> None:
                self.v[ins.x] = fn(self.v[ins.x], self.v[ins.y]) & 0xFF
                if quirks.logic_resets_vf:
                    self.v[VF] = 0
            return handler

        t[Op.OR] = make_logic(lambda a, b: a | b)
        t[Op.AND] = make_logic(lambda a, b: a & b)
        t[Op.XOR] = make_logic(lambda a, b: a ^ b)

        def op_add_vx_vy(ins: Instruction) -> None:
            total = self.v[ins.x] + self.v[ins.y]
            self.v[ins.x] = total & 0xFF
            self.v[VF] = 1 if total > 0xFF else 0
        t[Op.ADD_VX_VY] = op_add_vx_vy

        def op_sub_vx_vy(ins: Instruction) -> None:
            a, b = self.v[ins.x], self.v[ins.y]
            self.v[ins.x] = (a - b) & 0xFF
            self.v[VF] = 1 if a >= b else 0
        t[Op.SUB_VX_VY] = op_sub_vx_vy

        def op_subn(ins: Instruction) -> None:
            a, b = self.v[ins.x], self.v[ins.y]
            self.v[ins.x] = (b - a) & 0xFF
            self.v[VF] = 1 if b >= a else 0
        t[Op.SUBN] = op_subn

        def op_shr(ins: Instruction) -> None:
            src = self.v[ins.y] if quirks.shift_uses_vy else self.v[ins.x]
            self.v[ins.x] = src >> 1
            self.v[VF] = src & 0x01
        t[Op.SHR] = op_shr

        def op_shl(ins: Instruction) -> None:
            src = self.v[ins.y] if quirks.shift_uses_vy else self.v[ins.x]
            self.v[ins.x] = (src << 1) & 0xFF
            self.v[VF] = (src >> 7) & 0x01
        t[Op.SHL] = op_shl

        # ================================================================
        # ANNN -- LD I / BNNN -- JP V0 / CXNN -- RND
        # ================================================================
        def op_ld_i(ins: Instruction) -> None:
            self.i = ins.nnn
        t[Op.LD_I] = op_ld_i

        def op_jp_v0(ins: Instruction) -> None:
            offset = self.v[ins.x] if quirks.jump_uses_vx else self.v[0]
            self.pc = ins.nnn + offset
        t[Op.JP_V0] = op_jp_v0

        def op_rnd(ins: Instruction) -> None:
            self.v[ins.x] = m.random_byte() & ins.nn
        t[Op.RND] = op_rnd

        # ================================================================
        # DXYN -- DRW
        # ================================================================
        def op_drw(ins: Instruction) -> None:
            rows = m.mem.read_block(self.i, ins.n)
            # Coordinates are latched before VF is cleared (DFYN / DXFN).
            x, y = self.v[ins.x], self.v[ins.y]
            self.v[VF] = 0
            if m.frame_buffer.draw_sprite(x, y, rows):
                self.v[VF] = 1
        t[Op.DRW] = op_drw

        # ================================================================
        # EX9E -- SKP / EXA1 -- SKNP
        # ================================================================
        def op_skp(ins: Instruction) -> None:
            self.skip_if(bool(self._key_state(self.v[ins.x] & 0xF)))
        t[Op.SKP] = op_skp

        def op_sknp(ins: Instruction) -> None:
            self.skip_if(not self._key_state(self.v[ins.x] & 0xF))
        t[Op.SKNP] = op_sknp

        # ================================================================
        # FX__ -- timers, key wait, index, BCD, bulk load/store
        # ================================================================
        def op_ld_vx_dt(ins: Instruction) -> None:
            self.v[ins.x] = m.timers.delay
        t[Op.LD_VX_DT] = op_ld_vx_dt

        def op_ld_vx_k(ins: Instruction) -> None:
            # Rewinding PC re-fetches this opcode next cycle: the VM stalls
            # here until a key shows up.
            key_wait = m.key_wait
            if not key_wait.waiting:
                key_wait.begin(ins.x)
                self.pc = self.last_pc
                return
            target = key_wait.target
            key = key_wait.poll(self._key_state)
            if key is None:
                self.pc = self.last_pc
            else:
                self.v[target] = key
        t[Op.LD_VX_K] = op_ld_vx_k

        def op_ld_dt_vx(ins: Instruction) -> None:
            m.timers.set_delay(self.v[ins.x])
        t[Op.LD_DT_VX] = op_ld_dt_vx

        def op_ld_st_vx(ins: Instruction) -> None:
            m.timers.set_sound(self.v[ins.x])
        t[Op.LD_ST_VX] = op_ld_st_vx

        def op_add_i_vx(ins: Instruction) -> None:
            self.i = (self.i + self.v[ins.x]) & 0xFFFF
        t[Op.ADD_I_VX] = op_add_i_vx

        def op_ld_f_vx(ins: Instruction) -> None:
            self.i = FONT_START + self.v[ins.x] * GLYPH_SIZE
        t[Op.LD_F_VX] = op_ld_f_vx

        def op_bcd(ins: Instruction) -> None:
            value = self.v[ins.x]
            self._check_range(self.i, self.i + 2)
            m.mem[self.i] = value // 100
            m.mem[self.i + 1] = (value // 10) % 10
            m.mem[self.i + 2] = value % 10
        t[Op.BCD] = op_bcd

        def op_store(ins: Instruction) -> None:
            self._check_range(self.i, self.i + ins.x)
            for k in range(ins.x + 1):
                m.mem[self.i + k] = self.v[k]
            if quirks.load_store_increments_i:
                self.i = (self.i + ins.x + 1) & 0xFFFF
        t[Op.STORE] = op_store

        def op_load(ins: Instruction) -> None:
            self._check_range(self.i, self.i + ins.x)
            for k in range(ins.x + 1):
                self.v[k] = m.mem[self.i + k]
            if quirks.load_store_increments_i:
                self.i = (self.i + ins.x + 1) & 0xFFFF
        t[Op.LOAD] = op_load

        missing = [op.name for op in Op if op not in t]
        assert not missing, f"no handler for {missing}"
        return t
