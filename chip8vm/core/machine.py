"""
Machine -- a complete CHIP-8 VM driven one host tick at a time.

The machine owns every piece of state:

* **CPU** -- registers V0-VF, I, PC and the opcode dispatcher.
* **Memory** -- 4 KB with the font preloaded.
* **CallStack** -- up to 16 return addresses.
* **FrameBuffer** -- 64x32 monochrome display.
* **Timers** -- delay and sound.
* **KeyWait** -- the FX0A latch.

The host calls :meth:`Machine.tick` at a fixed rate (normally 60 Hz),
passing a ``key_state(key) -> bool`` query.  Each tick runs
``clock_speed // tick_rate`` CPU cycles and then counts the timers down
once.  Anything the host may want to surface (a beep, an unknown opcode)
comes back as a list of :class:`~chip8vm.core.types.Event`.

Random numbers are a capability too: the machine is given a zero-argument
callable returning one byte and keeps no generator state of its own.
:func:`random_byte_source` builds one on top of numpy.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import numpy as np

from chip8vm.core.cpu import CPU
from chip8vm.core.errors import CartridgeTooLargeError, Chip8Error
from chip8vm.core.frame_buffer import FrameBuffer
from chip8vm.core.input_state import KeyState, KeyWait, no_keys_pressed
from chip8vm.core.logger import DEFAULT_LOGGER, ILogger
from chip8vm.core.memory import PROGRAM_CAPACITY, CallStack, Memory
from chip8vm.core.quirks import MachineConfig
from chip8vm.core.timers import Timers
from chip8vm.core.types import Event, EventKind

RandomByte = Callable[[], int]


def random_byte_source(seed: Optional[int] = None) -> RandomByte:
    """Return a callable producing uniformly distributed bytes.

    Passing the same *seed* gives the same byte sequence.
    """
    rng = np.random.default_rng(seed)

    def random_byte() -> int:
        return int(rng.integers(0, 256))

    return random_byte


class Machine:
    """A CHIP-8 virtual machine.

    Parameters
    ----------
    config:
        Clock speed, tick rate and quirk flags.  Defaults to 540 Hz / 60 Hz
        with canonical behaviour.
    random_byte:
        Zero-argument callable returning a byte for CXNN.  Defaults to an
        unseeded :func:`random_byte_source`.
    logger:
        Core logger.  Defaults to the silent :data:`DEFAULT_LOGGER`.
    """

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        config: Optional[MachineConfig] = None,
        random_byte: Optional[RandomByte] = None,
        logger: Optional[ILogger] = None,
    ) -> None:
        self.config: MachineConfig = config if config is not None else MachineConfig()
        self.random_byte: RandomByte = (
            random_byte if random_byte is not None else random_byte_source()
        )
        self.logger: ILogger = logger if logger is not None else DEFAULT_LOGGER

        self.mem: Memory = Memory()
        self.stack: CallStack = CallStack()
        self.frame_buffer: FrameBuffer = FrameBuffer(wrap=self.config.quirks.wrap_sprites)
        self.timers: Timers = Timers()
        self.key_wait: KeyWait = KeyWait()
        self.cpu: CPU = CPU(self)

        # Machine run-state.
        self.machine_halt: bool = False
        self.tick_number: int = 0

        self._program: bytes = b""
        self._events: List[Event] = []

    @property
    def cycles_per_tick(self) -> int:
        return self.config.cycles_per_tick

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_program(self, data: bytes) -> None:
        """Write a program image at 0x200.

        Raises:
            TypeError: If *data* is not a bytes-like object.
            CartridgeTooLargeError: If *data* does not fit; the machine is
                left untouched.
        """
        data = bytes(memoryview(data))
        if len(data) > PROGRAM_CAPACITY:
            raise CartridgeTooLargeError(len(data), PROGRAM_CAPACITY)
        self.mem.load(data)
        self._program = data
        self.logger.log(2, f"Loaded program: {len(data)} bytes")

    def reset(self) -> None:
        """Return to the power-on state, keeping the loaded program."""
        self.mem.reset()
        if self._program:
            self.mem.load(self._program)
        self.stack.reset()
        self.frame_buffer.clear()
        self.timers.reset()
        self.key_wait.reset()
        self.cpu.reset()
        self.machine_halt = False
        self.tick_number = 0
        self._events = []

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def tick(self, key_state: Optional[KeyState] = None) -> List[Event]:
        """Advance the VM by one host tick.

        Runs :attr:`cycles_per_tick` CPU cycles, then counts the timers down
        once.  Returns the events emitted during the tick.  A halted machine
        does nothing and returns an empty list.

        Raises:
            Chip8Error: On a fatal fault (stack over/underflow, memory access
                out of bounds).  The machine is halted first.
        """
        if self.machine_halt:
            return []
        self._events = []
        self._run(self.cycles_per_tick, key_state or no_keys_pressed)
        if self.timers.tick():
            self.emit(Event(EventKind.BEEP))
        self.tick_number += 1
        return self._events

    def cycle(self, key_state: Optional[KeyState] = None) -> List[Event]:
        """Execute a single CPU cycle without touching the timers."""
        if self.machine_halt:
            return []
        self._events = []
        self._run(1, key_state or no_keys_pressed)
        return self._events

    def _run(self, cycles: int, key_state: KeyState) -> None:
        cpu = self.cpu
        try:
            for _ in range(cycles):
                cpu.step(key_state)
        except Chip8Error as exc:
            self.machine_halt = True
            self.logger.log(0, f"Machine halted at ${cpu.last_pc:03X}: {exc}")
            raise

    def emit(self, event: Event) -> None:
        self._events.append(event)

    # ------------------------------------------------------------------
    # Host-facing views
    # ------------------------------------------------------------------

    @property
    def pixels(self) -> np.ndarray:
        """Read-only ``(32, 64)`` boolean view of the display."""
        return self.frame_buffer.pixels

    @property
    def sound_active(self) -> bool:
        return self.timers.sound_active

    @property
    def waiting_for_key(self) -> bool:
        return self.key_wait.waiting

    @property
    def program_size(self) -> int:
        return len(self._program)

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        """Return a serialisable snapshot of the whole machine."""
        return {
            "machine_halt": self.machine_halt,
            "tick_number": self.tick_number,
            "cpu": self.cpu.get_snapshot(),
            "mem": self.mem.get_snapshot(),
            "stack": self.stack.get_snapshot(),
            "frame_buffer": self.frame_buffer.get_snapshot(),
            "timers": self.timers.get_snapshot(),
            "key_wait": self.key_wait.get_snapshot(),
        }

    def restore_snapshot(self, snapshot: dict) -> None:
        """Restore machine state from a previous snapshot."""
        self.cpu.restore_snapshot(snapshot["cpu"])
        self.mem.restore_snapshot(snapshot["mem"])
        self.stack.restore_snapshot(snapshot["stack"])
        self.frame_buffer.restore_snapshot(snapshot["frame_buffer"])
        self.timers.restore_snapshot(snapshot["timers"])
        self.key_wait.restore_snapshot(snapshot["key_wait"])
        self.machine_halt = snapshot.get("machine_halt", False)
        self.tick_number = snapshot.get("tick_number", 0)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"clock_speed={self.config.clock_speed}, "
            f"tick_rate={self.config.tick_rate}, "
            f"pc=0x{self.cpu.pc:03X}, "
            f"tick={self.tick_number})"
        )
