"""
Machine creation factory.

Creates a fully-configured :class:`~chip8vm.core.machine.Machine` from a ROM
file path plus optional overrides for timing, quirks and the random seed.

Typical usage::

    machine = MachineFactory.create("pong.ch8")
    machine = MachineFactory.create("blitz.ch8", quirks=Quirks.COSMAC_VIP)
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from chip8vm.core.logger import StdLogger
from chip8vm.core.machine import Machine, random_byte_source
from chip8vm.core.quirks import MachineConfig, Quirks
from chip8vm.shell.services.rom_bytes_service import RomBytesService

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_SPEED: int = 540
DEFAULT_TICK_RATE: int = 60


class MachineFactory:
    """Create an emulated CHIP-8 machine from a ROM file."""

    @staticmethod
    def create(
        rom_path: str,
        clock_speed: int = DEFAULT_CLOCK_SPEED,
        tick_rate: int = DEFAULT_TICK_RATE,
        quirks: Optional[Union[Quirks, Iterable[str]]] = None,
        seed: Optional[int] = None,
        log_level: int = 1,
    ) -> Machine:
        """Build and return a machine with the program loaded.

        Parameters
        ----------
        rom_path:
            Filesystem path to the program image.
        clock_speed:
            CPU instructions per second.
        tick_rate:
            Host ticks per second (timer rate).
        quirks:
            A :class:`Quirks` instance, or an iterable of quirk flag names.
            ``None`` selects the canonical behaviour.
        seed:
            Seed for the random byte source; ``None`` for a fresh one.
        log_level:
            Core log level forwarded through :class:`StdLogger`.

        Raises
        ------
        FileNotFoundError
            If *rom_path* does not exist.
        CartridgeTooLargeError
            If the ROM does not fit in memory.
        ValueError
            For unknown quirk names or invalid timing values.
        """
        if quirks is None:
            quirks = Quirks()
        elif not isinstance(quirks, Quirks):
            quirks = Quirks.from_names(quirks)

        config = MachineConfig(
            clock_speed=clock_speed,
            tick_rate=tick_rate,
            quirks=quirks,
        )
        logger.info(
            "Config: %d Hz CPU, %d Hz ticks (%d cycles/tick), quirks=%s",
            config.clock_speed,
            config.tick_rate,
            config.cycles_per_tick,
            ",".join(quirks.enabled()) or "none",
        )

        logger.info("Loading ROM: %s", rom_path)
        rom_bytes = RomBytesService.read(rom_path)
        logger.info("ROM size: %d bytes", len(rom_bytes))
        if not RomBytesService.has_known_extension(rom_path):
            logger.warning("Unrecognised ROM extension: %s", rom_path)

        machine = Machine(
            config,
            random_byte=random_byte_source(seed),
            logger=StdLogger(level=log_level),
        )
        machine.load_program(rom_bytes)
        logger.info("Machine created: %r", machine)
        return machine

    @staticmethod
    def describe(rom_path: str) -> dict[str, str]:
        """Return a human-readable description of a ROM file."""
        return RomBytesService.describe(rom_path).as_dict()
