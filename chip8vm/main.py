"""
CHIP-8 virtual machine

Main entry point.  Parses command-line arguments, creates the emulated
machine from a ROM file, and launches the pygame display window.

Usage examples::

    # Run a ROM with the default 540 Hz clock
    chip8vm roms/pong.ch8

    # Faster clock, bigger window
    chip8vm roms/tetris.ch8 --clock-speed 840 --scale 15

    # Programs written for the original COSMAC VIP interpreter
    chip8vm roms/blitz.ch8 --cosmac

    # Individual quirks
    chip8vm roms/game.ch8 --quirk wrap_sprites --quirk jump_uses_vx

    # List ROM metadata / a disassembly without launching
    chip8vm roms/pong.ch8 --info
    chip8vm roms/pong.ch8 --disassemble
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from chip8vm.core.decoder import disassemble_program
from chip8vm.core.errors import Chip8Error
from chip8vm.core.quirks import Quirks
from chip8vm.shell.services.machine_factory import (
    DEFAULT_CLOCK_SPEED,
    DEFAULT_TICK_RATE,
    MachineFactory,
)
from chip8vm.shell.services.rom_bytes_service import RomBytesService


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chip8vm",
        description=(
            "CHIP-8 virtual machine.  "
            "Load a ROM file and play it in a pygame window."
        ),
    )

    parser.add_argument(
        "rom",
        help="Path to the ROM file (.ch8, .c8, .rom)",
    )

    # Timing
    parser.add_argument(
        "--clock-speed", "-c",
        type=int,
        default=DEFAULT_CLOCK_SPEED,
        metavar="HZ",
        help=f"CPU instructions per second.  Default: {DEFAULT_CLOCK_SPEED}.",
    )
    parser.add_argument(
        "--tick-rate", "-t",
        type=int,
        default=DEFAULT_TICK_RATE,
        metavar="HZ",
        help=f"Timer / frame rate.  Default: {DEFAULT_TICK_RATE}.",
    )

    # Quirks
    quirk_names = Quirks.names()
    parser.add_argument(
        "--quirk", "-q",
        action="append",
        choices=quirk_names,
        default=[],
        metavar="NAME",
        help=(
            "Enable a quirk flag (repeatable).  "
            "Valid values: " + ", ".join(quirk_names)
        ),
    )
    parser.add_argument(
        "--cosmac",
        action="store_true",
        default=False,
        help="Use the original COSMAC VIP interpreter behaviour.",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random number source (reproducible runs).",
    )

    # Display
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=10,
        help="Display scale factor (1-32).  Default: 10.",
    )

    # Audio
    parser.add_argument(
        "--no-audio",
        action="store_true",
        default=False,
        help="Disable the buzzer.",
    )

    # Debugging / info
    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print ROM metadata and exit without launching the emulator.",
    )
    parser.add_argument(
        "--disassemble",
        action="store_true",
        default=False,
        help="Print a disassembly of the ROM and exit.",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG, -vvv to trace instructions).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Info / disassembly modes
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a ROM."""
    try:
        info = MachineFactory.describe(rom_path)
    except (OSError, Chip8Error) as exc:
        print(f"Error reading ROM: {exc}", file=sys.stderr)
        return 1

    print("CHIP-8 ROM Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)
    return 0


def _print_disassembly(rom_path: str) -> int:
    """Print a word-by-word disassembly of a ROM."""
    try:
        data = RomBytesService.read(rom_path)
    except (OSError, Chip8Error) as exc:
        print(f"Error reading ROM: {exc}", file=sys.stderr)
        return 1

    for address, word, text in disassemble_program(data):
        print(f"{address:03X}  {word:04X}  {text}")
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("chip8vm.main")

    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: ROM file not found: {rom_path}", file=sys.stderr)
        return 1

    if args.info:
        return _print_rom_info(rom_path)
    if args.disassemble:
        return _print_disassembly(rom_path)

    quirk_names = set(args.quirk)
    if args.cosmac:
        quirk_names |= set(Quirks.COSMAC_VIP.enabled())

    # Create the emulated machine.
    try:
        machine = MachineFactory.create(
            rom_path=rom_path,
            clock_speed=args.clock_speed,
            tick_rate=args.tick_rate,
            quirks=Quirks.from_names(quirk_names),
            seed=args.seed,
            log_level=3 if args.verbose >= 3 else 1,
        )
    except (OSError, ValueError) as exc:
        # CartridgeTooLargeError is a ValueError.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # Imported late so --info / --disassemble work without a display.
    from chip8vm.platform.window import Window

    logger.info("Starting emulation ...")
    try:
        window = Window(
            machine,
            scale=args.scale,
            enable_audio=not args.no_audio,
            title=os.path.basename(rom_path),
        )
        window.run()
    except KeyboardInterrupt:
        pass
    except Chip8Error as exc:
        logger.error("Program fault: %s", exc)
        print(f"Program fault: {exc}", file=sys.stderr)
        return 2

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
