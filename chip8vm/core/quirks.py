"""
Quirk flags and machine configuration.

CHIP-8 interpreters disagree on a handful of instructions.  Each point of
disagreement is a named flag here, resolved once when the machine is built.
The defaults are the canonical behaviour:

=========================  ===============================================
Flag                       Behaviour when enabled
=========================  ===============================================
shift_uses_vy              8XY6 / 8XYE shift VY (not VX) into VX
load_store_increments_i    FX55 / FX65 leave I pointing past the last byte
wrap_sprites               sprite pixels wrap around the screen edges
logic_resets_vf            8XY1 / 8XY2 / 8XY3 reset VF to 0
jump_uses_vx               BXNN jumps to XNN + VX instead of NNN + V0
=========================  ===============================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import ClassVar, Iterable


@dataclass(frozen=True)
class Quirks:
    shift_uses_vy: bool = False
    load_store_increments_i: bool = False
    wrap_sprites: bool = False
    logic_resets_vf: bool = False
    jump_uses_vx: bool = False

    COSMAC_VIP: ClassVar[Quirks]

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_names(cls, names: Iterable[str]) -> Quirks:
        """Build a quirk set with exactly the named flags enabled.

        Raises:
            ValueError: If a name is not a known quirk flag.
        """
        known = set(cls.names())
        enabled = {}
        for name in names:
            if name not in known:
                raise ValueError(
                    f"Unknown quirk {name!r}; valid quirks: {', '.join(sorted(known))}"
                )
            enabled[name] = True
        return cls(**enabled)

    def enabled(self) -> list[str]:
        return [name for name in self.names() if getattr(self, name)]


# Behaviour of the original COSMAC VIP interpreter.
Quirks.COSMAC_VIP = Quirks(
    shift_uses_vy=True,
    load_store_increments_i=True,
    logic_resets_vf=True,
)


@dataclass(frozen=True)
class MachineConfig:
    """Timing and behaviour settings for a :class:`Machine`.

    Parameters
    ----------
    clock_speed:
        CPU instructions per second.  540 Hz matches most CHIP-8 games.
    tick_rate:
        Host ticks per second; the timers count down once per tick.
    quirks:
        Behavioural variations, see :class:`Quirks`.
    """

    clock_speed: int = 540
    tick_rate: int = 60
    quirks: Quirks = field(default_factory=Quirks)

    def __post_init__(self) -> None:
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")
        if self.clock_speed < 0:
            raise ValueError(f"clock_speed must not be negative, got {self.clock_speed}")

    @property
    def cycles_per_tick(self) -> int:
        return self.clock_speed // self.tick_rate
