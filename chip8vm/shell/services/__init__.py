"""ROM loading and machine construction services."""

from chip8vm.shell.services.machine_factory import MachineFactory
from chip8vm.shell.services.rom_bytes_service import RomBytesService, RomInfo

__all__ = ["MachineFactory", "RomBytesService", "RomInfo"]
