"""iNES cartridge images."""

from pathlib import Path

MAGIC = b"NES\x1a"
HEADER_SIZE = 16
TRAINER_SIZE = 512
PRG_ROM_UNIT = 0x4000
CHR_ROM_UNIT = 0x2000

_MIRRORING_MASK = 0x01
_BATTERY_MASK = 0x02
_TRAINER_MASK = 0x04


class InvalidRomError(ValueError):
    """Raised when data is not a usable iNES image."""


class Cartridge:
    """PRG and CHR ROM taken from an iNES image."""

    def __init__(self, rom_data) -> None:
        rom = bytes(rom_data)
        if len(rom) < HEADER_SIZE:
            raise InvalidRomError("ROM image is shorter than its header")
        self.reset_vector = 0xFFFC
        self.prg_rom_size = rom[4] * PRG_ROM_UNIT
        self.chr_rom_size = rom[5] * CHR_ROM_UNIT
        self.flag6, self.flag7, self.flag8, self.flag9, self.flag10 = rom[6:11]
        self.prg_rom_start = HEADER_SIZE + (TRAINER_SIZE if self.has_trainer else 0)
        self.chr_rom_start = self.prg_rom_start + self.prg_rom_size
        if len(rom) < self.chr_rom_end:
            raise InvalidRomError(
                f"ROM image is {len(rom)} bytes, header requires {self.chr_rom_end}"
            )
        self.trainer = (
            rom[HEADER_SIZE:HEADER_SIZE + TRAINER_SIZE] if self.has_trainer else b""
        )
        prg = rom[self.prg_rom_start:self.prg_rom_end]
        if self.prg_rom_size == PRG_ROM_UNIT:
            prg += prg
        self.prg_rom = prg
        self.chr_rom = rom[self.chr_rom_start:self.chr_rom_end]

    @property
    def prg_rom_end(self) -> int:
        return self.prg_rom_start + self.prg_rom_size

    @property
    def chr_rom_end(self) -> int:
        return self.chr_rom_start + self.chr_rom_size

    @property
    def mirroring(self) -> bool:
        return bool(self.flag6 & _MIRRORING_MASK)

    @property
    def has_battery(self) -> bool:
        return bool(self.flag6 & _BATTERY_MASK)

    @property
    def has_trainer(self) -> bool:
        return bool(self.flag6 & _TRAINER_MASK)

    def read_prg_rom(self, addr: int) -> int:
        return self.prg_rom[addr]

    def read_chr_rom(self, addr: int) -> int:
        return self.chr_rom[addr]


def load_rom(path) -> Cartridge:
    """Read an iNES file and build a cartridge, checking its magic number."""
    data = Path(path).read_bytes()
    if data[:len(MAGIC)] != MAGIC:
        raise InvalidRomError("Invalid NES ROM file")
    return Cartridge(data)