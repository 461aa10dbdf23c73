"""PPU-side memories: pattern tables, name tables, palette RAM and the system palette."""

from dataclasses import dataclass, field
from typing import NamedTuple

PATTERN_TABLE_COUNT = 2
TILES_PER_TABLE = 256
PIXELS_PER_TILE = 64
TILE_BYTES = 16
PATTERN_TABLE_BYTES = 0x1000
CHR_ROM_MIN_SIZE = 0x2000
CHR_RAM_SIZE = 0x2000
PALETTE_SIZE = 32
PALETTE_INIT = 0x0F
NAME_TABLE_TILES = 960
NAME_TABLE_ATTRIBUTES = 64
SHIFT_REGISTER_SIZE = 16


class RGB(NamedTuple):
    """An 8-bit-per-channel colour."""

    r: int
    g: int
    b: int


NES_COLOR_PALETTE = (
    RGB(84, 84, 84), RGB(0, 30, 116), RGB(8, 16, 144), RGB(48, 0, 136),
    RGB(68, 0, 100), RGB(92, 0, 48), RGB(84, 4, 0), RGB(60, 24, 0),
    RGB(32, 42, 0), RGB(8, 58, 0), RGB(0, 64, 0), RGB(0, 60, 0),
    RGB(0, 50, 60), RGB(0, 0, 0), RGB(0, 0, 0), RGB(0, 0, 0),
    RGB(152, 150, 152), RGB(8, 76, 196), RGB(48, 50, 236), RGB(92, 30, 228),
    RGB(136, 20, 176), RGB(160, 20, 100), RGB(152, 34, 32), RGB(120, 60, 0),
    RGB(84, 90, 0), RGB(40, 114, 0), RGB(8, 124, 0), RGB(0, 118, 40),
    RGB(0, 102, 120), RGB(0, 0, 0), RGB(0, 0, 0), RGB(0, 0, 0),
    RGB(236, 238, 236), RGB(76, 154, 236), RGB(120, 124, 236), RGB(176, 98, 236),
    RGB(228, 84, 236), RGB(236, 88, 180), RGB(236, 106, 100), RGB(212, 136, 32),
    RGB(160, 170, 0), RGB(116, 196, 0), RGB(76, 208, 32), RGB(56, 204, 108),
    RGB(56, 180, 204), RGB(60, 60, 60), RGB(0, 0, 0), RGB(0, 0, 0),
    RGB(236, 238, 236), RGB(168, 204, 236), RGB(188, 188, 236), RGB(212, 178, 236),
    RGB(236, 174, 236), RGB(236, 174, 212), RGB(236, 180, 176), RGB(228, 196, 144),
    RGB(204, 210, 120), RGB(180, 222, 120), RGB(168, 226, 144), RGB(152, 226, 180),
    RGB(160, 214, 228), RGB(160, 162, 160), RGB(0, 0, 0), RGB(0, 0, 0),
)


def _decode_row(low: int, high: int) -> list:
    """Combine two bit planes into eight 2-bit pixel values, leftmost first."""
    return [
        (((high >> (7 - col)) & 1) << 1) | ((low >> (7 - col)) & 1)
        for col in range(8)
    ]


@dataclass
class ShiftRegister:
    """A 16-entry circular register of single bits, filled eight bits at a time."""

    reg: bytearray = field(default_factory=lambda: bytearray(SHIFT_REGISTER_SIZE))
    index: int = 0

    def insert(self, value: int) -> None:
        """Store the eight bits of ``value``, most significant first."""
        for i in range(8):
            self.reg[self.index] = (value >> (7 - i)) & 1
            self.index = (self.index + 1) % SHIFT_REGISTER_SIZE

    def __getitem__(self, index: int) -> int:
        return self.reg[index % SHIFT_REGISTER_SIZE]


@dataclass
class NameTable:
    """One physical name table: 960 tile bytes followed by 64 attribute bytes."""

    tiles: bytearray = field(default_factory=lambda: bytearray(NAME_TABLE_TILES))
    attributes: bytearray = field(default_factory=lambda: bytearray(NAME_TABLE_ATTRIBUTES))


class PPUMemory:
    """The memories the PPU draws from, with their mirroring rules."""

    def __init__(self) -> None:
        self.pattern_tables = [
            bytearray(TILES_PER_TABLE * PIXELS_PER_TILE)
            for _ in range(PATTERN_TABLE_COUNT)
        ]
        self.palette_memory = bytearray([PALETTE_INIT] * PALETTE_SIZE)
        self.name_tables = [NameTable() for _ in range(2)]
        self.chr_ram = bytearray(CHR_RAM_SIZE)
        self.tile_plane_low = [
            [bytearray(8) for _ in range(TILES_PER_TABLE)]
            for _ in range(PATTERN_TABLE_COUNT)
        ]
        self.tile_plane_high = [
            [bytearray(8) for _ in range(TILES_PER_TABLE)]
            for _ in range(PATTERN_TABLE_COUNT)
        ]

    # Colours and palette RAM

    def get_color(self, palette_index: int) -> RGB:
        """Look up a system palette colour; only the low six bits are used."""
        return NES_COLOR_PALETTE[palette_index & 0x3F]

    @staticmethod
    def _palette_offset(address: int) -> int:
        address &= 0x1F
        if address >= 0x10 and address & 0x03 == 0:
            address &= 0x0F
        return address

    def read_palette_memory(self, address: int) -> int:
        """Read palette RAM, applying the $3F1x -> $3F0x mirrors."""
        return self.palette_memory[self._palette_offset(address)]

    def write_palette_memory(self, address: int, data: int) -> None:
        """Write palette RAM; entries hold six bits."""
        self.palette_memory[self._palette_offset(address)] = data & 0x3F

    # Name tables

    def get_table_index(self, address: int) -> int:
        """Physical name table behind an address, using vertical mirroring."""
        address &= 0x0FFF
        if address < 0x0400:
            return 0
        if address < 0x0800:
            return 1
        if address < 0x0C00:
            return 0
        return 1

    def write_name_table(self, address: int, data: int) -> None:
        table = self.name_tables[self.get_table_index(address)]
        offset = address & 0x03FF
        if offset < NAME_TABLE_TILES:
            table.tiles[offset] = data & 0xFF
        else:
            table.attributes[offset - NAME_TABLE_TILES] = data & 0xFF

    def read_name_table(self, address: int) -> int:
        table = self.name_tables[self.get_table_index(address)]
        offset = address & 0x03FF
        if offset < NAME_TABLE_TILES:
            return table.tiles[offset]
        return table.attributes[offset - NAME_TABLE_TILES]

    # Pattern tables

    def write_pattern_table(self, address: int, data: int) -> None:
        """Write a CHR-RAM byte; a high-plane write re-decodes that tile row."""
        if not 0 <= address < len(self.chr_ram):
            raise IndexError(f"CHR-RAM write out of bounds at address {address:#x}")
        data &= 0xFF
        self.chr_ram[address] = data

        table_index, local = divmod(address, PATTERN_TABLE_BYTES)
        tile_index, tile_byte = divmod(local, TILE_BYTES)
        row = tile_byte % 8

        if tile_byte < 8:
            self.tile_plane_low[table_index][tile_index][row] = data
            return

        self.tile_plane_high[table_index][tile_index][row] = data
        low = self.tile_plane_low[table_index][tile_index][row]
        start = tile_index * PIXELS_PER_TILE + row * 8
        self.pattern_tables[table_index][start:start + 8] = bytes(_decode_row(low, data))

    def load_pattern_table(self, chr_rom) -> None:
        """Decode both pattern tables from CHR-ROM, which must hold at least 8 KiB."""
        chr_rom = bytes(chr_rom)
        if len(chr_rom) < CHR_ROM_MIN_SIZE:
            raise ValueError("CHR-ROM not correct size")
        for table, pixels in enumerate(self.pattern_tables):
            for tile in range(TILES_PER_TABLE):
                tile_offset = table * PATTERN_TABLE_BYTES + tile * TILE_BYTES
                for row in range(8):
                    low = chr_rom[tile_offset + row]
                    high = chr_rom[tile_offset + row + 8]
                    start = tile * PIXELS_PER_TILE + row * 8
                    pixels[start:start + 8] = bytes(_decode_row(low, high))

    def get_pattern_tile(self, table_index: int, tile_index: int) -> bytes:
        """The 64 decoded pixels of one tile, row by row."""
        if not (0 <= table_index < PATTERN_TABLE_COUNT and 0 <= tile_index < TILES_PER_TABLE):
            raise IndexError("Invalid Pattern Table or index")
        start = tile_index * PIXELS_PER_TILE
        return bytes(self.pattern_tables[table_index][start:start + PIXELS_PER_TILE])

    def format_pattern_tables(self) -> str:
        """Render every decoded tile as text, one row of pixel values per line."""
        lines = []
        for table, pixels in enumerate(self.pattern_tables):
            lines.append(f"Pattern Table {table}:\n")
            for tile in range(TILES_PER_TABLE):
                lines.append(f"Tile {tile}:\n")
                for row in range(8):
                    start = tile * PIXELS_PER_TILE + row * 8
                    lines.append("".join(f"{v} " for v in pixels[start:start + 8]) + "\n")
                lines.append("\n")
        return "".join(lines)