"""The picture processing unit: register interface, dot timing, sprites and frame output."""

from array import array
from dataclasses import replace
from typing import List, Sequence

from .bus import Bus
from .oam import OAM, Sprite
from .ppu_memory import RGB, PPUMemory, ShiftRegister

PPU_WIDTH = 256
PPU_HEIGHT = 240
LAST_DOT = 340
SCANLINES_PER_FRAME = 262
VBLANK_SCANLINE = 241
PRE_RENDER_SCANLINE = 261
SPRITE_EVAL_DOT = 257
SECONDARY_OAM_SIZE = 8

VBLANK_MASK = 0x80
SPRITE_OVERFLOW_MASK = 0x20


def _empty_sprite() -> Sprite:
    return Sprite(-1, -1, -1, -1)


def _reverse_bits(value: int) -> int:
    return int(f"{value & 0xFF:08b}"[::-1], 2)


def _signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


class PPU(PPUMemory):
    """Steps one dot at a time and writes finished scanlines into ``frame_buffer``."""

    def __init__(self, bus=None, cartridge=None, oam=None) -> None:
        super().__init__()
        self.bus = bus if bus is not None else Bus()
        self.cartridge = cartridge
        self.oam = oam if oam is not None else OAM()

        self.ppuctrl = 0x00
        self.ppumask = 0x00
        self.ppustatus = 0x00
        self.oamaddr = 0x00
        self.oamdata = 0x00
        self.ppuscroll = 0x00
        self.ppuaddr = 0x0000
        self.ppudata = 0x00
        self.oamdma = 0x00

        self.dot = 0
        self.scanline = 0
        self.toggle = False
        self.toggle2 = False

        self.frame_buffer = array("I", [0]) * (PPU_WIDTH * PPU_HEIGHT)
        self.scanline_buffer: List[RGB] = []

        self.scroll_latch = False
        self.scroll_x = 0
        self.scroll_y = 0
        self.addr_latch = False
        self.addr_high = 0
        self.addr_low = 0
        self.vram_address = 0

        self.fetched_nametable_byte = 0
        self.fetched_attribute_byte = 0
        self.fetched_pattern_low = 0
        self.fetched_pattern_high = 0

        self.tile_low_shift = ShiftRegister()
        self.tile_high_shift = ShiftRegister()
        self.attr_low_shift = ShiftRegister()
        self.attr_high_shift = ShiftRegister()

        self.sprite_data = [_empty_sprite() for _ in range(SECONDARY_OAM_SIZE)]
        self.sprite_pattern_low = bytearray(SECONDARY_OAM_SIZE)
        self.sprite_pattern_high = bytearray(SECONDARY_OAM_SIZE)

        self.set_vblank()

    # Status helpers

    def set_vblank(self) -> None:
        self.ppustatus |= VBLANK_MASK

    def clear_vblank(self) -> None:
        self.ppustatus &= ~VBLANK_MASK & 0xFF
        self.vram_address = 0

    def rendering_enabled(self) -> bool:
        """Whether background rendering is switched on in PPUMASK."""
        return bool(self.ppumask & 0x08)

    def fine_x(self) -> int:
        return self.ppuscroll & 0x70

    def set_nmi(self) -> None:
        """Raise NMI on the bus when in vertical blank with NMI enabled."""
        if self.ppustatus & VBLANK_MASK and self.ppuctrl & 0x80:
            self.bus.nmi = True

    # Frame output

    def write_to_frame_buffer(self, scanline: int, colors: Sequence[RGB]) -> None:
        """Pack one row of colours into the frame buffer as 0x00RRGGBB values."""
        if not 0 <= scanline < PPU_HEIGHT:
            raise ValueError(
                f"Invalid scanline: {scanline} (must be between 0 and {PPU_HEIGHT - 1})"
            )
        if len(colors) != PPU_WIDTH:
            raise ValueError(
                f"Color list size ({len(colors)}) does not match frame buffer width ({PPU_WIDTH})"
            )
        start = scanline * PPU_WIDTH
        self.frame_buffer[start:start + PPU_WIDTH] = array(
            "I", ((c.r << 16) | (c.g << 8) | c.b for c in colors)
        )

    def render_pixel(self) -> RGB:
        """Colour of the current pixel, taken from the shift registers."""
        fine = self.fine_x()
        pixel = self.tile_low_shift[15 - fine] << 3
        pixel |= self.tile_high_shift[15 - fine] << 2
        pixel |= self.attr_low_shift[7 - fine] << 1
        pixel |= self.attr_low_shift[7 - fine]
        pixel &= 0xF0
        return self.get_color(pixel)

    # Timing

    def step(self) -> None:
        """Advance one dot, first picking up register values the CPU left on the bus."""
        self.cpu_write(0x2000, self.bus.read(0x2000))
        self.cpu_write(0x2005, self.bus.read(0x2005))
        self.cpu_write(0x2001, self.bus.read(0x2001))
        self.cpu_write(0x2006, self.bus.read(0x2006))
        if self.scanline == VBLANK_SCANLINE and self.dot == 1:
            self.set_vblank()
            self.cpu_write(0x2002, 0)
            self.set_nmi()
        if self.scanline == PRE_RENDER_SCANLINE:
            self.toggle2 = not self.toggle2
            self.clear_vblank()
            self.ppustatus = 0
        self.step_scanline()

    def step_scanline(self) -> None:
        """Do the work of the current dot, then move to the next dot."""
        if self.scanline < PPU_HEIGHT and self.dot < PPU_WIDTH:
            self._fetch_background(self.dot % 8)
            self.scanline_buffer.append(self.render_pixel())

        if self.dot == SPRITE_EVAL_DOT:
            self._evaluate_sprites()

        if self.dot >= SPRITE_EVAL_DOT:
            sprite_index = (self.dot - SPRITE_EVAL_DOT) // 8
            if sprite_index < SECONDARY_OAM_SIZE and self.sprite_data[sprite_index].y_pos != -1:
                self._fetch_sprite(sprite_index)

        self.dot += 1
        if self.dot == LAST_DOT and self.scanline < PPU_HEIGHT:
            # A line begun part-way through is incomplete and is dropped.
            if len(self.scanline_buffer) == PPU_WIDTH:
                self.write_to_frame_buffer(self.scanline, self.scanline_buffer)
            self.scanline_buffer = []
        if self.dot > LAST_DOT:
            self.dot = 0
            self.scanline += 1
            if self.scanline >= SCANLINES_PER_FRAME:
                self.scanline = 0

    def _fetch_background(self, timing: int) -> None:
        if timing == 1:
            self.vram_address = (self.ppuaddr & 0x0F00) >> 8
            nametable_addr = 0x2000 | (self.vram_address & 0x0FFF)
            self.fetched_nametable_byte = self.read_name_table(nametable_addr)
        elif timing == 3:
            coarse_x = self.vram_address & 0x1F
            coarse_y = (self.vram_address >> 5) & 0x1F
            attribute_addr = (
                0x23C0
                | (self.vram_address & 0x0C00)
                | ((coarse_y >> 2) << 3)
                | (coarse_x >> 2)
            )
            self.fetched_attribute_byte = self.read_name_table(attribute_addr)
        elif timing in (5, 7):
            fine_y = (self.vram_address >> 12) & 0x7
            table = 1 if self.ppuctrl & 0x10 else 0
            index = self.fetched_nametable_byte * 16 + fine_y
            if timing == 5:
                self.fetched_pattern_low = self.pattern_tables[table][index]
                self.tile_low_shift.insert(self.fetched_pattern_low)
            else:
                self.fetched_pattern_high = self.pattern_tables[table][index + 8]
                self.tile_high_shift.insert(self.fetched_pattern_high)
        elif timing == 0:
            if self.vram_address & 0x001F == 31:
                self.vram_address &= ~0x001F & 0xFFFF
                self.vram_address ^= 0x0400
            else:
                self.vram_address = (self.vram_address + 1) & 0xFFFF
            self.scroll_x = (self.scroll_x + 1) % 256

    def _next_scanline(self) -> int:
        return (self.scanline + 1) % SCANLINES_PER_FRAME

    def _evaluate_sprites(self) -> None:
        self.sprite_data = [_empty_sprite() for _ in range(SECONDARY_OAM_SIZE)]
        active = 0
        overflow = False
        if self.ppumask & 0x10:
            height = 16 if self.ppuctrl & 0x20 else 8
            next_scanline = self._next_scanline()
            for sprite in self.oam.sprites:
                y = sprite.y_pos
                if y <= next_scanline < y + height:
                    if active >= SECONDARY_OAM_SIZE:
                        self.ppustatus |= SPRITE_OVERFLOW_MASK
                        overflow = True
                        break
                    self.sprite_data[active] = replace(sprite)
                    active += 1
        if not overflow:
            self.ppustatus &= ~SPRITE_OVERFLOW_MASK & 0xFF

    def _fetch_sprite(self, index: int) -> None:
        sprite = self.sprite_data[index]
        tile = sprite.tile_index & 0xFF
        tall = bool(self.ppuctrl & 0x20)
        table = tile & 1 if tall else (self.ppuctrl & 0x08) >> 3

        row = (self._next_scanline() - sprite.y_pos) & 0xFF
        if sprite.attributes & 0x80:
            row = ((15 if tall else 7) - row) & 0xFF

        if tall:
            tile &= ~1 & 0xFF
            base = table * 0x1000 + tile * 16
            pattern_addr = base + row if row < 8 else base + 16 + (row - 8)
        else:
            pattern_addr = table * 0x1000 + tile * 16 + row
        pattern_addr &= 0xFFFF

        low = self.read(pattern_addr) & 0xFF
        high = self.read((pattern_addr + 8) & 0xFFFF) & 0xFF
        if sprite.attributes & 0x40:
            low = _reverse_bits(low)
            high = _reverse_bits(high)
        self.sprite_pattern_low[index] = low
        self.sprite_pattern_high[index] = high

    # Memory

    def read(self, addr: int) -> int:
        """Read PPU address space; only pattern data comes from the cartridge."""
        if addr < 0x1FFF:
            if self.cartridge is None:
                return 0
            return self.cartridge.read_chr_rom(addr)
        return 0

    def write(self, address: int, data: int) -> None:
        """Write PPU address space: pattern tables, name tables or palette RAM."""
        if address < 0x2000:
            self.write_pattern_table(address, data)
        elif address <= 0x3EFF:
            self.write_name_table(address, data)
        elif address <= 0x3FFF:
            self.write_palette_memory(address, data)
        else:
            raise ValueError(f"Invalid PPU Write to address: ${address:x}")

    def cpu_write(self, address: int, data: int) -> None:
        """Handle a CPU write to one of the memory-mapped PPU registers."""
        data &= 0xFF
        register = address & 0x2007
        if register == 0x2000:
            self.ppuctrl = data
            self.bus.write(0x2000, data)
        elif register == 0x2001:
            self.ppumask = data
            self.bus.write(0x2001, data)
        elif register == 0x2002:
            self.bus.write(0x2002, self.ppustatus)
        elif register == 0x2003:
            self.oamaddr = data
        elif register == 0x2004:
            self.oamdata = data
            if self.oam is not None:
                sprite_index, byte_offset = divmod(self.oamaddr, 4)
                name = ("y_pos", "tile_index", "attributes", "x_pos")[byte_offset]
                setattr(self.oam.sprites[sprite_index], name, _signed_byte(data))
            self.oamaddr = (self.oamaddr + 1) & 0xFF
        elif register == 0x2005:
            if not self.scroll_latch:
                self.scroll_x = data
                self.scroll_latch = True
            else:
                self.scroll_y = data
                self.scroll_latch = False
            self.bus.write(0x2005, data)
        elif register == 0x2006:
            if not self.addr_latch:
                self.addr_high = data & 0x3F
                self.addr_latch = True
            else:
                self.addr_low = data
                self.vram_address = (self.addr_high << 8) | self.addr_low
                self.addr_latch = False
            self.bus.write(0x2006, data)
        elif register == 0x2007:
            self.write(self.vram_address, data)
            self.vram_address = (self.vram_address + (32 if self.ppuctrl & 0x04 else 1)) & 0xFFFF
            self.bus.write(0x2007, data)
        else:
            raise ValueError(f"Unknown PPU MMIO write ${address:x}")