"""Building blocks of a NES emulator: 6502 core state, PPU, cartridges, input and test tones."""

__version__ = "0.1.0"