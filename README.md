# nesemu

This package provides building blocks for a Nintendo Entertainment System
emulator. It has no third-party dependencies.

It includes:

- 6502 processor state, the CPU memory map, the addressing modes and
  interrupt handling
- a picture processing unit (PPU) that advances one dot at a time
- iNES cartridge loading
- controller input mapping
- a generator for audio test tones

## Installation

```
pip install .
```

To also install the test requirements:

```
pip install .[test]
```

## Modules

- `nesemu.cartridge`
  - `load_rom(path)` reads an iNES file and returns a `Cartridge`. It raises
    `InvalidRomError` if the file does not start with `NES\x1a`, or if the
    file is shorter than its header says.
  - `Cartridge` exposes `prg_rom` and `chr_rom`, `read_prg_rom(addr)`,
    `read_chr_rom(addr)`, and the header properties `mirroring`,
    `has_battery` and `has_trainer`.
  - A 16 KiB PRG-ROM is mirrored to fill 32 KiB.
- `nesemu.bus.Bus`
  - A flat 64 KiB `memory` plus the `nmi` line.
  - `read` returns 0 outside the address space, and `write` ignores writes
    there.
- `nesemu.cpu_core`
  - `CPUCore` holds the registers (`accumulator`, `x`, `y`, `stack_pointer`,
    `program_counter`, `status`).
  - It has boolean flag attributes: `carry`, `zero`, `interrupt_disable`,
    `decimal`, `break_command`, `overflow` and `negative`. The status bits
    themselves are `StatusFlag`.
  - `read` and `write` follow the CPU memory map:
    - the controller ports are at `0x4016` and `0x4017`;
    - reading `0x2002` clears its top bit;
    - reads at `0x8000` and above go to the cartridge's PRG-ROM.
  - It provides the addressing modes `addr_immediate`, `addr_zero_page`,
    `addr_zero_page_x`, `addr_zero_page_y`, `addr_absolute`,
    `addr_absolute_x`, `addr_absolute_y`, `addr_indirect`,
    `addr_indexed_indirect_x`, `addr_indirect_indexed_y`, `addr_relative`,
    `addr_implied` and `addr_accumulator`.
    - `addr_indirect` reproduces the page-wrap bug of the 6502.
  - Interrupt lines: `set_irq`, `set_nmi` and `set_reset`.
    - NMI triggers on the rising edge only.
    - `handle_interrupts` services pending interrupts in the order reset,
      NMI, IRQ.
- `nesemu.ppu.PPU` builds on `nesemu.ppu_memory.PPUMemory`.
  - `step()` advances one dot.
  - `cpu_write(address, data)` handles the memory-mapped registers
    `0x2000`–`0x2007`.
  - Completed scanlines are written into `frame_buffer`, an array of
    256×240 values in the form `0x00RRGGBB`.
  - At dot 257 it evaluates sprites from the OAM for the next scanline.
- `nesemu.ppu_memory`
  - `PPUMemory` holds palette RAM, with the `$3F1x` mirrors and 6-bit
    entries.
  - It holds two name tables with vertical mirroring.
  - It holds the pattern tables: `load_pattern_table(chr_rom)` needs at
    least 8 KiB, and `write_pattern_table` writes CHR-RAM.
  - `get_pattern_tile`, `get_color` and `format_pattern_tables` read them
    back.
  - The module also defines `RGB`, `ShiftRegister` and `NameTable`.
- `nesemu.oam`
  - `OAM` holds 64 `Sprite` entries with signed 8-bit fields.
  - `OAM.load(data)` fills the entries from raw bytes, four per sprite.
- `nesemu.input`
  - `InputHandler` keeps the controller byte in `state`, one bit per
    `Button`.
  - `handle_key(key, pressed, shift)` maps key names:

    | Key    | Button |
    |--------|--------|
    | J      | A      |
    | K      | B      |
    | Space  | Select |
    | Return | Start  |
    | W      | Up     |
    | S      | Down   |
    | A      | Left   |
    | D      | Right  |

    Shift+Escape raises `QuitRequested`.
  - `handle_controller_button` returns the name of a game-controller
    button.
- `nesemu.apu.WaveformGenerator`
  - `render(count)` returns mono samples at 44.1 kHz.
  - Each square duty pattern plays for one second. After that the output
    is a triangle wave.
- `nesemu.clock.Clock`
  - A prescaled tick counter that sleeps one master-clock period for each
    skipped tick.
- `nesemu.nes_ram.NesRam`
  - 2 KiB of work RAM. Addresses outside it raise `IndexError`.
- `nesemu.utilities.byte_swap(num)`
  - Swaps the two bytes of a 16-bit value.

## Example

```python
from nesemu.bus import Bus
from nesemu.oam import OAM
from nesemu.cartridge import load_rom
from nesemu.cpu_core import CPUCore
from nesemu.ppu import PPU

cartridge = load_rom("game.nes")
bus = Bus()
oam = OAM()
cpu = CPUCore(bus, cartridge, oam)   # program_counter is loaded from the reset vector
ppu = PPU(bus, cartridge, oam)
ppu.load_pattern_table(cartridge.chr_rom)

for _ in range(341 * 262):           # one full frame of dots
    ppu.step()
pixel = ppu.frame_buffer[0]
```

## What this package does not do

- **No instruction execution.** `CPUCore` supplies registers, memory
  access, addressing modes and interrupts. It does not decode or execute
  6502 opcodes, so no game program runs.
- **No command.** The package installs no program to start.
- **No window and no sound output.** No window shows the frame buffer,
  and the audio samples are not sent to a sound device.

## Tests

```
pytest
```