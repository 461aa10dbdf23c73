import pytest

from nesemu.cartridge import (
    CHR_ROM_UNIT,
    MAGIC,
    PRG_ROM_UNIT,
    TRAINER_SIZE,
    Cartridge,
    InvalidRomError,
    load_rom,
)


def _rom(prg_banks=1, chr_banks=1, flag6=0, trainer=False):
    header = MAGIC + bytes([prg_banks, chr_banks, flag6 | (0x04 if trainer else 0)])
    header += bytes(16 - len(header))
    body = bytes([0xEE]) * TRAINER_SIZE if trainer else b""
    prg = bytes((i * 7) & 0xFF for i in range(prg_banks * PRG_ROM_UNIT))
    chr_data = bytes((i * 3 + 1) & 0xFF for i in range(chr_banks * CHR_ROM_UNIT))
    return header + body + prg + chr_data, prg, chr_data


def test_single_prg_bank_is_mirrored():
    data, prg, _ = _rom(prg_banks=1)
    cart = Cartridge(data)
    assert len(cart.prg_rom) == 2 * PRG_ROM_UNIT
    assert cart.prg_rom == prg + prg
    assert cart.read_prg_rom(5) == cart.read_prg_rom(PRG_ROM_UNIT + 5)


def test_two_prg_banks_are_not_mirrored():
    data, prg, _ = _rom(prg_banks=2)
    cart = Cartridge(data)
    assert cart.prg_rom == prg


def test_chr_rom_follows_prg_rom():
    data, _, chr_data = _rom(prg_banks=2, chr_banks=1)
    cart = Cartridge(data)
    assert cart.chr_rom == chr_data
    assert cart.read_chr_rom(10) == chr_data[10]
    assert cart.chr_rom_start == cart.prg_rom_end


def test_trainer_shifts_prg_start():
    data, prg, chr_data = _rom(trainer=True)
    cart = Cartridge(data)
    assert cart.has_trainer
    assert cart.prg_rom_start == 16 + TRAINER_SIZE
    assert cart.prg_rom[:PRG_ROM_UNIT] == prg
    assert cart.chr_rom == chr_data
    assert cart.trainer == bytes([0xEE]) * TRAINER_SIZE


def test_header_flags():
    data, _, _ = _rom(flag6=0x03)
    cart = Cartridge(data)
    assert cart.mirroring is True
    assert cart.has_battery is True
    assert cart.has_trainer is False
    assert cart.reset_vector == 0xFFFC


def test_truncated_image_raises():
    data, _, _ = _rom()
    with pytest.raises(InvalidRomError):
        Cartridge(data[:-1])


def test_short_header_raises():
    with pytest.raises(InvalidRomError):
        Cartridge(MAGIC)


def test_load_rom_from_file(tmp_path):
    data, _, chr_data = _rom()
    path = tmp_path / "game.nes"
    path.write_bytes(data)
    assert load_rom(path).chr_rom == chr_data


def test_load_rom_rejects_bad_magic(tmp_path):
    data, _, _ = _rom()
    path = tmp_path / "bad.nes"
    path.write_bytes(b"XXXX" + data[4:])
    with pytest.raises(InvalidRomError):
        load_rom(path)