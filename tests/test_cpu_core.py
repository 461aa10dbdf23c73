import pytest

from nesemu.bus import Bus
from nesemu.cartridge import Cartridge
from nesemu.cpu_core import CPUCore, StatusFlag


@pytest.fixture
def cpu():
    core = CPUCore()
    core.clear_status()
    return core


def _rom_with_reset_vector(low, high):
    prg = bytearray(0x4000)
    prg[0x3FFC] = low
    prg[0x3FFD] = high
    header = b"NES\x1a" + bytes([1, 0]) + bytes(10)
    return header + bytes(prg)


# Addressing modes

def test_implied_addressing(cpu):
    cpu.program_counter = 0x1000
    assert cpu.addr_implied() == 0
    assert cpu.program_counter == 0x1000


def test_accumulator_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.accumulator = 0x42
    assert cpu.addr_accumulator() == 0
    assert cpu.program_counter == 0x1000
    assert cpu.accumulator == 0x42


def test_immediate_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.write(0x1000, 0x42)
    addr = cpu.addr_immediate()
    assert addr == 0x1000
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == 0x42


def test_zero_page_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.write(0x1000, 0x42)
    cpu.write(0x0042, 0x78)
    addr = cpu.addr_zero_page()
    assert addr == 0x42
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == 0x78


@pytest.mark.parametrize(
    "index, operand, expected, value",
    [(0x10, 0x42, 0x52, 0x78), (0xFF, 0x80, 0x7F, 0xAB)],
)
def test_zero_page_x_addressing(cpu, index, operand, expected, value):
    cpu.program_counter = 0x1000
    cpu.x = index
    cpu.write(0x1000, operand)
    cpu.write(expected, value)
    addr = cpu.addr_zero_page_x()
    assert addr == expected
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == value


@pytest.mark.parametrize(
    "index, operand, expected, value",
    [(0x15, 0x40, 0x55, 0x99), (0xF0, 0x90, 0x80, 0xCD)],
)
def test_zero_page_y_addressing(cpu, index, operand, expected, value):
    cpu.program_counter = 0x1000
    cpu.y = index
    cpu.write(0x1000, operand)
    cpu.write(expected, value)
    addr = cpu.addr_zero_page_y()
    assert addr == expected
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == value


def test_absolute_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.write(0x1000, 0x34)
    cpu.write(0x1001, 0x12)
    cpu.write(0x1234, 0xAB)
    addr = cpu.addr_absolute()
    assert addr == 0x1234
    assert cpu.program_counter == 0x1002
    assert cpu.read(addr) == 0xAB


@pytest.mark.parametrize(
    "index, low, expected, value",
    [(0x10, 0x34, 0x1244, 0xCD), (0xD0, 0x50, 0x1320, 0xEF)],
)
def test_absolute_x_addressing(cpu, index, low, expected, value):
    cpu.program_counter = 0x1000
    cpu.x = index
    cpu.write(0x1000, low)
    cpu.write(0x1001, 0x12)
    cpu.write(expected, value)
    addr = cpu.addr_absolute_x()
    assert addr == expected
    assert cpu.program_counter == 0x1002
    assert cpu.read(addr) == value


@pytest.mark.parametrize(
    "index, low, expected, value",
    [(0x20, 0x34, 0x1254, 0xDD), (0xCC, 0x40, 0x130C, 0xBB)],
)
def test_absolute_y_addressing(cpu, index, low, expected, value):
    cpu.program_counter = 0x1000
    cpu.y = index
    cpu.write(0x1000, low)
    cpu.write(0x1001, 0x12)
    cpu.write(expected, value)
    addr = cpu.addr_absolute_y()
    assert addr == expected
    assert cpu.program_counter == 0x1002
    assert cpu.read(addr) == value


def test_absolute_x_wraps_at_sixteen_bits(cpu):
    cpu.program_counter = 0x1000
    cpu.x = 0x01
    cpu.write(0x1000, 0xFF)
    cpu.write(0x1001, 0xFF)
    assert cpu.addr_absolute_x() == 0x0000


def test_indirect_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.write(0x1000, 0x34)
    cpu.write(0x1001, 0x12)
    cpu.write(0x1234, 0x78)
    cpu.write(0x1235, 0x56)
    assert cpu.addr_indirect() == 0x5678
    assert cpu.program_counter == 0x1002


def test_indirect_addressing_page_boundary_bug(cpu):
    cpu.program_counter = 0x1000
    cpu.write(0x1000, 0xFF)
    cpu.write(0x1001, 0x12)
    cpu.write(0x12FF, 0x78)
    cpu.write(0x1200, 0x56)
    assert cpu.addr_indirect() == 0x5678
    assert cpu.program_counter == 0x1002


def test_indexed_indirect_x_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.x = 0x10
    cpu.write(0x1000, 0x20)
    cpu.write(0x0030, 0x78)
    cpu.write(0x0031, 0x56)
    cpu.write(0x5678, 0xBD)
    addr = cpu.addr_indexed_indirect_x()
    assert addr == 0x5678
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == 0xBD


def test_indexed_indirect_x_addressing_wraparound(cpu):
    cpu.program_counter = 0x1000
    cpu.x = 0xFF
    cpu.write(0x1000, 0x80)
    cpu.write(0x007F, 0x34)
    cpu.write(0x0080, 0x12)
    cpu.write(0x1234, 0xAC)
    addr = cpu.addr_indexed_indirect_x()
    assert addr == 0x1234
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == 0xAC


def test_indirect_indexed_y_addressing(cpu):
    cpu.program_counter = 0x1000
    cpu.y = 0x10
    cpu.write(0x1000, 0x40)
    cpu.write(0x0040, 0x78)
    cpu.write(0x0041, 0x56)
    cpu.write(0x5688, 0xEE)
    addr = cpu.addr_indirect_indexed_y()
    assert addr == 0x5688
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == 0xEE


def test_indirect_indexed_y_addressing_page_crossing(cpu):
    cpu.program_counter = 0x1000
    cpu.y = 0xCC
    cpu.write(0x1000, 0x50)
    cpu.write(0x0050, 0x40)
    cpu.write(0x0051, 0x56)
    cpu.write(0x570C, 0xFF)
    addr = cpu.addr_indirect_indexed_y()
    assert addr == 0x570C
    assert cpu.program_counter == 0x1001
    assert cpu.read(addr) == 0xFF


@pytest.mark.parametrize("start", [0x1000, 0x10F8, 0x1004])
def test_relative_addressing_returns_operand_location(cpu, start):
    cpu.program_counter = start
    cpu.write(start, 0xF6)
    addr = cpu.addr_relative()
    assert addr == start
    assert cpu.program_counter == start + 1


# Memory map

def test_ppu_status_read_clears_vblank_bit(cpu):
    cpu.write(0x2002, 0xC5)
    assert cpu.read(0x2002) == 0xC5
    assert cpu.read(0x2002) == 0x45


def test_controller_serial_read(cpu):
    cpu.controller1_state = 0b101
    cpu.write(0x4016, 1)
    assert cpu.read(0x4016) == 0x41
    assert cpu.read(0x4016) == 0x41
    cpu.write(0x4016, 0)
    assert [cpu.read(0x4016) for _ in range(4)] == [0x41, 0x40, 0x41, 0x40]


def test_controller_port_write_does_not_touch_memory(cpu):
    cpu.write(0x4016, 1)
    assert cpu.memory[0x4016] == 0
    assert cpu.controller_strobe is True


def test_second_controller_serial_read(cpu):
    cpu.controller2_state = 0b10
    cpu.write(0x4016, 1)
    cpu.write(0x4016, 0)
    assert [cpu.read(0x4017) for _ in range(2)] == [0x40, 0x41]


def test_write_masks_to_byte(cpu):
    cpu.write(0x10, 0x1FF)
    assert cpu.read(0x10) == 0xFF


# Flags and stack

def test_flag_attributes_track_status_bits(cpu):
    cpu.carry = True
    cpu.negative = True
    assert cpu.status == StatusFlag.CARRY | StatusFlag.NEGATIVE
    cpu.carry = False
    assert cpu.status == 0x80
    assert cpu.negative is True
    assert cpu.zero is False


def test_clear_status(cpu):
    cpu.status = 0xFF
    cpu.clear_status()
    assert cpu.status == 0


def test_push_appends_and_decrements(cpu):
    cpu.stack_pointer = 0xFF
    cpu.push(0x50)
    assert cpu.stack[-1] == 0x50
    assert cpu.stack_pointer == 0xFE


# Cartridge

def test_constructor_jumps_through_reset_vector():
    cart = Cartridge(_rom_with_reset_vector(0x34, 0x82))
    bus = Bus()
    core = CPUCore(bus, cart, None)
    assert core.program_counter == 0x8234
    assert core.read(0xFFFC) == 0x34
    assert len(bus.memory) == 0x10000


def test_set_cartridge_reads_pointer_at_program_counter(cpu):
    cart = Cartridge(_rom_with_reset_vector(0x00, 0xC0))
    cpu.program_counter = 0xFFFC
    cpu.set_cartridge(cart)
    assert cpu.program_counter == 0xC000


# Interrupts

def test_nmi_pushes_state_and_jumps(cpu):
    cpu.program_counter = 0x1234
    cpu.status = 0x11
    cpu.stack_pointer = 0xFF
    cpu.bus.nmi = True
    cpu.write(0xFFFA, 0x00)
    cpu.write(0xFFFB, 0x90)
    cpu.set_nmi(True)
    assert cpu.stack == [0x12, 0x34, 0x01]
    assert cpu.stack_pointer == 0xFC
    assert cpu.program_counter == 0x9000
    assert cpu.interrupt_disable is True
    assert cpu.bus.nmi is False
    assert cpu.nmi_signal is False


def test_nmi_is_edge_triggered(cpu):
    cpu.write(0xFFFA, 0x00)
    cpu.write(0xFFFB, 0x90)
    cpu.set_nmi(True)
    cpu.set_nmi(True)
    assert len(cpu.stack) == 3
    cpu.set_nmi(False)
    cpu.set_nmi(True)
    assert len(cpu.stack) == 6


def test_irq_serviced_when_enabled(cpu):
    cpu.program_counter = 0x0400
    cpu.write(0xFFFE, 0x20)
    cpu.write(0xFFFF, 0x80)
    cpu.set_irq(True)
    assert cpu.program_counter == 0x8020
    assert cpu.stack == [0x04, 0x00, 0x00]
    assert cpu.interrupt_disable is True


def test_irq_ignored_when_disabled(cpu):
    cpu.program_counter = 0x0400
    cpu.interrupt_disable = True
    cpu.set_irq(True)
    assert cpu.program_counter == 0x0400
    assert cpu.stack == []
    assert cpu.irq_signal is True


def test_reset_restores_initial_state(cpu):
    cpu.stack_pointer = 0x10
    cpu.program_counter = 0x1234
    cpu.status = StatusFlag.BREAK | StatusFlag.CARRY
    cpu.irq_signal = True
    cpu.bus.nmi = True
    cpu.set_reset(True)
    assert cpu.stack_pointer == 0xFF
    assert cpu.program_counter == 0xFFFC
    assert cpu.status == StatusFlag.INTERRUPT_DISABLE | StatusFlag.CARRY
    assert cpu.irq_signal is False
    assert cpu.bus.nmi is False
    assert cpu.reset_signal is False


def test_handle_interrupts_prefers_reset(cpu):
    cpu.reset_signal = True
    cpu.nmi_signal = True
    cpu.handle_interrupts()
    assert cpu.program_counter == 0xFFFC
    assert cpu.stack == []
    assert cpu.nmi_signal is False