"""6502 register file, memory map, addressing modes and interrupt handling."""

from enum import IntFlag

from .bus import Bus
from .oam import OAM

MEMORY_SIZE = 0x10000

RESET_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE
NMI_VECTOR = 0xFFFA

CONTROLLER1_PORT = 0x4016
CONTROLLER2_PORT = 0x4017
PPU_STATUS_PORT = 0x2002
PRG_ROM_BASE = 0x8000


class StatusFlag(IntFlag):
    """Bits of the processor status register."""

    CARRY = 0x01
    ZERO = 0x02
    INTERRUPT_DISABLE = 0x04
    DECIMAL = 0x08
    BREAK = 0x10
    OVERFLOW = 0x40
    NEGATIVE = 0x80


class _FlagBit:
    """Exposes one status bit as a boolean attribute."""

    def __init__(self, flag: StatusFlag) -> None:
        self.flag = flag

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return bool(obj.status & self.flag)

    def __set__(self, obj, value) -> None:
        if value:
            obj.status = (obj.status | self.flag) & 0xFF
        else:
            obj.status = obj.status & ~self.flag & 0xFF


class CPUCore:
    """Registers, memory access, addressing modes and interrupts of the 6502."""

    carry = _FlagBit(StatusFlag.CARRY)
    zero = _FlagBit(StatusFlag.ZERO)
    interrupt_disable = _FlagBit(StatusFlag.INTERRUPT_DISABLE)
    decimal = _FlagBit(StatusFlag.DECIMAL)
    break_command = _FlagBit(StatusFlag.BREAK)
    overflow = _FlagBit(StatusFlag.OVERFLOW)
    negative = _FlagBit(StatusFlag.NEGATIVE)

    def __init__(self, bus=None, cartridge=None, oam=None) -> None:
        self.accumulator = 0x00
        self.x = 0x00
        self.y = 0x00
        self.stack_pointer = 0xFF
        self.program_counter = 0x0000
        self.status = 0x00

        self.controller1_state = 0
        self.controller1_shift = 0
        self.controller2_state = 0
        self.controller2_shift = 0
        self.controller_strobe = False

        self.irq_signal = False
        self.nmi_signal = False
        self.reset_signal = False
        self._previous_nmi_state = False

        self.instruction_count = 0
        self.memory = bytearray(MEMORY_SIZE)
        self.stack: list = []
        self.bus = bus if bus is not None else Bus()
        self.oam = oam if oam is not None else OAM()
        self.cartridge = cartridge

        if cartridge is not None:
            self.program_counter = RESET_VECTOR
            self._jump_through_pointer()
        self.bus.memory = bytearray(self.memory)

    def _jump_through_pointer(self) -> None:
        low = self.read(self.program_counter)
        self.program_counter = (self.program_counter + 1) & 0xFFFF
        high = self.read(self.program_counter)
        self.program_counter = (high << 8) | low

    # Memory access

    def read(self, addr: int) -> int:
        """Read a byte through the CPU memory map."""
        addr &= 0xFFFF
        if addr == CONTROLLER1_PORT:
            value = self.controller1_shift & 1
            if not self.controller_strobe:
                self.controller1_shift >>= 1
            return value | 0x40
        if addr == PPU_STATUS_PORT:
            value = self.memory[addr]
            self.memory[addr] &= 0x7F
            return value
        if addr == CONTROLLER2_PORT:
            value = self.controller2_shift & 1
            if not self.controller_strobe:
                self.controller2_shift >>= 1
            return value | 0x40
        if addr >= PRG_ROM_BASE and self.cartridge is not None:
            return self.cartridge.read_prg_rom(addr - PRG_ROM_BASE)
        return self.memory[addr]

    def write(self, addr: int, data: int) -> None:
        """Write a byte through the CPU memory map."""
        addr &= 0xFFFF
        data &= 0xFF
        if addr == CONTROLLER1_PORT:
            self.controller_strobe = bool(data & 1)
            if self.controller_strobe:
                self.controller1_shift = self.controller1_state
                self.controller2_shift = self.controller2_state
        else:
            self.memory[addr] = data

    def clear_status(self) -> None:
        """Clear every status flag."""
        self.status = 0

    def push(self, value: int) -> None:
        """Push a byte onto the stack and move the stack pointer down."""
        self.stack.append(value & 0xFF)
        self.stack_pointer = (self.stack_pointer - 1) & 0xFF

    def set_cartridge(self, cartridge) -> None:
        """Attach a cartridge and jump through the pointer at the program counter."""
        self.cartridge = cartridge
        self._jump_through_pointer()

    # Addressing modes

    def _fetch(self) -> int:
        value = self.read(self.program_counter)
        self.program_counter = (self.program_counter + 1) & 0xFFFF
        return value

    def _operand_pc(self) -> int:
        addr = self.program_counter
        self.program_counter = (self.program_counter + 1) & 0xFFFF
        return addr

    def _fetch_word(self) -> int:
        low = self._fetch()
        high = self._fetch()
        return (high << 8) | low

    def addr_implied(self) -> int:
        return 0

    def addr_accumulator(self) -> int:
        return 0

    def addr_immediate(self) -> int:
        return self._operand_pc()

    def addr_zero_page(self) -> int:
        return self._fetch()

    def addr_zero_page_x(self) -> int:
        return (self._fetch() + self.x) & 0xFF

    def addr_zero_page_y(self) -> int:
        return (self._fetch() + self.y) & 0xFF

    def addr_absolute(self) -> int:
        return self._fetch_word()

    def addr_absolute_x(self) -> int:
        return (self._fetch_word() + self.x) & 0xFFFF

    def addr_absolute_y(self) -> int:
        return (self._fetch_word() + self.y) & 0xFFFF

    def addr_indirect(self) -> int:
        """Indirect pointer, with the page-wrap bug of the original chip."""
        ptr = self._fetch_word()
        low = self.read(ptr)
        if ptr & 0xFF == 0xFF:
            high = self.read(ptr & 0xFF00)
        else:
            high = self.read((ptr + 1) & 0xFFFF)
        return (high << 8) | low

    def addr_indexed_indirect_x(self) -> int:
        ptr = (self._fetch() + self.x) & 0xFF
        low = self.read(ptr)
        high = self.read((ptr + 1) & 0xFF)
        return (high << 8) | low

    def addr_indirect_indexed_y(self) -> int:
        ptr = self._fetch()
        low = self.read(ptr)
        high = self.read((ptr + 1) & 0xFF)
        return (((high << 8) | low) + self.y) & 0xFFFF

    def addr_relative(self) -> int:
        return self._operand_pc()

    # Interrupts

    def set_irq(self, state: bool) -> None:
        """Drive the IRQ line; services it at once unless interrupts are disabled."""
        self.irq_signal = bool(state)
        if state and not self.interrupt_disable:
            self.handle_interrupts()

    def set_nmi(self, state: bool) -> None:
        """Drive the NMI line; only a rising edge triggers the interrupt."""
        if not self._previous_nmi_state and state:
            self.nmi_signal = True
            self.handle_interrupts()
        self._previous_nmi_state = bool(state)

    def set_reset(self, state: bool) -> None:
        """Drive the reset line; a high level resets the processor state."""
        self.reset_signal = bool(state)
        if state:
            self.stack_pointer = 0xFF
            self.program_counter = RESET_VECTOR
            self.interrupt_disable = True
            self.break_command = False
            self.irq_signal = False
            self.nmi_signal = False
            self.bus.nmi = False
            self.reset_signal = False

    def _enter_interrupt(self, vector: int) -> None:
        self.push(self.program_counter >> 8)
        self.push(self.program_counter)
        self.push(self.status & ~StatusFlag.BREAK)
        self.interrupt_disable = True
        self.program_counter = self.read(vector) | (self.read(vector + 1) << 8)

    def handle_interrupts(self) -> None:
        """Service pending interrupts in priority order: reset, NMI, IRQ."""
        if self.reset_signal:
            self.set_reset(True)
            return
        if self.nmi_signal:
            self._enter_interrupt(NMI_VECTOR)
            self.nmi_signal = False
            self.bus.nmi = False
            return
        if self.irq_signal and not self.interrupt_disable:
            self._enter_interrupt(IRQ_VECTOR)