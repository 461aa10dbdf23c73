"""The shared 64 KiB address space that the CPU and PPU exchange data through."""

MEMORY_SIZE = 0x10000


class Bus:
    """Flat 64 KiB memory plus the NMI line set by the PPU and cleared by the CPU."""

    def __init__(self) -> None:
        self.memory = bytearray(MEMORY_SIZE)
        self.nmi = False

    def write(self, address: int, data: int) -> None:
        """Store a byte; writes outside the address space are ignored."""
        if 0 <= address < MEMORY_SIZE:
            self.memory[address] = data & 0xFF

    def read(self, address: int) -> int:
        """Return the byte at ``address``, or 0 outside the address space."""
        if 0 <= address < MEMORY_SIZE:
            return self.memory[address]
        return 0x00