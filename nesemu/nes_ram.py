"""The console's 2 KiB of internal work RAM."""

RAM_SIZE = 0x0800


class NesRam:
    """2 KiB of zero-initialised RAM."""

    def __init__(self) -> None:
        self._ram = bytearray(RAM_SIZE)

    @staticmethod
    def _check(addr: int) -> None:
        if not 0 <= addr < RAM_SIZE:
            raise IndexError(f"RAM address {addr:#06x} out of range")

    def write(self, addr: int, data: int) -> None:
        """Store a byte; raises IndexError outside the RAM."""
        self._check(addr)
        self._ram[addr] = data & 0xFF

    def read(self, addr: int) -> int:
        """Return the byte at ``addr``; raises IndexError outside the RAM."""
        self._check(addr)
        return self._ram[addr]