"""Small helpers shared across the emulator."""


def byte_swap(num: int) -> int:
    """Swap the two bytes of a 16-bit value."""
    num &= 0xFFFF
    return ((num & 0x00FF) << 8) | ((num & 0xFF00) >> 8)