import pytest

from nesemu.utilities import byte_swap


def test_swaps_low_and_high_byte():
    assert byte_swap(0xFCFF) == 0xFFFC


def test_low_byte_moves_high():
    assert byte_swap(0x00FF) == 0xFF00


@pytest.mark.parametrize("value", [0x0000, 0x1234, 0xABCD, 0xFFFF, 0x8000, 0x0001])
def test_swap_is_its_own_inverse(value):
    assert byte_swap(byte_swap(value)) == value


def test_result_stays_within_sixteen_bits():
    assert byte_swap(0x1_2345) == byte_swap(0x2345)