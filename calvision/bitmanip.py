"""Bit-field extraction from 32-bit digitizer words."""

from __future__ import annotations

from itertools import accumulate
from typing import Sequence

from .constants import UINT_BITS, UINT_MAX


def read_uint(data: int, offset: int, size: int) -> int:
    """Extract ``size`` bits starting ``offset`` bits from the most significant end."""
    if not 0 <= data <= UINT_MAX:
        raise ValueError(f"data does not fit in {UINT_BITS} bits: {data}")
    if size < 1 or offset < 0 or offset + size > UINT_BITS:
        raise ValueError(f"invalid field: offset={offset}, size={size}")
    return ((data << offset) & UINT_MAX) >> (UINT_BITS - size)


def read_fields(data: int, *sizes: int) -> tuple[int, ...]:
    """Split a word into consecutive fields, most significant first.

    The field sizes must add up to the full word width.
    """
    if sum(sizes) != UINT_BITS:
        raise ValueError(f"field sizes must sum to {UINT_BITS}, got {sum(sizes)}")
    offsets = accumulate(sizes[:-1], initial=0)
    return tuple(read_uint(data, offset, size) for offset, size in zip(offsets, sizes))


def read_8_channels(words: Sequence[int]) -> list[int]:
    """Unpack eight 12-bit channel samples packed into three 32-bit words."""
    if len(words) != 3:
        raise ValueError(f"expected 3 words, got {len(words)}")
    first, second, third = words

    c7, c6, c5_high = read_fields(third, 12, 12, 8)
    c5, c4, c3, c2_high = read_fields(second, 4, 12, 12, 4)
    c2, c1, c0 = read_fields(first, 8, 12, 12)

    return [c0, c1, c2 | (c2_high << 8), c3, c4, c5 | (c5_high << 4), c6, c7]