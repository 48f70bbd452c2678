"""
Sequence number header shared by every fragment file.

The header is a u32 stored little-endian in exactly 4 bytes. Small numbers
only use the low bytes; the rest are zero.
"""

import struct

from ..config import HEADER_SIZE

_HEADER = struct.Struct("<I")

MAX_SEQUENCE = 2 ** (8 * HEADER_SIZE) - 1


def encode_sequence(num):
    """
    Encode a sequence number into its 4 byte header.

    Args:
        num (int): Sequence number in ``[0, 2**32)``

    Returns:
        bytes: The little-endian header

    Raises:
        ValueError: if ``num`` does not fit in 32 unsigned bits
    """
    if not 0 <= num <= MAX_SEQUENCE:
        raise ValueError(f"Sequence number {num} does not fit in {HEADER_SIZE} bytes")
    return _HEADER.pack(num)


def decode_sequence(header):
    """
    Decode a 4 byte header back into its sequence number.

    Raises:
        ValueError: if ``header`` is not exactly 4 bytes long
    """
    if len(header) != HEADER_SIZE:
        raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(header)}")
    return _HEADER.unpack(bytes(header))[0]
