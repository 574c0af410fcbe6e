"""
FCB1010 dump checksum.

The checksum byte sits between the packed payload and the F7 end marker:
1. Sum every byte from the manufacturer ID through the last payload byte
2. Take the lower 7 bits of the sum
3. Subtract from 128
4. If the result is 128, use 0 instead

Encoding and decoding both go through ``calculate_checksum`` so the two
directions cannot drift apart.
"""

from typing import List, Union


def calculate_checksum(data: Union[bytes, List[int]]) -> int:
    """
    Calculate the dump checksum.

    Args:
        data: Header bytes (without F0) followed by the packed payload

    Returns:
        Checksum value (0-127)
    """
    if isinstance(data, list):
        data = bytes(data)

    return (128 - (sum(data) & 0x7F)) & 0x7F


def verify_checksum(data: Union[bytes, List[int]], expected_checksum: int) -> bool:
    """
    Verify a dump checksum.

    Args:
        data: Bytes the checksum was calculated over
        expected_checksum: The checksum byte from the message

    Returns:
        True if checksum is valid, False otherwise
    """
    return calculate_checksum(data) == expected_checksum


def add_checksum(data: Union[bytes, List[int]]) -> bytes:
    """Return ``data`` with its checksum appended."""
    if isinstance(data, list):
        data = bytes(data)

    return data + bytes([calculate_checksum(data)])
