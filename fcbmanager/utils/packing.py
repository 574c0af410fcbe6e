"""
Behringer 7-bit packing utilities.

MIDI SysEx data bytes must keep bit 7 clear, so the FCB1010 dump packs its
8-bit memory image into 7-bit groups.

Packing scheme:
- Take 7 bytes of raw 8-bit data
- Emit the 7 bytes with their high bits cleared
- Emit one trailing "MSB byte" whose bit i holds the high bit of raw byte i
- A short final group is zero-padded to 7 raw bytes, so every group is 8 bytes

Example:
    Input:  [0x80, 0x01, 0x02, 0x03, 0x04, 0x05, 0xFF]  (7 bytes)
    Output: [0x00, 0x01, 0x02, 0x03, 0x04, 0x05, 0x7F, 0x41]  (8 bytes)
"""

from typing import List, Union

GROUP_RAW = 7
GROUP_PACKED = 8


def packed_length(raw_length: int) -> int:
    """Number of packed bytes needed for ``raw_length`` raw bytes."""
    groups = (raw_length + GROUP_RAW - 1) // GROUP_RAW
    return groups * GROUP_PACKED


def unpacked_length(packed_len: int) -> int:
    """Number of raw bytes held by ``packed_len`` packed bytes (full groups only)."""
    return (packed_len // GROUP_PACKED) * GROUP_RAW


def pack_7bit(raw_data: Union[bytes, List[int]]) -> bytes:
    """
    Pack 8-bit raw data into 7-bit groups.

    Args:
        raw_data: Raw 8-bit data

    Returns:
        Packed data, 8 bytes for every (possibly padded) group of 7

    Example:
        >>> pack_7bit(bytes([0x80]))
        b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    if isinstance(raw_data, list):
        raw_data = bytes(raw_data)

    result = bytearray()

    for i in range(0, len(raw_data), GROUP_RAW):
        chunk = raw_data[i : i + GROUP_RAW]
        group = bytearray(GROUP_PACKED)
        msb = 0
        for j, byte in enumerate(chunk):
            msb |= ((byte >> 7) & 0x01) << j
            group[j] = byte & 0x7F
        group[GROUP_RAW] = msb
        result.extend(group)

    return bytes(result)


def unpack_7bit(packed_data: Union[bytes, List[int]]) -> bytes:
    """
    Unpack 7-bit groups back into 8-bit raw data.

    Trailing bytes that do not form a full 8-byte group are ignored.

    Args:
        packed_data: Packed data from the SysEx payload

    Returns:
        Raw 8-bit data, 7 bytes per group
    """
    if isinstance(packed_data, list):
        packed_data = bytes(packed_data)

    result = bytearray()
    full = len(packed_data) - len(packed_data) % GROUP_PACKED

    for i in range(0, full, GROUP_PACKED):
        group = packed_data[i : i + GROUP_PACKED]
        msb = group[GROUP_RAW]
        for j in range(GROUP_RAW):
            result.append((group[j] & 0x7F) | (((msb >> j) & 0x01) << 7))

    return bytes(result)


def packed_offset(raw_offset: int) -> int:
    """Packed payload offset of the 7-bit data byte carrying ``raw_offset``."""
    return (raw_offset // GROUP_RAW) * GROUP_PACKED + raw_offset % GROUP_RAW


def msb_offset(raw_offset: int) -> int:
    """Packed payload offset of the MSB byte carrying bit 7 of ``raw_offset``."""
    return (raw_offset // GROUP_RAW) * GROUP_PACKED + GROUP_RAW


def raw_offsets_for(packed_index: int) -> List[int]:
    """
    Raw offsets affected by one packed payload byte.

    A data byte maps to a single raw byte; an MSB byte touches all seven raw
    bytes of its group.
    """
    group, position = divmod(packed_index, GROUP_PACKED)
    base = group * GROUP_RAW
    if position == GROUP_RAW:
        return list(range(base, base + GROUP_RAW))
    return [base + position]
