"""Utility functions for fcbmanager."""

from fcbmanager.utils.packing import pack_7bit, unpack_7bit
from fcbmanager.utils.checksum import calculate_checksum, verify_checksum

__all__ = [
    "pack_7bit",
    "unpack_7bit",
    "calculate_checksum",
    "verify_checksum",
]
