"""Format handlers for FCB1010 dumps."""

from fcbmanager.formats.fcb1010 import SyxReader, SyxWriter

__all__ = ["SyxReader", "SyxWriter"]
