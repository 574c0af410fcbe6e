"""FCB1010 SysEx dump format (.syx)."""

from fcbmanager.formats.fcb1010.reader import SyxReader
from fcbmanager.formats.fcb1010.writer import SyxWriter

__all__ = ["SyxReader", "SyxWriter"]
