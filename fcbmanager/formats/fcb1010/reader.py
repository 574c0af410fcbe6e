"""
FCB1010 SysEx file reader.

Loads .syx files holding one dump frame. The reader only hands back whole
byte buffers; decoding belongs to the codec and the sync engine.
"""

import logging
from pathlib import Path
from typing import Union

from fcbmanager.formats.fcb1010.layout import MANUFACTURER_ID, MODEL_ID, SYSEX_START

logger = logging.getLogger(__name__)


class SyxReader:
    """
    Reader for FCB1010 .syx dump files.

    Example:
        data = SyxReader.read("preset_data.syx")
        engine.load_bytes(data)
    """

    @classmethod
    def read(cls, filepath: Union[str, Path]) -> bytes:
        """
        Read a dump file.

        Args:
            filepath: Path to .syx file

        Returns:
            File contents, unmodified
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, "rb") as f:
            data = f.read()

        logger.debug("Read %d bytes from %s", len(data), filepath)
        return data

    @classmethod
    def can_read(cls, filepath: Union[str, Path]) -> bool:
        """
        Check if a file looks like an FCB1010 dump.

        Args:
            filepath: Path to check

        Returns:
            True if the file starts with an FCB1010 SysEx header
        """
        filepath = Path(filepath)

        if not filepath.exists():
            return False

        try:
            with open(filepath, "rb") as f:
                header = f.read(6)
        except OSError:
            return False

        return (
            len(header) == 6
            and header[0] == SYSEX_START
            and tuple(header[1:4]) == MANUFACTURER_ID
            and header[5] == MODEL_ID
        )
