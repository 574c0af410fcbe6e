"""
FCB1010 SysEx file writer.
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class SyxWriter:
    """
    Writer for FCB1010 .syx dump files.

    Example:
        SyxWriter.write(engine.snapshot().data, "preset_data.syx")
    """

    @classmethod
    def write(cls, data: bytes, filepath: Union[str, Path]) -> None:
        """
        Write a byte buffer to a dump file.

        Args:
            data: Complete frame bytes
            filepath: Output file path
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, "wb") as f:
            f.write(bytes(data))

        logger.debug("Wrote %d bytes to %s", len(data), filepath)
