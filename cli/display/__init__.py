"""
CLI display modules.
"""

from cli.display.tables import (
    display_anomalies,
    display_dump_info,
    display_globals,
    display_presets,
)
from cli.display.hex_view import display_hex_dump, format_hexdump

__all__ = [
    "display_anomalies",
    "display_dump_info",
    "display_globals",
    "display_presets",
    "display_hex_dump",
    "format_hexdump",
]
