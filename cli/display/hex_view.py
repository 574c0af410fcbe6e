"""
Hex dump display utilities.

Every line is tagged with the frame region it starts in (header, packed
presets, reserved, globals, checksum) so the byte view can be read against
the structured view.
"""

from typing import Iterable, List, Optional, Set, Tuple

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from fcbmanager.formats.fcb1010.layout import frame_regions

console = Console()

REGIONS: List[Tuple[int, int, str, str, str]] = frame_regions()


def get_region_for_offset(offset: int) -> Tuple[str, str, str]:
    """Get region name, description, and color for a frame offset."""
    for start, end, name, desc, color in REGIONS:
        if start <= offset < end:
            return name, desc, color
    return "UNKNOWN", "Outside frame", "white"


def find_region(name: str) -> Optional[Tuple[int, int, str, str, str]]:
    """Region tuple by (case-insensitive) name."""
    for region in REGIONS:
        if region[2] == name.upper():
            return region
    return None


def format_hexdump(
    data: bytes,
    start: int = 0,
    length: int = 0,
    width: int = 16,
) -> str:
    """
    Plain-text annotated hexdump.

    Args:
        data: Frame bytes
        start: First offset to show
        length: Number of bytes (0 = to the end)
        width: Bytes per line

    Returns:
        One line per ``width`` bytes: offset, region tag, hex bytes
    """
    if length <= 0:
        length = len(data) - start
    end = min(start + length, len(data))

    lines = []
    for offset in range(start, end, width):
        chunk = data[offset : min(offset + width, end)]
        region_name, _, _ = get_region_for_offset(offset)
        hex_str = " ".join(f"{b:02X}" for b in chunk)
        lines.append(f"{offset:04X}  [{region_name:8s}]  {hex_str}")
    return "\n".join(lines)


def format_hex_line(
    data: bytes,
    offset: int,
    bytes_per_line: int = 16,
    highlight: Optional[Set[int]] = None,
) -> Text:
    """
    Format a single line of hex dump with colors and annotations.

    Bytes whose offset is in ``highlight`` are shown in reverse video; bytes
    with bit 7 set inside the payload can never decode and are shown in red.
    """
    region_name, _, region_color = get_region_for_offset(offset)
    highlight = highlight or set()

    text = Text()
    text.append(f"0x{offset:04X} ", style="dim")
    text.append(f"[{region_name:8s}] ", style=region_color)

    for i, byte in enumerate(data):
        position = offset + i
        byte_region, _, byte_color = get_region_for_offset(position)

        if position in highlight:
            style = "reverse bold"
        elif byte_region in ("PRESETS", "RESERVED", "GLOBAL") and byte & 0x80:
            style = "bold red"
        elif byte == 0x00:
            style = "dim"
        else:
            style = byte_color if byte_region != region_name else "bold white"

        text.append(f"{byte:02X}", style=style)
        text.append(" ")

    if len(data) < bytes_per_line:
        text.append("   " * (bytes_per_line - len(data)))

    return text


def create_legend() -> Table:
    """Create a legend for the hex dump colors."""
    table = Table(title="Legend", box=box.SIMPLE, show_header=False, expand=False)
    table.add_column("Region", width=10)
    table.add_column("Description", width=40)

    for start, end, name, desc, color in REGIONS:
        size = end - start
        table.add_row(
            Text(name, style=color),
            f"{desc} ({size} bytes, 0x{start:04X}-0x{end - 1:04X})",
        )

    return table


def display_hex_dump(
    data: bytes,
    start: int = 0,
    length: int = 0,
    width: int = 16,
    highlight: Optional[Iterable[int]] = None,
    non_zero: bool = False,
) -> int:
    """
    Print an annotated hex dump with Rich.

    Returns:
        Number of lines printed
    """
    if length <= 0:
        length = len(data) - start
    end = min(start + length, len(data))
    marked = set(highlight or ())

    header = Text()
    header.append("OFFSET ", style="dim")
    header.append(f"{'REGION':11s} ", style="dim")
    header.append(" ".join(f"{i:02X}" for i in range(width)), style="dim")
    console.print(header)
    console.print("─" * (7 + 12 + width * 3))

    lines_shown = 0
    for offset in range(start, end, width):
        chunk = data[offset : min(offset + width, end)]
        if non_zero and not any(chunk) and not marked.intersection(range(offset, offset + width)):
            continue
        console.print(format_hex_line(chunk, offset, width, marked))
        lines_shown += 1

    return lines_shown


def display_hex_comparison(
    data1: bytes,
    data2: bytes,
    title1: str = "File 1",
    title2: str = "File 2",
    bytes_per_line: int = 16,
) -> None:
    """Display side-by-side hex comparison of the lines that differ."""
    max_len = max(len(data1), len(data2))
    lines = []

    for offset in range(0, max_len, bytes_per_line):
        chunk1 = data1[offset : offset + bytes_per_line]
        chunk2 = data2[offset : offset + bytes_per_line]
        if chunk1 == chunk2:
            continue

        hex1_parts = []
        hex2_parts = []
        for i in range(bytes_per_line):
            b1 = chunk1[i] if i < len(chunk1) else None
            b2 = chunk2[i] if i < len(chunk2) else None

            if b1 is None:
                hex1_parts.append("[dim]--[/dim]")
            elif b2 is None or b1 != b2:
                hex1_parts.append(f"[red]{b1:02X}[/red]")
            else:
                hex1_parts.append(f"{b1:02X}")

            if b2 is None:
                hex2_parts.append("[dim]--[/dim]")
            elif b1 is None or b1 != b2:
                hex2_parts.append(f"[green]{b2:02X}[/green]")
            else:
                hex2_parts.append(f"{b2:02X}")

        lines.append(f"[dim]{offset:04X}[/dim] | {' '.join(hex1_parts)} | {' '.join(hex2_parts)}")

    header = f"[bold]Offset | {title1:<{bytes_per_line * 3}} | {title2}[/bold]"
    console.print(header)
    console.print("-" * (10 + bytes_per_line * 6 + 6))

    for line in lines:
        console.print(line)
