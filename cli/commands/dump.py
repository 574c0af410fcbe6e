"""
Dump command - annotated hex dump of an FCB1010 SysEx frame.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from cli.commands.common import fail, get_config, load_engine, parse_int, resolve_file
from cli.display.hex_view import (
    REGIONS,
    create_legend,
    display_hex_dump,
    find_region,
    format_hexdump,
)

console = Console()


def dump(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Dump file (.syx); defaults to the configured file"),
    start: str = typer.Option("0", "--start", "-s", help="Start offset (hex or decimal)"),
    length: str = typer.Option("0", "--length", "-l", help="Number of bytes (0=all)"),
    width: int = typer.Option(16, "--width", "-w", help="Bytes per line"),
    no_legend: bool = typer.Option(False, "--no-legend", help="Hide the legend"),
    region: str = typer.Option(
        "", "--region", "-r", help="Show only specific region (e.g., PRESETS, GLOBAL)"
    ),
    non_zero: bool = typer.Option(False, "--non-zero", "-n", help="Skip all-zero lines"),
    plain: bool = typer.Option(False, "--plain", help="Plain text output without colors"),
) -> None:
    """
    Annotated hex dump of a dump frame.

    Shows the frame structure with:
    - Color-coded regions (header, packed presets, reserved, globals, checksum)
    - Payload bytes with bit 7 set highlighted as errors
    - The decode status of the frame

    Examples:

        fcbmanager dump preset_data.syx

        fcbmanager dump preset_data.syx --region GLOBAL

        fcbmanager dump preset_data.syx --start 0x40 --length 64
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    engine = load_engine(file, config.device_number)
    snapshot = engine.snapshot()
    data = snapshot.data

    start_offset = parse_int(start, "Start")
    byte_count = parse_int(length, "Length")
    if width <= 0:
        fail("Width must be positive")

    if region:
        found = find_region(region)
        if found is None:
            console.print(f"[red]Unknown region: {region}[/red]")
            console.print("Available regions: " + ", ".join(r[2] for r in REGIONS))
            raise typer.Exit(1)
        r_start, r_end, r_name, r_desc, r_color = found
        start_offset = r_start
        byte_count = r_end - r_start
        if not plain:
            console.print(f"[{r_color}]Showing region: {r_name} - {r_desc}[/{r_color}]")

    if not 0 <= start_offset < len(data):
        fail(f"Start offset 0x{start_offset:X} is outside the {len(data)} byte file")

    if plain:
        typer.echo(format_hexdump(data, start_offset, byte_count, width))
        return

    if byte_count <= 0:
        byte_count = len(data) - start_offset
    end = min(start_offset + byte_count, len(data))

    if not no_legend and not region:
        console.print(create_legend())
        console.print()

    status = "[green]decodes cleanly[/green]" if snapshot.clean else f"[red]{snapshot.last_error}[/red]"
    console.print(
        Panel(
            f"[bold]File:[/bold] {file}\n"
            f"[bold]Size:[/bold] {len(data)} bytes\n"
            f"[bold]Status:[/bold] {status}\n"
            f"[bold]Showing:[/bold] 0x{start_offset:04X} - 0x{end - 1:04X} ({end - start_offset} bytes)",
            title="[bold]FCB1010 Hex Dump[/bold]",
            border_style="blue",
        )
    )
    console.print()

    highlight = []
    if snapshot.last_error is not None and snapshot.last_error.offset is not None:
        highlight.append(snapshot.last_error.offset)

    lines_shown = display_hex_dump(data, start_offset, end - start_offset, width, highlight, non_zero)

    console.print()
    console.print(f"[dim]Total: {lines_shown} lines displayed[/dim]")
