"""
Presets command - table of preset slots.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from cli.commands.common import fail, get_config, load_engine, parse_int, resolve_file
from cli.display.tables import display_presets
from fcbmanager.formats.fcb1010.layout import BANK_COUNT, PRESET_COUNT, PRESETS_PER_BANK
from fcbmanager.models.preset import Preset

console = Console()


def presets(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Dump file (.syx); defaults to the configured file"),
    bank: Optional[str] = typer.Option(None, "--bank", "-b", help="Only show one bank (0-9)"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include presets left at defaults"),
) -> None:
    """
    List preset slots with their MIDI messages and pedal assignments.

    Examples:

        fcbmanager presets preset_data.syx

        fcbmanager presets preset_data.syx --bank 3 --all
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    engine = load_engine(file, config.device_number)
    snapshot = engine.snapshot()

    if not snapshot.clean:
        fail(f"Dump does not decode: {snapshot.last_error}")

    if bank is not None:
        bank_number = parse_int(bank, "Bank")
        if not 0 <= bank_number < BANK_COUNT:
            fail(f"Bank must be 0-{BANK_COUNT - 1}, got {bank_number}")
        start = bank_number * PRESETS_PER_BANK
        slots = list(range(start, start + PRESETS_PER_BANK))
    else:
        slots = list(range(PRESET_COUNT))

    if not show_all:
        slots = [s for s in slots if snapshot.model.presets[s] != Preset()]

    if not slots:
        console.print("[dim]No programmed presets (use --all to list every slot)[/dim]")
        return

    rows = display_presets(snapshot.model, slots)
    console.print(f"[dim]{rows} presets shown[/dim]")
