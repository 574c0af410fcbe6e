"""
Info command - overview of an FCB1010 dump.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from cli.commands.common import get_config, load_engine, resolve_file
from cli.display.tables import display_dump_info, display_presets
from fcbmanager.models.preset import Preset

console = Console()


def info(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Dump file (.syx); defaults to the configured file"),
    presets: bool = typer.Option(False, "--presets", "-p", help="Also list programmed presets"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """
    Show dump status, device number and global settings.

    Examples:

        fcbmanager info preset_data.syx

        fcbmanager info preset_data.syx --presets

        fcbmanager info preset_data.syx --json
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    engine = load_engine(file, config.device_number)
    snapshot = engine.snapshot()

    if json_output:
        _output_json(snapshot, file)
        if not snapshot.clean:
            raise typer.Exit(1)
        return

    display_dump_info(snapshot, str(file))

    if presets:
        slots = [i for i, p in enumerate(snapshot.model.presets) if p != Preset()]
        if slots:
            display_presets(snapshot.model, slots)
        else:
            console.print("[dim]All presets are at their defaults[/dim]")

    if not snapshot.clean:
        raise typer.Exit(1)


def _output_json(snapshot, file: Path) -> None:
    """Output the snapshot as JSON."""
    model = snapshot.model
    output = {
        "file": str(file),
        "size": len(snapshot.data),
        "valid": snapshot.clean,
        "error": str(snapshot.last_error) if snapshot.last_error else None,
        "device_number": model.device_number,
        "global_settings": model.global_settings.to_dict(),
        "presets": [p.to_dict() for p in model.presets],
        "anomalies": [
            {
                "slot": a.slot,
                "field": a.field,
                "raw_value": a.raw_value,
                "clamped_value": a.clamped_value,
            }
            for a in snapshot.anomalies
        ],
    }
    console.print_json(data=output)
