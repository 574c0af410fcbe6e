"""
Edit commands - change a dump through the structured or the byte view.

Both go through the sync engine, so a structured edit always produces a
re-encoded frame with a fresh checksum and a byte edit is re-decoded before
anything is written back.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from cli.commands.common import fail, get_config, load_engine, parse_int, resolve_file
from fcbmanager.formats.fcb1010.codec import default_frame
from fcbmanager.formats.fcb1010.layout import (
    GLOBAL_FIELDS,
    PRESET_FIELDS,
    describe_frame_offset,
    parse_slot,
    slot_label,
)
from fcbmanager.formats.fcb1010.writer import SyxWriter
from fcbmanager.sync.engine import VALUE_OUT_OF_RANGE, SyncState
from fcbmanager.utils.validation import ValidationError, validate_device_number

console = Console()


def set_field(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Slot index (0-99), label (B03-P04) or 'global'"),
    field_name: str = typer.Argument(..., metavar="FIELD", help="Field name, e.g. pc1 or channel_cc1"),
    value: str = typer.Argument(..., help="New value (decimal or 0x hex)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Dump file; defaults to the configured file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to another file"),
) -> None:
    """
    Set one preset or global field.

    Global channels are stored zero-based (0-15 for MIDI channels 1-16).

    Examples:

        fcbmanager set 3 pc1 40

        fcbmanager set B01-P05 exp_a_controller 7 -f preset_data.syx

        fcbmanager set global channel_pc1 2
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    engine = load_engine(file, config.device_number)

    if engine.state is not SyncState.CLEAN:
        fail(f"Dump does not decode ({engine.last_error}); fix it with 'poke' or reload it")

    if target.lower() == "global":
        slot = None
        names = [f.name for f in GLOBAL_FIELDS]
    else:
        try:
            slot = parse_slot(target)
        except ValueError as e:
            fail(str(e))
        names = [f.name for f in PRESET_FIELDS]

    if field_name not in names:
        fail(f"Unknown field {field_name!r}; choose from: {', '.join(names)}")

    new_value = parse_int(value, "Value")
    outcome = engine.edit_field(slot, field_name, new_value)
    try:
        outcome.raise_for_error()
    except ValidationError as e:
        fail(str(e))

    destination = output or file
    SyxWriter.write(engine.snapshot().data, destination)

    where = "global" if slot is None else slot_label(slot)
    if outcome.changed:
        console.print(f"[green]{where} {field_name} = {new_value}[/green] -> {destination}")
    else:
        console.print(f"[dim]{where} {field_name} already {new_value}[/dim]")


def poke(
    ctx: typer.Context,
    offset: str = typer.Argument(..., help="Frame offset (decimal or 0x hex)"),
    value: str = typer.Argument(..., help="New byte value (decimal or 0x hex)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Dump file; defaults to the configured file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to another file"),
    no_reseal: bool = typer.Option(
        False, "--no-reseal", help="Leave the checksum alone after a payload edit"
    ),
    force: bool = typer.Option(False, "--force", help="Save even if the frame no longer decodes"),
) -> None:
    """
    Write one raw byte of the frame, as in a hex editor.

    Payload edits reseal the checksum unless --no-reseal is given. The file
    is only written when the edited frame still decodes, or with --force.

    Examples:

        fcbmanager poke 0x3D 41

        fcbmanager poke 2327 0 --no-reseal --force
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    engine = load_engine(file, config.device_number)

    frame_offset = parse_int(offset, "Offset")
    byte_value = parse_int(value, "Value")

    outcome = engine.edit_byte(frame_offset, byte_value, reseal=not no_reseal)
    if not outcome.ok and outcome.error.kind == VALUE_OUT_OF_RANGE:
        fail(str(outcome.error))

    where = describe_frame_offset(frame_offset)
    if not outcome.ok:
        console.print(f"[red]Frame no longer decodes: {outcome.error}[/red]")
        if not force:
            console.print("[dim]Nothing written (use --force to save anyway)[/dim]")
            raise typer.Exit(1)

    destination = output or file
    SyxWriter.write(engine.snapshot().data, destination)
    console.print(
        f"[green]0x{frame_offset:04X} ({where}) = 0x{byte_value:02X}[/green] -> {destination}"
    )


def new(
    output: Path = typer.Argument(..., help="File to create"),
    device: int = typer.Option(0, "--device", "-d", help="Device number (0-127)"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing file"),
) -> None:
    """
    Create a dump with every preset and channel at its default.

    Examples:

        fcbmanager new preset_data.syx
    """
    try:
        validate_device_number(device)
    except ValidationError as e:
        fail(str(e))

    if output.exists() and not overwrite:
        fail(f"{output} already exists (use --overwrite)")

    data = default_frame(device)
    SyxWriter.write(data, output)
    console.print(f"[green]Created {output}[/green] ({len(data)} bytes, device {device})")
