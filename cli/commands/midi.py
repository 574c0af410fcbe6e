"""
MIDI commands - list ports, receive a dump from the pedal board, send one back.
"""

from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from cli.commands.common import fail, get_config, load_engine, resolve_file
from fcbmanager.formats.fcb1010.codec import decode
from fcbmanager.formats.fcb1010.writer import SyxWriter
from fcbmanager.sync.engine import TRANSPORT_FAILURE
from fcbmanager.transport.midi import MidoTransport, list_ports
from fcbmanager.utils.validation import FCBError, TransportError

console = Console()


def ports() -> None:
    """List available MIDI input and output ports."""
    try:
        inputs = list_ports("input")
        outputs = list_ports("output")
    except TransportError as e:
        fail(str(e))

    table = Table(title="MIDI Ports", box=box.ROUNDED, show_header=True, header_style="bold magenta")
    table.add_column("Direction", style="cyan", width=10)
    table.add_column("Name")

    for name in inputs:
        table.add_row("input", name)
    for name in outputs:
        table.add_row("output", name)

    if not inputs and not outputs:
        console.print("[yellow]No MIDI ports found[/yellow]")
        return

    console.print(table)


def receive(
    ctx: typer.Context,
    output: Optional[Path] = typer.Argument(None, help="File to save; defaults to the configured file"),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="MIDI input port (substring)"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Seconds to wait"),
    force: bool = typer.Option(False, "--force", help="Save even if the dump does not decode"),
    save_port: bool = typer.Option(False, "--save-port", help="Remember the port in the config file"),
) -> None:
    """
    Wait for a dump from the FCB1010 and save it.

    Start the dump on the device after running this command.

    Examples:

        fcbmanager receive preset_data.syx --port "USB MIDI"
    """
    config = get_config(ctx)
    output = resolve_file(output, config)
    port_name = port or config.port_name
    wait = timeout if timeout is not None else config.receive_timeout

    transport = MidoTransport(input_name=port_name)
    console.print(f"[dim]Waiting up to {wait:.0f}s for a dump...[/dim]")
    try:
        frame = transport.receive(timeout=wait)
    except TransportError as e:
        fail(str(e))

    if frame is None:
        fail("No dump received before the timeout")

    result = decode(frame, config.device_number)
    if not result.ok:
        console.print(f"[red]Received {len(frame)} bytes that do not decode: {result.error}[/red]")
        if not force:
            raise typer.Exit(1)

    SyxWriter.write(frame, output)
    console.print(f"[green]Saved {len(frame)} bytes to {output}[/green]")

    if save_port and port_name:
        config.port_name = port_name
        try:
            config.save(ctx.meta.get("config_path") or "config.json")
        except FCBError as e:
            fail(str(e))


def send(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Dump file (.syx); defaults to the configured file"),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="MIDI output port (substring)"),
) -> None:
    """
    Send a dump to the FCB1010.

    Only dumps that decode cleanly are sent.

    Examples:

        fcbmanager send preset_data.syx --port "USB MIDI"
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    engine = load_engine(file, config.device_number)

    transport = MidoTransport(output_name=port or config.port_name)
    transport.on_error = engine.report_transport_failure
    engine.sender = transport.send

    try:
        transport.open(output=True, input=False)
    except TransportError as e:
        fail(str(e))

    try:
        outcome = engine.send()
        outcome.raise_for_error()
        last = engine.last_error
        if last is not None and last.kind == TRANSPORT_FAILURE:
            raise TransportError(last.message)
    except FCBError as e:
        fail(str(e))
    finally:
        transport.close()

    console.print(f"[green]Sent {file} ({len(engine.snapshot().data)} bytes)[/green]")
