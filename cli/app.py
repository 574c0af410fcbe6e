"""
fcbmanager - preset editor for the Behringer FCB1010 MIDI foot controller.

A CLI tool for editing FCB1010 SysEx dumps and moving them to and from the device.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from cli.commands.common import fail
from cli.commands.diff import diff
from cli.commands.dump import dump
from cli.commands.edit import new, poke, set_field
from cli.commands.info import info
from cli.commands.midi import ports, receive, send
from cli.commands.presets import presets
from cli.commands.validate import validate
from fcbmanager import __version__
from fcbmanager.config import CONFIG_FILE, load_config
from fcbmanager.utils.validation import ConfigError

console = Console()

app = typer.Typer(
    name="fcbmanager",
    help="Edit Behringer FCB1010 preset dumps.",
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="info")(info)
app.command(name="presets")(presets)
app.command(name="dump")(dump)
app.command(name="validate")(validate)
app.command(name="set")(set_field)
app.command(name="poke")(poke)
app.command(name="new")(new)
app.command(name="diff")(diff)
app.command(name="ports")(ports)
app.command(name="receive")(receive)
app.command(name="send")(send)


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through Rich; DEBUG with --verbose, WARNING otherwise."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]fcbmanager[/bold] version {__version__}")
    console.print("[dim]Preset editor for the Behringer FCB1010[/dim]")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool = typer.Option(False, "--version", "-V", help="Show version"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help=f"Config file (default: ./{CONFIG_FILE})"
    ),
) -> None:
    """
    fcbmanager - Edit Behringer FCB1010 preset dumps.

    Every edit goes through one engine that keeps the raw SysEx bytes and
    the decoded presets in sync, so a dump that fails its checks is never
    saved or sent by accident.

    [bold]Quick Start:[/bold]

        fcbmanager receive preset_data.syx   # Capture a dump from the device
        fcbmanager info preset_data.syx      # Status and global channels
        fcbmanager presets preset_data.syx   # Programmed presets

    [bold]Editing Commands:[/bold]

        fcbmanager set 3 pc1 40              # Structured edit
        fcbmanager poke 0x3D 41              # Raw byte edit
        fcbmanager new preset_data.syx       # Fresh default dump

    [bold]Utility Commands:[/bold]

        fcbmanager dump preset_data.syx      # Annotated hex dump
        fcbmanager validate preset_data.syx  # Check framing and checksum
        fcbmanager diff A.syx B.syx          # Compare two dumps
        fcbmanager ports                     # List MIDI ports
        fcbmanager send preset_data.syx      # Send to the device

    Use --help with any command for more details.
    """
    setup_logging(verbose)

    if version_flag:
        version()
        raise typer.Exit()

    try:
        ctx.obj = load_config(config_path)
    except ConfigError as e:
        fail(str(e))
    ctx.meta["config_path"] = str(config_path) if config_path else CONFIG_FILE

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
