"""
Helpers shared by the CLI commands.
"""

from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console

from fcbmanager.config import AppConfig, load_config
from fcbmanager.formats.fcb1010.reader import SyxReader
from fcbmanager.sync.engine import SyncEngine

console = Console()


def fail(message: str) -> NoReturn:
    """Print an error in red and exit with status 1."""
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def get_config(ctx: Optional[typer.Context]) -> AppConfig:
    """Config loaded by the app callback, or the defaults."""
    if ctx is not None and isinstance(ctx.obj, AppConfig):
        return ctx.obj
    return load_config()


def parse_int(text: str, name: str) -> int:
    """Parse a decimal or 0x-prefixed number given on the command line."""
    try:
        return int(text, 0)
    except ValueError:
        fail(f"{name} must be a number (decimal or 0x hex), got {text!r}")


def resolve_file(file: Optional[Path], config: AppConfig) -> Path:
    """The dump file argument, falling back to the configured default."""
    return file if file is not None else Path(config.sysex_file)


def load_engine(file: Path, device_number: Optional[int] = None) -> SyncEngine:
    """
    Read a dump file into a fresh engine.

    The engine is returned even when the frame does not decode; callers
    look at its state.
    """
    if not file.exists():
        fail(f"File not found: {file}")

    data = SyxReader.read(file)
    return SyncEngine(data=data, device_number=device_number)
