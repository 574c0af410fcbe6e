"""
Diff command - compare two FCB1010 dumps.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cli.commands.common import fail
from cli.display.hex_view import display_hex_comparison
from fcbmanager.formats.fcb1010.codec import decode
from fcbmanager.formats.fcb1010.layout import (
    GLOBAL_FIELDS,
    PRESET_COUNT,
    PRESET_FIELDS,
    describe_frame_offset,
    slot_label,
)
from fcbmanager.formats.fcb1010.reader import SyxReader

console = Console()


@dataclass
class DiffEntry:
    """A single difference between two dumps."""

    area: str
    description: str
    value_a: str
    value_b: str
    offset: int = -1


@dataclass
class DiffResult:
    """Result of comparing two dumps."""

    file_a: str
    file_b: str
    identical: bool
    byte_differences: int
    field_differences: List[DiffEntry] = field(default_factory=list)
    summary: str = ""


class DumpDiffer:
    """
    Compare two dumps.

    When both frames decode the differences are reported per field; otherwise
    they are reported per frame byte.
    """

    def __init__(self, data_a: bytes, data_b: bytes, name_a: str, name_b: str):
        self.data_a = data_a
        self.data_b = data_b
        self.name_a = name_a
        self.name_b = name_b

    def diff(self) -> DiffResult:
        byte_diffs = self._byte_offsets()
        byte_count = len(byte_diffs) + abs(len(self.data_a) - len(self.data_b))

        if byte_count == 0:
            return DiffResult(self.name_a, self.name_b, True, 0, summary="Files are identical")

        result_a = decode(self.data_a)
        result_b = decode(self.data_b)

        if result_a.ok and result_b.ok:
            entries = self._field_diffs(result_a.model, result_b.model)
            summary = f"{byte_count} bytes differ, {len(entries)} field differences"
        else:
            entries = [
                DiffEntry(
                    "Bytes",
                    describe_frame_offset(offset),
                    f"0x{self.data_a[offset]:02X}",
                    f"0x{self.data_b[offset]:02X}",
                    offset,
                )
                for offset in byte_diffs
            ]
            broken = self.name_a if not result_a.ok else self.name_b
            summary = f"{byte_count} bytes differ ({broken} does not decode, comparing bytes)"

        return DiffResult(self.name_a, self.name_b, False, byte_count, entries, summary)

    def _byte_offsets(self) -> List[int]:
        common = min(len(self.data_a), len(self.data_b))
        return [i for i in range(common) if self.data_a[i] != self.data_b[i]]

    def _field_diffs(self, model_a, model_b) -> List[DiffEntry]:
        entries = []

        if model_a.device_number != model_b.device_number:
            entries.append(
                DiffEntry(
                    "Header",
                    "device number",
                    str(model_a.device_number),
                    str(model_b.device_number),
                )
            )

        for spec in GLOBAL_FIELDS:
            a = getattr(model_a.global_settings, spec.name)
            b = getattr(model_b.global_settings, spec.name)
            if a != b:
                entries.append(DiffEntry("Global", spec.name, str(a + 1), str(b + 1)))

        for slot in range(PRESET_COUNT):
            preset_a = model_a.presets[slot]
            preset_b = model_b.presets[slot]
            if preset_a == preset_b:
                continue
            for spec in PRESET_FIELDS:
                a = getattr(preset_a, spec.name)
                b = getattr(preset_b, spec.name)
                if a != b:
                    entries.append(DiffEntry(slot_label(slot), spec.name, str(a), str(b)))

        if model_a.reserved != model_b.reserved:
            count = sum(1 for x, y in zip(model_a.reserved, model_b.reserved) if x != y)
            entries.append(DiffEntry("Reserved", "opaque bytes", f"{count} differ", ""))

        return entries


def display_diff(result: DiffResult) -> None:
    """Display diff result with Rich formatting."""
    if result.identical:
        console.print(
            Panel(
                f"[green]Files are identical[/green]\n\n"
                f"File A: {result.file_a}\nFile B: {result.file_b}",
                title="[bold green]No Differences[/bold green]",
                border_style="green",
            )
        )
        return

    console.print(
        Panel(
            f"[bold]File A:[/bold] {result.file_a}\n"
            f"[bold]File B:[/bold] {result.file_b}\n\n"
            f"[yellow]{result.summary}[/yellow]",
            title="[bold red]Differences Found[/bold red]",
            border_style="red",
        )
    )

    table = Table(title="Differences", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Offset", style="dim", width=8)
    table.add_column("Area", style="cyan", width=10)
    table.add_column("Field", width=30)
    table.add_column("File A", width=10)
    table.add_column("File B", width=10)

    for entry in result.field_differences:
        table.add_row(
            f"0x{entry.offset:04X}" if entry.offset >= 0 else "",
            entry.area,
            entry.description,
            entry.value_a,
            entry.value_b,
        )

    console.print(table)


def diff(
    file_a: Path = typer.Argument(..., help="First dump to compare"),
    file_b: Path = typer.Argument(..., help="Second dump to compare"),
    raw: bool = typer.Option(False, "--raw", "-r", help="Show raw hex comparison"),
) -> None:
    """
    Compare two dumps and show which presets and settings differ.

    Exits with status 1 when the files differ.

    Examples:

        fcbmanager diff backup.syx preset_data.syx

        fcbmanager diff backup.syx preset_data.syx --raw
    """
    for f in [file_a, file_b]:
        if not f.exists():
            fail(f"File not found: {f}")

    data_a = SyxReader.read(file_a)
    data_b = SyxReader.read(file_b)

    result = DumpDiffer(data_a, data_b, str(file_a), str(file_b)).diff()
    display_diff(result)

    if raw and not result.identical:
        console.print()
        display_hex_comparison(data_a, data_b, file_a.name, file_b.name)

    if not result.identical:
        raise typer.Exit(1)
