"""
Validate command - check FCB1010 dump integrity and structure.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cli.commands.common import fail, get_config, resolve_file
from fcbmanager.formats.fcb1010.codec import decode
from fcbmanager.formats.fcb1010.layout import (
    FRAME_LENGTH,
    PAYLOAD_OFFSET,
    RESERVED_REGIONS,
    preset_base,
    preset_field,
    slot_label,
)
from fcbmanager.formats.fcb1010.reader import SyxReader
from fcbmanager.utils.packing import packed_offset

console = Console()


@dataclass
class ValidationIssue:
    """A single validation issue."""

    severity: str  # "error", "warning", "info"
    area: str
    offset: int
    message: str


@dataclass
class ValidationResult:
    """Result of validating a dump file."""

    filepath: str
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    info: List[ValidationIssue] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.info)


class DumpValidator:
    """Validate a dump frame: framing, checksum and field domains."""

    def __init__(self, data: bytes, filepath: str, device_number: Optional[int] = None):
        self.data = data
        self.filepath = filepath
        self.device_number = device_number
        self.issues: List[ValidationIssue] = []

    def validate(self) -> ValidationResult:
        """Perform full validation and return result."""
        self.issues = []

        self._validate_file_size()
        result = decode(self.data, self.device_number)

        if result.ok:
            self._add_issue("info", "Frame", 0, "Header, length and checksum are valid")
            self._validate_anomalies(result.anomalies)
            self._validate_reserved(result.model.reserved)
        else:
            error = result.error
            self._add_issue(
                "error",
                error.kind.value.replace("_", " ").title(),
                error.offset if error.offset is not None else 0,
                error.message,
            )

        errors = [i for i in self.issues if i.severity == "error"]
        warnings = [i for i in self.issues if i.severity == "warning"]
        info = [i for i in self.issues if i.severity == "info"]

        return ValidationResult(
            filepath=self.filepath,
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            info=info,
        )

    def _add_issue(self, severity: str, area: str, offset: int, message: str) -> None:
        self.issues.append(ValidationIssue(severity, area, offset, message))

    def _validate_file_size(self) -> None:
        if len(self.data) == FRAME_LENGTH:
            self._add_issue("info", "File Size", 0, f"File size is valid ({FRAME_LENGTH} bytes)")

    def _validate_anomalies(self, anomalies) -> None:
        """Out-of-range preset values are usable after clamping, so they only warn."""
        for anomaly in anomalies:
            spec = preset_field(anomaly.field)
            raw = preset_base(anomaly.slot) + spec.offset
            self._add_issue(
                "warning",
                slot_label(anomaly.slot),
                PAYLOAD_OFFSET + packed_offset(raw),
                f"{anomaly.field} stored as {anomaly.raw_value}, "
                f"outside {spec.minimum}-{spec.maximum}; used as {anomaly.clamped_value}",
            )

    def _validate_reserved(self, reserved: bytes) -> None:
        used = sum(1 for b in reserved if b)
        start = RESERVED_REGIONS[0][0]
        if used:
            self._add_issue(
                "info",
                "Reserved",
                PAYLOAD_OFFSET + packed_offset(start),
                f"Reserved area holds {used} non-zero bytes (kept as-is)",
            )
        else:
            self._add_issue("info", "Reserved", PAYLOAD_OFFSET + packed_offset(start), "Reserved area is empty")


def display_validation(result: ValidationResult, verbose: bool = False) -> None:
    """Display validation result with Rich formatting."""
    if result.valid:
        status = "[bold green]VALID[/bold green]"
        border = "green"
    else:
        status = "[bold red]INVALID[/bold red]"
        border = "red"

    console.print(
        Panel(
            f"[bold]File:[/bold] {result.filepath}\n"
            f"[bold]Status:[/bold] {status}\n\n"
            f"Errors: [red]{len(result.errors)}[/red]  "
            f"Warnings: [yellow]{len(result.warnings)}[/yellow]  "
            f"Info: [blue]{len(result.info)}[/blue]",
            title="[bold]Validation Result[/bold]",
            border_style=border,
        )
    )

    if result.errors or result.warnings:
        table = Table(title="Issues", box=box.ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column("Severity", width=10)
        table.add_column("Area", style="cyan", width=18)
        table.add_column("Offset", style="dim", width=8)
        table.add_column("Message", width=50)

        for issue in result.errors:
            table.add_row("[red]ERROR[/red]", issue.area, f"0x{issue.offset:04X}", issue.message)

        for issue in result.warnings:
            table.add_row("[yellow]WARN[/yellow]", issue.area, f"0x{issue.offset:04X}", issue.message)

        console.print(table)

    if result.info and (verbose or (not result.errors and not result.warnings)):
        info_table = Table(title="Validation Checks", box=box.SIMPLE, show_header=False)
        info_table.add_column("", width=70)

        for issue in result.info:
            info_table.add_row(f"[green]OK[/green] {issue.area}: {issue.message}")

        console.print(info_table)


def validate(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Dump file (.syx); defaults to the configured file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show all validation details"),
    strict: bool = typer.Option(False, "--strict", "-s", help="Treat warnings as errors"),
    any_device: bool = typer.Option(
        False, "--any-device", help="Accept dumps from any device number"
    ),
) -> None:
    """
    Validate a dump file before loading it into hardware.

    Checks for:

    - SysEx start/end markers and the FCB1010 header
    - Payload length and 7-bit data bytes
    - Checksum
    - Global channel and preset value ranges

    Examples:

        fcbmanager validate preset_data.syx

        fcbmanager validate preset_data.syx --strict
    """
    config = get_config(ctx)
    file = resolve_file(file, config)
    if not file.exists():
        fail(f"File not found: {file}")

    data = SyxReader.read(file)
    device_number = None if any_device else config.device_number

    result = DumpValidator(data, str(file), device_number).validate()

    if strict and result.warnings:
        result.valid = False

    display_validation(result, verbose)

    if not result.valid:
        raise typer.Exit(1)
