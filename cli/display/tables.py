"""
Rich table displays for FCB1010 dumps.
"""

from typing import Iterable, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fcbmanager.formats.fcb1010.codec import FieldAnomaly
from fcbmanager.formats.fcb1010.layout import GLOBAL_FIELDS, slot_label
from fcbmanager.models.preset import Preset, PresetModel
from fcbmanager.sync.engine import Snapshot

console = Console()


def channel_to_string(channel: int) -> str:
    """Zero-based channel as shown on the device (1-16)."""
    return str(channel + 1)


def display_dump_info(snapshot: Snapshot, filepath: Optional[str] = None) -> None:
    """Overview panel plus global channel table for one dump."""
    model = snapshot.model

    if snapshot.clean:
        status = "[green]Valid[/green]"
    else:
        status = f"[red]Invalid[/red] ({snapshot.last_error})"

    used = sum(1 for p in model.presets if p != Preset())
    lines = []
    if filepath:
        lines.append(f"[bold]File:[/bold] {filepath}")
    lines += [
        f"[bold]Size:[/bold] {len(snapshot.data)} bytes",
        f"[bold]Status:[/bold] {status}",
        f"[bold]Device Number:[/bold] {model.device_number}",
        f"[bold]Checksum:[/bold] 0x{snapshot.data[-2]:02X}" if len(snapshot.data) >= 2 else "",
        f"[bold]Programmed Presets:[/bold] {used} of {len(model.presets)}",
        f"[bold]Anomalies:[/bold] {len(snapshot.anomalies)}",
    ]

    console.print(
        Panel(
            "\n".join(line for line in lines if line),
            title="[bold blue]FCB1010 Dump Info[/bold blue]",
            border_style="blue",
            expand=False,
        )
    )

    display_globals(model)

    if snapshot.anomalies:
        display_anomalies(snapshot.anomalies)


def display_globals(model: PresetModel) -> None:
    """Global MIDI channel assignments."""
    table = Table(
        title="Global MIDI Channels", box=box.ROUNDED, show_header=True, header_style="bold magenta"
    )
    table.add_column("Field", style="cyan", width=16)
    table.add_column("Channel", justify="right", width=8)
    table.add_column("Description", style="dim")

    for spec in GLOBAL_FIELDS:
        value = getattr(model.global_settings, spec.name)
        table.add_row(spec.name, channel_to_string(value), spec.description)

    console.print(table)


def display_presets(model: PresetModel, slots: Iterable[int]) -> int:
    """
    Table of preset slots.

    Returns:
        Number of rows shown
    """
    table = Table(title="Presets", box=box.ROUNDED, show_header=True, header_style="bold magenta")
    table.add_column("Slot", style="cyan", width=8)
    table.add_column("PC 1-5", width=20)
    table.add_column("CC1", width=8)
    table.add_column("CC2", width=8)
    table.add_column("Exp A", width=12)
    table.add_column("Exp B", width=12)
    table.add_column("Note", justify="right", width=5)

    rows = 0
    for slot in slots:
        p = model.presets[slot]
        table.add_row(
            slot_label(slot),
            " ".join(f"{pc:3d}" for pc in p.program_changes),
            f"{p.cc1_controller}={p.cc1_value}",
            f"{p.cc2_controller}={p.cc2_value}",
            f"{p.exp_a_controller} {p.exp_a_min}-{p.exp_a_max}",
            f"{p.exp_b_controller} {p.exp_b_min}-{p.exp_b_max}",
            str(p.note),
        )
        rows += 1

    console.print(table)
    return rows


def display_anomalies(anomalies: Sequence[FieldAnomaly]) -> None:
    """Preset values that were clamped while decoding."""
    table = Table(title="Clamped Values", box=box.SIMPLE, header_style="bold yellow")
    table.add_column("Slot", style="cyan", width=8)
    table.add_column("Field", width=18)
    table.add_column("Stored", justify="right", width=7)
    table.add_column("Used", justify="right", width=7)

    for anomaly in anomalies:
        table.add_row(
            slot_label(anomaly.slot),
            anomaly.field,
            str(anomaly.raw_value),
            str(anomaly.clamped_value),
        )

    console.print(table)
