#!/usr/bin/env python3
"""
Example: Inspect an FCB1010 dump

Shows how to load a .syx file into the sync engine and read its presets.
"""

import sys

sys.path.insert(0, "..")

from fcbmanager import SyncEngine, SyxReader
from fcbmanager.formats.fcb1010.layout import slot_label
from fcbmanager.models.preset import Preset


def main(path: str = "preset_data.syx"):
    engine = SyncEngine(SyxReader.read(path))
    snapshot = engine.snapshot()

    print(f"State: {snapshot.state.value}")
    if snapshot.last_error is not None:
        print(f"Error: {snapshot.last_error}")
        return

    model = snapshot.model
    print(f"Device number: {model.device_number}")
    print()

    # Channels are stored zero-based
    print("Global channels:")
    for name, channel in model.global_settings.to_dict().items():
        print(f"  {name}: {channel + 1}")
    print()

    print("Programmed presets:")
    for slot, preset in enumerate(model.presets):
        if preset == Preset():
            continue
        changes = " ".join(str(pc) for pc in preset.program_changes)
        print(f"  {slot_label(slot)}: PC {changes}  note {preset.note}")

    for anomaly in snapshot.anomalies:
        print(f"Warning: {anomaly}")


if __name__ == "__main__":
    main(*sys.argv[1:])
