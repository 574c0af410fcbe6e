#!/usr/bin/env python3
"""
Example: Edit a dump programmatically

Structured edits are re-encoded immediately; raw byte edits are re-decoded,
so both views stay in sync.
"""

import sys

sys.path.insert(0, "..")

from fcbmanager import SyncEngine, SyxReader, SyxWriter
from fcbmanager.formats.fcb1010.layout import PAYLOAD_OFFSET
from fcbmanager.utils.packing import packed_offset


def main(input_file: str = "preset_data.syx", output_file: str = "edited.syx"):
    engine = SyncEngine(SyxReader.read(input_file))

    # Structured edit: bank 0, preset 4 sends program change 40
    outcome = engine.edit_field(3, "pc1", 40)
    outcome.raise_for_error()

    # Rejected edits leave the dump untouched
    outcome = engine.edit_field(3, "pc2", 200)
    print(f"pc2=200 rejected: {outcome.error}")

    # Byte edit: slot 3 pc1 lives at raw offset 48
    offset = PAYLOAD_OFFSET + packed_offset(48)
    engine.edit_byte(offset, 41)
    print(f"pc1 after byte edit: {engine.snapshot().model.presets[3].pc1}")

    snapshot = engine.snapshot()
    if not snapshot.clean:
        print(f"Not saving: {snapshot.last_error}")
        return

    SyxWriter.write(snapshot.data, output_file)
    print(f"Saved to: {output_file}")


if __name__ == "__main__":
    main(*sys.argv[1:])
