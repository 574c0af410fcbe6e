"""
fcbmanager - preset editor toolkit for the Behringer FCB1010 MIDI foot controller.

This library provides tools to:
- Decode and encode complete FCB1010 SysEx preset dumps
- Edit presets and global settings with domain checks
- Keep a raw byte view and the structured view in sync
- Send and receive dumps over MIDI

Example usage:
    from fcbmanager import SyncEngine, SyxReader, SyxWriter

    engine = SyncEngine()
    engine.load_bytes(SyxReader.read("preset_data.syx"))
    engine.edit_field(3, "pc1", 40)
    SyxWriter.write(engine.snapshot().data, "preset_data.syx")
"""

__version__ = "0.1.0"
__author__ = "fcbmanager Contributors"

from fcbmanager.models.preset import GlobalSettings, Preset, PresetModel
from fcbmanager.formats.fcb1010.codec import DecodeError, DecodeErrorKind, DecodeResult, decode, encode
from fcbmanager.formats.fcb1010.reader import SyxReader
from fcbmanager.formats.fcb1010.writer import SyxWriter
from fcbmanager.sync.engine import EditOutcome, Snapshot, SyncEngine, SyncState

__all__ = [
    "GlobalSettings",
    "Preset",
    "PresetModel",
    "DecodeError",
    "DecodeErrorKind",
    "DecodeResult",
    "decode",
    "encode",
    "SyxReader",
    "SyxWriter",
    "EditOutcome",
    "Snapshot",
    "SyncEngine",
    "SyncState",
]
