"""Byte/model synchronisation for the editor."""

from fcbmanager.sync.engine import EditOutcome, EngineError, Snapshot, SyncEngine, SyncState
from fcbmanager.sync.session import (
    ByteEdit,
    EditorSession,
    FieldEdit,
    FrameReceived,
    SendRequest,
    TransportFailed,
)

__all__ = [
    "EditOutcome",
    "EngineError",
    "Snapshot",
    "SyncEngine",
    "SyncState",
    "ByteEdit",
    "EditorSession",
    "FieldEdit",
    "FrameReceived",
    "SendRequest",
    "TransportFailed",
]
