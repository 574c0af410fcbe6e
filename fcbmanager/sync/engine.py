"""
Sync engine - owns the dump's byte buffer and its decoded model.

The byte buffer is the source of truth. The model is derived from it and is
only ever replaced by a successful decode or updated by a validated field
edit that is immediately re-encoded. Views never hold their own copies; they
read snapshots and submit edits through the four operations below:

    load_bytes(raw)              replace the buffer, re-decode
    edit_field(slot, name, v)    validated model edit, re-encode
    edit_byte(offset, v)         raw buffer edit, re-decode
    send()                       hand the buffer to the transport (CLEAN only)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from fcbmanager.formats.fcb1010.codec import (
    DecodeError,
    FieldAnomaly,
    decode,
    default_frame,
    encode,
    reseal as reseal_frame,
)
from fcbmanager.formats.fcb1010.layout import PAYLOAD_OFFSET
from fcbmanager.models.preset import PresetModel
from fcbmanager.utils.validation import (
    NotClean,
    TransportError,
    ValidationError,
    ValueOutOfRange,
)

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Agreement between the byte buffer and the model."""

    CLEAN = "clean"
    DIRTY_FROM_MODEL = "dirty_from_model"
    DIRTY_FROM_BYTES = "dirty_from_bytes"


@dataclass(frozen=True)
class EngineError:
    """
    The last problem the engine surfaced.

    ``kind`` is a DecodeErrorKind value for rejected frames, or one of
    ``value_out_of_range``, ``not_clean`` and ``transport_failure``.
    """

    kind: str
    message: str
    offset: Optional[int] = None

    @classmethod
    def from_decode(cls, error: DecodeError) -> "EngineError":
        return cls(error.kind.value, error.message, error.offset)

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


VALUE_OUT_OF_RANGE = "value_out_of_range"
NOT_CLEAN = "not_clean"
TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class Snapshot:
    """
    Read-only view of the engine handed to presentation code.

    ``model`` is always the last model that came out of a valid decode or a
    validated edit, even while ``data`` holds bytes that failed to decode.
    """

    model: PresetModel
    data: bytes
    state: SyncState
    last_error: Optional[EngineError] = None
    anomalies: Tuple[FieldAnomaly, ...] = ()

    @property
    def clean(self) -> bool:
        return self.state is SyncState.CLEAN


@dataclass(frozen=True)
class EditOutcome:
    """Result of one engine operation."""

    ok: bool
    state: SyncState
    error: Optional[EngineError] = None
    changed: bool = field(default=True)

    def raise_for_error(self) -> None:
        """
        Raise the exception matching a failed outcome; no-op on success.

        Raises:
            NotClean: Send attempted with an unsynchronised buffer
            TransportError: The transport failed or is missing
            ValidationError: Rejected value or frame
        """
        if self.ok or self.error is None:
            return
        if self.error.kind == NOT_CLEAN:
            raise NotClean(self.error.message)
        if self.error.kind == TRANSPORT_FAILURE:
            raise TransportError(self.error.message)
        raise ValidationError(str(self.error))


Listener = Callable[[Snapshot], None]
Sender = Callable[[bytes], None]


class SyncEngine:
    """
    Single owner of one dump frame and its decoded model.

    Not thread-safe on its own; EditorSession feeds it one event at a time.

    Example:
        engine = SyncEngine()
        engine.load_bytes(SyxReader.read("preset_data.syx"))
        engine.edit_field(3, "pc1", 40)
        SyxWriter.write(engine.snapshot().data, "preset_data.syx")
    """

    def __init__(
        self,
        data: Optional[bytes] = None,
        device_number: Optional[int] = None,
        sender: Optional[Sender] = None,
    ):
        """
        Initialize the engine.

        Args:
            data: Initial frame; a default frame is used when omitted
            device_number: Expected device number, or None to accept any
            sender: Transport send callable used by send()
        """
        self.device_number = device_number
        self.sender = sender
        self._listeners: List[Listener] = []

        initial = default_frame(device_number or 0)
        self._data = bytearray(initial)
        self._model: PresetModel = decode(initial).model
        self._state = SyncState.CLEAN
        self._last_error: Optional[EngineError] = None
        self._anomalies: Tuple[FieldAnomaly, ...] = ()

        if data is not None:
            self.load_bytes(data)

    # --- Read access ---

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_error(self) -> Optional[EngineError]:
        return self._last_error

    def snapshot(self) -> Snapshot:
        """Immutable copy of the current engine state."""
        return Snapshot(
            model=self._model.copy(),
            data=bytes(self._data),
            state=self._state,
            last_error=self._last_error,
            anomalies=self._anomalies,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with a fresh snapshot after every operation.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Operations ---

    def load_bytes(self, raw: Union[bytes, bytearray]) -> EditOutcome:
        """
        Replace the byte buffer wholesale and try to decode it.

        The buffer is always replaced so the hexdump shows exactly what was
        loaded. On failure the previous model stays in place.
        """
        if self._state is SyncState.DIRTY_FROM_BYTES:
            logger.info("Discarding unsynced byte edit in favour of newly loaded frame")

        self._data = bytearray(raw)
        return self._redecode()

    def edit_field(self, slot: Optional[int], name: str, value: int) -> EditOutcome:
        """
        Apply a validated structured edit and re-encode the buffer.

        Args:
            slot: Preset slot, or None for a global field
            name: Field name
            value: New value

        A rejected value leaves the model, the buffer and the state as they were.
        """
        try:
            current = self._model.get_field(slot, name)
        except KeyError:
            current = None
        except ValueOutOfRange as e:
            return self._reject(EngineError(VALUE_OUT_OF_RANGE, str(e)))

        unchanged = current is not None and type(value) is int and current == value
        if self._state is SyncState.CLEAN and unchanged:
            logger.debug("Field %s already %d, nothing to do", name, value)
            self._last_error = None
            self._publish()
            return EditOutcome(ok=True, state=self._state, changed=False)

        # Edit and encode a copy; nothing is committed unless both succeed
        candidate = self._model.copy()
        try:
            if slot is None:
                candidate.set_global_field(name, value)
            else:
                candidate.set_preset_field(slot, name, value)
            data = encode(candidate)
        except ValidationError as e:
            return self._reject(EngineError(VALUE_OUT_OF_RANGE, str(e)))

        self._model = candidate
        self._state = SyncState.DIRTY_FROM_MODEL
        self._data = bytearray(data)
        self._model.dirty = False
        self._state = SyncState.CLEAN
        self._last_error = None
        self._anomalies = ()

        logger.debug("Field edit %s slot=%s value=%d re-encoded", name, slot, value)
        self._publish()
        return EditOutcome(ok=True, state=self._state)

    def edit_byte(self, offset: int, value: int, reseal: bool = True) -> EditOutcome:
        """
        Write one byte of the frame and re-decode the whole buffer.

        Args:
            offset: Frame offset (0 is the F0 start marker)
            value: New byte value (0-255)
            reseal: Recompute the checksum when the byte lies in the
                payload; header, checksum and marker edits are never resealed

        On decode failure the edited bytes stay visible, the previous model
        stays cached and the engine is DIRTY_FROM_BYTES.
        """
        if isinstance(offset, bool) or not isinstance(offset, int) or not 0 <= offset < len(self._data):
            return self._reject(
                EngineError(
                    VALUE_OUT_OF_RANGE,
                    f"Offset must be 0-{len(self._data) - 1}, got {offset}",
                )
            )
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
            return self._reject(
                EngineError(VALUE_OUT_OF_RANGE, f"Byte value must be 0-255, got {value}", offset)
            )

        self._data[offset] = value
        if reseal and PAYLOAD_OFFSET <= offset < len(self._data) - 2:
            self._data = bytearray(reseal_frame(self._data))

        return self._redecode()

    def send(self) -> EditOutcome:
        """
        Hand the current buffer to the transport.

        Only allowed while CLEAN, so a frame that failed to decode never
        reaches hardware. Preset values that were clamped on decode are
        re-encoded into the buffer first, so stored out-of-range values are
        never sent. Completion and failures come back asynchronously through
        report_transport_failure().
        """
        if self._state is not SyncState.CLEAN:
            return self._reject(
                EngineError(NOT_CLEAN, f"Cannot send while {self._state.value}; fix or reload the dump")
            )
        if self.sender is None:
            return self._reject(EngineError(TRANSPORT_FAILURE, "No MIDI transport attached"))

        if self._anomalies:
            self._normalise()

        try:
            self.sender(bytes(self._data))
        except TransportError as e:
            return self.report_transport_failure(str(e))

        logger.info("Sent %d byte dump", len(self._data))
        return EditOutcome(ok=True, state=self._state, changed=False)

    def report_transport_failure(self, message: str) -> EditOutcome:
        """Surface a failure delivered by the transport; nothing is retried."""
        return self._reject(EngineError(TRANSPORT_FAILURE, message))

    # --- Internals ---

    def _normalise(self) -> None:
        """Replace clamped stored values in the buffer with the model's values."""
        logger.warning("Re-encoding %d clamped preset values", len(self._anomalies))
        self._data = bytearray(encode(self._model))
        self._anomalies = ()
        self._publish()

    def _redecode(self) -> EditOutcome:
        result = decode(self._data, self.device_number)

        if result.ok:
            self._model = result.model
            self._state = SyncState.CLEAN
            self._last_error = None
            self._anomalies = tuple(result.anomalies)
            logger.debug("Buffer decoded cleanly")
            self._publish()
            return EditOutcome(ok=True, state=self._state)

        self._state = SyncState.DIRTY_FROM_BYTES
        self._last_error = EngineError.from_decode(result.error)
        logger.warning("Buffer does not decode: %s", result.error)
        self._publish()
        return EditOutcome(ok=False, state=self._state, error=self._last_error)

    def _reject(self, error: EngineError) -> EditOutcome:
        self._last_error = error
        logger.warning("%s", error)
        self._publish()
        return EditOutcome(ok=False, state=self._state, error=error, changed=False)

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")
