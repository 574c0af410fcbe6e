"""
FCB1010 dump codec.

Converts between a complete SysEx frame and the structured PresetModel.

Frame format:
    F0 00 20 32 dd 0C 0F [packed payload, 2320 bytes] CS F7

Where:
    - 00 20 32: Behringer manufacturer ID
    - dd: Device number
    - 0C: Model ID
    - 0F: Message kind (preset/global dump)
    - CS: Checksum over everything between F0 and CS

Decoding never raises on malformed input: every structural problem comes
back as a DecodeError value inside the DecodeResult so callers have to look
at it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from fcbmanager.formats.fcb1010.layout import (
    CHECKSUM_OFFSET,
    FRAME_LENGTH,
    GLOBAL_FIELDS,
    HEADER_LENGTH,
    HEADER_OFFSET,
    MANUFACTURER_ID,
    MESSAGE_KIND_DUMP,
    MODEL_ID,
    PAYLOAD_LENGTH,
    PAYLOAD_OFFSET,
    PRESET_COUNT,
    PRESET_FIELDS,
    RAW_LENGTH,
    RESERVED_REGIONS,
    SYSEX_END,
    SYSEX_START,
    preset_base,
    slot_label,
)
from fcbmanager.models.preset import GlobalSettings, Preset, PresetModel
from fcbmanager.utils.checksum import add_checksum, calculate_checksum
from fcbmanager.utils.packing import pack_7bit, unpack_7bit
from fcbmanager.utils.validation import validate_device_number

logger = logging.getLogger(__name__)

MINIMUM_FRAME = 1 + HEADER_LENGTH + 1 + 1


class DecodeErrorKind(Enum):
    """Why a frame was rejected."""

    BAD_FRAMING = "bad_framing"
    WRONG_DEVICE = "wrong_device"
    LENGTH_MISMATCH = "length_mismatch"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    FIELD_OUT_OF_RANGE = "field_out_of_range"


@dataclass(frozen=True)
class DecodeError:
    """A rejected frame: which check failed and why."""

    kind: DecodeErrorKind
    message: str
    offset: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class FieldAnomaly:
    """A preset field whose stored value was clamped into its domain."""

    slot: int
    field: str
    raw_value: int
    clamped_value: int

    def __str__(self) -> str:
        return (
            f"{slot_label(self.slot)} {self.field}: stored {self.raw_value}, "
            f"clamped to {self.clamped_value}"
        )


@dataclass
class DecodeResult:
    """
    Outcome of decoding one frame.

    Exactly one of ``model`` and ``error`` is set.
    """

    model: Optional[PresetModel] = None
    error: Optional[DecodeError] = None
    anomalies: List[FieldAnomaly] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SysExFrame:
    """
    A split SysEx frame.

    Attributes:
        start_marker: Should be F0
        header: Manufacturer ID, device number, model ID, message kind
        payload: Packed 7-bit payload
        checksum: Stored checksum byte
        end_marker: Should be F7
    """

    start_marker: int
    header: bytes
    payload: bytes
    checksum: int
    end_marker: int

    @classmethod
    def split(cls, data: bytes) -> "SysExFrame":
        """Split raw bytes into frame parts (caller checks the minimum length)."""
        return cls(
            start_marker=data[0],
            header=bytes(data[HEADER_OFFSET : HEADER_OFFSET + HEADER_LENGTH]),
            payload=bytes(data[PAYLOAD_OFFSET:-2]),
            checksum=data[-2],
            end_marker=data[-1],
        )

    @property
    def device_number(self) -> int:
        return self.header[3]

    def computed_checksum(self) -> int:
        return calculate_checksum(self.header + self.payload)

    def to_bytes(self) -> bytes:
        return (
            bytes([self.start_marker])
            + self.header
            + self.payload
            + bytes([self.checksum, self.end_marker])
        )


def build_header(device_number: int = 0) -> bytes:
    """Header bytes (without F0) for a dump from ``device_number``."""
    validate_device_number(device_number)
    return bytes([*MANUFACTURER_ID, device_number, MODEL_ID, MESSAGE_KIND_DUMP])


def decode(
    data: Union[bytes, bytearray],
    device_number: Optional[int] = None,
) -> DecodeResult:
    """
    Decode a complete frame into a PresetModel.

    Args:
        data: Complete frame including F0 and F7
        device_number: Expected device number, or None to accept any

    Returns:
        DecodeResult with either a model (plus any clamped preset anomalies)
        or the first failed check
    """
    data = bytes(data)

    if len(data) < MINIMUM_FRAME:
        return _fail(
            DecodeErrorKind.LENGTH_MISMATCH,
            f"Frame is {len(data)} bytes, too short for a header (expected {FRAME_LENGTH})",
        )

    if data[0] != SYSEX_START:
        return _fail(
            DecodeErrorKind.BAD_FRAMING, f"Expected start marker F0, got {data[0]:02X}", 0
        )
    if data[-1] != SYSEX_END:
        return _fail(
            DecodeErrorKind.BAD_FRAMING,
            f"Expected end marker F7, got {data[-1]:02X}",
            len(data) - 1,
        )

    frame = SysExFrame.split(data)

    for index, byte in enumerate(frame.header):
        if byte & 0x80:
            return _fail(
                DecodeErrorKind.BAD_FRAMING,
                f"Header byte {index} ({byte:02X}) has its high bit set",
                HEADER_OFFSET + index,
            )

    error = _check_header(frame.header, device_number)
    if error is not None:
        return DecodeResult(error=error)

    if len(frame.payload) != PAYLOAD_LENGTH:
        return _fail(
            DecodeErrorKind.LENGTH_MISMATCH,
            f"Payload is {len(frame.payload)} bytes, expected {PAYLOAD_LENGTH}",
        )

    for index, byte in enumerate(frame.payload):
        if byte & 0x80:
            return _fail(
                DecodeErrorKind.BAD_FRAMING,
                f"Payload byte {index} ({byte:02X}) has its high bit set",
                PAYLOAD_OFFSET + index,
            )

    expected = frame.computed_checksum()
    if frame.checksum != expected:
        return _fail(
            DecodeErrorKind.CHECKSUM_MISMATCH,
            f"Stored checksum {frame.checksum:02X}, computed {expected:02X}",
            CHECKSUM_OFFSET,
        )

    image = unpack_7bit(frame.payload)
    return _decode_image(image, frame.device_number)


def encode(model: PresetModel) -> bytes:
    """
    Encode a model into a complete frame.

    The checksum is always recomputed; the model's domain checks happened
    when its fields were set.
    """
    image = bytearray(RAW_LENGTH)

    for slot, preset in enumerate(model.presets):
        base = preset_base(slot)
        for spec in PRESET_FIELDS:
            spec.write(image, getattr(preset, spec.name), base)

    for spec in GLOBAL_FIELDS:
        spec.write(image, getattr(model.global_settings, spec.name))

    position = 0
    for start, end in RESERVED_REGIONS:
        size = end - start
        image[start:end] = model.reserved[position : position + size]
        position += size

    header = build_header(model.device_number)
    payload = pack_7bit(bytes(image))

    return bytes([SYSEX_START]) + add_checksum(header + payload) + bytes([SYSEX_END])


def reseal(data: Union[bytes, bytearray]) -> bytes:
    """
    Recompute the checksum of a frame whose payload was edited.

    Frames too short to carry a checksum are returned unchanged.
    """
    data = bytearray(data)
    if len(data) < MINIMUM_FRAME:
        return bytes(data)
    data[-2] = calculate_checksum(bytes(data[HEADER_OFFSET:-2]))
    return bytes(data)


def default_frame(device_number: int = 0) -> bytes:
    """An all-default dump frame for ``device_number``."""
    return encode(PresetModel(device_number=device_number))


def _check_header(header: bytes, device_number: Optional[int]) -> Optional[DecodeError]:
    if tuple(header[:3]) != MANUFACTURER_ID:
        return DecodeError(
            DecodeErrorKind.WRONG_DEVICE,
            f"Manufacturer ID {header[:3].hex(' ').upper()} is not Behringer (00 20 32)",
            HEADER_OFFSET,
        )
    if header[4] != MODEL_ID:
        return DecodeError(
            DecodeErrorKind.WRONG_DEVICE,
            f"Model ID {header[4]:02X} is not an FCB1010 ({MODEL_ID:02X})",
            HEADER_OFFSET + 4,
        )
    if header[5] != MESSAGE_KIND_DUMP:
        return DecodeError(
            DecodeErrorKind.WRONG_DEVICE,
            f"Message kind {header[5]:02X} is not a preset dump ({MESSAGE_KIND_DUMP:02X})",
            HEADER_OFFSET + 5,
        )
    if device_number is not None and header[3] != device_number:
        return DecodeError(
            DecodeErrorKind.WRONG_DEVICE,
            f"Device number {header[3]} does not match expected {device_number}",
            HEADER_OFFSET + 3,
        )
    return None


def _decode_image(image: bytes, device_number: int) -> DecodeResult:
    """Build the model from an unpacked raw image."""
    global_values = {}
    for spec in GLOBAL_FIELDS:
        value = spec.read(image)
        if not spec.contains(value):
            return _fail(
                DecodeErrorKind.FIELD_OUT_OF_RANGE,
                f"Global {spec.name} holds {value}, outside {spec.minimum}-{spec.maximum}",
            )
        global_values[spec.name] = value

    anomalies: List[FieldAnomaly] = []
    presets = []
    for slot in range(PRESET_COUNT):
        base = preset_base(slot)
        values = {}
        for spec in PRESET_FIELDS:
            value = spec.read(image, base)
            if not spec.contains(value):
                clamped = spec.clamp(value)
                anomalies.append(FieldAnomaly(slot, spec.name, value, clamped))
                value = clamped
            values[spec.name] = value
        presets.append(Preset(**values))

    reserved = b"".join(image[start:end] for start, end in RESERVED_REGIONS)

    model = PresetModel(
        global_settings=GlobalSettings(**global_values),
        presets=presets,
        reserved=reserved,
        device_number=device_number,
    )

    for anomaly in anomalies:
        logger.warning("Clamped out-of-range preset value: %s", anomaly)
    logger.debug("Decoded dump from device %d with %d anomalies", device_number, len(anomalies))

    return DecodeResult(model=model, anomalies=anomalies)


def _fail(kind: DecodeErrorKind, message: str, offset: Optional[int] = None) -> DecodeResult:
    logger.warning("Rejected frame (%s): %s", kind.value, message)
    return DecodeResult(error=DecodeError(kind, message, offset))
