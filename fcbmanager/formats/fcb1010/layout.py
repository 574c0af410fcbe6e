"""
FCB1010 dump layout.

Static tables mapping raw-image offsets to logical fields. Offsets are into
the unpacked 8-bit image, not the packed SysEx payload; see
``fcbmanager.utils.packing`` for the translation.

Raw image map (0x7EE bytes after unpacking):
    0x000-0x63F  100 presets x 16 bytes (slot n at n * 16)
    0x640-0x7DF  reserved, carried through untouched
    0x7E0-0x7E9  global MIDI channels (10 bytes)
    0x7EA-0x7ED  padding of the final 7-bit group
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from fcbmanager.utils.packing import packed_length, raw_offsets_for

# Frame constants
SYSEX_START = 0xF0
SYSEX_END = 0xF7
MANUFACTURER_ID = (0x00, 0x20, 0x32)  # Behringer
MODEL_ID = 0x0C
MESSAGE_KIND_DUMP = 0x0F
DEFAULT_DEVICE_NUMBER = 0x00

HEADER_LENGTH = 6  # manufacturer (3) + device number + model + kind

# Device capacity
BANK_COUNT = 10
PRESETS_PER_BANK = 10
PRESET_COUNT = BANK_COUNT * PRESETS_PER_BANK
PRESET_SIZE = 16

GLOBAL_OFFSET = 0x7E0
DATA_LENGTH = 0x7EA
PAYLOAD_LENGTH = packed_length(DATA_LENGTH)  # 2320
RAW_LENGTH = PAYLOAD_LENGTH // 8 * 7  # 2030, includes group padding

FRAME_LENGTH = 1 + HEADER_LENGTH + PAYLOAD_LENGTH + 1 + 1

# Frame offsets
HEADER_OFFSET = 1
PAYLOAD_OFFSET = HEADER_OFFSET + HEADER_LENGTH
CHECKSUM_OFFSET = PAYLOAD_OFFSET + PAYLOAD_LENGTH
END_OFFSET = CHECKSUM_OFFSET + 1

# Raw regions that hold no known field; kept verbatim for round-trips
RESERVED_REGIONS: List[Tuple[int, int]] = [
    (PRESET_COUNT * PRESET_SIZE, GLOBAL_OFFSET),
    (DATA_LENGTH, RAW_LENGTH),
]
RESERVED_LENGTH = sum(end - start for start, end in RESERVED_REGIONS)


@dataclass(frozen=True)
class FieldSpec:
    """
    One logical field in the raw image.

    Attributes:
        name: Field name used by setters and the CLI
        offset: Offset within the block (preset-relative or absolute for globals)
        width: Number of raw bytes, big-endian
        minimum: Lowest legal value
        maximum: Highest legal value
        choices: Closed set of legal values, overrides minimum/maximum
        description: Human readable label
    """

    name: str
    offset: int
    width: int = 1
    minimum: int = 0
    maximum: int = 127
    choices: Optional[Tuple[int, ...]] = None
    description: str = ""

    def contains(self, value: int) -> bool:
        if self.choices is not None:
            return value in self.choices
        return self.minimum <= value <= self.maximum

    def clamp(self, value: int) -> int:
        """Nearest legal value to ``value``."""
        if self.choices is not None:
            return min(self.choices, key=lambda choice: (abs(choice - value), choice))
        return max(self.minimum, min(self.maximum, value))

    def read(self, image: bytes, base: int = 0) -> int:
        start = base + self.offset
        return int.from_bytes(image[start : start + self.width], "big")

    def write(self, image: bytearray, value: int, base: int = 0) -> None:
        start = base + self.offset
        image[start : start + self.width] = value.to_bytes(self.width, "big")


PRESET_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("pc1", 0, description="Program change 1"),
    FieldSpec("pc2", 1, description="Program change 2"),
    FieldSpec("pc3", 2, description="Program change 3"),
    FieldSpec("pc4", 3, description="Program change 4"),
    FieldSpec("pc5", 4, description="Program change 5"),
    FieldSpec("cc1_controller", 5, description="Control change 1 number"),
    FieldSpec("cc1_value", 6, description="Control change 1 value"),
    FieldSpec("cc2_controller", 7, description="Control change 2 number"),
    FieldSpec("cc2_value", 8, description="Control change 2 value"),
    FieldSpec("exp_a_controller", 9, description="Expression pedal A controller"),
    FieldSpec("exp_a_min", 10, description="Expression pedal A minimum"),
    FieldSpec("exp_a_max", 11, description="Expression pedal A maximum"),
    FieldSpec("exp_b_controller", 12, description="Expression pedal B controller"),
    FieldSpec("exp_b_min", 13, description="Expression pedal B minimum"),
    FieldSpec("exp_b_max", 14, description="Expression pedal B maximum"),
    FieldSpec("note", 15, description="Note number"),
)

# Global offsets are absolute raw-image offsets
GLOBAL_FIELDS: Tuple[FieldSpec, ...] = tuple(
    FieldSpec(
        f"channel_{name}",
        GLOBAL_OFFSET + i,
        maximum=15,
        description=f"MIDI channel for {label}",
    )
    for i, (name, label) in enumerate(
        [
            ("pc1", "program change 1"),
            ("pc2", "program change 2"),
            ("pc3", "program change 3"),
            ("pc4", "program change 4"),
            ("pc5", "program change 5"),
            ("cc1", "control change 1"),
            ("cc2", "control change 2"),
            ("exp_a", "expression pedal A"),
            ("exp_b", "expression pedal B"),
            ("note", "note"),
        ]
    )
)

_PRESET_BY_NAME: Dict[str, FieldSpec] = {f.name: f for f in PRESET_FIELDS}
_GLOBAL_BY_NAME: Dict[str, FieldSpec] = {f.name: f for f in GLOBAL_FIELDS}


def preset_field(name: str) -> Optional[FieldSpec]:
    return _PRESET_BY_NAME.get(name)


def global_field(name: str) -> Optional[FieldSpec]:
    return _GLOBAL_BY_NAME.get(name)


def preset_base(slot: int) -> int:
    """Raw offset of a preset slot."""
    return slot * PRESET_SIZE


def bank_of(slot: int) -> int:
    return slot // PRESETS_PER_BANK


def slot_label(slot: int) -> str:
    """Display label for a slot, e.g. ``B03-P04`` (one-based like the pedal board)."""
    bank, preset = divmod(slot, PRESETS_PER_BANK)
    return f"B{bank:02d}-P{preset + 1:02d}"


def parse_slot(text: str) -> int:
    """
    Parse a slot given as an index (``34``) or a label (``B03-P05``).

    Raises:
        ValueError: If the text is neither or the slot does not exist
    """
    text = text.strip().upper()
    if text.startswith("B") and "-P" in text:
        bank_text, preset_text = text[1:].split("-P", 1)
        bank, preset = int(bank_text), int(preset_text)
        if not (0 <= bank < BANK_COUNT and 1 <= preset <= PRESETS_PER_BANK):
            raise ValueError(f"No such slot: {text}")
        return bank * PRESETS_PER_BANK + preset - 1

    slot = int(text, 0)
    if not 0 <= slot < PRESET_COUNT:
        raise ValueError(f"Slot must be 0-{PRESET_COUNT - 1}, got {slot}")
    return slot


def field_at(raw_offset: int) -> Optional[Tuple[Optional[int], FieldSpec]]:
    """
    Find the field covering a raw offset.

    Returns:
        ``(slot, spec)`` for preset fields, ``(None, spec)`` for global fields,
        or None for reserved/padding bytes
    """
    if 0 <= raw_offset < PRESET_COUNT * PRESET_SIZE:
        slot, relative = divmod(raw_offset, PRESET_SIZE)
        for spec in PRESET_FIELDS:
            if spec.offset <= relative < spec.offset + spec.width:
                return slot, spec
        return None
    for spec in GLOBAL_FIELDS:
        if spec.offset <= raw_offset < spec.offset + spec.width:
            return None, spec
    return None


def frame_regions() -> List[Tuple[int, int, str, str, str]]:
    """
    Frame byte regions for the annotated hexdump.

    Returns:
        List of ``(start, end, name, description, color)``
    """
    return [
        (0, HEADER_OFFSET, "START", "SysEx start marker", "bright_blue"),
        (HEADER_OFFSET, HEADER_OFFSET + 3, "MFR_ID", "Manufacturer ID", "bright_blue"),
        (HEADER_OFFSET + 3, HEADER_OFFSET + 4, "DEVICE", "Device number", "cyan"),
        (HEADER_OFFSET + 4, HEADER_OFFSET + 5, "MODEL", "Model ID", "cyan"),
        (HEADER_OFFSET + 5, PAYLOAD_OFFSET, "KIND", "Message kind", "cyan"),
        (
            PAYLOAD_OFFSET,
            PAYLOAD_OFFSET + packed_length(PRESET_COUNT * PRESET_SIZE),
            "PRESETS",
            "Packed preset data",
            "green",
        ),
        (
            PAYLOAD_OFFSET + packed_length(PRESET_COUNT * PRESET_SIZE),
            PAYLOAD_OFFSET + (GLOBAL_OFFSET // 7) * 8,
            "RESERVED",
            "Reserved area",
            "dim",
        ),
        (
            PAYLOAD_OFFSET + (GLOBAL_OFFSET // 7) * 8,
            CHECKSUM_OFFSET,
            "GLOBAL",
            "Global MIDI channels",
            "magenta",
        ),
        (CHECKSUM_OFFSET, END_OFFSET, "CHECKSUM", "Checksum", "yellow"),
        (END_OFFSET, FRAME_LENGTH, "END", "SysEx end marker", "bright_blue"),
    ]


_HEADER_BYTES = (
    "manufacturer ID",
    "manufacturer ID",
    "manufacturer ID",
    "device number",
    "model ID",
    "message kind",
)


def describe_frame_offset(offset: int) -> str:
    """
    Human readable meaning of a frame byte, e.g. ``B00-P04 pc1``.

    MSB bytes of the 7-bit packing carry the top bit of seven raw bytes and
    are described as such.
    """
    if offset == 0:
        return "start marker"
    if offset == END_OFFSET:
        return "end marker"
    if offset == CHECKSUM_OFFSET:
        return "checksum"
    if HEADER_OFFSET <= offset < PAYLOAD_OFFSET:
        return _HEADER_BYTES[offset - HEADER_OFFSET]
    if not PAYLOAD_OFFSET <= offset < CHECKSUM_OFFSET:
        return "outside frame"

    raw = raw_offsets_for(offset - PAYLOAD_OFFSET)
    if len(raw) > 1:
        return f"high bits of raw 0x{raw[0]:03X}-0x{raw[-1]:03X}"

    found = field_at(raw[0])
    if found is None:
        return f"reserved (raw 0x{raw[0]:03X})"
    slot, spec = found
    if slot is None:
        return spec.name
    return f"{slot_label(slot)} {spec.name}"
