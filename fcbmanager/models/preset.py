"""
Preset data model - structured view of an FCB1010 dump.
"""

import copy
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from fcbmanager.formats.fcb1010.layout import (
    DEFAULT_DEVICE_NUMBER,
    PRESET_COUNT,
    RESERVED_LENGTH,
    global_field,
    preset_field,
    slot_label,
)
from fcbmanager.utils.validation import ValueOutOfRange, check_domain


@dataclass
class Preset:
    """
    One preset slot.

    Each preset sends up to five program changes, two control changes and a
    note, and assigns both expression pedals to a controller with a sweep
    range.
    """

    # Program changes (0-127)
    pc1: int = 0
    pc2: int = 0
    pc3: int = 0
    pc4: int = 0
    pc5: int = 0

    # Control changes: controller number and value
    cc1_controller: int = 0
    cc1_value: int = 0
    cc2_controller: int = 0
    cc2_value: int = 0

    # Expression pedals: controller, sweep minimum, sweep maximum
    exp_a_controller: int = 0
    exp_a_min: int = 0
    exp_a_max: int = 0
    exp_b_controller: int = 0
    exp_b_min: int = 0
    exp_b_max: int = 0

    note: int = 0

    @property
    def program_changes(self) -> List[int]:
        return [self.pc1, self.pc2, self.pc3, self.pc4, self.pc5]

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class GlobalSettings:
    """
    Global MIDI channel assignments (zero-based, shown as 1-16).
    """

    channel_pc1: int = 0
    channel_pc2: int = 0
    channel_pc3: int = 0
    channel_pc4: int = 0
    channel_pc5: int = 0
    channel_cc1: int = 0
    channel_cc2: int = 0
    channel_exp_a: int = 0
    channel_exp_b: int = 0
    channel_note: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class PresetModel:
    """
    Complete structured dump.

    Attributes:
        global_settings: Global MIDI channel block
        presets: Exactly PRESET_COUNT presets, indexed by slot
        reserved: Bytes of the reserved raw regions, carried verbatim
        device_number: SysEx device number from the frame header
        dirty: Set by successful writes until the owner re-encodes
    """

    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    presets: List[Preset] = field(default_factory=list)
    reserved: bytes = bytes(RESERVED_LENGTH)
    device_number: int = DEFAULT_DEVICE_NUMBER
    dirty: bool = field(default=False, compare=False)

    def __post_init__(self):
        """Fill up to the device capacity."""
        if not self.presets:
            self.presets = [Preset() for _ in range(PRESET_COUNT)]
        if len(self.presets) != PRESET_COUNT:
            raise ValueError(f"Model needs {PRESET_COUNT} presets, got {len(self.presets)}")
        if len(self.reserved) != RESERVED_LENGTH:
            raise ValueError(f"Reserved block must be {RESERVED_LENGTH} bytes")

    def get_preset(self, slot: int) -> Preset:
        self._check_slot(slot)
        return self.presets[slot]

    def set_preset_field(self, slot: int, name: str, value: int) -> None:
        """
        Set a preset field after checking its domain.

        Raises:
            ValueOutOfRange: Unknown slot/field or value outside the domain;
                the model is left untouched
        """
        self._check_slot(slot)
        spec = preset_field(name)
        if spec is None:
            raise ValueOutOfRange(name, value, f"Unknown preset field: {name}")
        check_domain(f"{slot_label(slot)} {name}", value, spec.minimum, spec.maximum, spec.choices)

        setattr(self.presets[slot], name, value)
        self.dirty = True

    def set_global_field(self, name: str, value: int) -> None:
        """
        Set a global field after checking its domain.

        Raises:
            ValueOutOfRange: Unknown field or value outside the domain
        """
        spec = global_field(name)
        if spec is None:
            raise ValueOutOfRange(name, value, f"Unknown global field: {name}")
        check_domain(name, value, spec.minimum, spec.maximum, spec.choices)

        setattr(self.global_settings, name, value)
        self.dirty = True

    def get_field(self, slot: Optional[int], name: str) -> int:
        """Current value of a field; ``slot`` None addresses the global block."""
        if slot is None:
            if global_field(name) is None:
                raise KeyError(name)
            return getattr(self.global_settings, name)
        if preset_field(name) is None:
            raise KeyError(name)
        return getattr(self.get_preset(slot), name)

    def _check_slot(self, slot: int) -> None:
        if isinstance(slot, bool) or not isinstance(slot, int) or not 0 <= slot < PRESET_COUNT:
            raise ValueOutOfRange("slot", slot, f"Slot must be 0-{PRESET_COUNT - 1}, got {slot}")

    def copy(self) -> "PresetModel":
        """Create a deep copy of this model."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        used = sum(1 for p in self.presets if p != Preset())
        return f"PresetModel(device={self.device_number}, presets={used}/{len(self.presets)} non-default)"
