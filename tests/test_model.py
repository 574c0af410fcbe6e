"""Tests for the preset model mutation contract."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from fcbmanager.formats.fcb1010.layout import bank_of, parse_slot, slot_label
from fcbmanager.models.preset import Preset, PresetModel
from fcbmanager.utils.validation import ValidationError, ValueOutOfRange


class TestPresetModel:
    """Test cases for PresetModel."""

    def test_defaults(self):
        model = PresetModel()
        assert len(model.presets) == 100
        assert model.device_number == 0
        assert not model.dirty
        assert all(p == Preset() for p in model.presets)

    def test_wrong_preset_count(self):
        with pytest.raises(ValueError):
            PresetModel(presets=[Preset()] * 5)

    def test_set_preset_field(self):
        model = PresetModel()
        model.set_preset_field(3, "pc1", 40)

        assert model.presets[3].pc1 == 40
        assert model.get_field(3, "pc1") == 40
        assert model.dirty

    def test_set_global_field(self):
        model = PresetModel()
        model.set_global_field("channel_note", 15)

        assert model.global_settings.channel_note == 15
        assert model.get_field(None, "channel_note") == 15

    @pytest.mark.parametrize("value", [-1, 128, 300])
    def test_preset_value_out_of_range(self, value):
        model = PresetModel()
        with pytest.raises(ValueOutOfRange):
            model.set_preset_field(0, "pc1", value)

        assert model.presets[0].pc1 == 0
        assert not model.dirty

    def test_channel_out_of_range(self):
        model = PresetModel()
        with pytest.raises(ValueOutOfRange) as exc_info:
            model.set_global_field("channel_pc1", 16)

        assert exc_info.value.field == "channel_pc1"
        assert exc_info.value.value == 16
        assert model.global_settings.channel_pc1 == 0

    def test_non_integer_rejected(self):
        model = PresetModel()
        with pytest.raises(ValueOutOfRange):
            model.set_preset_field(0, "pc1", "40")
        with pytest.raises(ValueOutOfRange):
            model.set_preset_field(0, "pc1", True)

    def test_unknown_field(self):
        model = PresetModel()
        with pytest.raises(ValueOutOfRange):
            model.set_preset_field(0, "volume", 1)
        with pytest.raises(ValueOutOfRange):
            model.set_global_field("pc1", 1)

    @pytest.mark.parametrize("slot", [-1, 100])
    def test_bad_slot(self, slot):
        with pytest.raises(ValueOutOfRange):
            PresetModel().set_preset_field(slot, "pc1", 1)

    def test_out_of_range_is_validation_error(self):
        with pytest.raises(ValidationError):
            PresetModel().set_preset_field(0, "note", 999)

    def test_copy_is_deep(self, model):
        clone = model.copy()
        clone.set_preset_field(3, "pc1", 1)

        assert model.presets[3].pc1 == 40
        assert clone != model

    def test_equality_ignores_dirty(self):
        a = PresetModel()
        b = PresetModel()
        b.dirty = True
        assert a == b


class TestSlots:
    """Test cases for slot helpers."""

    def test_slot_label(self):
        assert slot_label(0) == "B00-P01"
        assert slot_label(34) == "B03-P05"
        assert slot_label(99) == "B09-P10"

    def test_bank_of(self):
        assert bank_of(0) == 0
        assert bank_of(34) == 3

    def test_parse_slot(self):
        assert parse_slot("34") == 34
        assert parse_slot("0x10") == 16
        assert parse_slot("B03-P05") == 34
        assert parse_slot("b09-p10") == 99

    @pytest.mark.parametrize("text", ["100", "B10-P01", "B00-P00", "abc"])
    def test_parse_slot_invalid(self, text):
        with pytest.raises(ValueError):
            parse_slot(text)
