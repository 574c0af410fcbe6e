"""Test configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fcbmanager.formats.fcb1010.codec import default_frame, encode
from fcbmanager.formats.fcb1010.layout import GLOBAL_FIELDS, PRESET_FIELDS, field_at
from fcbmanager.models.preset import PresetModel

# Slot 3 pc1 lives at raw offset 48: packed group 6, position 6
SLOT3_PC1_OFFSET = 61


def changed_fields(before, after):
    """
    Fields that differ between two models.

    Returns a set of ``(slot, name)`` pairs; globals use slot None and a
    change in the reserved bytes shows up as ``(None, "reserved")``.
    """
    changed = set()
    for slot, (a, b) in enumerate(zip(before.presets, after.presets)):
        for spec in PRESET_FIELDS:
            if getattr(a, spec.name) != getattr(b, spec.name):
                changed.add((slot, spec.name))
    for spec in GLOBAL_FIELDS:
        if getattr(before.global_settings, spec.name) != getattr(after.global_settings, spec.name):
            changed.add((None, spec.name))
    if before.reserved != after.reserved:
        changed.add((None, "reserved"))
    return changed


def fields_covering(raw_offsets):
    """The ``changed_fields`` keys that the given raw offsets belong to."""
    covering = set()
    for raw in raw_offsets:
        found = field_at(raw)
        if found is None:
            covering.add((None, "reserved"))
        else:
            slot, spec = found
            covering.add((slot, spec.name))
    return covering


class FakeTransport:
    """Records sent frames instead of talking to hardware."""

    def __init__(self, fail_with=None):
        self.sent = []
        self.fail_with = fail_with
        self.on_receive = None
        self.on_error = None

    def send(self, frame: bytes) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(bytes(frame))


@pytest.fixture
def default_data():
    """Return an all-default dump frame."""
    return default_frame()


@pytest.fixture
def model():
    """Return a model with a few non-default values."""
    m = PresetModel()
    m.set_preset_field(3, "pc1", 40)
    m.set_preset_field(3, "exp_a_controller", 7)
    m.set_preset_field(3, "exp_a_max", 127)
    m.set_preset_field(99, "note", 64)
    m.set_global_field("channel_pc1", 2)
    m.dirty = False
    return m


@pytest.fixture
def model_data(model):
    """Return the encoded frame of ``model``."""
    return encode(model)


@pytest.fixture
def syx_file(tmp_path, model_data):
    """Return path to a valid dump file."""
    path = tmp_path / "preset_data.syx"
    path.write_bytes(model_data)
    return path


@pytest.fixture
def fake_transport():
    return FakeTransport()
