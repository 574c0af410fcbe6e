"""Tests for the sync engine state machine."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import SLOT3_PC1_OFFSET, FakeTransport, changed_fields, fields_covering
from fcbmanager.formats.fcb1010.codec import build_header, decode, default_frame, encode, reseal
from fcbmanager.formats.fcb1010.layout import CHECKSUM_OFFSET, END_OFFSET, PAYLOAD_OFFSET
from fcbmanager.sync.engine import (
    NOT_CLEAN,
    TRANSPORT_FAILURE,
    VALUE_OUT_OF_RANGE,
    SyncEngine,
    SyncState,
)
from fcbmanager.utils.checksum import calculate_checksum
from fcbmanager.utils.validation import NotClean, TransportError, ValidationError


def empty_payload_frame() -> bytes:
    """A well-framed message whose payload is zero bytes long."""
    header = build_header(0)
    return b"\xf0" + header + bytes([calculate_checksum(header)]) + b"\xf7"


class TestLoadBytes:
    """Test cases for load_bytes."""

    def test_starts_clean_with_default_frame(self):
        engine = SyncEngine()
        snapshot = engine.snapshot()

        assert snapshot.state is SyncState.CLEAN
        assert snapshot.data == default_frame()
        assert snapshot.last_error is None

    def test_load_valid(self, model, model_data):
        engine = SyncEngine()
        outcome = engine.load_bytes(model_data)

        assert outcome.ok
        assert outcome.state is SyncState.CLEAN
        assert engine.snapshot().model == model
        assert engine.snapshot().data == model_data

    def test_scenario_a_empty_payload(self, model, model_data):
        """Zero-length payload: LENGTH_MISMATCH, model kept, bytes shown as loaded."""
        engine = SyncEngine(model_data)
        bad = empty_payload_frame()

        outcome = engine.load_bytes(bad)

        assert not outcome.ok
        assert outcome.error.kind == "length_mismatch"
        snapshot = engine.snapshot()
        assert snapshot.state is SyncState.DIRTY_FROM_BYTES
        assert snapshot.data == bad
        assert snapshot.model == model
        assert snapshot.last_error.kind == "length_mismatch"

    def test_load_zero_bytes(self, model, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.load_bytes(b"")

        assert outcome.error.kind == "length_mismatch"
        assert engine.snapshot().data == b""
        assert engine.snapshot().model == model

    def test_load_after_failure_recovers(self, model_data):
        engine = SyncEngine()
        engine.load_bytes(b"\xf0\xf7")
        outcome = engine.load_bytes(model_data)

        assert outcome.ok
        assert engine.state is SyncState.CLEAN
        assert engine.last_error is None

    def test_expected_device_number(self):
        engine = SyncEngine(device_number=1)
        outcome = engine.load_bytes(default_frame(2))

        assert outcome.error.kind == "wrong_device"
        assert engine.snapshot().model.device_number == 1

    def test_anomalies_reported(self, default_data):
        data = bytearray(default_data)
        # High bit of raw byte 48 (slot 3 pc1) lives in the group's MSB byte
        data[SLOT3_PC1_OFFSET + 1] |= 0x40
        engine = SyncEngine()

        outcome = engine.load_bytes(data)
        assert not outcome.ok  # checksum not resealed

        outcome = engine.edit_byte(SLOT3_PC1_OFFSET + 1, data[SLOT3_PC1_OFFSET + 1])
        assert outcome.ok
        snapshot = engine.snapshot()
        assert snapshot.model.presets[3].pc1 == 127
        assert [(a.slot, a.field, a.raw_value) for a in snapshot.anomalies] == [(3, "pc1", 128)]


    def test_header_high_bit_rejected(self, model, model_data):
        data = bytearray(default_frame())
        data[4] = 0x80
        engine = SyncEngine(model_data)

        outcome = engine.load_bytes(reseal(data))

        assert outcome.error.kind == "bad_framing"
        assert engine.state is SyncState.DIRTY_FROM_BYTES
        assert engine.snapshot().model == model

        # The cached model is still encodable, so a field edit recovers
        outcome = engine.edit_field(0, "pc1", 5)

        assert outcome.ok
        expected = model.copy()
        expected.presets[0].pc1 = 5
        assert engine.snapshot().model == expected
        assert engine.snapshot().data == encode(expected)


class TestEditField:
    """Test cases for structured edits."""

    def test_edit_reencodes(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_field(3, "pc2", 99)

        assert outcome.ok and outcome.changed
        snapshot = engine.snapshot()
        assert snapshot.state is SyncState.CLEAN
        assert snapshot.model.presets[3].pc2 == 99
        assert decode(snapshot.data).model == snapshot.model
        assert snapshot.data[-2] == calculate_checksum(snapshot.data[1:-2])

    def test_edit_global(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_field(None, "channel_exp_b", 9)

        assert outcome.ok
        assert decode(engine.snapshot().data).model.global_settings.channel_exp_b == 9

    def test_idempotence(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_field(3, "pc1", 40)

        assert outcome.ok
        assert not outcome.changed
        assert engine.state is SyncState.CLEAN
        assert engine.snapshot().data == model_data

    def test_scenario_c_value_above_maximum(self, model, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_field(3, "pc1", 128)

        assert not outcome.ok
        assert outcome.error.kind == VALUE_OUT_OF_RANGE
        assert engine.state is SyncState.CLEAN
        assert engine.snapshot().data == model_data
        assert engine.snapshot().model == model

    def test_atomicity_global(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_field(None, "channel_pc1", 16)

        assert outcome.error.kind == VALUE_OUT_OF_RANGE
        assert engine.snapshot().data == model_data

    def test_atomicity_keeps_prior_dirty_state(self, model_data):
        engine = SyncEngine(model_data)
        engine.edit_byte(CHECKSUM_OFFSET, 0x00 if model_data[CHECKSUM_OFFSET] else 0x01)
        dirty_bytes = engine.snapshot().data

        outcome = engine.edit_field(3, "pc1", 500)

        assert engine.state is SyncState.DIRTY_FROM_BYTES
        assert outcome.state is SyncState.DIRTY_FROM_BYTES
        assert engine.snapshot().data == dirty_bytes

    def test_unknown_field_and_slot(self, model_data):
        engine = SyncEngine(model_data)

        assert engine.edit_field(3, "volume", 1).error.kind == VALUE_OUT_OF_RANGE
        assert engine.edit_field(100, "pc1", 1).error.kind == VALUE_OUT_OF_RANGE
        assert engine.snapshot().data == model_data

    def test_field_edit_overrides_pending_byte_edit(self, model_data):
        engine = SyncEngine(model_data)
        engine.edit_byte(CHECKSUM_OFFSET, (model_data[CHECKSUM_OFFSET] + 1) & 0x7F)
        assert engine.state is SyncState.DIRTY_FROM_BYTES

        outcome = engine.edit_field(3, "pc1", 40)

        assert outcome.ok
        assert engine.state is SyncState.CLEAN
        assert engine.snapshot().data == model_data

    def test_model_not_dirty_after_sync(self, model_data):
        engine = SyncEngine(model_data)
        engine.edit_field(0, "note", 60)
        assert not engine.snapshot().model.dirty


    def test_encode_failure_commits_nothing(self, model, model_data, monkeypatch):
        engine = SyncEngine(model_data)

        def broken(candidate):
            raise ValidationError("Device number must be 0-127, got 128")

        monkeypatch.setattr("fcbmanager.sync.engine.encode", broken)
        outcome = engine.edit_field(0, "pc1", 5)

        assert outcome.error.kind == VALUE_OUT_OF_RANGE
        assert engine.state is SyncState.CLEAN
        assert engine.snapshot().model == model
        assert engine.snapshot().data == model_data


class TestEditByte:
    """Test cases for hexdump edits."""

    def test_scenario_b_hexdump_edit(self, model, model_data):
        """Editing the packed byte of slot 3 pc1 from 40 to 41 re-decodes to 41."""
        engine = SyncEngine(model_data)
        assert engine.snapshot().model.presets[3].pc1 == 40
        assert model_data[SLOT3_PC1_OFFSET] == 40

        outcome = engine.edit_byte(SLOT3_PC1_OFFSET, 41)

        assert outcome.ok
        snapshot = engine.snapshot()
        assert snapshot.state is SyncState.CLEAN
        assert snapshot.model.presets[3].pc1 == 41
        assert snapshot.data[SLOT3_PC1_OFFSET] == 41
        assert changed_fields(model, snapshot.model) == {(3, "pc1")}
        assert snapshot.data[-2] == calculate_checksum(snapshot.data[1:-2])
        assert snapshot.data[-2] != model_data[-2]

    def test_no_reseal_gives_checksum_mismatch(self, model, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_byte(SLOT3_PC1_OFFSET, 41, reseal=False)

        assert outcome.error.kind == "checksum_mismatch"
        snapshot = engine.snapshot()
        assert snapshot.state is SyncState.DIRTY_FROM_BYTES
        assert snapshot.data[SLOT3_PC1_OFFSET] == 41
        assert snapshot.model == model

    def test_checksum_byte_is_never_resealed(self, model_data):
        engine = SyncEngine(model_data)
        wrong = (model_data[CHECKSUM_OFFSET] + 1) & 0x7F

        outcome = engine.edit_byte(CHECKSUM_OFFSET, wrong)

        assert outcome.error.kind == "checksum_mismatch"
        assert engine.snapshot().data[CHECKSUM_OFFSET] == wrong

    def test_header_edit(self, model_data):
        engine = SyncEngine(model_data, device_number=0)
        outcome = engine.edit_byte(4, 0x05)

        assert outcome.error.kind == "wrong_device"

    def test_end_marker_edit(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_byte(END_OFFSET, 0x00)

        assert outcome.error.kind == "bad_framing"

    def test_high_bit_byte_rejected_by_decode(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.edit_byte(PAYLOAD_OFFSET, 0x90)

        assert outcome.error.kind == "bad_framing"
        assert engine.snapshot().data[PAYLOAD_OFFSET] == 0x90

    def test_fixing_byte_returns_to_clean(self, model_data):
        engine = SyncEngine(model_data)
        engine.edit_byte(SLOT3_PC1_OFFSET, 41, reseal=False)
        outcome = engine.edit_byte(SLOT3_PC1_OFFSET, 40, reseal=False)

        assert outcome.ok
        assert engine.snapshot().data == model_data

    @pytest.mark.parametrize("offset,value", [(-1, 0), (2329, 0), (10, 256), (10, -1)])
    def test_out_of_range_edit(self, model_data, offset, value):
        engine = SyncEngine(model_data)
        outcome = engine.edit_byte(offset, value)

        assert outcome.error.kind == VALUE_OUT_OF_RANGE
        assert engine.snapshot().data == model_data
        assert engine.state is SyncState.CLEAN


    def test_msb_byte_edit_moves_seven_fields(self, default_data):
        engine = SyncEngine(default_data)
        before = engine.snapshot().model

        outcome = engine.edit_byte(SLOT3_PC1_OFFSET + 1, 0x7F)

        assert outcome.ok
        snapshot = engine.snapshot()
        assert changed_fields(before, snapshot.model) == fields_covering(range(42, 49))
        assert len(snapshot.anomalies) == 7


class TestSend:
    """Test cases for send gating."""

    def test_send_when_clean(self, model_data, fake_transport):
        engine = SyncEngine(model_data, sender=fake_transport.send)

        outcome = engine.send()

        assert outcome.ok
        assert fake_transport.sent == [model_data]

    def test_send_refused_when_dirty(self, model_data):
        transport = FakeTransport()
        engine = SyncEngine(model_data, sender=transport.send)
        engine.edit_byte(SLOT3_PC1_OFFSET, 41, reseal=False)

        outcome = engine.send()

        assert not outcome.ok
        assert outcome.error.kind == NOT_CLEAN
        assert transport.sent == []
        with pytest.raises(NotClean):
            outcome.raise_for_error()

    def test_send_without_transport(self, model_data):
        outcome = SyncEngine(model_data).send()
        assert outcome.error.kind == TRANSPORT_FAILURE

    def test_transport_error_recorded(self, model_data):
        transport = FakeTransport(fail_with=TransportError("port closed"))
        engine = SyncEngine(model_data, sender=transport.send)

        outcome = engine.send()

        assert outcome.error.kind == TRANSPORT_FAILURE
        assert "port closed" in engine.last_error.message
        assert engine.state is SyncState.CLEAN
        with pytest.raises(TransportError):
            outcome.raise_for_error()

    def test_report_transport_failure(self, model_data):
        engine = SyncEngine(model_data)
        outcome = engine.report_transport_failure("device unplugged")

        assert not outcome.ok
        assert engine.snapshot().last_error.kind == TRANSPORT_FAILURE
        assert engine.snapshot().data == model_data


    def test_clamped_values_reencoded_before_send(self, default_data, fake_transport):
        engine = SyncEngine(default_data, sender=fake_transport.send)
        # Slot 3 pc1 stored as 128
        engine.edit_byte(SLOT3_PC1_OFFSET + 1, 0x40)
        loaded = engine.snapshot().data
        assert len(engine.snapshot().anomalies) == 1

        outcome = engine.send()

        assert outcome.ok
        sent = fake_transport.sent[0]
        assert sent != loaded
        assert sent == encode(engine.snapshot().model)
        result = decode(sent)
        assert result.anomalies == []
        assert result.model.presets[3].pc1 == 127

        snapshot = engine.snapshot()
        assert snapshot.state is SyncState.CLEAN
        assert snapshot.data == sent
        assert snapshot.anomalies == ()

    def test_clamped_values_kept_when_nothing_sent(self, default_data):
        engine = SyncEngine(default_data)
        engine.edit_byte(SLOT3_PC1_OFFSET + 1, 0x40)
        loaded = engine.snapshot().data

        outcome = engine.send()

        assert outcome.error.kind == TRANSPORT_FAILURE
        assert engine.snapshot().data == loaded
        assert len(engine.snapshot().anomalies) == 1


class TestSnapshots:
    """Test cases for listeners and snapshot immutability."""

    def test_listener_gets_snapshot_per_operation(self, model_data):
        engine = SyncEngine(model_data)
        seen = []
        engine.subscribe(seen.append)

        engine.edit_field(3, "pc1", 41)
        engine.edit_field(3, "pc1", 500)
        engine.edit_byte(SLOT3_PC1_OFFSET, 42)

        assert [s.state for s in seen] == [SyncState.CLEAN] * 3
        assert seen[0].model.presets[3].pc1 == 41
        assert seen[1].last_error.kind == VALUE_OUT_OF_RANGE
        assert seen[2].model.presets[3].pc1 == 42

    def test_unsubscribe(self, model_data):
        engine = SyncEngine(model_data)
        seen = []
        unsubscribe = engine.subscribe(seen.append)
        unsubscribe()

        engine.edit_field(3, "pc1", 41)
        assert seen == []

    def test_failing_listener_does_not_break_engine(self, model_data):
        engine = SyncEngine(model_data)

        def broken(snapshot):
            raise RuntimeError("boom")

        engine.subscribe(broken)
        assert engine.edit_field(3, "pc1", 41).ok

    def test_snapshot_is_a_copy(self, model_data):
        engine = SyncEngine(model_data)
        snapshot = engine.snapshot()
        snapshot.model.presets[3].pc1 = 1

        assert engine.snapshot().model.presets[3].pc1 == 40
        assert isinstance(snapshot.data, bytes)

    def test_raise_for_error_on_rejected_value(self, model_data):
        outcome = SyncEngine(model_data).edit_field(3, "pc1", 128)
        with pytest.raises(ValidationError):
            outcome.raise_for_error()
