"""Tests for the mido transport, with mido's port functions patched out."""

import sys
from pathlib import Path

import mido
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from fcbmanager.transport.midi import (
    MidoTransport,
    find_port,
    frame_to_message,
    message_to_frame,
)
from fcbmanager.utils.validation import TransportError


class FakePort:
    """Stand-in for a mido port."""

    def __init__(self, name, messages=None, fail_send=False):
        self.name = name
        self.messages = list(messages or [])
        self.fail_send = fail_send
        self.sent = []
        self.closed = False

    def send(self, message):
        if self.fail_send:
            raise OSError("device gone")
        self.sent.append(message)

    def iter_pending(self):
        while self.messages:
            yield self.messages.pop(0)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def ports(monkeypatch):
    """Patch mido so two fake outputs and one input exist."""
    opened = {}

    def open_output(name):
        opened["output"] = FakePort(name)
        return opened["output"]

    def open_input(name, callback=None):
        opened["input"] = FakePort(name)
        opened["callback"] = callback
        return opened["input"]

    monkeypatch.setattr(mido, "get_output_names", lambda: ["Midi Through", "USB MIDI Interface"])
    monkeypatch.setattr(mido, "get_input_names", lambda: ["USB MIDI Interface"])
    monkeypatch.setattr(mido, "open_output", open_output)
    monkeypatch.setattr(mido, "open_input", open_input)
    return opened


class TestFindPort:
    """Test cases for port lookup."""

    def test_exact(self, ports):
        assert find_port("Midi Through") == "Midi Through"

    def test_substring(self, ports):
        assert find_port("usb") == "USB MIDI Interface"

    def test_no_match(self, ports):
        assert find_port("Yamaha") is None

    def test_default_prefers_usb(self, ports):
        assert find_port() == "USB MIDI Interface"

    def test_no_ports(self, monkeypatch):
        monkeypatch.setattr(mido, "get_output_names", lambda: [])
        assert find_port() is None

    def test_backend_error(self, monkeypatch):
        def broken():
            raise RuntimeError("no backend")

        monkeypatch.setattr(mido, "get_output_names", broken)
        with pytest.raises(TransportError):
            find_port()


class TestMessages:
    """Test cases for frame and message conversion."""

    def test_markers_stripped_and_restored(self, default_data):
        message = frame_to_message(default_data)

        assert message.type == "sysex"
        assert len(message.data) == len(default_data) - 2
        assert message_to_frame(message) == default_data

    def test_incomplete_frame(self):
        with pytest.raises(TransportError):
            frame_to_message(b"\xf0\x00\x20")

    def test_non_sysex_ignored(self):
        assert message_to_frame(mido.Message("program_change", program=3)) is None


class TestMidoTransport:
    """Test cases for MidoTransport."""

    def test_send(self, ports, default_data):
        transport = MidoTransport(output_name="USB")
        transport.open(output=True, input=False)
        transport.send(default_data)

        assert ports["output"].name == "USB MIDI Interface"
        assert message_to_frame(ports["output"].sent[0]) == default_data

        transport.close()
        assert ports["output"].closed
        assert not transport.is_open

    def test_send_when_closed(self, default_data):
        with pytest.raises(TransportError):
            MidoTransport().send(default_data)

    def test_send_failure_reported(self, ports, default_data):
        errors = []
        transport = MidoTransport(output_name="USB", on_error=errors.append)
        transport.open(output=True, input=False)
        ports["output"].fail_send = True

        transport.send(default_data)

        assert len(errors) == 1
        assert "device gone" in errors[0]

    def test_missing_port(self, ports):
        transport = MidoTransport(output_name="Yamaha")
        with pytest.raises(TransportError):
            transport.open()
        assert not transport.is_open

    def test_input_callback_delivers_frames(self, ports, default_data):
        received = []
        with MidoTransport(on_receive=received.append) as transport:
            assert transport.is_open
            callback = ports["callback"]
            callback(mido.Message("note_on", note=60))
            callback(frame_to_message(default_data))

        assert received == [default_data]

    def test_receive(self, monkeypatch, ports, default_data):
        inport = FakePort("USB MIDI Interface", [mido.Message("clock"), frame_to_message(default_data)])
        monkeypatch.setattr(mido, "open_input", lambda name: inport)

        assert MidoTransport().receive(timeout=1.0) == default_data
        assert inport.closed

    def test_receive_timeout(self, monkeypatch, ports):
        monkeypatch.setattr(mido, "open_input", lambda name: FakePort(name))

        assert MidoTransport().receive(timeout=0.05) is None
