"""MIDI transport."""

from fcbmanager.transport.midi import MidoTransport, find_port, list_ports

__all__ = ["MidoTransport", "find_port", "list_ports"]
