"""
MIDI transport over mido.

Sends whole dump frames and delivers whole incoming SysEx frames. mido strips
the F0/F7 markers from sysex messages, so they are added back on receive and
removed on send.
"""

import logging
import time
from typing import Callable, List, Optional

import mido

from fcbmanager.formats.fcb1010.layout import SYSEX_END, SYSEX_START
from fcbmanager.utils.validation import TransportError

logger = logging.getLogger(__name__)

ReceiveCallback = Callable[[bytes], None]
ErrorCallback = Callable[[str], None]


def list_ports(direction: str = "output") -> List[str]:
    """Names of the available MIDI ports for ``direction`` (input/output)."""
    try:
        if direction == "input":
            return list(mido.get_input_names())
        return list(mido.get_output_names())
    except Exception as e:
        raise TransportError(f"Cannot list MIDI {direction} ports: {e}") from e


def find_port(port_name: Optional[str] = None, direction: str = "output") -> Optional[str]:
    """
    Find a MIDI port by name or return the first likely candidate.

    Args:
        port_name: Exact name or case-insensitive substring
        direction: "input" or "output"

    Returns:
        Port name, or None when nothing matches
    """
    ports = list_ports(direction)
    if not ports:
        return None

    if port_name:
        if port_name in ports:
            return port_name
        matches = [p for p in ports if port_name.lower() in p.lower()]
        if matches:
            return matches[0]
        return None

    for p in ports:
        if "fcb" in p.lower() or "usb" in p.lower():
            return p
    return ports[0]


def frame_to_message(frame: bytes) -> "mido.Message":
    """Wrap a complete F0..F7 frame into a mido sysex message."""
    if len(frame) < 2 or frame[0] != SYSEX_START or frame[-1] != SYSEX_END:
        raise TransportError("Only complete F0..F7 frames can be sent")
    return mido.Message("sysex", data=list(frame[1:-1]))


def message_to_frame(message: "mido.Message") -> Optional[bytes]:
    """Complete frame for a sysex message, None for any other message type."""
    if message.type != "sysex":
        return None
    return bytes([SYSEX_START]) + bytes(message.data) + bytes([SYSEX_END])


class MidoTransport:
    """
    Fire-and-forget SysEx transport.

    ``send`` returns as soon as mido has accepted the message; later failures
    and every incoming frame are reported through the callbacks. The input
    callback runs on mido's backend thread.

    Example:
        transport = MidoTransport(output_name="FCB", input_name="FCB")
        transport.on_receive = lambda frame: print(len(frame))
        transport.open()
        transport.send(frame)
        transport.close()
    """

    def __init__(
        self,
        output_name: Optional[str] = None,
        input_name: Optional[str] = None,
        on_receive: Optional[ReceiveCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.output_name = output_name
        self.input_name = input_name
        self.on_receive = on_receive
        self.on_error = on_error
        self._output = None
        self._input = None

    @property
    def is_open(self) -> bool:
        return self._output is not None or self._input is not None

    def open(self, output: bool = True, input: bool = True) -> None:
        """
        Open the configured ports.

        Raises:
            TransportError: If a port is missing or cannot be opened
        """
        try:
            if output and self._output is None:
                name = find_port(self.output_name, "output")
                if name is None:
                    raise TransportError(f"No MIDI output port matching {self.output_name!r}")
                self._output = mido.open_output(name)
                logger.info("Opened MIDI output %s", name)

            if input and self._input is None:
                name = find_port(self.input_name, "input")
                if name is None:
                    raise TransportError(f"No MIDI input port matching {self.input_name!r}")
                self._input = mido.open_input(name, callback=self._handle_message)
                logger.info("Opened MIDI input %s", name)
        except TransportError:
            self.close()
            raise
        except (OSError, RuntimeError) as e:
            self.close()
            raise TransportError(f"Cannot open MIDI port: {e}") from e

    def close(self) -> None:
        for port in (self._input, self._output):
            if port is None:
                continue
            try:
                port.close()
            except Exception as e:
                logger.error("Error closing MIDI port: %s", e)
        self._input = None
        self._output = None

    def send(self, frame: bytes) -> None:
        """
        Send one complete frame.

        Raises:
            TransportError: If the output is not open or the frame is not a
                complete SysEx frame
        """
        if self._output is None:
            raise TransportError("MIDI output is not open")

        message = frame_to_message(bytes(frame))
        try:
            self._output.send(message)
        except Exception as e:
            logger.error("MIDI send failed: %s", e)
            self._report_error(f"MIDI send failed: {e}")
            return
        logger.debug("Sent %d byte SysEx frame", len(frame))

    def receive(self, timeout: Optional[float] = None) -> Optional[bytes]:
        """
        Block until one SysEx frame arrives on a freshly opened input.

        Used by one-shot commands that don't run a session; the port is opened
        without the callback so messages can be polled.

        Returns:
            The frame, or None on timeout
        """
        name = find_port(self.input_name, "input")
        if name is None:
            raise TransportError(f"No MIDI input port matching {self.input_name!r}")

        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            with mido.open_input(name) as inport:
                logger.info("Waiting for dump on %s", name)
                while deadline is None or time.monotonic() < deadline:
                    for message in inport.iter_pending():
                        frame = message_to_frame(message)
                        if frame is not None:
                            return frame
                    time.sleep(0.01)
        except (OSError, RuntimeError) as e:
            raise TransportError(f"Cannot read from MIDI input {name}: {e}") from e
        return None

    def _handle_message(self, message) -> None:
        frame = message_to_frame(message)
        if frame is None:
            return
        logger.debug("Received %d byte SysEx frame", len(frame))
        if self.on_receive is not None:
            self.on_receive(frame)

    def _report_error(self, message: str) -> None:
        if self.on_error is not None:
            self.on_error(message)

    def __enter__(self) -> "MidoTransport":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
