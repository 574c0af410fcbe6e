"""
Editor session - serialises every event that touches the sync engine.

User edits, incoming frames and transport failures can originate from
different threads (mido delivers input on its own callback thread). They are
all turned into event objects and pushed onto one asyncio queue; a single
consumer task applies them to the engine strictly one at a time.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

from fcbmanager.sync.engine import EditOutcome, SyncEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameReceived:
    """A complete frame arrived from the device or a file."""

    data: bytes


@dataclass(frozen=True)
class FieldEdit:
    """Structured edit; ``slot`` None addresses the global block."""

    slot: Optional[int]
    name: str
    value: int


@dataclass(frozen=True)
class ByteEdit:
    offset: int
    value: int
    reseal: bool = True


@dataclass(frozen=True)
class SendRequest:
    pass


@dataclass(frozen=True)
class TransportFailed:
    message: str


Event = Union[FrameReceived, FieldEdit, ByteEdit, SendRequest, TransportFailed]


class EditorSession:
    """
    Single-consumer event loop in front of a SyncEngine.

    Example:
        session = EditorSession(SyncEngine())
        await session.start()
        outcome = await session.apply(FieldEdit(3, "pc1", 40))
        await session.stop()
    """

    def __init__(self, engine: SyncEngine, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.engine = engine
        self.loop = loop
        self.queue: Optional[asyncio.Queue] = None
        self._processor_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._processor_task is not None and not self._processor_task.done()

    async def start(self) -> None:
        """Start the consumer task on the running loop."""
        if self.running:
            return
        self.loop = asyncio.get_running_loop()
        self.queue = asyncio.Queue()
        self._processor_task = self.loop.create_task(self._process_events())
        logger.debug("Editor session started")

    async def stop(self) -> None:
        """Drain pending events, then cancel the consumer task."""
        if self._processor_task is None:
            return
        await self.queue.join()
        self._processor_task.cancel()
        await asyncio.gather(self._processor_task, return_exceptions=True)
        self._processor_task = None
        logger.debug("Editor session stopped")

    async def submit(self, event: Event) -> None:
        """Queue an event without waiting for it to be applied."""
        self._require_running()
        await self.queue.put((event, None))

    async def apply(self, event: Event) -> EditOutcome:
        """Queue an event and wait for the engine's outcome."""
        self._require_running()
        future = self.loop.create_future()
        await self.queue.put((event, future))
        return await future

    def submit_threadsafe(self, event: Event) -> None:
        """Queue an event from a foreign thread, e.g. a MIDI input callback."""
        self._require_running()
        self.loop.call_soon_threadsafe(self.queue.put_nowait, (event, None))

    async def join(self) -> None:
        """Wait until every queued event has been applied."""
        self._require_running()
        await self.queue.join()

    def attach_transport(self, transport) -> None:
        """
        Wire a transport into the session.

        Incoming frames and asynchronous failures become queued events, and
        the engine sends through the transport.
        """
        transport.on_receive = lambda data: self.submit_threadsafe(FrameReceived(bytes(data)))
        transport.on_error = lambda message: self.submit_threadsafe(TransportFailed(message))
        self.engine.sender = transport.send

    def _require_running(self) -> None:
        if not self.running:
            raise RuntimeError("Editor session is not running")

    async def _process_events(self) -> None:
        logger.debug("Starting editor event processor task.")
        try:
            while True:
                event, future = await self.queue.get()
                try:
                    outcome = self._dispatch(event)
                    if future is not None and not future.done():
                        future.set_result(outcome)
                except Exception as e:
                    logger.exception("Error applying event: %s", event)
                    if future is not None and not future.done():
                        future.set_exception(e)
                finally:
                    self.queue.task_done()
        except asyncio.CancelledError:
            logger.debug("Editor event processor task cancelled.")

    def _dispatch(self, event: Event) -> EditOutcome:
        engine = self.engine

        # An incoming frame wins over a pending raw edit (load_bytes discards it)
        if isinstance(event, FrameReceived):
            return engine.load_bytes(event.data)
        if isinstance(event, FieldEdit):
            return engine.edit_field(event.slot, event.name, event.value)
        if isinstance(event, ByteEdit):
            return engine.edit_byte(event.offset, event.value, event.reseal)
        if isinstance(event, SendRequest):
            return engine.send()
        if isinstance(event, TransportFailed):
            return engine.report_transport_failure(event.message)

        raise TypeError(f"Unknown event type: {type(event).__name__}")
