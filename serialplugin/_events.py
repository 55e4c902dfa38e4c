"""Events delivered from ports to the host application"""

import asyncio
import logging
import queue
import collections.abc

import msgspec

log = logging.getLogger("serialplugin.events")

READ_EVENT = "plugin-serialport-read"
DISCONNECTED_EVENT = "plugin-serialport-disconnected"


class ReadData(msgspec.Struct, frozen=True):
    """One newline-terminated message, delimiter included"""

    data: bytes
    size: int


class SerialEvent(msgspec.Struct, frozen=True):
    name: str
    port: str
    payload: ReadData | str


EventSink = collections.abc.Callable[[SerialEvent], None]


def event_name(kind: str, port: str) -> str:
    return f"{kind}-{port.replace('.', '')}"


def read_event(port: str, data: bytes) -> SerialEvent:
    payload = ReadData(data=data, size=len(data))
    return SerialEvent(event_name(READ_EVENT, port), port, payload)


def disconnected_event(port: str) -> SerialEvent:
    payload = f"Serial port {port} disconnected!"
    return SerialEvent(event_name(DISCONNECTED_EVENT, port), port, payload)


def discard(event: SerialEvent) -> None:
    log.debug("Dropped %s", event.name)


class EventQueue:
    """Sink for threaded consumers"""

    def __init__(self):
        self._queue: queue.SimpleQueue[SerialEvent] = queue.SimpleQueue()

    def __call__(self, event: SerialEvent) -> None:
        self._queue.put(event)

    def __len__(self) -> int:
        return self._queue.qsize()

    def get(self, timeout: float | int | None = None) -> SerialEvent | None:
        """Returns the next event, or None on timeout"""

        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[SerialEvent]:
        out = []
        while not self._queue.empty():
            out.append(self._queue.get_nowait())
        return out


class AsyncEventQueue:
    """Sink that hands events from reader threads to an asyncio loop"""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue[SerialEvent] = asyncio.Queue()

    def __call__(self, event: SerialEvent) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def get(self) -> SerialEvent:
        return await self._queue.get()


class JsonLinesSink:
    """Sink that writes each event as one line of JSON"""

    def __init__(self, stream):
        self._stream = stream
        self._encoder = msgspec.json.Encoder()

    def __call__(self, event: SerialEvent) -> None:
        self._stream.write(self._encoder.encode(event) + b"\n")
        self._stream.flush()
