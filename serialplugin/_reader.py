import enum
import logging
import threading
import collections.abc

from serialplugin import _cancel
from serialplugin import _exceptions
from serialplugin import _handle

log = logging.getLogger("serialplugin.reader")
data_log = logging.getLogger(log.name + ".data")

DELIMITER = b"\n"


class ReaderState(enum.Enum):
    RUNNING = "running"
    CANCELLED = "cancelled"
    DISCONNECTED = "disconnected"
    IO_ERROR = "io_error"


class ReaderEngine:
    """
    Background loop that frames a port's byte stream into newline-terminated
    messages. It polls its cancellation receiver between single-byte reads,
    so it stops within one read timeout of being cancelled.
    """

    def __init__(
        self,
        port: str,
        handle: _handle.PortHandle,
        cancel: _cancel.CancelReceiver,
        on_message: collections.abc.Callable[[bytes], None],
    ):
        self.port = port
        self.state = ReaderState.RUNNING
        self._handle = handle
        self._cancel = cancel
        self._on_message = on_message
        self._buffer = bytearray()
        self._thread: threading.Thread | None = None

    def __repr__(self) -> str:
        return f"ReaderEngine({self.port!r}, {self.state.value})"

    @property
    def buffered(self) -> bytes:
        return bytes(self._buffer)

    def start(self) -> None:
        name = f"{self.port} reader"
        self._thread = threading.Thread(target=self.run, name=name, daemon=True)
        self._thread.start()

    def join(self, timeout: float | int | None = None) -> bool:
        """Waits for the reader thread; True if it has finished"""

        if self._thread:
            self._thread.join(timeout=timeout)
            return not self._thread.is_alive()
        return self.state is not ReaderState.RUNNING

    def run(self) -> ReaderState:
        log.debug("%s: Starting reader", self.port)
        try:
            while self.state is ReaderState.RUNNING:
                self.state = self._step()
        finally:
            self._cancel.close()
            self._handle.close()
        log.debug("%s: Reader stopped (%s)", self.port, self.state.value)
        return self.state

    def _step(self) -> ReaderState:
        if self._cancel.poll():
            return ReaderState.CANCELLED

        try:
            byte = self._handle.read_byte()
        except _exceptions.SerialIoClosed:
            return ReaderState.DISCONNECTED
        except _exceptions.SerialIoException:
            if not self._handle.is_open:
                return ReaderState.DISCONNECTED
            log.warning("%s: Serial read failed", self.port, exc_info=True)
            return ReaderState.IO_ERROR

        if byte:
            self._buffer.extend(byte)
            if byte == DELIMITER:
                message = bytes(self._buffer)
                self._buffer.clear()
                data_log.debug("%s: Message %db", self.port, len(message))
                self._on_message(message)

        return ReaderState.RUNNING
