import contextlib
import logging
import collections.abc

import pydantic

from serialplugin import _config
from serialplugin import _events
from serialplugin import _exceptions
from serialplugin import _handle
from serialplugin import _reader
from serialplugin import _registry
from serialplugin import _scanning
from serialplugin import _session

log = logging.getLogger("serialplugin.plugin")

OpenHandle = collections.abc.Callable[
    [str, _config.PortConfig], _handle.PortHandle
]


class SerialPlugin(contextlib.AbstractContextManager):
    """
    Commands the host application issues against serial ports. Results come
    back as return values or exceptions; received messages and disconnects
    go to the on_event sink, possibly from reader threads.
    """

    def __init__(
        self,
        registry: _registry.PortRegistry | None = None,
        on_event: _events.EventSink | None = None,
        open_handle: OpenHandle = _handle.PortHandle.open,
    ):
        if registry is None:
            registry = _registry.PortRegistry()
        self.registry = registry
        self._on_event = on_event or _events.discard
        self._open_handle = open_handle
        self._readers: dict[str, _reader.ReaderEngine] = {}

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.registry.close()

    def __repr__(self) -> str:
        return f"SerialPlugin({self.registry!r})"

    def available_ports(self) -> dict[str, _scanning.PortDescriptor]:
        try:
            found = _scanning.scan_serial_ports()
        except _exceptions.SerialScanException:
            log.warning("Can't list serial ports", exc_info=True)
            return {}

        usb = sorted(
            (p for p in found if p.type == _scanning.USB),
            key=lambda p: p.name,
        )
        log.debug("%d/%d ports are USB", len(usb), len(found))
        return {p.name: p for p in usb}

    @pydantic.validate_call
    def open(self, port: str, config: _config.PortConfig | int) -> None:
        if isinstance(config, int):
            config = _config.PortConfig(baud_rate=config)

        # fail fast without touching the device; insert() rechecks under lock
        if port in self.registry:
            message = "Serial port is already open"
            raise _exceptions.SerialPortAlreadyOpen(message, port)

        handle = self._open_handle(port, config)
        try:
            self.registry.insert(port, _session.Session(handle))
        except _exceptions.SerialPortAlreadyOpen:
            handle.close()
            raise
        log.info("Opened %s (%d baud)", port, config.baud_rate)

    @pydantic.validate_call
    def close(self, port: str) -> None:
        session = self.registry.remove(port)
        session.close()
        log.info("Closed %s", port)

    def close_all(self) -> None:
        sessions = self.registry.clear(lambda s: s.signal_stop())
        for session in sessions:
            session.close()
        log.info("Closed %d serial ports", len(sessions))

    @pydantic.validate_call
    def force_close(self, port: str) -> None:
        if session := self.registry.pop(port):
            session.close()
            log.info("Closed %s", port)
        else:
            log.debug("%s: Not open, nothing to close", port)

    @pydantic.validate_call
    def read(
        self,
        port: str,
        timeout: int | None = None,
        size: int | None = None,
    ) -> None:
        """Starts streaming messages from the port as read events; the
        timeout and size hints are accepted but not enforced"""

        log.debug("%s: read(timeout=%s, size=%s)", port, timeout, size)

        def spawn(handle: _handle.PortHandle, cancel) -> None:
            engine = _reader.ReaderEngine(
                port,
                handle,
                cancel,
                on_message=lambda data: self._emit(
                    _events.read_event(port, data)
                ),
            )
            self._readers[port] = engine
            engine.start()

        try:
            started = self.registry.with_session(
                port, lambda s: s.start_read(spawn)
            )
        except _exceptions.SerialCloneException:
            self._emit(_events.disconnected_event(port))
            raise
        if started:
            log.info("Reading %s", port)

    @pydantic.validate_call
    def cancel_read(self, port: str) -> None:
        self.registry.with_session(port, lambda s: s.cancel_read())

    @pydantic.validate_call
    def write(self, port: str, text: str) -> int:
        data = text.encode()
        log.debug("%s: Writing %r", port, text)
        return self._write(port, data)

    @pydantic.validate_call
    def write_binary(self, port: str, data: bytes) -> int:
        return self._write(port, data)

    def is_open(self, port: str) -> bool:
        return port in self.registry

    def open_ports(self) -> list[str]:
        return self.registry.ports()

    def is_reading(self, port: str) -> bool:
        return self.registry.with_session(port, lambda s: s.reading)

    def reader(self, port: str) -> _reader.ReaderEngine | None:
        """The most recently started reader for the port, if any; kept for
        tests and diagnostics, and replaced by the next read of the port"""

        return self._readers.get(port)

    def _write(self, port: str, data: bytes) -> int:
        # the sink may call back into the registry, so emit after unlocking
        try:
            return self.registry.with_session(
                port, lambda s: s.handle.write(data)
            )
        except _exceptions.SerialWriteException:
            self._emit(_events.disconnected_event(port))
            raise

    def _emit(self, event: _events.SerialEvent) -> None:
        try:
            self._on_event(event)
        except Exception:
            log.warning("Can't deliver %s", event.name, exc_info=True)
