import contextlib
import io
import json
import ok_logging_setup
import os
import pty
import pytest
import queue
import typing

import serialplugin

ok_logging_setup.install(
    {
        "OK_LOGGING_LEVEL": "serialplugin=DEBUG,WARNING",
        "OK_LOGGING_OUTPUT": "stdout",
    }
)


class PseudoTtySerial(typing.NamedTuple):
    path: str
    control: io.FileIO
    simulated: io.FileIO


@pytest.fixture
def pty_serial():
    with contextlib.ExitStack() as cleanup:
        ctrl_fd, sim_fd = pty.openpty()
        path = os.ttyname(sim_fd)
        ctrl = cleanup.enter_context(os.fdopen(ctrl_fd, "r+b", buffering=0))
        sim = cleanup.enter_context(os.fdopen(sim_fd, "r+b", buffering=0))
        yield PseudoTtySerial(path=path, control=ctrl, simulated=sim)


@pytest.fixture
def set_scan_override(monkeypatch, tmp_path):
    path = tmp_path / "scan.json"
    path.write_text("{}")
    monkeypatch.setenv("SERIALPLUGIN_SCAN_OVERRIDE", str(path))

    def set_ports(ports: dict[str, dict[str, str]]):
        path.write_text(json.dumps(ports))

    return set_ports


#
# Scripted stand-in for a serial device
#


class FakeDevice:
    """Bytes and errors queued here come out of FakeHandle.read_byte()"""

    def __init__(self, name: str, timeout: float = 0.01):
        self.name = name
        self.timeout = timeout
        self.incoming: queue.SimpleQueue = queue.SimpleQueue()
        self.written = bytearray()
        self.is_open = True
        self.duplicates = 0
        self.write_error: OSError | None = None
        self.clone_error: OSError | None = None

    def feed(self, data: bytes) -> None:
        for b in data:
            self.incoming.put(bytes([b]))

    def fail(self, exc: Exception) -> None:
        self.incoming.put(exc)


class FakeHandle(serialplugin.PortHandle):
    def __init__(self, device: FakeDevice, *, owner: bool = True):
        self.device = device
        self._owner = owner

    @property
    def name(self) -> str:
        return self.device.name

    @property
    def is_open(self) -> bool:
        return self.device.is_open

    @property
    def timeout(self) -> float | None:
        return self.device.timeout

    def read_byte(self) -> bytes:
        if not self.device.is_open:
            message = "Serial port was closed"
            raise serialplugin.SerialIoClosed(message, self.name)
        try:
            item = self.device.incoming.get(timeout=self.device.timeout)
        except queue.Empty:
            return b""
        if isinstance(item, Exception):
            raise item
        return item

    def write(self, data: bytes) -> int:
        if ex := self.device.write_error:
            message = "Serial write error"
            raise serialplugin.SerialWriteException(message, self.name) from ex
        self.device.written.extend(data)
        return len(data)

    def duplicate(self) -> "FakeHandle":
        self.device.duplicates += 1
        if (ex := self.device.clone_error) or not self.device.is_open:
            message = "Can't duplicate serial port"
            raise serialplugin.SerialCloneException(message, self.name) from ex
        return FakeHandle(self.device, owner=False)

    def abort_read(self) -> None:
        pass

    def close(self) -> None:
        if self._owner:
            self.device.is_open = False


class FakePorts:
    """open_handle replacement for SerialPlugin, backed by FakeDevices"""

    def __init__(self):
        self.devices: dict[str, FakeDevice] = {}
        self.missing: set[str] = set()
        self.opened: list[str] = []

    def device(self, port: str) -> FakeDevice:
        return self.devices.setdefault(port, FakeDevice(port))

    def open_handle(
        self, port: str, config: serialplugin.PortConfig
    ) -> serialplugin.PortHandle:
        if port in self.missing:
            message = "Serial port open error"
            raise serialplugin.SerialOpenException(message, port)
        self.opened.append(port)
        device = self.device(port)
        device.is_open = True
        device.timeout = config.timeout_seconds
        return FakeHandle(device)


@pytest.fixture
def fake_ports():
    return FakePorts()


@pytest.fixture
def events():
    return serialplugin.EventQueue()


@pytest.fixture
def plugin(fake_ports, events):
    with serialplugin.SerialPlugin(
        on_event=events, open_handle=fake_ports.open_handle
    ) as plugin:
        yield plugin


@pytest.fixture
def fast_config():
    return serialplugin.PortConfig(baud_rate=115200, timeout=10)
