"""
Serial port session manager (PySerial wrapper): a registry of open ports,
cancellable newline-framed background readers, and synchronous writes.
"""

from beartype.claw import beartype_this_package as _beartype_me

# ruff: noqa: E402
_beartype_me()

from serialplugin._cancel import (
    CancelReceiver,
    CancelSender,
    cancel_channel,
)

from serialplugin._config import (
    DataBits,
    FlowControl,
    Parity,
    PortConfig,
    StopBits,
)

from serialplugin._events import (
    AsyncEventQueue,
    EventQueue,
    JsonLinesSink,
    ReadData,
    SerialEvent,
    disconnected_event,
    event_name,
    read_event,
)

from serialplugin._exceptions import (
    SerialCancelException,
    SerialCloneException,
    SerialException,
    SerialIoClosed,
    SerialIoException,
    SerialOpenBusy,
    SerialOpenException,
    SerialPortAlreadyOpen,
    SerialPortNotFound,
    SerialReaderExited,
    SerialRegistryLockError,
    SerialScanException,
    SerialWriteException,
)

from serialplugin._handle import PortHandle
from serialplugin._plugin import SerialPlugin
from serialplugin._reader import ReaderEngine, ReaderState
from serialplugin._registry import PortRegistry
from serialplugin._scanning import PortDescriptor, scan_serial_ports
from serialplugin._session import Session

__all__ = [n for n in dir() if not n.startswith("_")]
