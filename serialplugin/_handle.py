import errno
import logging

import serial

from serialplugin import _config
from serialplugin import _exceptions

log = logging.getLogger("serialplugin.handle")
data_log = logging.getLogger(log.name + ".data")


class PortHandle:
    """Blocking byte I/O on one serial device, with reader duplicates"""

    def __init__(self, pyserial: serial.Serial, *, owner: bool = True):
        self._serial = pyserial
        self._owner = owner

    @classmethod
    def open(cls, port: str, config: _config.PortConfig) -> "PortHandle":
        log.debug("Opening %s (%s)", port, config)
        try:
            pyserial = serial.Serial(port=port, **config.serial_kwargs())
        except OSError as ex:
            if ex.errno == errno.EBUSY:
                message = "Serial port busy (EBUSY)"
                raise _exceptions.SerialOpenBusy(message, port) from ex
            else:
                message = "Serial port open error"
                raise _exceptions.SerialOpenException(message, port) from ex
        return cls(pyserial)

    def __repr__(self) -> str:
        kind = "owner" if self._owner else "duplicate"
        return f"PortHandle({self.name!r}, {kind})"

    @property
    def name(self) -> str:
        return self._serial.port

    @property
    def is_open(self) -> bool:
        return self._serial.is_open

    @property
    def timeout(self) -> float | None:
        return self._serial.timeout

    def read_byte(self) -> bytes:
        """Returns one byte, or b"" if the read timeout expired"""

        try:
            return self._serial.read(1)
        except OSError as ex:
            if not self._serial.is_open:
                message = "Serial port was closed"
                raise _exceptions.SerialIoClosed(message, self.name) from ex
            message = "Serial read error"
            raise _exceptions.SerialIoException(message, self.name) from ex
        except (TypeError, ValueError) as ex:
            # pyserial drops its fd on close(); a racing read trips over that
            if self._serial.is_open:
                raise
            message = "Serial port was closed"
            raise _exceptions.SerialIoClosed(message, self.name) from ex

    def write(self, data: bytes) -> int:
        try:
            written = self._serial.write(data)
            if written is None:
                written = len(data)
        except OSError as ex:
            message = "Serial write error"
            raise _exceptions.SerialWriteException(message, self.name) from ex
        data_log.debug("%s: Wrote %d/%db", self.name, written, len(data))
        return written

    def duplicate(self) -> "PortHandle":
        """Returns a non-owning handle for a reader thread"""

        if not self._serial.is_open:
            message = "Serial port is closed"
            raise _exceptions.SerialCloneException(message, self.name)
        try:
            self._serial.in_waiting  # fails if unplugged
        except OSError as ex:
            message = "Can't duplicate serial port"
            raise _exceptions.SerialCloneException(message, self.name) from ex
        return type(self)(self._serial, owner=False)

    def abort_read(self) -> None:
        """Wakes a read blocked in another thread, where supported"""

        if not self._serial.is_open or not hasattr(self._serial, "cancel_read"):
            return
        try:
            self._serial.cancel_read()
            log.debug("Cancelled %s read", self.name)
        except OSError:
            log.warning("Can't cancel %s read", self.name, exc_info=True)

    def close(self) -> None:
        if not self._owner or not self._serial.is_open:
            return
        try:
            self._serial.close()
            log.debug("Closed %s", self.name)
        except OSError:
            log.warning("Can't close %s", self.name, exc_info=True)
