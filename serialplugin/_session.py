import logging
import collections.abc

from serialplugin import _cancel
from serialplugin import _exceptions
from serialplugin import _handle

log = logging.getLogger("serialplugin.session")

SpawnReader = collections.abc.Callable[
    [_handle.PortHandle, _cancel.CancelReceiver], None
]


class Session:
    """An open port: its handle, plus the cancel sender of any active reader"""

    def __init__(self, handle: _handle.PortHandle):
        self.handle = handle
        self.cancel: _cancel.CancelSender | None = None

    def __repr__(self) -> str:
        reading = " reading" if self.reading else ""
        return f"Session({self.handle.name!r}{reading})"

    @property
    def reading(self) -> bool:
        return self.cancel is not None

    def start_read(self, spawn: SpawnReader) -> bool:
        """Spawns a reader unless one is active; False if already reading"""

        if self.cancel:
            log.debug("%s: Already reading", self.handle.name)
            return False

        duplicate = self.handle.duplicate()
        sender, receiver = _cancel.cancel_channel(self.handle.name)
        spawn(duplicate, receiver)
        self.cancel = sender
        log.debug("%s: Started reading", self.handle.name)
        return True

    def cancel_read(self) -> None:
        """Stops the reader if any; a reader that already exited is fine"""

        if sender := self.cancel:
            self.cancel = None
            try:
                sender.send()
            except _exceptions.SerialCancelException as exc:
                log.debug("%s: %s", self.handle.name, exc)
            sender.close()
            log.debug("%s: Cancelled reading", self.handle.name)

    def signal_stop(self) -> None:
        """Like cancel_read, but fails unless the reader got the signal"""

        if sender := self.cancel:
            try:
                sender.send()
            except _exceptions.SerialReaderExited as exc:
                log.debug("%s: %s", self.handle.name, exc)
            sender.close()
            self.cancel = None

    def close(self) -> None:
        if self.cancel:
            try:
                self.signal_stop()
            except _exceptions.SerialCancelException:
                name = self.handle.name
                log.warning("%s: Can't cancel reader", name, exc_info=True)
                self.cancel = None
        self.handle.abort_read()
        self.handle.close()
