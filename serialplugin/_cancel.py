"""One-shot cancellation channel between a session and its reader thread"""

import threading

from serialplugin import _exceptions


class _Channel:
    def __init__(self, port: str | None):
        self.port = port
        self.lock = threading.Lock()
        self.cancelled = False
        self.sender_closed = False
        self.receiver_closed = False


class CancelSender:
    def __init__(self, channel: _Channel):
        self._channel = channel

    def __repr__(self) -> str:
        return f"CancelSender({self._channel.port!r})"

    @property
    def closed(self) -> bool:
        return self._channel.sender_closed

    def send(self) -> None:
        ch = self._channel
        with ch.lock:
            if ch.sender_closed:
                message = "Cancellation channel is closed"
                raise _exceptions.SerialCancelException(message, ch.port)
            if ch.receiver_closed:
                message = "Reader already exited"
                raise _exceptions.SerialReaderExited(message, ch.port)
            ch.cancelled = True

    def close(self) -> None:
        with self._channel.lock:
            self._channel.sender_closed = True


class CancelReceiver:
    def __init__(self, channel: _Channel):
        self._channel = channel

    def __repr__(self) -> str:
        return f"CancelReceiver({self._channel.port!r})"

    def poll(self) -> bool:
        """True once cancelled or once the sender is gone; never blocks"""

        ch = self._channel
        with ch.lock:
            return ch.cancelled or ch.sender_closed

    def close(self) -> None:
        with self._channel.lock:
            self._channel.receiver_closed = True


def cancel_channel(
    port: str | None = None,
) -> tuple[CancelSender, CancelReceiver]:
    channel = _Channel(port)
    return CancelSender(channel), CancelReceiver(channel)
