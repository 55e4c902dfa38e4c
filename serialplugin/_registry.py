import contextlib
import logging
import threading
import collections.abc
import typing

from serialplugin import _exceptions
from serialplugin import _session

log = logging.getLogger("serialplugin.registry")

T = typing.TypeVar("T")


class PortRegistry(contextlib.AbstractContextManager):
    """
    Thread-safe table of open ports, keyed by port name. A port is open
    exactly when it has a Session here. Every operation holds one lock for
    its whole duration, so no caller sees a half-inserted or half-removed
    entry. An unexpected exception while the lock is held poisons the
    registry, after which every operation raises SerialRegistryLockError.
    """

    def __init__(self, *, lock_timeout: float | int = 5.0):
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._poisoned: BaseException | None = None
        self._sessions: dict[str, _session.Session] = {}

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PortRegistry({sorted(self._sessions)!r})"

    def __contains__(self, port: str) -> bool:
        with self._locked():
            return port in self._sessions

    def __len__(self) -> int:
        with self._locked():
            return len(self._sessions)

    def ports(self) -> list[str]:
        with self._locked():
            return sorted(self._sessions)

    def with_session(
        self, port: str, f: collections.abc.Callable[[_session.Session], T]
    ) -> T:
        with self._locked():
            session = self._sessions.get(port)
            if session is None:
                message = "Serial port is not open"
                raise _exceptions.SerialPortNotFound(message, port)
            return f(session)

    def insert(self, port: str, session: _session.Session) -> None:
        with self._locked():
            if port in self._sessions:
                message = "Serial port is already open"
                raise _exceptions.SerialPortAlreadyOpen(message, port)
            self._sessions[port] = session
            log.debug("Added %s (%d open)", port, len(self._sessions))

    def remove(self, port: str) -> _session.Session:
        with self._locked():
            try:
                session = self._sessions.pop(port)
            except KeyError:
                message = "Serial port is not open"
                raise _exceptions.SerialPortNotFound(message, port) from None
            log.debug("Removed %s (%d open)", port, len(self._sessions))
            return session

    def pop(self, port: str) -> _session.Session | None:
        with self._locked():
            session = self._sessions.pop(port, None)
            if session:
                log.debug("Removed %s (%d open)", port, len(self._sessions))
            return session

    def for_each_session(
        self, f: collections.abc.Callable[[_session.Session], object]
    ) -> None:
        with self._locked():
            for session in self._sessions.values():
                f(session)

    def clear(
        self,
        f: collections.abc.Callable[[_session.Session], object] | None = None,
    ) -> list[_session.Session]:
        """Applies f to every session, then removes them all; if f raises,
        nothing is removed"""

        with self._locked():
            if f:
                for session in self._sessions.values():
                    f(session)
            sessions = list(self._sessions.values())
            self._sessions.clear()
            log.debug("Removed all %d sessions", len(sessions))
            return sessions

    def close(self) -> None:
        """Removes and closes every session, for application shutdown"""

        if self._poisoned:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        else:
            sessions = self.clear()
        for session in sessions:
            session.close()

    @contextlib.contextmanager
    def _locked(self):
        if not self._lock.acquire(timeout=self._lock_timeout):
            timeout = self._lock_timeout
            message = f"Can't acquire port registry lock ({timeout}s)"
            raise _exceptions.SerialRegistryLockError(message)
        try:
            if self._poisoned:
                message = "Port registry is poisoned"
                raise _exceptions.SerialRegistryLockError(message) from (
                    self._poisoned
                )
            yield
        except _exceptions.SerialException:
            raise
        except BaseException as exc:
            log.error("Port registry poisoned by %r", exc)
            self._poisoned = exc
            raise
        finally:
            self._lock.release()
