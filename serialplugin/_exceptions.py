"""Exception hierarchy for serialplugin"""


class SerialException(OSError):
    def __init__(
        self,
        message: str,
        port: str | None = None,
    ):
        super().__init__(f"{port}: {message}" if port else message)
        self.port = port


class SerialPortNotFound(SerialException):
    pass


class SerialPortAlreadyOpen(SerialException):
    pass


class SerialRegistryLockError(SerialException):
    pass


class SerialOpenException(SerialException):
    pass


class SerialOpenBusy(SerialOpenException):
    pass


class SerialCloneException(SerialException):
    pass


class SerialIoException(SerialException):
    pass


class SerialIoClosed(SerialIoException):
    pass


class SerialWriteException(SerialIoException):
    pass


class SerialCancelException(SerialException):
    pass


class SerialReaderExited(SerialCancelException):
    pass


class SerialScanException(SerialException):
    pass
