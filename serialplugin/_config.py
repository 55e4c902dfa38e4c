import enum
import typing

import pydantic
import serial
from pydantic import alias_generators


class DataBits(enum.IntEnum):
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8


class FlowControl(str, enum.Enum):
    NONE = "None"
    SOFTWARE = "Software"
    HARDWARE = "Hardware"


class Parity(str, enum.Enum):
    NONE = "None"
    ODD = "Odd"
    EVEN = "Even"


class StopBits(enum.IntEnum):
    ONE = 1
    TWO = 2


_BYTESIZE = {
    DataBits.FIVE: serial.FIVEBITS,
    DataBits.SIX: serial.SIXBITS,
    DataBits.SEVEN: serial.SEVENBITS,
    DataBits.EIGHT: serial.EIGHTBITS,
}

_PARITY = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.ODD: serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
}

_STOPBITS = {
    StopBits.ONE: serial.STOPBITS_ONE,
    StopBits.TWO: serial.STOPBITS_TWO,
}

DEFAULT_TIMEOUT_MS = 200


def _lenient(enum_type: type[enum.Enum], default: enum.Enum, value: typing.Any):
    """Unrecognized values decode to the default instead of failing"""

    if isinstance(value, enum_type):
        return value
    for member in enum_type:
        # exact match only (no case folding, no int-from-str)
        if type(value) is type(member.value) and value == member.value:
            return member
    return default


class PortConfig(pydantic.BaseModel):
    """Line settings for one serial port; timeout is in milliseconds"""

    model_config = pydantic.ConfigDict(
        alias_generator=alias_generators.to_camel,
        populate_by_name=True,
        frozen=True,
    )

    baud_rate: pydantic.PositiveInt
    data_bits: DataBits = DataBits.EIGHT
    flow_control: FlowControl = FlowControl.NONE
    parity: Parity = Parity.NONE
    stop_bits: StopBits = StopBits.TWO
    timeout: pydantic.NonNegativeInt = DEFAULT_TIMEOUT_MS

    @pydantic.field_validator("data_bits", mode="before")
    @classmethod
    def _lenient_data_bits(cls, value: typing.Any) -> DataBits:
        return _lenient(DataBits, DataBits.EIGHT, value)

    @pydantic.field_validator("flow_control", mode="before")
    @classmethod
    def _lenient_flow_control(cls, value: typing.Any) -> FlowControl:
        return _lenient(FlowControl, FlowControl.NONE, value)

    @pydantic.field_validator("parity", mode="before")
    @classmethod
    def _lenient_parity(cls, value: typing.Any) -> Parity:
        return _lenient(Parity, Parity.NONE, value)

    @pydantic.field_validator("stop_bits", mode="before")
    @classmethod
    def _lenient_stop_bits(cls, value: typing.Any) -> StopBits:
        return _lenient(StopBits, StopBits.TWO, value)

    @pydantic.field_validator("timeout", mode="before")
    @classmethod
    def _default_timeout(cls, value: typing.Any) -> typing.Any:
        return DEFAULT_TIMEOUT_MS if value is None else value

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    def serial_kwargs(self) -> dict[str, typing.Any]:
        """Keyword arguments for serial.Serial()"""

        return dict(
            baudrate=self.baud_rate,
            bytesize=_BYTESIZE[self.data_bits],
            parity=_PARITY[self.parity],
            stopbits=_STOPBITS[self.stop_bits],
            xonxoff=self.flow_control is FlowControl.SOFTWARE,
            rtscts=self.flow_control is FlowControl.HARDWARE,
            timeout=self.timeout_seconds,
            write_timeout=self.timeout_seconds,
        )
