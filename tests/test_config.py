"""Unit tests for serialplugin._config."""

import pydantic
import pytest
import serial

from serialplugin import DataBits, FlowControl, Parity, PortConfig, StopBits


def test_defaults():
    config = PortConfig(baud_rate=9600)
    assert config.data_bits == DataBits.EIGHT
    assert config.flow_control == FlowControl.NONE
    assert config.parity == Parity.NONE
    assert config.stop_bits == StopBits.TWO
    assert config.timeout == 200
    assert config.timeout_seconds == 0.2


def test_recognized_values():
    config = PortConfig(
        baud_rate=57600,
        data_bits=7,
        flow_control="Hardware",
        parity="Odd",
        stop_bits=1,
        timeout=50,
    )
    assert config.data_bits == DataBits.SEVEN
    assert config.flow_control == FlowControl.HARDWARE
    assert config.parity == Parity.ODD
    assert config.stop_bits == StopBits.ONE
    assert config.timeout == 50


@pytest.mark.parametrize(
    "field,value,expected",
    [
        ("data_bits", 9, DataBits.EIGHT),
        ("data_bits", "7", DataBits.EIGHT),
        ("data_bits", None, DataBits.EIGHT),
        ("flow_control", "hardware", FlowControl.NONE),
        ("flow_control", "XON", FlowControl.NONE),
        ("parity", "Mark", Parity.NONE),
        ("parity", None, Parity.NONE),
        ("stop_bits", 3, StopBits.TWO),
        ("stop_bits", None, StopBits.TWO),
        ("timeout", None, 200),
    ],
)
def test_unrecognized_values_fall_back(field, value, expected):
    config = PortConfig(baud_rate=9600, **{field: value})
    assert getattr(config, field) == expected


def test_camel_case_names():
    config = PortConfig.model_validate(
        {
            "baudRate": 19200,
            "dataBits": 5,
            "flowControl": "Software",
            "parity": "Even",
            "stopBits": 1,
            "timeout": 10,
        }
    )
    assert config.baud_rate == 19200
    assert config.data_bits == DataBits.FIVE
    assert config.flow_control == FlowControl.SOFTWARE
    assert config.parity == Parity.EVEN
    assert config.stop_bits == StopBits.ONE


@pytest.mark.parametrize("baud", [0, -9600])
def test_baud_rate_must_be_positive(baud):
    with pytest.raises(pydantic.ValidationError):
        PortConfig(baud_rate=baud)


def test_baud_rate_is_required():
    with pytest.raises(pydantic.ValidationError):
        PortConfig()


def test_serial_kwargs():
    config = PortConfig(
        baud_rate=38400,
        data_bits=6,
        flow_control="Software",
        parity="Even",
        stop_bits=1,
        timeout=250,
    )
    assert config.serial_kwargs() == dict(
        baudrate=38400,
        bytesize=serial.SIXBITS,
        parity=serial.PARITY_EVEN,
        stopbits=serial.STOPBITS_ONE,
        xonxoff=True,
        rtscts=False,
        timeout=0.25,
        write_timeout=0.25,
    )

    kwargs = PortConfig(baud_rate=9600, flow_control="Hardware").serial_kwargs()
    assert kwargs["xonxoff"] is False
    assert kwargs["rtscts"] is True
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["stopbits"] == serial.STOPBITS_TWO
