"""Unit tests for serialplugin._events."""

import asyncio
import base64
import io
import json
import threading

import serialplugin
from serialplugin import ReadData


def test_event_names_drop_dots():
    name = serialplugin.event_name("plugin-serialport-read", "/dev/cu.usb-1.2")
    assert name == "plugin-serialport-read-/dev/cuusb-12"
    assert serialplugin.event_name("x", "COM3") == "x-COM3"


def test_read_event():
    event = serialplugin.read_event("/dev/ttyACM0", b"hi\n")
    assert event.name == "plugin-serialport-read-/dev/ttyACM0"
    assert event.port == "/dev/ttyACM0"
    assert event.payload == ReadData(data=b"hi\n", size=3)


def test_disconnected_event():
    event = serialplugin.disconnected_event("COM3")
    assert event.name == "plugin-serialport-disconnected-COM3"
    assert event.payload == "Serial port COM3 disconnected!"


def test_event_queue():
    events = serialplugin.EventQueue()
    assert events.get(timeout=0) is None

    events(serialplugin.disconnected_event("a"))
    events(serialplugin.disconnected_event("b"))
    assert len(events) == 2
    assert events.get(timeout=1).port == "a"
    assert [e.port for e in events.drain()] == ["b"]
    assert len(events) == 0


async def test_async_event_queue_from_thread():
    events = serialplugin.AsyncEventQueue()
    thread = threading.Thread(
        target=events, args=(serialplugin.read_event("p", b"x\n"),)
    )
    thread.start()
    event = await asyncio.wait_for(events.get(), timeout=5)
    thread.join()
    assert event.payload == ReadData(data=b"x\n", size=2)


def test_json_lines_sink():
    stream = io.BytesIO()
    sink = serialplugin.JsonLinesSink(stream)
    sink(serialplugin.read_event("/dev/ttyA", b"\x00ok\n"))
    sink(serialplugin.disconnected_event("/dev/ttyA"))

    first, second = stream.getvalue().splitlines()
    read = json.loads(first)
    assert read["name"] == "plugin-serialport-read-/dev/ttyA"
    assert base64.b64decode(read["payload"]["data"]) == b"\x00ok\n"
    assert read["payload"]["size"] == 4
    disconnected = json.loads(second)
    assert disconnected["payload"] == "Serial port /dev/ttyA disconnected!"
