import dataclasses
import json
import logging
import os
import pathlib
from serial.tools import list_ports
from serial.tools import list_ports_common

from serialplugin import _exceptions

log = logging.getLogger("serialplugin.scanning")

UNKNOWN = "Unknown"
USB = "USB"
BLUETOOTH = "Bluetooth"
PCI = "PCI"

_ATTR_KEYS = ("type", "vid", "pid", "serial_number", "manufacturer", "product")


@dataclasses.dataclass(frozen=True)
class PortDescriptor:
    """Hardware details of a serial port; unavailable values are "Unknown" """

    name: str
    attr: dict[str, str]

    def __str__(self):
        return self.name

    @property
    def type(self) -> str:
        return self.attr["type"]


def scan_serial_ports() -> list[PortDescriptor]:
    """Returns every serial port on the current system, sorted by name"""

    if ov := os.getenv("SERIALPLUGIN_SCAN_OVERRIDE"):
        try:
            ov_data = json.loads(pathlib.Path(ov).read_text())
            if not isinstance(ov_data, dict) or not all(
                isinstance(attr, dict)
                and all(isinstance(aval, str) for aval in attr.values())
                for attr in ov_data.values()
            ):
                raise ValueError("Override data is not a dict of dicts")
        except (OSError, ValueError) as ex:
            msg = f"Can't read $SERIALPLUGIN_SCAN_OVERRIDE {ov}"
            raise _exceptions.SerialScanException(msg) from ex

        out = [_descriptor(p, a) for p, a in ov_data.items()]
        log.debug("$SERIALPLUGIN_SCAN_OVERRIDE (%s): %d ports", ov, len(out))
    else:
        try:
            ports = list_ports.comports()
        except OSError as ex:
            raise _exceptions.SerialScanException("Can't scan serial") from ex

        out = [_convert_port(p) for p in ports]

    out.sort(key=lambda p: p.name)
    log.debug("Found %d ports", len(out))
    return out


def _descriptor(name: str, attr: dict[str, str]) -> PortDescriptor:
    full = dict.fromkeys(_ATTR_KEYS, UNKNOWN)
    full.update((k, v) for k, v in attr.items() if k in full and v)
    return PortDescriptor(name=name, attr=full)


def _convert_port(p: list_ports_common.ListPortInfo) -> PortDescriptor:
    if p.vid is not None:
        return _descriptor(
            p.device,
            {
                "type": USB,
                "vid": str(p.vid),
                "pid": str(p.pid),
                "serial_number": p.serial_number or UNKNOWN,
                "manufacturer": p.manufacturer or UNKNOWN,
                "product": p.product or UNKNOWN,
            },
        )

    subsystem = getattr(p, "subsystem", None) or ""
    basename = pathlib.PurePath(p.device).name
    if subsystem == "pci":
        return _descriptor(p.device, {"type": PCI})
    if subsystem == "bluetooth" or basename.startswith("rfcomm"):
        return _descriptor(p.device, {"type": BLUETOOTH})
    if "bluetooth" in basename.lower():
        return _descriptor(p.device, {"type": BLUETOOTH})
    return _descriptor(p.device, {"type": UNKNOWN})
