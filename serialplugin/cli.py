#!/usr/bin/env python3

"""CLI tool to list USB serial ports and/or monitor one of them"""

import argparse
import logging
import ok_logging_setup
import serialplugin
import sys

ok_logging_setup.skip_traceback_for(serialplugin.SerialOpenException)
ok_logging_setup.skip_traceback_for(serialplugin.SerialWriteException)


def main():
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(title="actions", dest="command")
    list_parser = subparsers.add_parser("list", help="List USB serial ports")
    list_parser.add_argument(
        "--verbose", "-v", action="store_true", help="print port details"
    )

    mon_parser = subparsers.add_parser("monitor", help="Print port messages")
    mon_parser.add_argument("port", help="port device path")
    mon_parser.add_argument("baud", type=int, help="baud rate")
    mon_parser.add_argument("--data-bits", type=int, help="5, 6, 7 or 8")
    mon_parser.add_argument("--parity", help="None, Odd or Even")
    mon_parser.add_argument("--stop-bits", type=int, help="1 or 2")
    mon_parser.add_argument(
        "--flow-control", help="None, Software or Hardware"
    )
    mon_parser.add_argument(
        "--timeout", type=int, help="read timeout in milliseconds"
    )
    mon_parser.add_argument("--send", help="text to write after opening")
    mon_parser.add_argument(
        "--json", action="store_true", help="print events as JSON lines"
    )

    args = parser.parse_args()
    if not args.command:
        args = parser.parse_args(["list"])

    ok_logging_setup.install({"OK_LOGGING_LEVEL": "info"})

    if args.command == "list":
        list_ports(verbose=args.verbose)
    if args.command == "monitor":
        monitor(args)


def list_ports(verbose: bool):
    found = serialplugin.SerialPlugin().available_ports()
    if not found:
        ok_logging_setup.exit("❌ No USB serial ports found")

    num = len(found)
    logging.info("🔌 %d serial port%s found", num, "" if num == 1 else "s")
    for port in found.values():
        print(format_detail(port) if verbose else port.name)


def monitor(args: argparse.Namespace):
    config = serialplugin.PortConfig(
        baud_rate=args.baud,
        data_bits=args.data_bits,
        parity=args.parity,
        stop_bits=args.stop_bits,
        flow_control=args.flow_control,
        timeout=args.timeout,
    )

    events = serialplugin.EventQueue()
    json_out = serialplugin.JsonLinesSink(sys.stdout.buffer)
    with serialplugin.SerialPlugin(on_event=events) as plugin:
        plugin.open(args.port, config)
        logging.info("🔌 Opened %s (%d baud)", args.port, config.baud_rate)
        if args.send:
            plugin.write(args.port, args.send)
        plugin.read(args.port)

        try:
            while event := events.get():
                if args.json:
                    json_out(event)
                elif isinstance(event.payload, serialplugin.ReadData):
                    text = event.payload.data.decode(errors="replace")
                    print(text, end="", flush=True)
                else:
                    ok_logging_setup.exit(f"❌ {event.payload}")
        except KeyboardInterrupt:
            logging.info("👋 Closing %s", args.port)


def format_detail(port: serialplugin.PortDescriptor) -> str:
    return f"Port: {port.name}" + "".join(
        f"\n  {k}={v}" for k, v in port.attr.items()
    )


if __name__ == "__main__":
    main()
