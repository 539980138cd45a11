"""Command line entry point: whitelist set-up and GPS time synchronisation."""

from __future__ import annotations

import argparse
import logging
import time
from typing import Optional, Sequence

import serial

from .synchro import BaudRate, Parity, Synchro, _default_port
from .whitelist import BroadcastWhitelist, WhitelistError, split_broadcast_codes

DEFAULT_RUN_TIME = 100
LOG_FILENAME = "lidarkit.log"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse the command line; ``codes`` holds the registered broadcast codes."""
    parser = argparse.ArgumentParser(
        prog="lidarkit",
        description="Register LiDAR broadcast codes and feed GPS RMC time to them.",
    )
    parser.add_argument("-c", "--code", default=None,
                        help="Register device broadcast code, several joined with '&'")
    parser.add_argument("-l", "--log", action="store_true", help="Save the log file")
    parser.add_argument("-t", "--time", type=float, default=DEFAULT_RUN_TIME,
                        help="Seconds to keep running")
    parser.add_argument("-p", "--port", default=None,
                        help="Serial port of the GPS receiver")
    parser.add_argument("-b", "--baud", type=int, default=BaudRate.BR9600.value,
                        choices=[rate.value for rate in BaudRate],
                        help="Serial line speed")
    parser.add_argument("--parity", default=Parity.P_8N1.value,
                        choices=[parity.value for parity in Parity],
                        help="Serial frame format")
    args = parser.parse_args(argv)
    if args.time < 0:
        parser.error("--time must not be negative")
    args.codes = split_broadcast_codes(args.code) if args.code is not None else []
    if args.port is None:
        args.port = _default_port()
    return args


def _build_whitelist(codes: Sequence[str]) -> BroadcastWhitelist:
    whitelist = BroadcastWhitelist()
    for code in codes:
        try:
            whitelist.add(code)
        except WhitelistError as exc:
            print(f"Broadcast code {code!r} not registered: {exc}")
    whitelist.add_local_codes()
    if whitelist.auto_connect:
        print("No broadcast code was added to whitelist, swith to automatic connection mode!")
    else:
        print("Disable auto connect mode!")
        print("List all broadcast code in whiltelist:")
        for code in whitelist:
            print(code)
    return whitelist


def _print_rmc(sentence: bytes) -> None:
    print(f"Rmc: {sentence.decode('ascii', errors='replace')}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the program; return the process exit status."""
    args = parse_args(argv)
    if args.code is not None:
        print(f"Register broadcast code: {args.code}")
    if args.log:
        print("Save the log file.")
        logging.basicConfig(filename=LOG_FILENAME, level=logging.INFO)

    _build_whitelist(args.codes)

    synchro = Synchro(
        port_name=args.port,
        baudrate=BaudRate(args.baud),
        parity=Parity(args.parity),
        callback=_print_rmc,
    )
    try:
        synchro.start()
    except (serial.SerialException, OSError, ValueError) as exc:
        print(f"Synchro start failed: {exc}")
        synchro.stop()
        return 1
    print("Synchro start success")

    try:
        time.sleep(args.time)
    except KeyboardInterrupt:
        pass
    finally:
        synchro.stop()
    print("Livox lidar demo end!")
    return 0