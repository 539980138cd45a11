"""Serial GPS receiver that hands each RMC sentence to a callback."""

from __future__ import annotations

import os
import threading
from enum import Enum
from typing import Callable, Optional

import serial

from .nmea import RmcParser

READ_BUFFER_SIZE = 256
_READ_TIMEOUT = 0.5

RmcCallback = Callable[[bytes], None]


class BaudRate(Enum):
    """Supported serial line speeds, in bits per second."""

    BR2400 = 2400
    BR4800 = 4800
    BR9600 = 9600
    BR19200 = 19200
    BR38400 = 38400
    BR57600 = 57600
    BR115200 = 115200
    BR230400 = 230400
    BR460800 = 460800
    BR500000 = 500000
    BR576000 = 576000
    BR921600 = 921600
    BR1152000 = 1152000
    BR1500000 = 1500000
    BR2000000 = 2000000
    BR2500000 = 2500000
    BR3000000 = 3000000
    BR3500000 = 3500000
    BR4000000 = 4000000


class Parity(Enum):
    """Frame formats: data bits, parity and stop bits."""

    P_8N1 = "8N1"
    P_7E1 = "7E1"
    P_7O1 = "7O1"
    P_7S1 = "7S1"  # set up the same way as 8N1


_FRAMES = {
    Parity.P_8N1: (serial.EIGHTBITS, serial.PARITY_NONE),
    Parity.P_7E1: (serial.SEVENBITS, serial.PARITY_EVEN),
    Parity.P_7O1: (serial.SEVENBITS, serial.PARITY_ODD),
    Parity.P_7S1: (serial.EIGHTBITS, serial.PARITY_NONE),
}


def serial_settings(baudrate: BaudRate, parity: Parity) -> dict:
    """Return the serial port keyword settings for a speed and frame format."""
    try:
        bytesize, parity_code = _FRAMES[Parity(parity)]
    except ValueError:
        raise ValueError(f"unsupported parity: {parity!r}") from None
    return {
        "baudrate": BaudRate(baudrate).value,
        "bytesize": bytesize,
        "parity": parity_code,
        "stopbits": serial.STOPBITS_ONE,
    }


def _default_port() -> str:
    return "COM3" if os.name == "nt" else "/dev/ttyUSB0"


class Synchro:
    """Reads a GPS serial port in a background thread.

    Each complete ``$GPRMC``/``$GNRMC`` sentence is passed to ``callback``.
    """

    def __init__(self, port_name: Optional[str] = None,
                 baudrate: BaudRate = BaudRate.BR9600,
                 parity: Parity = Parity.P_8N1,
                 callback: Optional[RmcCallback] = None) -> None:
        self.port_name = port_name if port_name is not None else _default_port()
        self.baudrate = baudrate
        self.parity = parity
        self.callback = callback
        self.connection: Optional[serial.SerialBase] = None
        self._parser = RmcParser()
        self._stop = threading.Event()
        self._listener: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._listener is not None and self._listener.is_alive()

    def start(self) -> None:
        """Open the port and start listening; raises if the port cannot be opened."""
        if self._listener is not None:
            raise RuntimeError("synchro is already started")
        self.connection = serial.serial_for_url(
            self.port_name,
            timeout=_READ_TIMEOUT,
            **serial_settings(self.baudrate, self.parity),
        )
        self._parser.clear()
        self._stop.clear()
        self._listener = threading.Thread(target=self._io_loop, name="synchro", daemon=True)
        self._listener.start()

    def stop(self) -> None:
        """Stop the listener and close the port."""
        self._stop.set()
        if self._listener is not None:
            self._listener.join()
            self._listener = None
        if self.connection is not None:
            if self.connection.is_open:
                self.connection.reset_input_buffer()
                self.connection.close()
            self.connection = None

    def feed(self, data: bytes) -> list[bytes]:
        """Decode ``data``, hand each sentence to the callback and return them."""
        sentences = self._parser.decode(data)
        if self.callback is not None:
            for sentence in sentences:
                self.callback(sentence)
        return sentences

    def _io_loop(self) -> None:
        connection = self.connection
        while not self._stop.is_set():
            try:
                data = connection.read(1)
                if data:
                    waiting = min(connection.in_waiting, READ_BUFFER_SIZE - 1)
                    if waiting:
                        data += connection.read(waiting)
            except (serial.SerialException, OSError):
                break
            if data:
                self.feed(data)

    def __enter__(self) -> "Synchro":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()