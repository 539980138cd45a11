"""Incremental recognition of NMEA RMC sentences in a serial byte stream."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Union

RMC_HEADERS = (b"$GPRMC", b"$GNRMC")
MAX_SENTENCE_LENGTH = 128

_HEADER_LENGTH = len(RMC_HEADERS[0])
_LEADING_HEX = re.compile(r"\s*([0-9A-Fa-f]+)")


def nmea_checksum(body: Union[str, bytes]) -> int:
    """Return the XOR checksum of the text between ``$`` and ``*``."""
    data = body.encode("ascii") if isinstance(body, str) else bytes(body)
    result = 0
    for value in data:
        result ^= value
    return result


def _parse_hex(raw: bytes) -> int:
    """Read leading hex digits the way ``%x`` does; 0 when there are none."""
    match = _LEADING_HEX.match(raw.decode("latin-1"))
    return int(match.group(1), 16) & 0xFF if match else 0


class RmcParser:
    """Collects bytes until a complete ``$GPRMC``/``$GNRMC`` sentence is seen.

    The sentence is accepted once the two characters after ``*`` match the
    XOR of everything between ``$`` and ``*``. Sentences that grow beyond
    ``MAX_SENTENCE_LENGTH`` bytes are discarded.
    """

    def __init__(self) -> None:
        self._buf = bytearray()

    def clear(self) -> None:
        """Drop any partly collected sentence."""
        self._buf.clear()

    def feed(self, byte: int) -> Optional[bytes]:
        """Consume one byte; return the sentence it completes, if any."""
        buf = self._buf
        if len(buf) < _HEADER_LENGTH:
            buf.append(byte)
            if len(buf) == _HEADER_LENGTH and bytes(buf) not in RMC_HEADERS:
                del buf[0]
            return None

        if len(buf) >= MAX_SENTENCE_LENGTH:
            self.clear()
            return None

        buf.append(byte)
        if buf[-3] == ord("*"):
            expected = nmea_checksum(buf[1:-3])
            if expected ^ _parse_hex(bytes(buf[-2:])) == 0:
                sentence = bytes(buf)
                self.clear()
                return sentence
        return None

    def decode(self, data: Iterable[int]) -> list[bytes]:
        """Consume ``data`` and return every sentence completed in it."""
        sentences = []
        for byte in data:
            sentence = self.feed(byte)
            if sentence is not None:
                sentences.append(sentence)
        return sentences