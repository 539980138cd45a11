"""Broadcast code whitelists that decide which devices get connected."""

from __future__ import annotations

from typing import Iterable, Iterator

from .devices import MAX_LIDAR_COUNT
from .lvx import BROADCAST_CODE_SIZE

LOCAL_BROADCAST_CODES = ("000000000000001",)
LOCAL_CODE_LENGTH = BROADCAST_CODE_SIZE - 1
_PLACEHOLDER_RUN = "000000000"


class WhitelistError(ValueError):
    """A broadcast code could not be added to a whitelist."""


def is_valid_local_code(code: str) -> bool:
    """Whether a locally configured code looks like a real broadcast code.

    It must be exactly 15 characters long and must not contain the
    placeholder run of nine zeros.
    """
    return len(code) == LOCAL_CODE_LENGTH and _PLACEHOLDER_RUN not in code


def split_broadcast_codes(text: str) -> list[str]:
    """Split a command-line list of codes joined with ``&``."""
    return text.split("&")


def _key(code: str) -> str:
    return code[:BROADCAST_CODE_SIZE]


class BroadcastWhitelist:
    """Broadcast codes of the devices that may be connected.

    An empty whitelist means automatic connection mode: every device is
    accepted. Codes are compared on their first 16 characters.
    """

    def __init__(self, codes: Iterable[str] = ()) -> None:
        self._codes: list[str] = []
        for code in codes:
            self.add(code)

    def add(self, code: str) -> None:
        """Add ``code``; raise ``WhitelistError`` if it is too long, known or the list is full."""
        if not isinstance(code, str):
            raise WhitelistError(f"broadcast code must be a string, not {type(code).__name__}")
        if len(code) > BROADCAST_CODE_SIZE:
            raise WhitelistError(f"broadcast code longer than {BROADCAST_CODE_SIZE} characters: {code!r}")
        if len(self._codes) >= MAX_LIDAR_COUNT:
            raise WhitelistError(f"whitelist already holds {MAX_LIDAR_COUNT} codes")
        if code in self:
            raise WhitelistError(f"{code} is already in the whitelist")
        self._codes.append(code)

    def add_local_codes(self, codes: Iterable[str] = LOCAL_BROADCAST_CODES) -> list[str]:
        """Add every valid code of ``codes`` that fits; return the ones added."""
        added = []
        for code in codes:
            if not is_valid_local_code(code):
                continue
            try:
                self.add(code)
            except WhitelistError:
                continue
            added.append(code)
        return added

    @property
    def auto_connect(self) -> bool:
        """True when no code is listed and every device is accepted."""
        return not self._codes

    def accepts(self, code: str) -> bool:
        """Whether a device announcing ``code`` should be connected."""
        return self.auto_connect or code in self

    def __contains__(self, code: object) -> bool:
        if not isinstance(code, str):
            return False
        key = _key(code)
        return any(_key(known) == key for known in self._codes)

    def __len__(self) -> int:
        return len(self._codes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._codes)