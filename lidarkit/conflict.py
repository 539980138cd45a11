"""Detection of devices that announce the same IP address."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Conflict:
    """Two broadcast codes seen from one IP address."""

    ip: str
    existing_code: str
    new_code: str

    def __str__(self) -> str:
        return (f"broadcast_code: {{{self.existing_code}}} is conflicted with "
                f"broadcast_code: {{{self.new_code}}}, which ip is : {{{self.ip}}}")


@dataclass
class ConflictDetector:
    """Remembers the first broadcast code seen for each IP address."""

    codes: dict = field(default_factory=dict)

    def observe(self, ip: str, broadcast_code: str) -> Optional[Conflict]:
        """Record a broadcast; return a conflict if the IP already has another code."""
        known = self.codes.setdefault(ip, broadcast_code)
        if known == broadcast_code:
            return None
        return Conflict(ip=ip, existing_code=known, new_code=broadcast_code)