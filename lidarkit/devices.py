"""Device records and the states and configuration bits they go through."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Optional

MAX_LIDAR_COUNT = 32
LIDARS_PER_HUB_SLOT = 3


class ConnectState(IntEnum):
    OFF = 0
    ON = 1
    CONFIG = 2
    SAMPLING = 3


class ConfigBit(IntFlag):
    FAN = 1
    RETURN_MODE = 2
    COORDINATE = 4
    IMU_RATE = 8


class CoordinateType(IntEnum):
    CARTESIAN = 0
    SPHERICAL = 1


class DeviceType(IntEnum):
    HUB = 0
    LIDAR_MID40 = 1
    LIDAR_TELE = 2
    LIDAR_HORIZON = 3
    LIDAR_MID70 = 6
    LIDAR_AVIA = 7


class DeviceEvent(IntEnum):
    CONNECT = 0
    DISCONNECT = 1
    STATE_CHANGE = 2
    HUB_CONNECTION_CHANGE = 3


class LidarState(IntEnum):
    INIT = 0
    NORMAL = 1
    POWER_SAVING = 2
    STANDBY = 3
    ERROR = 4
    UNKNOWN = 5


@dataclass
class DeviceInfo:
    """What the SDK reports about a connected device."""

    broadcast_code: str = ""
    handle: int = 0
    slot: int = 0
    lidar_id: int = 0
    device_type: DeviceType = DeviceType.HUB
    state: LidarState = LidarState.INIT
    feature: int = 0
    progress: int = 0
    error_code: int = 0
    ip: str = ""


@dataclass
class UserConfig:
    """Desired settings for a device and the requests still awaiting an answer."""

    enable_fan: bool = False
    return_mode: int = 0
    coordinate: CoordinateType = CoordinateType.CARTESIAN
    imu_rate: int = 0
    set_bits: ConfigBit = ConfigBit(0)

    def request(self, bit: ConfigBit) -> None:
        """Mark a configuration request as sent."""
        self.set_bits = ConfigBit(int(self.set_bits) | int(bit))

    def complete(self, bit: ConfigBit) -> bool:
        """Mark a request as answered; return True when none remain pending."""
        self.set_bits = ConfigBit(int(self.set_bits) & ~int(bit))
        return not self.set_bits

    def pending(self) -> ConfigBit:
        """Requests still awaiting an answer."""
        return self.set_bits


@dataclass
class LidarDevice:
    """A device slot tracked by a controller."""

    handle: int = MAX_LIDAR_COUNT  # unallocated
    connect_state: ConnectState = ConnectState.OFF
    info: DeviceInfo = field(default_factory=DeviceInfo)
    config: UserConfig = field(default_factory=UserConfig)


def hub_lidar_index(slot: int, lidar_id: int) -> Optional[int]:
    """Index of a LiDAR behind a hub, or None when it falls outside the table."""
    index = (slot - 1) * LIDARS_PER_HUB_SLOT + lidar_id - 1
    if 0 <= index < MAX_LIDAR_COUNT:
        return index
    return None