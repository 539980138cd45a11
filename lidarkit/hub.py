"""Connection and configuration of a hub and the LiDARs attached to it."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .devices import (
    MAX_LIDAR_COUNT,
    ConfigBit,
    ConnectState,
    CoordinateType,
    DeviceEvent,
    DeviceInfo,
    DeviceType,
    LidarDevice,
    LidarState,
    hub_lidar_index,
)
from .lidar import IMU_FREQ_200HZ, STRONGEST_RETURN
from .lvx import BROADCAST_CODE_SIZE
from .whitelist import BroadcastWhitelist

log = logging.getLogger(__name__)


class HubDriver(ABC):
    """Commands a hub controller sends to the hub.

    Each request is answered later through the matching
    ``HubController.on_*`` method.
    """

    @abstractmethod
    def add_hub_to_connect(self, broadcast_code: str) -> Optional[int]:
        """Register the hub for connection; return its handle or None on failure."""

    @abstractmethod
    def subscribe_data(self, handle: int) -> None:
        """Start delivering point cloud packets received through the hub."""

    @abstractmethod
    def watch_errors(self, handle: int) -> None:
        """Start delivering error messages of the hub."""

    @abstractmethod
    def query_lidar_information(self) -> None:
        """Ask the hub which LiDARs are attached to it."""

    @abstractmethod
    def set_return_mode(self, request: list) -> None:
        """Set return modes; ``request`` holds ``(broadcast_code, mode)`` pairs."""

    @abstractmethod
    def set_imu_rate(self, request: list) -> None:
        """Set IMU push rates; ``request`` holds ``(broadcast_code, rate)`` pairs."""

    @abstractmethod
    def set_coordinate(self, handle: int, coordinate: CoordinateType) -> None:
        """Select the coordinate system of the point cloud."""

    @abstractmethod
    def start_sampling(self) -> None:
        """Start sampling on every LiDAR of the hub."""


@dataclass(frozen=True)
class HubLidarInfo:
    """A LiDAR as reported by the hub's lidar information query."""

    broadcast_code: str
    slot: int
    lidar_id: int
    device_type: int
    version: tuple = (0, 0, 0, 0)


class HubController:
    """Tracks a hub from discovery to sampling.

    Once the hub is connected and in the normal state, its LiDARs are
    queried, their return mode and IMU rate and the hub's coordinate system
    are configured, and sampling starts when every request has succeeded.
    Failed requests are sent again.
    """

    def __init__(self, driver: HubDriver,
                 whitelist: Optional[BroadcastWhitelist] = None) -> None:
        self.driver = driver
        self.whitelist = whitelist if whitelist is not None else BroadcastWhitelist()
        self.hub = LidarDevice()
        self.lidars = [LidarDevice() for _ in range(MAX_LIDAR_COUNT)]

    def on_broadcast(self, broadcast_code: str, device_type: int) -> Optional[int]:
        """Handle a discovery broadcast; return the handle if the hub was registered."""
        if device_type != DeviceType.HUB:
            log.info("It's not a hub : %s", broadcast_code)
            return None
        if self.whitelist.auto_connect:
            log.info("In automatic connection mode, will connect %s", broadcast_code)
        elif broadcast_code not in self.whitelist:
            log.info("Not in the whitelist, please add %s to if want to connect!", broadcast_code)
            return None

        if self.hub.connect_state != ConnectState.OFF:
            return None

        handle = self.driver.add_hub_to_connect(broadcast_code)
        if handle is None or not 0 <= handle < MAX_LIDAR_COUNT:
            log.warning("Add Hub to connect failed, code: %s, handle: %s", broadcast_code, handle)
            return None

        self.driver.subscribe_data(handle)
        self.hub.handle = handle
        self.hub.connect_state = ConnectState.OFF
        self.hub.config.coordinate = CoordinateType.CARTESIAN
        return handle

    def on_device_change(self, info: DeviceInfo, event: DeviceEvent) -> None:
        """Handle a connection change, disconnect or state change of the hub."""
        if not 0 <= info.handle < MAX_LIDAR_COUNT:
            return
        hub = self.hub

        if event == DeviceEvent.HUB_CONNECTION_CHANGE:
            if hub.connect_state == ConnectState.OFF:
                hub.connect_state = ConnectState.ON
                hub.info = info
            log.warning("Hub sn: [%s] Connection Change!!!", info.broadcast_code)
        elif event == DeviceEvent.DISCONNECT:
            hub.connect_state = ConnectState.OFF
            log.warning("Hub sn: [%s] Disconnect!!!", info.broadcast_code)
        elif event == DeviceEvent.STATE_CHANGE:
            hub.info = info
            log.info("Hub sn [%s] StateChange!!!", info.broadcast_code)

        if hub.connect_state != ConnectState.ON:
            return

        log.info("Hub Working State %d", hub.info.state)
        if hub.info.state == LidarState.INIT:
            log.info("Hub State Change Progress %u", hub.info.progress)
        else:
            log.info("Hub State Error Code 0X%08x", hub.info.error_code)
        log.info("Hub feature %d", hub.info.feature)
        self.driver.watch_errors(hub.handle)
        if hub.info.state == LidarState.NORMAL:
            self.driver.query_lidar_information()

    def on_lidar_info(self, ok: bool, lidars: list) -> None:
        """Handle the hub's list of attached LiDARs and start configuring them."""
        if not ok:
            log.warning("Device Query Informations Failed")
            self.driver.query_lidar_information()
            return
        if not lidars:
            log.info("Hub have no lidar, will not start sample!")
            self.driver.query_lidar_information()
            return

        log.info("Hub have %d lidars:", len(lidars))
        for entry in lidars:
            index = hub_lidar_index(entry.slot, entry.lidar_id)
            if index is None:
                continue
            device = self.lidars[index]
            device.handle = index
            device.info = DeviceInfo(
                broadcast_code=entry.broadcast_code[:BROADCAST_CODE_SIZE],
                handle=index,
                slot=entry.slot,
                lidar_id=entry.lidar_id,
                device_type=entry.device_type,
            )
            device.connect_state = ConnectState.SAMPLING
            device.config.enable_fan = True
            device.config.return_mode = STRONGEST_RETURN
            device.config.imu_rate = IMU_FREQ_200HZ
            log.info("[%d]%s DeviceType[%d] Slot[%d] Ver[%s]", index,
                     device.info.broadcast_code, entry.device_type, entry.slot,
                     ".".join(str(part) for part in entry.version))
        self._configure_lidars()

    def return_mode_request(self) -> list:
        """``(broadcast_code, mode)`` pairs for LiDARs that take a return mode."""
        return [(device.info.broadcast_code, device.config.return_mode)
                for device in self._configurable()]

    def imu_rate_request(self) -> list:
        """``(broadcast_code, rate)`` pairs for LiDARs that take an IMU rate."""
        return [(device.info.broadcast_code, device.config.imu_rate)
                for device in self._configurable()]

    def _configurable(self) -> list:
        return [device for device in self.lidars
                if device.info.device_type != DeviceType.LIDAR_MID40
                and device.connect_state == ConnectState.SAMPLING]

    def _config_return_mode(self) -> None:
        request = self.return_mode_request()
        if request:
            self.driver.set_return_mode(request)
            self.hub.config.request(ConfigBit.RETURN_MODE)

    def _config_imu_rate(self) -> None:
        request = self.imu_rate_request()
        if request:
            self.driver.set_imu_rate(request)
            self.hub.config.request(ConfigBit.IMU_RATE)

    def _configure_lidars(self) -> None:
        self._config_return_mode()
        self._config_imu_rate()
        self.driver.set_coordinate(self.hub.handle, self.hub.config.coordinate)
        self.hub.config.request(ConfigBit.COORDINATE)
        self.hub.connect_state = ConnectState.CONFIG

    def _finish(self, bit: ConfigBit) -> None:
        if self.hub.config.complete(bit):
            self.driver.start_sampling()
            self.hub.connect_state = ConnectState.SAMPLING

    def on_return_mode_set(self, ok: bool) -> None:
        """Handle the answer to a return mode request."""
        if ok:
            log.info("Hub set return mode success!")
            self._finish(ConfigBit.RETURN_MODE)
        else:
            log.info("Hub set return mode fail!")
            self._config_return_mode()

    def on_imu_rate_set(self, ok: bool) -> None:
        """Handle the answer to an IMU rate request."""
        if ok:
            log.info("Hub set imu frequency success!")
            self._finish(ConfigBit.IMU_RATE)
        else:
            log.info("Hub set imu freq fail!")
            self._config_imu_rate()

    def on_coordinate_set(self, ok: bool) -> None:
        """Handle the answer to a coordinate request."""
        if ok:
            log.info("Set coordinate success!")
            self._finish(ConfigBit.COORDINATE)
        else:
            self.driver.set_coordinate(self.hub.handle, self.hub.config.coordinate)
            log.info("Set coordinate fail, try again!")

    def on_sampling_started(self, ok: bool) -> None:
        """Handle the answer to a start-sampling request."""
        if ok:
            log.info("Hub start sample success!")
            return
        self.hub.connect_state = ConnectState.ON
        log.warning("Hub start sample fail : handle[%d]", self.hub.handle)
        for device in self.lidars:
            if device.connect_state == ConnectState.SAMPLING:
                device.connect_state = ConnectState.ON