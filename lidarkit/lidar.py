"""Connection and configuration of stand-alone LiDARs through a device driver."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
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
)
from .whitelist import BroadcastWhitelist

log = logging.getLogger(__name__)

STRONGEST_RETURN = 1
IMU_FREQ_200HZ = 1

SUCCESS = "success"
TIMEOUT = "timeout"

_REPORT_EVERY = 100


class LidarDriver(ABC):
    """Commands a controller sends to the devices.

    Each configuration command is answered later through the matching
    ``LidarController.on_*`` method.
    """

    @abstractmethod
    def add_lidar_to_connect(self, broadcast_code: str) -> Optional[int]:
        """Register a device for connection; return its handle or None on failure."""

    @abstractmethod
    def subscribe_data(self, handle: int) -> None:
        """Start delivering point cloud packets of ``handle``."""

    @abstractmethod
    def query_device_information(self, handle: int) -> None:
        """Ask the device for its firmware version."""

    @abstractmethod
    def watch_errors(self, handle: int) -> None:
        """Start delivering error messages of ``handle``."""

    @abstractmethod
    def set_coordinate(self, handle: int, coordinate: CoordinateType) -> None:
        """Select the coordinate system of the point cloud."""

    @abstractmethod
    def set_return_mode(self, handle: int, mode: int) -> None:
        """Select the point cloud return mode."""

    @abstractmethod
    def set_imu_rate(self, handle: int, rate: int) -> None:
        """Select the IMU push frequency."""

    @abstractmethod
    def start_sampling(self, handle: int) -> None:
        """Start point cloud sampling."""


class LidarController:
    """Tracks LiDARs from discovery to sampling.

    Broadcasts of accepted devices are registered with the driver; once a
    connected device reaches the normal state its coordinate system, return
    mode and IMU rate are configured, and sampling starts when every
    configuration request has succeeded. Failed requests are sent again.
    """

    def __init__(self, driver: LidarDriver,
                 whitelist: Optional[BroadcastWhitelist] = None) -> None:
        self.driver = driver
        self.whitelist = whitelist if whitelist is not None else BroadcastWhitelist()
        self.lidars = [LidarDevice() for _ in range(MAX_LIDAR_COUNT)]
        self.receive_counts = [0] * MAX_LIDAR_COUNT

    def _device(self, handle: int) -> Optional[LidarDevice]:
        if 0 <= handle < MAX_LIDAR_COUNT:
            return self.lidars[handle]
        return None

    def on_broadcast(self, broadcast_code: str, device_type: int) -> Optional[int]:
        """Handle a discovery broadcast; return the handle if the device was registered."""
        if device_type == DeviceType.HUB:
            log.info("In lidar mode, couldn't connect a hub : %s", broadcast_code)
            return None
        if self.whitelist.auto_connect:
            log.info("In automatic connection mode, will connect %s", broadcast_code)
        elif broadcast_code not in self.whitelist:
            log.info("Not in the whitelist, please add %s to if want to connect!", broadcast_code)
            return None

        handle = self.driver.add_lidar_to_connect(broadcast_code)
        if handle is None or not 0 <= handle < MAX_LIDAR_COUNT:
            log.warning("Add lidar to connect is failed : %s %s", broadcast_code, handle)
            return None

        self.driver.subscribe_data(handle)
        device = self.lidars[handle]
        device.handle = handle
        device.connect_state = ConnectState.OFF
        device.config.enable_fan = True
        device.config.return_mode = STRONGEST_RETURN
        device.config.coordinate = CoordinateType.CARTESIAN
        device.config.imu_rate = IMU_FREQ_200HZ
        return handle

    def on_device_change(self, info: DeviceInfo, event: DeviceEvent) -> None:
        """Handle a connect, disconnect or state change of a device."""
        device = self._device(info.handle)
        if device is None:
            return
        handle = info.handle

        if event == DeviceEvent.CONNECT:
            self.driver.query_device_information(handle)
            if device.connect_state == ConnectState.OFF:
                device.connect_state = ConnectState.ON
                device.info = info
            log.warning("Lidar sn: [%s] Connect!!!", info.broadcast_code)
        elif event == DeviceEvent.DISCONNECT:
            device.connect_state = ConnectState.OFF
            log.warning("Lidar sn: [%s] Disconnect!!!", info.broadcast_code)
        elif event == DeviceEvent.STATE_CHANGE:
            device.info = info
            log.warning("Lidar sn: [%s] StateChange!!!", info.broadcast_code)

        if device.connect_state != ConnectState.ON:
            return

        log.info("Device Working State %d", device.info.state)
        if device.info.state == LidarState.INIT:
            log.info("Device State Change Progress %u", device.info.progress)
        else:
            log.info("Device State Error Code 0X%08x", device.info.error_code)
        log.info("Device feature %d", device.info.feature)
        self.driver.watch_errors(handle)

        if device.info.state != LidarState.NORMAL:
            return

        config = device.config
        self.driver.set_coordinate(handle, config.coordinate)
        config.request(ConfigBit.COORDINATE)

        if info.device_type != DeviceType.LIDAR_MID40:
            self.driver.set_return_mode(handle, config.return_mode)
            config.request(ConfigBit.RETURN_MODE)

        if info.device_type not in (DeviceType.LIDAR_MID40, DeviceType.LIDAR_MID70):
            self.driver.set_imu_rate(handle, config.imu_rate)
            config.request(ConfigBit.IMU_RATE)

        device.connect_state = ConnectState.CONFIG

    def _finish(self, handle: int, device: LidarDevice, bit: ConfigBit) -> None:
        if device.config.complete(bit):
            self.driver.start_sampling(handle)
            device.connect_state = ConnectState.SAMPLING

    def on_coordinate_set(self, handle: int, ok: bool) -> None:
        """Handle the answer to a coordinate request."""
        device = self._device(handle)
        if device is None:
            return
        if ok:
            log.info("Set coordinate success!")
            self._finish(handle, device, ConfigBit.COORDINATE)
        else:
            self.driver.set_coordinate(handle, device.config.coordinate)
            log.info("Set coordinate fail, try again!")

    def on_return_mode_set(self, handle: int, ok: bool) -> None:
        """Handle the answer to a return mode request."""
        device = self._device(handle)
        if device is None:
            return
        if ok:
            log.info("Set return mode success!")
            self._finish(handle, device, ConfigBit.RETURN_MODE)
        else:
            self.driver.set_return_mode(handle, device.config.return_mode)
            log.info("Set return mode fail, try again!")

    def on_imu_rate_set(self, handle: int, ok: bool) -> None:
        """Handle the answer to an IMU rate request."""
        device = self._device(handle)
        if device is None:
            return
        if ok:
            log.info("Set imu rate success!")
            self._finish(handle, device, ConfigBit.IMU_RATE)
        else:
            self.driver.set_imu_rate(handle, device.config.imu_rate)
            log.info("Set imu rate fail, try again!")

    def on_sampling_started(self, handle: int, status: str, response: int) -> None:
        """Handle the answer to a start-sampling request.

        ``status`` is ``SUCCESS``, ``TIMEOUT`` or any other value for a
        failure that leaves the device state alone.
        """
        device = self._device(handle)
        if device is None:
            return
        if status == SUCCESS:
            if response != 0:
                device.connect_state = ConnectState.ON
                log.warning("Lidar start sample fail : handle[%d] res[%d]", handle, response)
            else:
                log.info("Lidar start sample success")
        elif status == TIMEOUT:
            device.connect_state = ConnectState.ON
            log.warning("Lidar start sample timeout : handle[%d] res[%d]", handle, response)

    def on_data(self, handle: int) -> Optional[int]:
        """Count a received packet; return the device's packet count."""
        if not 0 <= handle < MAX_LIDAR_COUNT:
            return None
        self.receive_counts[handle] += 1
        count = self.receive_counts[handle]
        if count % _REPORT_EVERY == 0:
            log.info("receive packet count %d %d", handle, count)
        return count