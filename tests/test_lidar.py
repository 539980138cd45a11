import pytest

from lidarkit.devices import (
    ConfigBit,
    ConnectState,
    CoordinateType,
    DeviceEvent,
    DeviceInfo,
    DeviceType,
    LidarState,
)
from lidarkit.lidar import (
    IMU_FREQ_200HZ,
    STRONGEST_RETURN,
    SUCCESS,
    TIMEOUT,
    LidarController,
    LidarDriver,
)
from lidarkit.whitelist import BroadcastWhitelist


class FakeDriver(LidarDriver):
    def __init__(self, handle=0):
        self.handle = handle
        self.calls = []

    def add_lidar_to_connect(self, broadcast_code):
        self.calls.append(("add", broadcast_code))
        return self.handle

    def subscribe_data(self, handle):
        self.calls.append(("data", handle))

    def query_device_information(self, handle):
        self.calls.append(("query", handle))

    def watch_errors(self, handle):
        self.calls.append(("errors", handle))

    def set_coordinate(self, handle, coordinate):
        self.calls.append(("coordinate", handle, coordinate))

    def set_return_mode(self, handle, mode):
        self.calls.append(("return_mode", handle, mode))

    def set_imu_rate(self, handle, rate):
        self.calls.append(("imu_rate", handle, rate))

    def start_sampling(self, handle):
        self.calls.append(("start", handle))


def names(driver):
    return [call[0] for call in driver.calls]


def connected(device_type=DeviceType.LIDAR_AVIA, handle=2):
    driver = FakeDriver(handle)
    controller = LidarController(driver)
    controller.on_broadcast("3GGDJ6K00000001", device_type)
    info = DeviceInfo(broadcast_code="3GGDJ6K00000001", handle=handle,
                      device_type=device_type, state=LidarState.NORMAL)
    driver.calls.clear()
    controller.on_device_change(info, DeviceEvent.CONNECT)
    return driver, controller


def test_hub_broadcast_is_ignored():
    driver = FakeDriver()
    controller = LidarController(driver)
    assert controller.on_broadcast("HUBCODE00000001", DeviceType.HUB) is None
    assert driver.calls == []


def test_whitelist_rejects_unknown_code():
    driver = FakeDriver()
    controller = LidarController(driver, BroadcastWhitelist(["AAAAAAAAAAAAAA1"]))
    assert controller.on_broadcast("BBBBBBBBBBBBBB2", DeviceType.LIDAR_AVIA) is None
    assert driver.calls == []
    assert controller.on_broadcast("AAAAAAAAAAAAAA1", DeviceType.LIDAR_AVIA) == 0


def test_auto_connect_registers_device():
    driver = FakeDriver(handle=5)
    controller = LidarController(driver)
    assert controller.on_broadcast("CCCCCCCCCCCCCC3", DeviceType.LIDAR_HORIZON) == 5
    assert driver.calls == [("add", "CCCCCCCCCCCCCC3"), ("data", 5)]
    device = controller.lidars[5]
    assert device.handle == 5
    assert device.connect_state == ConnectState.OFF
    assert device.config.enable_fan is True
    assert device.config.return_mode == STRONGEST_RETURN
    assert device.config.imu_rate == IMU_FREQ_200HZ
    assert device.config.coordinate == CoordinateType.CARTESIAN


@pytest.mark.parametrize("handle", [None, 32])
def test_failed_registration(handle):
    driver = FakeDriver(handle=handle)
    controller = LidarController(driver)
    assert controller.on_broadcast("DDDDDDDDDDDDDD4", DeviceType.LIDAR_AVIA) is None
    assert names(driver) == ["add"]


def test_connect_configures_avia():
    driver, controller = connected(DeviceType.LIDAR_AVIA)
    assert names(driver) == ["query", "errors", "coordinate", "return_mode", "imu_rate"]
    device = controller.lidars[2]
    assert device.connect_state == ConnectState.CONFIG
    assert device.config.pending() == ConfigBit.COORDINATE | ConfigBit.RETURN_MODE | ConfigBit.IMU_RATE


def test_connect_configures_mid40_coordinate_only():
    driver, controller = connected(DeviceType.LIDAR_MID40)
    assert names(driver) == ["query", "errors", "coordinate"]
    assert controller.lidars[2].config.pending() == ConfigBit.COORDINATE


def test_connect_configures_mid70_without_imu():
    driver, controller = connected(DeviceType.LIDAR_MID70)
    assert names(driver) == ["query", "errors", "coordinate", "return_mode"]


def test_connect_in_init_state_waits():
    driver = FakeDriver(1)
    controller = LidarController(driver)
    info = DeviceInfo(handle=1, device_type=DeviceType.LIDAR_AVIA, state=LidarState.INIT)
    controller.on_device_change(info, DeviceEvent.CONNECT)
    assert names(driver) == ["query", "errors"]
    assert controller.lidars[1].connect_state == ConnectState.ON
    assert controller.lidars[1].info is info


def test_state_change_to_normal_starts_configuration():
    driver = FakeDriver(1)
    controller = LidarController(driver)
    controller.on_device_change(
        DeviceInfo(handle=1, device_type=DeviceType.LIDAR_MID40, state=LidarState.INIT),
        DeviceEvent.CONNECT)
    controller.on_device_change(
        DeviceInfo(handle=1, device_type=DeviceType.LIDAR_MID40, state=LidarState.NORMAL),
        DeviceEvent.STATE_CHANGE)
    assert controller.lidars[1].connect_state == ConnectState.CONFIG
    assert names(driver)[-1] == "coordinate"


def test_sampling_starts_after_all_answers():
    driver, controller = connected(DeviceType.LIDAR_AVIA)
    driver.calls.clear()
    controller.on_coordinate_set(2, True)
    controller.on_return_mode_set(2, True)
    assert driver.calls == []
    controller.on_imu_rate_set(2, True)
    assert driver.calls == [("start", 2)]
    assert controller.lidars[2].connect_state == ConnectState.SAMPLING
    assert not controller.lidars[2].config.pending()


def test_failed_requests_are_retried():
    driver, controller = connected(DeviceType.LIDAR_AVIA)
    driver.calls.clear()
    controller.on_coordinate_set(2, False)
    controller.on_return_mode_set(2, False)
    controller.on_imu_rate_set(2, False)
    assert driver.calls == [
        ("coordinate", 2, CoordinateType.CARTESIAN),
        ("return_mode", 2, STRONGEST_RETURN),
        ("imu_rate", 2, IMU_FREQ_200HZ),
    ]
    assert controller.lidars[2].connect_state == ConnectState.CONFIG


def test_spherical_coordinate_retry():
    driver, controller = connected(DeviceType.LIDAR_MID40)
    controller.lidars[2].config.coordinate = CoordinateType.SPHERICAL
    driver.calls.clear()
    controller.on_coordinate_set(2, False)
    assert driver.calls == [("coordinate", 2, CoordinateType.SPHERICAL)]


def test_out_of_range_handles_are_ignored():
    driver = FakeDriver()
    controller = LidarController(driver)
    controller.on_coordinate_set(40, True)
    controller.on_device_change(DeviceInfo(handle=32, state=LidarState.NORMAL), DeviceEvent.CONNECT)
    assert driver.calls == []
    assert controller.on_data(32) is None


def test_sampling_answer_states():
    driver, controller = connected(DeviceType.LIDAR_MID40)
    controller.on_coordinate_set(2, True)
    controller.on_sampling_started(2, SUCCESS, 0)
    assert controller.lidars[2].connect_state == ConnectState.SAMPLING
    controller.on_sampling_started(2, SUCCESS, 1)
    assert controller.lidars[2].connect_state == ConnectState.ON


def test_sampling_timeout_and_failure():
    driver, controller = connected(DeviceType.LIDAR_MID40)
    controller.on_coordinate_set(2, True)
    controller.on_sampling_started(2, "failure", 0)
    assert controller.lidars[2].connect_state == ConnectState.SAMPLING
    controller.on_sampling_started(2, TIMEOUT, 0)
    assert controller.lidars[2].connect_state == ConnectState.ON


def test_disconnect_turns_device_off():
    driver, controller = connected(DeviceType.LIDAR_AVIA)
    driver.calls.clear()
    controller.on_device_change(DeviceInfo(handle=2), DeviceEvent.DISCONNECT)
    assert controller.lidars[2].connect_state == ConnectState.OFF
    assert driver.calls == []


def test_data_counts_per_handle():
    controller = LidarController(FakeDriver())
    counts = [controller.on_data(3) for _ in range(5)]
    assert counts == [1, 2, 3, 4, 5]
    assert controller.on_data(4) == 1
    assert controller.receive_counts[3] == 5