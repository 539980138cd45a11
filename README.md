# lidarkit

Building blocks for working with Livox-style LiDAR units and hubs:

- `lidarkit.lvx`: write and read `.lvx` point cloud recordings. A file holds
  public and private headers, one extrinsic record per device, then frames of
  packets.
- `lidarkit.extrinsic`: read a device's roll, pitch, yaw and x/y/z offset
  from a `<Livox>` XML document.
- `lidarkit.nmea` and `lidarkit.synchro`: pick checksummed `$GPRMC` /
  `$GNRMC` sentences out of a serial byte stream and pass each one to a
  callback.
- `lidarkit.whitelist`: lists of broadcast codes that decide which devices
  get connected. An empty list means automatic connection.
- `lidarkit.lidar` and `lidarkit.hub`: state machines that take a LiDAR or a
  hub from discovery through configuration (coordinate system, return mode,
  IMU rate) to sampling. A failed request is sent again.
- `lidarkit.conflict`: spot two broadcast codes that announce the same IP
  address.
- `lidarkit.devices`: the shared enums (`ConnectState`, `ConfigBit`,
  `DeviceType`, `DeviceEvent`, `LidarState`, ...) and the `DeviceInfo`,
  `UserConfig` and `LidarDevice` records.

## Installation

```
pip install lidarkit
```

You need Python 3.10 or newer. Serial port access goes through `pyserial`.

## LVX recordings

```python
from lidarkit.lvx import LvxDeviceInfo, LvxFileWriter, LvxPacket, payload_size, read_lvx

packet = LvxPacket(data_type=0, payload=bytes(payload_size(0)), timestamp=123)

with LvxFileWriter("capture.lvx", 50) as writer:
    writer.add_device_info(LvxDeviceInfo("EXAMPLECODE0001", device_index=0, x=0.1))
    writer.write_header()
    header = writer.save_frame([packet])   # returns the FrameHeader written

recording = read_lvx("capture.lvx")
print(recording.version, recording.frame_duration, len(recording.frames))
```

If you leave out the path, `LvxFileWriter` names the file with
`default_filename()` (`YYYY-MM-DD_HH-MM-SS.lvx`). `payload_size(data_type)`
gives the number of point bytes that a packet of each data type (0 to 8)
carries. An unknown type raises `ValueError`. `read_lvx` returns an
`LvxRecording` whose `frames` are `(FrameHeader, [LvxPacket, ...])` pairs. It
raises `ValueError` on a file that is not LVX or that is truncated.

`parse_extrinsic_xml(source, broadcast_code, device_type, device_index)`
returns an `LvxDeviceInfo` with `extrinsic_enable=True` for the matching
`<Device>` element. It returns `None` when there is no match.

## GPS RMC sentences

```python
from lidarkit.nmea import RmcParser

parser = RmcParser()
for sentence in parser.decode(raw_bytes):
    print(sentence)
```

`Synchro(port_name, baudrate, parity, callback)` opens a serial port with a
`BaudRate` and a `Parity`, reads it on a background thread and calls
`callback(sentence_bytes)` for each valid sentence. Use `start()` / `stop()`,
or use it as a context manager. `serial_settings(baudrate, parity)` gives the
matching `pyserial` keyword arguments.

## Device controllers

`LidarController` and `HubController` do not talk to any hardware themselves.
They send their commands through a `LidarDriver` or `HubDriver`, which you
subclass. You then feed the answers back through their `on_*` methods
(`on_broadcast`, `on_device_change`, `on_coordinate_set`, ...).

`ConflictDetector().observe(ip, broadcast_code)` returns a `Conflict` when an
IP address that is already known shows up with a different code. Otherwise
it returns `None`.

## Command line

```
lidarkit --help
```

The `lidarkit` command does the following:

1. It builds a broadcast code whitelist from `-c/--code`, where several codes
   are joined with `&`, and prints it.
2. It opens the GPS serial port (`-p/--port`, `-b/--baud`, `--parity`) and
   prints every RMC sentence received.
3. It runs for `-t/--time` seconds (default 100).

`-l/--log` sends log records to `lidarkit.log`.

## What it does not do

The package has no device discovery and no network transport. Nothing in it
finds, connects to or receives point clouds from a real LiDAR or hub. The
controllers only work through a driver that you supply. For the same reason,
the command does not pass the RMC sentences on to devices, and it does not
record LVX files. Use `LvxFileWriter` from your own code for recording.