"""Reading and writing of LVX point cloud recordings."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

SIGNATURE = b"livox_tech"
FILE_VERSION = (1, 1, 0, 0)
MAGIC_CODE = 0xAC0EA767
DEFAULT_FRAME_DURATION = 50
MAX_POINT_SIZE = 1500
BROADCAST_CODE_SIZE = 16

_PUBLIC_HEADER = struct.Struct("<16s4sI")
_PRIVATE_HEADER = struct.Struct("<IB")
_DEVICE_INFO = struct.Struct("<16s16sBBB6f")
_PACKET_HEADER = struct.Struct("<5BI2BQ")
_FRAME_HEADER = struct.Struct("<QQQ")

# Payload length per point data type: (points per packet) * (bytes per point).
_PAYLOAD_SIZES = {
    0: 100 * 13,  # cartesian
    1: 100 * 9,  # spherical
    2: 96 * 14,  # extended cartesian
    3: 96 * 10,  # extended spherical
    4: 48 * 28,  # dual-return extended cartesian
    5: 48 * 16,  # dual-return extended spherical
    6: 1 * 24,  # IMU sample
    7: 30 * 42,  # triple-return extended cartesian
    8: 30 * 22,  # triple-return extended spherical
}

PathArg = Union[str, "PathLike[str]"]


def payload_size(data_type: int) -> int:
    """Return the number of point bytes a packet of ``data_type`` carries."""
    try:
        return _PAYLOAD_SIZES[data_type]
    except KeyError:
        raise ValueError(f"unknown point data type: {data_type}") from None


def default_filename(now: Optional[datetime] = None) -> str:
    """Return the timestamped file name used for a new recording."""
    moment = now if now is not None else datetime.now()
    return moment.strftime("%Y-%m-%d_%H-%M-%S.lvx")


def _encode_code(code: str) -> bytes:
    raw = code.encode("ascii")
    if len(raw) > BROADCAST_CODE_SIZE:
        raise ValueError(f"broadcast code longer than {BROADCAST_CODE_SIZE} bytes: {code!r}")
    return raw


def _decode_code(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("ascii", errors="replace")


@dataclass
class LvxDeviceInfo:
    """Description and extrinsic pose of one recorded device."""

    lidar_broadcast_code: str
    hub_broadcast_code: str = ""
    device_index: int = 0
    device_type: int = 0
    extrinsic_enable: bool = False
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    size = _DEVICE_INFO.size

    def pack(self) -> bytes:
        return _DEVICE_INFO.pack(
            _encode_code(self.lidar_broadcast_code),
            _encode_code(self.hub_broadcast_code),
            self.device_index,
            self.device_type,
            int(bool(self.extrinsic_enable)),
            self.roll,
            self.pitch,
            self.yaw,
            self.x,
            self.y,
            self.z,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "LvxDeviceInfo":
        if len(data) < _DEVICE_INFO.size:
            raise ValueError("device info record is truncated")
        lidar, hub, index, dtype, enable, roll, pitch, yaw, x, y, z = _DEVICE_INFO.unpack_from(data)
        return cls(
            lidar_broadcast_code=_decode_code(lidar),
            hub_broadcast_code=_decode_code(hub),
            device_index=index,
            device_type=dtype,
            extrinsic_enable=bool(enable),
            roll=roll,
            pitch=pitch,
            yaw=yaw,
            x=x,
            y=y,
            z=z,
        )


@dataclass
class LvxPacket:
    """One point cloud packet as stored in a frame."""

    data_type: int
    payload: bytes
    device_index: int = 0
    version: int = 0
    port_id: int = 0
    lidar_index: int = 0
    rsvd: int = 0
    error_code: int = 0
    timestamp_type: int = 0
    timestamp: int = 0

    def __post_init__(self) -> None:
        needed = payload_size(self.data_type)
        if len(self.payload) < needed:
            raise ValueError(
                f"payload of {len(self.payload)} bytes is shorter than {needed} "
                f"required for data type {self.data_type}"
            )
        self.payload = bytes(self.payload[:needed])

    @property
    def pack_size(self) -> int:
        """Number of bytes the packet occupies in a file."""
        return _PACKET_HEADER.size + len(self.payload)

    def pack(self) -> bytes:
        header = _PACKET_HEADER.pack(
            self.device_index,
            self.version,
            self.port_id,
            self.lidar_index,
            self.rsvd,
            self.error_code,
            self.timestamp_type,
            self.data_type,
            self.timestamp,
        )
        return header + self.payload

    @classmethod
    def unpack(cls, data: bytes) -> "LvxPacket":
        if len(data) < _PACKET_HEADER.size:
            raise ValueError("packet header is truncated")
        (device_index, version, port_id, lidar_index, rsvd,
         error_code, timestamp_type, data_type, timestamp) = _PACKET_HEADER.unpack_from(data)
        start = _PACKET_HEADER.size
        end = start + payload_size(data_type)
        if len(data) < end:
            raise ValueError("packet payload is truncated")
        return cls(
            data_type=data_type,
            payload=bytes(data[start:end]),
            device_index=device_index,
            version=version,
            port_id=port_id,
            lidar_index=lidar_index,
            rsvd=rsvd,
            error_code=error_code,
            timestamp_type=timestamp_type,
            timestamp=timestamp,
        )


@dataclass(frozen=True)
class FrameHeader:
    """Offsets and index heading each frame of a recording."""

    current_offset: int
    next_offset: int
    frame_index: int

    size = _FRAME_HEADER.size

    def pack(self) -> bytes:
        return _FRAME_HEADER.pack(self.current_offset, self.next_offset, self.frame_index)

    @classmethod
    def unpack(cls, data: bytes) -> "FrameHeader":
        if len(data) < _FRAME_HEADER.size:
            raise ValueError("frame header is truncated")
        return cls(*_FRAME_HEADER.unpack_from(data))


class LvxFileWriter:
    """Writes an LVX recording: a header, then frames of packets."""

    def __init__(self, path: Optional[PathArg] = None,
                 frame_duration: int = DEFAULT_FRAME_DURATION) -> None:
        self.path = Path(path) if path is not None else Path(default_filename())
        self.frame_duration = frame_duration
        self.devices: list[LvxDeviceInfo] = []
        self.frame_index = 0
        self.offset = 0
        self._file: BinaryIO = open(self.path, "wb")

    def add_device_info(self, info: LvxDeviceInfo) -> None:
        self.devices.append(info)

    def write_header(self) -> None:
        if len(self.devices) > 0xFF:
            raise ValueError("an LVX file holds at most 255 devices")
        chunks = [
            _PUBLIC_HEADER.pack(SIGNATURE, bytes(FILE_VERSION), MAGIC_CODE),
            _PRIVATE_HEADER.pack(self.frame_duration, len(self.devices)),
        ]
        chunks.extend(info.pack() for info in self.devices)
        data = b"".join(chunks)
        self._file.write(data)
        self.offset += len(data)

    def save_frame(self, packets: Iterable[LvxPacket]) -> FrameHeader:
        """Write one frame holding ``packets`` and return its header."""
        body = b"".join(packet.pack() for packet in packets)
        header = FrameHeader(
            current_offset=self.offset,
            next_offset=self.offset + FrameHeader.size + len(body),
            frame_index=self.frame_index,
        )
        self._file.write(header.pack())
        self._file.write(body)
        self.offset = header.next_offset
        self.frame_index += 1
        return header

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "LvxFileWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()


@dataclass
class LvxRecording:
    """Contents of an LVX file."""

    version: tuple
    frame_duration: int
    devices: list = field(default_factory=list)
    frames: list = field(default_factory=list)


def read_lvx(path: PathArg) -> LvxRecording:
    """Parse an LVX file into its devices and frames."""
    data = Path(path).read_bytes()
    if len(data) < _PUBLIC_HEADER.size + _PRIVATE_HEADER.size:
        raise ValueError("file is too short to be an LVX recording")
    signature, version, magic = _PUBLIC_HEADER.unpack_from(data)
    if signature.split(b"\0", 1)[0] != SIGNATURE or magic != MAGIC_CODE:
        raise ValueError("not an LVX file")
    pos = _PUBLIC_HEADER.size
    frame_duration, device_count = _PRIVATE_HEADER.unpack_from(data, pos)
    pos += _PRIVATE_HEADER.size

    devices = []
    for _ in range(device_count):
        devices.append(LvxDeviceInfo.unpack(data[pos:pos + _DEVICE_INFO.size]))
        pos += _DEVICE_INFO.size

    frames = []
    while pos < len(data):
        header = FrameHeader.unpack(data[pos:pos + FrameHeader.size])
        end = header.next_offset
        if end > len(data) or end < pos + FrameHeader.size:
            raise ValueError(f"frame {header.frame_index} is truncated or malformed")
        cursor = pos + FrameHeader.size
        packets = []
        while cursor < end:
            packet = LvxPacket.unpack(data[cursor:end])
            packets.append(packet)
            cursor += packet.pack_size
        frames.append((header, packets))
        pos = end

    return LvxRecording(
        version=tuple(version),
        frame_duration=frame_duration,
        devices=devices,
        frames=frames,
    )