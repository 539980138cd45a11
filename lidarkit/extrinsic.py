"""Extrinsic parameters of LiDARs read from an XML description."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Optional

from .lvx import BROADCAST_CODE_SIZE, LvxDeviceInfo

_LEADING_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_POSE_FIELDS = ("roll", "pitch", "yaw", "x", "y", "z")


def _atof(text: str) -> float:
    """Read the leading number of ``text``; 0.0 when there is none."""
    match = _LEADING_FLOAT.match(text)
    return float(match.group()) if match else 0.0


def _same_code(a: str, b: str) -> bool:
    return a[:BROADCAST_CODE_SIZE] == b[:BROADCAST_CODE_SIZE]


def parse_extrinsic_xml(source, broadcast_code: str, device_type: int,
                        device_index: int) -> Optional[LvxDeviceInfo]:
    """Return the pose of ``broadcast_code`` from a ``<Livox>`` XML document.

    ``source`` is a path or a binary file object. ``None`` is returned when
    the root element is not ``Livox`` or no ``Device`` element matches.
    """
    root = ET.parse(source).getroot()
    if root.tag != "Livox":
        return None

    result: Optional[LvxDeviceInfo] = None
    for device in root:
        value = device.text or ""
        if device.tag != "Device" or not _same_code(broadcast_code, value):
            continue
        info = LvxDeviceInfo(
            lidar_broadcast_code=value[:BROADCAST_CODE_SIZE],
            hub_broadcast_code="",
            device_index=device_index,
            device_type=device_type,
            extrinsic_enable=True,
        )
        for name, raw in device.attrib.items():
            if name in _POSE_FIELDS:
                setattr(info, name, _atof(raw))
        result = info
    return result