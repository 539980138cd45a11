"""LVX recording, NMEA time sync, whitelists and device state handling for LiDAR units and hubs."""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "conflict",
    "devices",
    "extrinsic",
    "hub",
    "lidar",
    "lvx",
    "nmea",
    "synchro",
    "whitelist",
]