[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lidarkit"
version = "0.1.0"
description = "LVX recording, NMEA time sync, broadcast whitelists and device state handling for Livox-style LiDARs and hubs"
requires-python = ">=3.10"
keywords = ["lidar", "lvx", "point cloud", "nmea", "gprmc", "time synchronization"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]
dependencies = [
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lidarkit = "lidarkit.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["lidarkit"]

[tool.pytest.ini_options]
addopts = "-ra"
