"""Devices, config stores, image lookups and command execution on an LXD-style server."""

__version__ = "0.1.0"