"""Container devices and their mapping to and from LXD device option maps."""

from __future__ import annotations

import enum
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

BLOCK_TYPE = "unix-block"
CHAR_TYPE = "unix-char"
DISK_TYPE = "disk"
NIC_TYPE = "nic"
NONE_TYPE = "none"
PROXY_TYPE = "proxy"

# LXD 5.0.0 limits device key names to 27 characters.
MAX_KEY_NAME_LENGTH = 27
MIDDLE_SEPARATOR = "--"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class DeviceError(Exception):
    """Base class for device errors."""


class NotSupportedError(DeviceError):
    """Raised when a device type is not supported."""


class NotValidError(DeviceError):
    """Raised when a device option value is not valid."""


def trim_key_name(name: str) -> str:
    """Shorten a key name to the allowed length by cutting out its middle."""
    if len(name) <= MAX_KEY_NAME_LENGTH:
        return name
    part_len = MAX_KEY_NAME_LENGTH // 2 - len(MIDDLE_SEPARATOR) // 2
    return f"{name[:part_len]}{MIDDLE_SEPARATOR}{name[len(name) - part_len:]}"


class Protocol(enum.IntEnum):
    """Transport protocol of a proxy endpoint."""

    UNDEFINED = 0
    TCP = 1
    UDP = 2

    def __str__(self) -> str:
        return self.name.lower()


def new_protocol(text: str) -> Protocol:
    """Parse a protocol name; only ``tcp`` and ``udp`` are valid."""
    for protocol in (Protocol.TCP, Protocol.UDP):
        if text == str(protocol):
            return protocol
    raise NotValidError(f"protocol not valid: {text}")


@dataclass
class ProxyEndpoint:
    """An endpoint of the form protocol:address:port."""

    protocol: Protocol
    address: str
    port: int

    def __str__(self) -> str:
        return f"{self.protocol}:{self.address}:{self.port}"


def new_proxy_endpoint(text: str) -> ProxyEndpoint:
    """Parse a string of the form ``protocol:address:port``."""
    parts = text.split(":")
    if len(parts) != 3:
        raise NotValidError(
            "proxy endpoint not valid, must be delimited by two colons (::) "
            f"but was given: `{text}`"
        )
    protocol = new_protocol(parts[0])
    if not _INT_PATTERN.fullmatch(parts[2]):
        raise NotValidError(f"port not valid, must be an int not {parts[2]}")
    return ProxyEndpoint(protocol=protocol, address=parts[1], port=int(parts[2]))


class Device(ABC):
    """A device that maps to and from an LXD device option map."""

    TYPE: ClassVar[str]

    @abstractmethod
    def device_name(self) -> str:
        """Return the assigned key name or a type specific unique one, trimmed."""

    @abstractmethod
    def to_map(self) -> tuple[str, dict[str, str]]:
        """Return the device name and its LXD option map."""

    @classmethod
    @abstractmethod
    def from_map(cls, name: str, options: dict[str, str]) -> Device:
        """Build a device from a key name (may be empty) and options."""


@dataclass
class _PathSourceDevice(Device):
    key_name: str = ""
    path: str = ""
    source: str = ""

    def device_name(self) -> str:
        if self.key_name:
            name = self.key_name
        elif not self.path:
            name = f"{self.TYPE}-{self.source}"
        else:
            name = f"{self.TYPE}-{self.path}"
        return trim_key_name(name)

    def to_map(self) -> tuple[str, dict[str, str]]:
        return self.device_name(), {
            "type": self.TYPE,
            "source": self.source,
            "path": self.path,
        }

    @classmethod
    def from_map(cls, name: str, options: dict[str, str]) -> _PathSourceDevice:
        return cls(
            key_name=name,
            path=options.get("path", ""),
            source=options.get("source", ""),
        )


@dataclass
class Block(_PathSourceDevice):
    """A unix-block device."""

    TYPE: ClassVar[str] = BLOCK_TYPE


@dataclass
class Char(_PathSourceDevice):
    """A unix-char device."""

    TYPE: ClassVar[str] = CHAR_TYPE


@dataclass
class Disk(_PathSourceDevice):
    """A disk device."""

    TYPE: ClassVar[str] = DISK_TYPE

    pool: str = ""
    size: str = ""
    readonly: bool = False
    optional: bool = False

    def to_map(self) -> tuple[str, dict[str, str]]:
        return self.device_name(), {
            "type": self.TYPE,
            "path": self.path,
            "source": self.source,
            "pool": self.pool,
            "size": self.size,
            "readonly": "true" if self.readonly else "false",
            "optional": "true" if self.optional else "false",
        }

    @classmethod
    def from_map(cls, name: str, options: dict[str, str]) -> Disk:
        return cls(
            key_name=name,
            path=options.get("path", ""),
            source=options.get("source", ""),
            pool=options.get("pool", ""),
            size=options.get("size", ""),
            readonly=options.get("readonly") == "true",
            optional=options.get("optional") == "true",
        )


@dataclass
class Nic(Device):
    """A network interface device."""

    TYPE: ClassVar[str] = NIC_TYPE

    key_name: str = ""
    name: str = ""
    nic_type: str = ""
    parent: str = ""
    ipv4_address: str = ""

    def device_name(self) -> str:
        name = self.key_name or f"{self.TYPE}-{self.name}"
        return trim_key_name(name)

    def to_map(self) -> tuple[str, dict[str, str]]:
        return self.device_name(), {
            "type": self.TYPE,
            "name": self.name,
            "nictype": self.nic_type,
            "parent": self.parent,
            "ipv4.address": self.ipv4_address,
        }

    @classmethod
    def from_map(cls, name: str, options: dict[str, str]) -> Nic:
        return cls(
            key_name=name,
            name=options.get("name", ""),
            nic_type=options.get("nictype", ""),
            parent=options.get("parent", ""),
            ipv4_address=options.get("ipv4.address", ""),
        )


@dataclass
class NoneDevice(Device):
    """A none device, used to mask an inherited device."""

    TYPE: ClassVar[str] = NONE_TYPE

    key_name: str = ""

    def device_name(self) -> str:
        return trim_key_name(self.key_name)

    def to_map(self) -> tuple[str, dict[str, str]]:
        return self.device_name(), {"type": self.TYPE}

    @classmethod
    def from_map(cls, name: str, options: dict[str, str]) -> NoneDevice:
        return cls(key_name=name)


@dataclass
class Proxy(Device):
    """A proxy device forwarding from a listen endpoint to a destination."""

    TYPE: ClassVar[str] = PROXY_TYPE

    key_name: str = ""
    listen: ProxyEndpoint | None = None
    destination: ProxyEndpoint | None = None

    @staticmethod
    def _endpoint(endpoint: ProxyEndpoint | None, what: str) -> str:
        if endpoint is None:
            raise NotValidError(f"proxy {what} endpoint not valid: missing")
        return str(endpoint)

    def device_name(self) -> str:
        name = self.key_name or f"{self.TYPE}-{self._endpoint(self.listen, 'listen')}"
        return trim_key_name(name)

    def to_map(self) -> tuple[str, dict[str, str]]:
        return self.device_name(), {
            "type": self.TYPE,
            "listen": self._endpoint(self.listen, "listen"),
            "connect": self._endpoint(self.destination, "connect"),
        }

    @classmethod
    def from_map(cls, name: str, options: dict[str, str]) -> Proxy:
        return cls(
            key_name=name,
            listen=new_proxy_endpoint(options.get("listen", "")),
            destination=new_proxy_endpoint(options.get("connect", "")),
        )


_SCHEMA: dict[str, type[Device]] = {
    BLOCK_TYPE: Block,
    CHAR_TYPE: Char,
    DISK_TYPE: Disk,
    NIC_TYPE: Nic,
    NONE_TYPE: NoneDevice,
    PROXY_TYPE: Proxy,
}


def detect(name: str, options: dict[str, str]) -> Device:
    """Build the device matching the ``type`` option."""
    device_type = options.get("type", "")
    try:
        cls = _SCHEMA[device_type]
    except KeyError:
        raise NotSupportedError(f"device type not supported: {device_type}") from None
    return cls.from_map(name, options)


class Devices(list):
    """A list of devices kept unique by device name."""

    def upsert(self, device: Device) -> None:
        """Add a device, or replace the one with the same name."""
        new_name = device.device_name()
        for index, existing in enumerate(self):
            if existing.device_name() == new_name:
                self[index] = device
                return
        self.append(device)