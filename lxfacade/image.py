"""Image handling: aliases, lookups, storage pool usage and critest images."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from .errors import LxfError, is_not_found_error

log = logging.getLogger(__name__)

LXE_ALIAS_PREFIX = "lxe/"

CRITEST_DEFAULT_IMAGE_SOURCE = "images:alpine/edge/cloud"
CRITEST_OTHER_IMAGE_SOURCES = {
    "gcr.io:k8s-staging-cri-tools/test-image-2": "images:alpine/edge/cloud/arm64",
    "gcr.io:k8s-staging-cri-tools/test-image-3": "images:alpine/edge/cloud/armhf",
}
CRITEST_DEFAULT_ALIAS = "critest/default"
CRITEST_WEBSERVER_ALIAS = "critest/webserver"


@dataclass
class Image:
    """The CRI relevant data of an image."""

    hash: str
    aliases: list[str] = field(default_factory=list)
    size: int = 0


@dataclass
class LxdImage:
    """An image as known to the LXD server."""

    fingerprint: str
    size: int = 0
    aliases: list[str] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)


@dataclass
class FSPoolUsage:
    """Usage of a filesystem or storage pool."""

    timestamp: int
    fs_id: str
    used_bytes: int
    inodes_used: int


@dataclass
class CritestImageList:
    """References to the images used by critest."""

    default_test_container_image: str
    web_server_test_image: str

    def to_dict(self) -> dict[str, str]:
        """Return the mapping in the layout of a critest images file."""
        return {
            "defaultTestContainerImage": self.default_test_container_image,
            "webServerTestImage": self.web_server_test_image,
        }


class _ImageServer(Protocol):
    def get_image_alias(self, name: str) -> str: ...

    def get_image(self, fingerprint: str) -> LxdImage: ...

    def get_image_aliases(self) -> Mapping[str, str]: ...

    def delete_image_alias(self, name: str) -> None: ...

    def create_image_alias(self, name: str, target: str) -> None: ...

    def get_storage_pools(self) -> list[Mapping[str, Any]]: ...

    def get_storage_pool_resources(self, name: str) -> Mapping[str, Any]: ...


def lxe_alias(image: str) -> str:
    """Return the alias under which a pulled image is remembered."""
    return LXE_ALIAS_PREFIX + image.replace(":", "/", 1)


def rev_lxe_alias(alias: str) -> str:
    """Strip the alias prefix used for pulled images."""
    return alias.removeprefix(LXE_ALIAS_PREFIX)


def to_image(lxd_image: LxdImage) -> Image:
    """Convert an LXD image into its CRI representation."""
    return Image(
        hash=lxd_image.fingerprint,
        size=lxd_image.size,
        aliases=[
            rev_lxe_alias(a) for a in lxd_image.aliases if a.startswith(LXE_ALIAS_PREFIX)
        ],
    )


def get_image_fingerprint(server: _ImageServer, alias: str) -> str:
    """Return the fingerprint an alias points to."""
    return server.get_image_alias(alias)


def _image_by_alias_or_fingerprint(
    server: _ImageServer, alias: str, alias_or_fingerprint: str
) -> LxdImage:
    try:
        fingerprint = get_image_fingerprint(server, alias)
    except Exception as err:
        if is_not_found_error(err):
            return server.get_image(alias_or_fingerprint)
        raise
    return server.get_image(fingerprint)


def get_remote_image_from_alias_or_fingerprint(
    server: _ImageServer, alias_or_fingerprint: str
) -> LxdImage:
    """Look up an image on a remote by alias, falling back to fingerprint."""
    return _image_by_alias_or_fingerprint(
        server, alias_or_fingerprint, alias_or_fingerprint
    )


def get_local_image_from_alias_or_fingerprint(
    server: _ImageServer, alias_or_fingerprint: str
) -> LxdImage:
    """Look up a pulled image by its remembered alias, falling back to fingerprint."""
    return _image_by_alias_or_fingerprint(
        server, lxe_alias(alias_or_fingerprint), alias_or_fingerprint
    )


def ensure_image_alias(server: _ImageServer, alias: str, fingerprint: str) -> None:
    """Create the alias pointing to the fingerprint, replacing a stale one."""
    current = server.get_image_aliases()
    if alias in current:
        if current[alias] == fingerprint:
            return
        try:
            server.delete_image_alias(alias)
        except Exception as err:
            raise LxfError(f"failed to delete alias for update: {alias}, {err}") from err
    try:
        server.create_image_alias(alias, fingerprint)
    except Exception as err:
        raise LxfError(f"failed to create alias: {alias}, {err}") from err


def get_fs_pool_usage(server: _ImageServer) -> list[FSPoolUsage]:
    """Return usage information about every storage pool."""
    usages = []
    for pool in server.get_storage_pools():
        resources = server.get_storage_pool_resources(pool["name"])
        usages.append(
            FSPoolUsage(
                timestamp=time.time_ns(),
                fs_id=pool.get("config", {}).get("source", ""),
                used_bytes=resources.get("space", {}).get("used", 0),
                inodes_used=resources.get("inodes", {}).get("used", 0),
            )
        )
    return usages


def is_critest_image(lxd_image: LxdImage) -> bool:
    """Tell whether an image carries a pulled-image alias."""
    return any(a.startswith(LXE_ALIAS_PREFIX) for a in lxd_image.aliases)


def replace_critest_image(image: str, default_remote: str) -> str:
    """Replace a requested image with the one used for critest runs."""
    if image.startswith(f"{default_remote}:"):
        return image
    replacement = CRITEST_OTHER_IMAGE_SOURCES.get(image, CRITEST_DEFAULT_IMAGE_SOURCE)
    log.info("CRITest: replacing requested image '%s' with '%s'", image, replacement)
    return replacement