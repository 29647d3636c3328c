"""Facade mapping CRI operations onto an LXD server connection."""

from __future__ import annotations

import queue
from collections.abc import Callable
from dataclasses import dataclass
from typing import IO, Any

from .execution import exec_command
from .image import FSPoolUsage, get_fs_pool_usage

LXD_HTTP_TIMEOUT = 10.0


@dataclass
class RuntimeInfo:
    """Information about the container runtime."""

    version: str


class Client:
    """Thin facade over an LXD server connection."""

    def __init__(self, server: Any) -> None:
        self.server = server
        self.event_handler: Callable[..., Any] | None = None

    def get_server(self) -> Any:
        """Return the underlying server connection."""
        return self.server

    def set_event_handler(self, handler: Callable[..., Any] | None) -> None:
        """Set the handler for container start and stop events."""
        self.event_handler = handler

    def get_runtime_info(self) -> RuntimeInfo:
        """Return runtime information; the API version is made semver."""
        server_info = self.server.get_server()
        return RuntimeInfo(version=f"{server_info['api_version']}.0")

    def get_fs_pool_usage(self) -> list[FSPoolUsage]:
        """Return usage information about the storage pools."""
        return get_fs_pool_usage(self.server)

    def exec(
        self,
        cid: str,
        cmd: list[str] | None,
        stdin: IO[bytes] | None,
        stdout: IO[bytes] | None,
        stderr: IO[bytes] | None,
        interactive: bool,
        tty: bool,
        timeout: float,
        resize: queue.Queue | None,
    ) -> int:
        """Run a command in a container and return its exit code."""
        return exec_command(
            self.server, cid, cmd, stdin, stdout, stderr,
            interactive, tty, timeout, resize,
        )