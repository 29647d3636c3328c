"""Running commands inside containers with attached streams."""

from __future__ import annotations

import json
import logging
import queue
import signal
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import IO, Any, Protocol

from .errors import LxfError, ParseError

log = logging.getLogger(__name__)

WINDOW_HEIGHT_DEFAULT = 24
WINDOW_WIDTH_DEFAULT = 80

CANCEL_SIGNAL = int(signal.SIGTERM)
CODE_EXEC_OK = 0
CODE_EXEC_ERROR = 128
CODE_EXEC_TIMEOUT = CODE_EXEC_ERROR + CANCEL_SIGNAL

CLOSE_GOING_AWAY = 1001

_RESIZE_POLL_INTERVAL = 0.05


class ExecTimeoutError(LxfError):
    """The command did not finish within the given timeout."""

    def __init__(self, message: str = "timeout reached") -> None:
        super().__init__(message)
        self.exit_code = CODE_EXEC_TIMEOUT


class NoControlSocketError(LxfError):
    """No control socket is available for the exec session."""

    def __init__(self, message: str = "no control socket found") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class TerminalSize:
    """Size of a terminal window in characters."""

    width: int
    height: int


@dataclass
class ExecRequest:
    """The exec request sent to the server."""

    command: list[str]
    interactive: bool = False
    wait_for_ws: bool = True
    environment: dict[str, str] = field(default_factory=lambda: {"TERM": "xterm"})
    width: int = WINDOW_WIDTH_DEFAULT
    height: int = WINDOW_HEIGHT_DEFAULT
    record_output: bool = False


@dataclass
class ExecArgs:
    """Streams and callbacks handed to the server for one exec."""

    stdin: IO[bytes] | None = None
    stdout: IO[bytes] | None = None
    stderr: IO[bytes] | None = None
    control: Callable[[Any], None] | None = None
    data_done: threading.Event = field(default_factory=threading.Event)


class _ControlSocket(Protocol):
    def send(self, message: str) -> None: ...

    def close(self, code: int, reason: str) -> None: ...


class _Operation(Protocol):
    def wait(self) -> None: ...

    def get(self) -> Mapping[str, Any]: ...


class _ExecServer(Protocol):
    def exec_container(
        self, cid: str, request: ExecRequest, args: ExecArgs
    ) -> _Operation: ...


def _control_message(command: str, args: dict[str, str] | None, sig: int) -> str:
    return json.dumps({"command": command, "args": args, "signal": sig})


class ExecSession:
    """State of one exec: the control socket and terminal resize forwarding.

    ``resize`` is a queue of :class:`TerminalSize`; putting ``None`` on it
    closes it.
    """

    def __init__(self, resize: queue.Queue | None = None) -> None:
        self.resize = resize
        self.close_resize = threading.Event()
        self.control: _ControlSocket | None = None

    def control_handler(self, control: _ControlSocket | None) -> None:
        """Take the control socket and start forwarding resizes if wanted."""
        self.control = control
        if self.resize is not None:
            threading.Thread(target=self._listen_resize, daemon=True).start()

    def _listen_resize(self) -> None:
        assert self.resize is not None
        while not self.close_resize.is_set():
            try:
                size = self.resize.get(timeout=_RESIZE_POLL_INTERVAL)
            except queue.Empty:
                continue
            if size is None:
                log.debug("session resize closed")
                return
            try:
                self.send_resize(size)
            except Exception:
                log.exception("session resize failed")

    def send_resize(self, size: TerminalSize) -> None:
        """Tell the server the new window size."""
        width = str(int(size.width))
        height = str(int(size.height))
        log.debug("session control window size is now: %sx%s", width, height)
        if self.control is None:
            raise NoControlSocketError()
        self.control.send(
            _control_message("window-resize", {"width": width, "height": height}, 0)
        )

    def send_cancel(self) -> None:
        """Forward the cancel signal and close the control socket."""
        if self.control is None:
            raise NoControlSocketError()
        log.debug("forwarding signal to LXD to cancel exec: %s", CANCEL_SIGNAL)
        self.control.send(_control_message("signal", None, CANCEL_SIGNAL))
        self.control.close(CLOSE_GOING_AWAY, "timeout reached")


def exec_command(
    server: _ExecServer,
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
    """Run a command in a container and return its exit code.

    Blocks until the command has terminated and all output was written.
    A positive ``timeout`` in seconds raises :class:`ExecTimeoutError`.
    """
    log.debug(
        "Exec start: containerid=%s cmd=%s interactive=%s tty=%s timeout=%s",
        cid, cmd, interactive, tty, timeout,
    )
    session = ExecSession(resize)
    request = ExecRequest(command=list(cmd or []), interactive=interactive)
    args = ExecArgs(
        stdin=stdin, stdout=stdout, stderr=stderr, control=session.control_handler
    )

    operation = server.exec_container(cid, request, args)

    finished = args.data_done.wait(timeout if timeout > 0 else None)
    session.close_resize.set()
    if not finished:
        try:
            session.send_cancel()
        except Exception:
            log.exception("session control failed")
        log.debug("Exec timeout")
        raise ExecTimeoutError()

    operation.wait()
    metadata = operation.get().get("metadata") or {}
    log.debug("Exec done")

    code = metadata.get("return")
    if isinstance(code, bool) or not isinstance(code, (int, float)):
        raise ParseError(f"code parse error: {code!r}")
    return int(code)