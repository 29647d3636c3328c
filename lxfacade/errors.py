"""Errors raised by the facade and compatibility checks for LXD errors."""

from __future__ import annotations

from http import HTTPStatus


class LxfError(Exception):
    """Base class for facade errors."""


class NotFoundError(LxfError):
    """A requested CRI object was not found."""


class ConvertError(LxfError):
    """An LXD object could not be converted."""


class ParseError(LxfError):
    """A value could not be parsed."""


class UsageError(LxfError):
    """An object is used in an unsupported way."""


class MissingETagError(LxfError):
    """An update was attempted without an ETag."""


class StatusError(Exception):
    """An error response from the LXD API carrying an HTTP status code."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = int(status)
        self.message = message or HTTPStatus(self.status).phrase
        super().__init__(self.message)


def is_not_found_error(err: BaseException | None) -> bool:
    """Tell whether ``err`` or an error it wraps means "not found".

    Both facade errors and LXD API errors with status 404 count.
    """
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if isinstance(err, NotFoundError):
            return True
        if isinstance(err, StatusError) and err.status == HTTPStatus.NOT_FOUND:
            return True
        err = err.__cause__
    return False