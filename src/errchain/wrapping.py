"""Single-cause error wrapping."""

from __future__ import annotations

from typing import Optional


class WrappedError(Exception):
    """
    An error that adds context on top of exactly one cause.

    ``str()`` is the given message; the cause is reachable both through
    ``unwrap()`` and the standard ``__cause__`` attribute. Both are kept in
    ``args`` so the error survives pickling.
    """

    def __init__(self, message: str, cause: BaseException) -> None:
        super().__init__(message, cause)
        self.message = message
        self.__cause__ = cause

    def unwrap(self) -> Optional[BaseException]:
        return self.__cause__

    def __str__(self) -> str:
        return self.message


def wrap(err: BaseException, context: str) -> WrappedError:
    """
    Wrap ``err`` with a context prefix.

    Usage example
    -------------
        wrap(KeyError("name"), "loading user")  # str() -> "loading user: 'name'"
    """
    return WrappedError(f"{context}: {err}", err)
