"""
Generic error inspection: unwrap one level, match a value, find a type.

Errors take part through optional methods, checked structurally:

- ``unwrap()``: the next error to inspect, or None. Without it the explicit
  cause (``raise ... from ...``) is followed.
- ``matches(target)``: the error's own rule for "this is ``target``".
- ``find(cls)``: the error's own rule for "I contain a ``cls``".

Usage example
-------------
    try:
        validate(payload)
    except Exception as exc:
        if is_error(exc, CodeError(12)):
            ...
        bad = as_error(exc, KeyError)
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Protocol, Type, TypeVar, runtime_checkable

E = TypeVar("E", bound=BaseException)


@runtime_checkable
class Unwrapper(Protocol):
    def unwrap(self) -> Optional[BaseException]: ...


@runtime_checkable
class Matcher(Protocol):
    def matches(self, target: Any) -> bool: ...


@runtime_checkable
class Finder(Protocol):
    def find(self, cls: Type[E]) -> Optional[E]: ...


def unwrap(err: Optional[BaseException]) -> Optional[BaseException]:
    """Return the next error below ``err``, or None."""
    if err is None:
        return None
    if isinstance(err, Unwrapper):
        return err.unwrap()
    return err.__cause__


def walk(err: Optional[BaseException]) -> Iterator[BaseException]:
    """
    Yield ``err`` and every error reached by repeated :func:`unwrap`.

    Stops at the first error already yielded, so cause cycles terminate. Visited
    errors are kept referenced for the whole walk: views created on the fly by
    ``unwrap()`` must not be collected and have their ids reused.
    """
    seen: Dict[int, BaseException] = {}
    while err is not None and id(err) not in seen:
        seen[id(err)] = err
        yield err
        err = unwrap(err)


def is_error(err: Optional[BaseException], target: Any) -> bool:
    """
    Return True if ``err`` or any error reachable by unwrapping matches ``target``.

    A step matches when it is ``target``, compares equal to it, or its own
    ``matches(target)`` says so.
    """
    if err is None or target is None:
        return err is target
    for current in walk(err):
        if current is target or current == target:
            return True
        if isinstance(current, Matcher) and current.matches(target):
            return True
    return False


def as_error(err: Optional[BaseException], cls: Type[E]) -> Optional[E]:
    """Return the first error of type ``cls`` reachable from ``err``, or None."""
    for current in walk(err):
        if isinstance(current, cls):
            return current
        if isinstance(current, Finder):
            found = current.find(cls)
            if found is not None:
                return found
    return None
