"""Linear, append-ordered aggregate of independent errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Type, TypeVar

from .inspection import as_error, is_error, walk

E = TypeVar("E", bound=BaseException)


class EmptyChainError(RuntimeError):
    """Raised when an empty chain is rendered as an error."""


class FrozenChainError(RuntimeError):
    """Raised when appending to a read-only view obtained through ``unwrap()``."""


class ChainCycleError(ValueError):
    """Raised when an added error would make a chain contain itself."""


@dataclass(eq=False)
class Link:
    """One node of an :class:`ErrorChain`: an error and the link after it."""

    error: BaseException
    next: Optional["Link"] = None


class ErrorChain(Exception):
    """
    Ordered sequence of errors recorded during one logical operation.

    The chain renders as its first (head) error, unwraps to the remainder of the
    sequence and matches a target only through its head. A generic walker such as
    :func:`errchain.inspection.is_error` alternates ``matches()`` and ``unwrap()``
    and therefore visits every recorded error.

    Chains returned by ``unwrap()`` are read-only views sharing links with their
    parent.

    Usage example
    -------------
        chain = ErrorChain()
        chain.add(ValueError("missing name"))
        chain.add(wrap(CodeError(12), "bad code"))
        if len(chain):
            raise chain
    """

    def __init__(self, *errors: BaseException) -> None:
        super().__init__()
        self._head: Optional[Link] = None
        self._tail: Optional[Link] = None
        self._frozen = False
        for err in errors:
            self.add(err)

    @classmethod
    def _view(cls, head: Link, tail: Optional[Link]) -> "ErrorChain":
        view = cls()
        view._head = head
        view._tail = tail
        view._frozen = True
        return view

    @property
    def head(self) -> Optional[Link]:
        return self._head

    @property
    def tail(self) -> Optional[Link]:
        """
        Last link of the chain.

        For a view this is a snapshot of the parent's tail taken by ``unwrap()``;
        links the parent appends later are reachable from the view's head but
        are not reflected here.
        """
        return self._tail

    @property
    def frozen(self) -> bool:
        """True for views produced by ``unwrap()``."""
        return self._frozen

    def add(self, err: BaseException) -> None:
        """Append ``err`` after the current tail."""
        if not isinstance(err, BaseException):
            raise TypeError(f"ErrorChain.add() expects an exception, got {type(err).__name__}")
        if self._frozen:
            raise FrozenChainError("Cannot add to a chain obtained through unwrap().")
        if self._reaches_self(err):
            raise ChainCycleError("Cannot add an error that already contains this chain.")

        link = Link(error=err)
        if self._tail is None:
            self._head = link
            self._tail = link
            return
        self._tail.next = link
        self._tail = link

    def _reaches_self(self, err: BaseException) -> bool:
        """Return True if ``self`` is reachable from ``err`` through causes or chain links."""
        own: Optional[set[int]] = None
        seen: dict[int, BaseException] = {}
        pending = [err]
        while pending:
            for current in walk(pending.pop()):
                if id(current) in seen:
                    continue
                seen[id(current)] = current
                if not isinstance(current, ErrorChain):
                    continue
                if current is self:
                    return True
                if own is None:
                    own = {id(link) for link in self._links()}
                # views of this chain start on one of its links
                if current._head is not None and id(current._head) in own:
                    return True
                # later links are reached through the views walk() yields
                if current._head is not None:
                    pending.append(current._head.error)
        return False

    def _links(self) -> Iterator[Link]:
        link = self._head
        while link is not None:
            yield link
            link = link.next

    def errors(self) -> List[BaseException]:
        """Return a new list of the recorded errors in append order."""
        return [link.error for link in self._links()]

    def message(self) -> str:
        """
        Return the message of the head error.

        Raises
        ------
        EmptyChainError
            If nothing was added yet.
        """
        if self._head is None:
            raise EmptyChainError("ErrorChain has no errors to render.")
        return str(self._head.error)

    def unwrap(self) -> Optional["ErrorChain"]:
        """
        Return the chain without its head, or None when the head is the last link.

        The result is a new view (same tail, head advanced by one), so repeated
        unwrapping visits each remaining link once and always terminates.
        """
        if self._head is None or self._head.next is None:
            return None
        return ErrorChain._view(self._head.next, self._tail)

    def matches(self, target: object) -> bool:
        """Return True if the head error, or any of its own causes, matches ``target``."""
        if self._head is None:
            return False
        return is_error(self._head.error, target)

    def find(self, cls: Type[E]) -> Optional[E]:
        """Return the first ``cls`` instance reachable from the head error, if any."""
        if self._head is None:
            return None
        return as_error(self._head.error, cls)

    def __str__(self) -> str:
        return self.message()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.errors()!r})"

    def __len__(self) -> int:
        return sum(1 for _ in self._links())

    def __iter__(self) -> Iterator[BaseException]:
        for link in self._links():
            yield link.error


def new(*errors: BaseException) -> ErrorChain:
    """Create a chain seeded with ``errors`` (possibly none)."""
    return ErrorChain(*errors)
