from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, Type, TypeVar

from ..chain import ErrorChain
from .reporter import ErrorReporter

T = TypeVar("T")


@contextmanager
def step(
    step_name: str,
    reporter: ErrorReporter,
    *,
    context: Optional[Mapping[str, Any]] = None,
) -> Iterator[None]:
    """
    Context manager wrapping a named step.

    Behavior
    --------
    - debug mode: exception is re-raised (hard stop).
    - run mode: exception is recorded and suppressed; caller continues after the block.

    Usage example
    -------------
        with step("check_email", reporter, context={"user_id": "u1"}):
            check_email(user)
    """
    try:
        yield
    except BaseException as exc:
        reporter.mark_failed(step_name=step_name, exc=exc, context=context)
        if reporter.cfg.mode == "debug":
            raise
    else:
        reporter.mark_ok(step_name)


def guard(
    step_name: str,
    reporter: ErrorReporter,
    fn: Callable[[], T],
    *,
    context: Optional[Mapping[str, Any]] = None,
    default: Optional[T] = None,
) -> Optional[T]:
    """
    Execute a callable under error-handling policy.

    Once ``cfg.max_failures`` failures were recorded the callable is not run; the
    step is marked SKIPPED and `default` is returned.

    Returns
    -------
    value
        The callable result on success; otherwise `default`.

    Usage example
    -------------
        name = guard("check_name", reporter, lambda: check_name(user), default=None)
    """
    if reporter.limit_reached():
        reporter.mark_skipped(step_name=step_name, caused_by="max_failures", context=context)
        return default
    try:
        result = fn()
    except BaseException as exc:
        reporter.mark_failed(step_name=step_name, exc=exc, context=context)
        if reporter.cfg.mode == "debug":
            raise
        return default
    else:
        reporter.mark_ok(step_name)
        return result


@contextmanager
def collect(
    chain: ErrorChain,
    *,
    catch: Tuple[Type[BaseException], ...] = (Exception,),
) -> Iterator[ErrorChain]:
    """
    Append an exception raised inside the block to `chain` and suppress it.

    Only exceptions matching `catch` are collected; anything else propagates.

    Usage example
    -------------
        errs = ErrorChain()
        with collect(errs):
            check_name(user)
        with collect(errs):
            check_email(user)
        if len(errs):
            raise errs
    """
    try:
        yield chain
    except catch as exc:
        chain.add(exc)
