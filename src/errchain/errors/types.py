from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional
import traceback as _traceback

from ..chain import ErrorChain


def exception_message(exc: BaseException) -> str:
    """
    Render `exc` for reports and logs.

    An empty ErrorChain has no message of its own; it renders as "".
    """
    if isinstance(exc, ErrorChain) and exc.head is None:
        return ""
    return str(exc)


class StepStatus(str, Enum):
    """Status of a named step in a run."""
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FailureRecord:
    """
    A structured record of a step failure or skip.

    ``error`` keeps the original exception of a failure so that the failures of a
    run can be handed back as one :class:`errchain.ErrorChain`.

    Usage example
    -------------
        rec = FailureRecord(step_name="parse", status=StepStatus.FAILED, message="boom")
    """
    step_name: str
    status: StepStatus
    message: str
    exc_type: Optional[str] = None
    traceback: Optional[str] = None
    context: Optional[Mapping[str, Any]] = None
    caused_by: Optional[str] = None  # for SKIPPED: why the step did not run
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @staticmethod
    def from_exception(*, step_name: str, exc: BaseException, context: Optional[Mapping[str, Any]]) -> "FailureRecord":
        tb = "".join(_traceback.format_exception(type(exc), exc, exc.__traceback__))
        return FailureRecord(
            step_name=step_name,
            status=StepStatus.FAILED,
            message=exception_message(exc),
            exc_type=type(exc).__name__,
            traceback=tb,
            context=context,
            error=exc,
        )
