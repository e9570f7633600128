from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from rich.console import Console

from ..chain import ErrorChain
from .config import ErrorHandlingConfig
from .logging import JsonlEventLogger
from .types import FailureRecord, StepStatus


@dataclass
class ErrorReporter:
    """
    Records the outcome of guarded steps and hands the failures back as one error.

    Failures keep their original exception; ``chain()`` returns them, in the
    order they happened, as an ErrorChain to raise or return.

    Usage example
    -------------
        reporter = ErrorReporter(cfg=cfg, logger=logger, event_logger=event_logger)
        guard("check_name", reporter, lambda: check_name(user))
        guard("check_email", reporter, lambda: check_email(user))
        reporter.raise_if_failed()
    """

    cfg: ErrorHandlingConfig
    logger: logging.Logger
    event_logger: Optional[JsonlEventLogger] = None

    def __post_init__(self) -> None:
        self._run_id = self.cfg.resolved_run_id()
        self._records: list[FailureRecord] = []
        self._status: dict[str, StepStatus] = {}

    def status(self, step_name: str) -> Optional[StepStatus]:
        """Return the recorded status of `step_name`, or None if it never ran."""
        return self._status.get(step_name)

    def failures_count(self) -> int:
        return Counter(self._status.values())[StepStatus.FAILED]

    def limit_reached(self) -> bool:
        """Return True once cfg.max_failures failures were recorded (run mode only)."""
        if self.cfg.mode != "run" or self.cfg.max_failures is None:
            return False
        return self.failures_count() >= self.cfg.max_failures

    def _event(self, **fields: Any) -> None:
        if self.event_logger is not None:
            self.event_logger.write(**fields)

    def mark_ok(self, step_name: str) -> None:
        self._status[step_name] = StepStatus.OK
        self._event(event="step_ok", step=step_name, level="INFO")

    def mark_skipped(self, *, step_name: str, caused_by: str, context: Optional[Mapping[str, Any]] = None) -> None:
        """Record a step that was not run, and why."""
        rec = FailureRecord(
            step_name=step_name,
            status=StepStatus.SKIPPED,
            message=f"Skipped because of '{caused_by}'.",
            context=context,
            caused_by=caused_by,
        )
        self._status[step_name] = StepStatus.SKIPPED
        self._records.append(rec)
        self.logger.warning("Skipping step '%s' (caused_by=%s)", step_name, caused_by, extra={"step": step_name})
        self._event(event="step_skipped", step=step_name, level="WARNING", context=context, message=rec.message)

    def mark_failed(self, *, step_name: str, exc: BaseException, context: Optional[Mapping[str, Any]] = None) -> None:
        """Record a failed step together with its exception."""
        rec = FailureRecord.from_exception(step_name=step_name, exc=exc, context=context)
        self._status[step_name] = StepStatus.FAILED
        self._records.append(rec)

        self.logger.error("Step '%s' failed: %s (%s)", step_name, rec.message, rec.exc_type, extra={"step": step_name})
        self.logger.debug("Traceback for step '%s':\n%s", step_name, rec.traceback, extra={"step": step_name})
        self._event(event="step_failed", step=step_name, level="ERROR", context=context, exc=exc)

    def chain(self) -> Optional[ErrorChain]:
        """
        Return the recorded failure exceptions as an ErrorChain, or None if nothing failed.

        The head of the chain is the first failure.
        """
        errors = [rec.error for rec in self._records if rec.status == StepStatus.FAILED and rec.error is not None]
        if not errors:
            return None
        return ErrorChain(*errors)

    def raise_if_failed(self) -> None:
        """Raise the failures of this run as one ErrorChain."""
        err = self.chain()
        if err is None:
            return
        self._event(event="run_failed", step=None, level="ERROR", exc=err)
        raise err

    def render_summary(self) -> str:
        """Render counts per status, then one line per failure or skip."""
        counts = Counter(self._status.values())
        lines = [
            f"Run summary (run_id={self._run_id}, mode={self.cfg.mode})",
            f"  OK:   {counts[StepStatus.OK]}",
            f"  FAIL: {counts[StepStatus.FAILED]}",
            f"  SKIP: {counts[StepStatus.SKIPPED]}",
        ]
        if not self._records:
            return "\n".join(lines)

        lines += ["", "Details:"]
        for rec in self._records:
            if rec.status == StepStatus.FAILED:
                lines.append(f"  - FAIL {rec.step_name}: {rec.exc_type}: {rec.message}")
            else:
                lines.append(f"  - SKIP {rec.step_name}: {rec.message}")

        lines += ["", "Artifacts:", f"  - {self.cfg.log_dir / f'run_{self._run_id}.log'}"]
        if self.cfg.write_jsonl:
            lines.append(f"  - {self.cfg.log_dir / f'events_{self._run_id}.jsonl'}")
        return "\n".join(lines)

    def print_summary(self, console: Optional[Console] = None) -> None:
        (console or Console()).print(self.render_summary(), markup=False, highlight=False)

    def exit_code(self) -> int:
        """0 when no step failed, else 1."""
        return 1 if self.failures_count() else 0
