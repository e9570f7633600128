from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from rich.logging import RichHandler

from ..chain import ErrorChain
from .config import ErrorHandlingConfig
from .types import exception_message

LOGGER_NAME = "errchain"

_FILE_FORMAT = "%(asctime)sZ | run=%(run_id)s | step=%(step)s | %(levelname)s | %(message)s"
_FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {"exc_type": type(exc).__name__, "exc_msg": exception_message(exc)}
    if isinstance(exc, ErrorChain):
        fields["errors"] = [
            {"type": type(err).__name__, "message": exception_message(err)} for err in exc.errors()
        ]
    return fields


@dataclass
class JsonlEventLogger:
    """
    Appends one JSON object per event to `path`.

    Every event carries time_utc, run_id, event, step and level. Optional keys:
    message, context, exc_type / exc_msg, and for an ErrorChain an ``errors`` list
    with one {"type", "message"} entry per collected error, in chain order.

    Usage example
    -------------
        ev = JsonlEventLogger(path=Path("logs/events_abc.jsonl"), run_id="abc")
        ev.write(event="run_failed", step=None, level="ERROR", exc=reporter.chain())
    """
    path: Path
    run_id: str

    def write(
        self,
        *,
        event: str,
        step: Optional[str],
        level: str,
        context: Optional[Mapping[str, Any]] = None,
        exc: Optional[BaseException] = None,
        message: Optional[str] = None,
    ) -> None:
        payload: dict[str, Any] = {
            "time_utc": datetime.now(timezone.utc).isoformat(),
            "run_id": self.run_id,
            "event": event,
            "step": step,
            "level": level,
        }
        if message:
            payload["message"] = message
        if context:
            payload["context"] = dict(context)
        if exc is not None:
            payload.update(_exception_fields(exc))

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False) + "\n")


class _RunContextFilter(logging.Filter):
    """Fill in `run_id` and `step` for records logged without them."""

    def __init__(self, *, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.__dict__.setdefault("run_id", self._run_id)
        record.__dict__.setdefault("step", "-")
        return True


def _console_handler(cfg: ErrorHandlingConfig) -> logging.Handler:
    handler = RichHandler(rich_tracebacks=(cfg.mode == "debug"), show_path=False)
    handler.setLevel(cfg.console_level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(cfg: ErrorHandlingConfig, run_id: str) -> logging.Handler:
    handler = logging.FileHandler(cfg.log_dir / f"run_{run_id}.log", encoding="utf-8")
    handler.setLevel(cfg.file_level)
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def configure_logging(*, cfg: ErrorHandlingConfig) -> tuple[logging.Logger, Optional[JsonlEventLogger]]:
    """
    (Re)configure the "errchain" logger for one run.

    Handlers from a previous call are closed and replaced, so calling this once
    per run is safe.

    Returns
    -------
    logger
        Logger with a rich console handler and a plain file handler
        (<log_dir>/run_<run_id>.log).
    event_logger
        JsonlEventLogger writing <log_dir>/events_<run_id>.jsonl if cfg.write_jsonl, else None.

    Usage example
    -------------
        logger, event_logger = configure_logging(cfg=cfg)
        reporter = ErrorReporter(cfg=cfg, logger=logger, event_logger=event_logger)
    """
    run_id = cfg.resolved_run_id()
    cfg.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for old_filter in list(logger.filters):
        logger.removeFilter(old_filter)

    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addFilter(_RunContextFilter(run_id=run_id))
    logger.addHandler(_console_handler(cfg))
    logger.addHandler(_file_handler(cfg, run_id))

    event_logger = None
    if cfg.write_jsonl:
        event_logger = JsonlEventLogger(path=cfg.log_dir / f"events_{run_id}.jsonl", run_id=run_id)

    logger.debug("Logging configured (run_id=%s, mode=%s, log_dir=%s)", run_id, cfg.mode, cfg.log_dir)
    return logger, event_logger
