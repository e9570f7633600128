"""`errchain demo` command implementation."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable

from rich.console import Console

from errchain import is_error, wrap
from errchain.errors import ErrorHandlingConfig, ErrorReporter, configure_logging, guard, load_config
from errchain.errors.types import StepStatus


class CodeError(Exception):
    """An error identified by a numeric code; matches any CodeError with the same code."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code

    def __str__(self) -> str:
        return str(self.code)

    def matches(self, target: Any) -> bool:
        return isinstance(target, CodeError) and target.code == self.code


def add_subparser(subparsers: argparse._SubParsersAction) -> None:
    """Register the `demo` command."""
    parser = subparsers.add_parser("demo", help="Collect two failing checks and query the combined error.")
    parser.add_argument("--code", type=int, default=12, help="Code carried by the wrapped error.")
    parser.add_argument("--target", type=int, default=12, help="Code to look for in the combined error.")
    parser.add_argument("--log-dir", default=None, help="Directory for run logs.")
    parser.add_argument(
        "--strict", action="store_true", help="Exit with status 1 when any check failed."
    )
    parser.set_defaults(command="demo")


def _check_name() -> None:
    raise ValueError("some error")


def _check_code(code: int) -> None:
    raise wrap(CodeError(code), "wrap it up")


def _checks(args: argparse.Namespace) -> dict[str, Callable[[], None]]:
    return {
        "check_name": _check_name,
        "check_code": lambda: _check_code(args.code),
    }


def run(args: argparse.Namespace) -> None:
    """Execute the `demo` command."""
    file_cfg = load_config(Path.cwd()).get("errors") or {}
    cfg = ErrorHandlingConfig.from_mapping(file_cfg, default=ErrorHandlingConfig(env_prefix="ERRCHAIN_"))
    cfg = ErrorHandlingConfig.from_env(default=cfg)
    # Always collect every failure, under a single run id.
    cfg = replace(cfg, mode="run", max_failures=None, run_id=cfg.resolved_run_id())
    if getattr(args, "log_dir", None):
        cfg = replace(cfg, log_dir=Path(args.log_dir))

    logger, event_logger = configure_logging(cfg=cfg)
    reporter = ErrorReporter(cfg=cfg, logger=logger, event_logger=event_logger)

    checks = _checks(args)
    for name, check in checks.items():
        guard(name, reporter, check)
    failed = [name for name in checks if reporter.status(name) is StepStatus.FAILED]
    logger.info("Failed checks: %s", ", ".join(failed) or "none")

    err = reporter.chain()
    if err is not None and event_logger is not None:
        event_logger.write(event="chain_built", step=None, level="INFO", exc=err)

    reporter.print_summary(Console(stderr=True))

    if err is not None and is_error(err, CodeError(args.target)):
        logger.info("Found code %s in %d collected errors", args.target, len(err))
        print("got an error")
    else:
        print("no match")

    if getattr(args, "strict", False):
        raise SystemExit(reporter.exit_code())
