from pathlib import Path
import json
import logging

import pytest

from errchain import ErrorChain, is_error
from errchain.errors import ErrorHandlingConfig, configure_logging, ErrorReporter
from errchain.errors.guards import collect, guard, step
from errchain.errors.types import StepStatus


def _make_reporter(
    *, tmp_path: Path, mode: str, write_jsonl: bool = False, max_failures: int | None = None
) -> ErrorReporter:
    cfg = ErrorHandlingConfig(
        mode=mode,  # type: ignore[arg-type]
        log_dir=tmp_path / "logs",
        run_id="testrun",
        write_jsonl=write_jsonl,
        max_failures=max_failures,
        console_level=logging.CRITICAL,
    )
    logger, event_logger = configure_logging(cfg=cfg)
    return ErrorReporter(cfg=cfg, logger=logger, event_logger=event_logger)


def test_guard_success_marks_ok_and_returns_value(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run")

    out = guard("step_ok", reporter, lambda: 123, default=None)

    assert out == 123
    assert reporter.status("step_ok") == StepStatus.OK
    assert reporter.failures_count() == 0


def test_guard_failure_run_mode_records_failed_and_returns_default(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run")

    def boom() -> int:
        raise ValueError("nope")

    out = guard("step_fail", reporter, boom, default=999)

    assert out == 999
    assert reporter.status("step_fail") == StepStatus.FAILED
    assert reporter.failures_count() == 1


def test_guard_failure_debug_mode_raises(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="debug")

    def boom() -> int:
        raise RuntimeError("kaboom")

    with pytest.raises(RuntimeError, match="kaboom"):
        _ = guard("step_fail", reporter, boom, default=999)

    # Recorded before re-raising
    assert reporter.status("step_fail") == StepStatus.FAILED


def test_guard_skips_once_max_failures_reached(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run", max_failures=1)
    ran: list[str] = []

    def fail() -> None:
        ran.append("a")
        raise ValueError("first")

    def ok() -> str:
        ran.append("b")
        return "ok"

    guard("a", reporter, fail)
    out = guard("b", reporter, ok, default="skipped")

    assert ran == ["a"]
    assert out == "skipped"
    assert reporter.status("b") == StepStatus.SKIPPED
    assert reporter.chain().errors()[0].args == ("first",)  # type: ignore[union-attr]


def test_independent_guards_collect_every_failure(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run")
    name_err, email_err = ValueError("name missing"), KeyError("email")

    def check_name() -> None:
        raise name_err

    def check_email() -> None:
        raise email_err

    guard("check_name", reporter, check_name)
    guard("check_age", reporter, lambda: 30)
    guard("check_email", reporter, check_email)

    chain = reporter.chain()
    assert chain is not None
    assert chain.errors() == [name_err, email_err]
    assert is_error(chain, email_err)


def test_step_records_ok_and_failure(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run")

    with step("fine", reporter):
        pass
    with step("broken", reporter, context={"user_id": "u1"}):
        raise ValueError("bad")

    assert reporter.status("fine") == StepStatus.OK
    assert reporter.status("broken") == StepStatus.FAILED


def test_step_debug_mode_reraises(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="debug")

    with pytest.raises(ValueError, match="bad"):
        with step("broken", reporter):
            raise ValueError("bad")


def test_guard_writes_jsonl_events_if_enabled(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run", write_jsonl=True)

    _ = guard("step_ok", reporter, lambda: "hi", default=None)

    jsonl_path = reporter.cfg.log_dir / "events_testrun.jsonl"
    lines = jsonl_path.read_text(encoding="utf-8").strip().splitlines()
    payload = json.loads(lines[0])
    assert payload["run_id"] == "testrun"
    assert payload["event"] == "step_ok"
    assert payload["step"] == "step_ok"


def test_collect_appends_and_suppresses() -> None:
    errs = ErrorChain()
    first, second = ValueError("first"), KeyError("second")

    with collect(errs):
        raise first
    with collect(errs) as same:
        assert same is errs
    with collect(errs):
        raise second

    assert errs.errors() == [first, second]


def test_collect_lets_unlisted_exceptions_through() -> None:
    errs = ErrorChain()

    with pytest.raises(KeyError):
        with collect(errs, catch=(ValueError,)):
            raise KeyError("k")

    with pytest.raises(KeyboardInterrupt):
        with collect(errs):
            raise KeyboardInterrupt

    assert errs.errors() == []


def test_guard_records_an_empty_chain_and_continues(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run")

    def raise_empty() -> str:
        raise ErrorChain()

    out = guard("empty", reporter, raise_empty, default="fallback")

    assert out == "fallback"
    assert reporter.status("empty") == StepStatus.FAILED
    assert reporter.failures_count() == 1


def test_step_records_an_empty_chain_and_continues(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, mode="run")

    with step("empty", reporter):
        raise ErrorChain()

    assert reporter.status("empty") == StepStatus.FAILED
