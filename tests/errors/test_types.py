from errchain import ErrorChain
from errchain.errors.types import FailureRecord, StepStatus, exception_message


def test_stepstatus_values_are_stable() -> None:
    assert StepStatus.OK.value == "ok"
    assert StepStatus.FAILED.value == "failed"
    assert StepStatus.SKIPPED.value == "skipped"


def test_failure_record_from_exception_captures_fields() -> None:
    try:
        raise ValueError("nope")
    except ValueError as exc:
        rec = FailureRecord.from_exception(
            step_name="parse",
            exc=exc,
            context={"user_id": "u1"},
        )

    assert rec.step_name == "parse"
    assert rec.status == StepStatus.FAILED
    assert rec.message == "nope"
    assert rec.exc_type == "ValueError"
    assert rec.context == {"user_id": "u1"}
    assert rec.error is exc
    assert rec.traceback is not None
    assert "ValueError" in rec.traceback
    assert "nope" in rec.traceback


def test_failure_record_equality_ignores_error_object() -> None:
    a = FailureRecord(step_name="s", status=StepStatus.FAILED, message="m", error=ValueError("m"))
    b = FailureRecord(step_name="s", status=StepStatus.FAILED, message="m", error=ValueError("m"))
    assert a == b


def test_exception_message_renders_empty_chain_as_empty_string() -> None:
    assert exception_message(ErrorChain()) == ""
    assert exception_message(ErrorChain(ValueError("first"), ValueError("second"))) == "first"
    assert exception_message(KeyError("k")) == "'k'"


def test_failure_record_from_empty_chain() -> None:
    rec = FailureRecord.from_exception(step_name="s", exc=ErrorChain(), context=None)
    assert rec.message == ""
    assert rec.exc_type == "ErrorChain"
