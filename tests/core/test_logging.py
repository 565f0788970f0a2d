from __future__ import annotations

import logging

from cert_registry.core.logging import (
    RequestContextFilter,
    _ContainerFormatter,
    caller_var,
    request_id_var,
    setup_logging,
)


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_formatter_excludes_location_for_info() -> None:
    fmt = _ContainerFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )
    output = fmt.format(record)
    assert "hello" in output
    assert "[test.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    fmt = _ContainerFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.WARNING,
        pathname="test.py",
        lineno=42,
        msg="bad thing",
        args=(),
        exc_info=None,
    )
    output = fmt.format(record)
    assert "bad thing" in output
    assert "[test.py:42]" in output


def test_formatter_includes_location_for_error() -> None:
    fmt = _ContainerFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.ERROR,
        pathname="svc.py",
        lineno=99,
        msg="broke",
        args=(),
        exc_info=None,
    )
    output = fmt.format(record)
    assert "[svc.py:99]" in output


def test_setup_logging_quiets_sqlalchemy_engine() -> None:
    setup_logging("debug")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_attaches_context_filter_to_handler() -> None:
    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert any(isinstance(f, RequestContextFilter) for f in handler.filters)


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="hi",
        args=(),
        exc_info=None,
    )


def test_context_filter_copies_context_vars() -> None:
    rid_token = request_id_var.set("req-42")
    caller_token = caller_var.set("GADMIN")
    try:
        record = _record()
        assert RequestContextFilter().filter(record) is True
    finally:
        request_id_var.reset(rid_token)
        caller_var.reset(caller_token)

    assert record.request_id == "req-42"  # type: ignore[attr-defined]
    assert record.caller == "GADMIN"  # type: ignore[attr-defined]


def test_context_filter_defaults_outside_request() -> None:
    record = _record()
    RequestContextFilter().filter(record)
    assert record.request_id == "-"  # type: ignore[attr-defined]
    assert record.caller is None  # type: ignore[attr-defined]
