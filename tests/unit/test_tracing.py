"""Tests for the tracing decorator and span attribute filtering."""

from unittest.mock import MagicMock

import pytest

from assethub.shared.telemetry.tracing import _set_safe_span_attrs, traced


@traced("test.double")
async def _double(value: int, *, file_id: str) -> int:
    return value * 2


@traced()
async def _fail(file_id: str) -> None:
    raise ValueError(f"cannot process {file_id}")


async def test_traced_returns_result_and_keeps_name() -> None:
    """The wrapper awaits the coroutine and keeps the function metadata."""
    assert await _double(21, file_id="f1") == 42
    assert _double.__name__ == "_double"


async def test_traced_propagates_errors() -> None:
    """Exceptions from the wrapped coroutine reach the caller unchanged."""
    with pytest.raises(ValueError, match="cannot process f1"):
        await _fail(file_id="f1")


def test_only_allowlisted_kwargs_become_span_attributes() -> None:
    """Stream objects, URLs and private kwargs are never recorded."""
    span = MagicMock()
    _set_safe_span_attrs(
        span,
        {"file_id": "f1", "upload_url": "https://x", "stream": object(), "_key": "k", "Size": 3},
    )
    recorded = {call.args[0]: call.args[1] for call in span.set_attribute.call_args_list}
    assert recorded == {"arg.file_id": "f1", "arg.Size": "3"}
