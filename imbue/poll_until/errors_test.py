"""Tests for errors module."""

from imbue.poll_until.errors import PollTimeoutError
from imbue.poll_until.errors import PollUntilError


def test_poll_timeout_error_message_mentions_timeout_in_ms() -> None:
    error = PollTimeoutError(30_000)

    assert str(error) == "Operation did not complete within timeout limit of 30000ms"
    assert error.timeout_ms == 30_000


def test_poll_timeout_error_keeps_fractional_timeouts() -> None:
    assert str(PollTimeoutError(12.5)) == "Operation did not complete within timeout limit of 12.5ms"


def test_poll_timeout_error_renders_integral_floats_without_decimal_point() -> None:
    assert str(PollTimeoutError(100.0)) == "Operation did not complete within timeout limit of 100ms"


def test_poll_timeout_error_is_a_builtin_timeout_error() -> None:
    error = PollTimeoutError(10)

    assert isinstance(error, TimeoutError)
    assert isinstance(error, PollUntilError)


def test_poll_timeout_errors_compare_by_type_and_message() -> None:
    first = PollTimeoutError(500)
    second = PollTimeoutError(500)

    assert first is not second
    assert type(first) is type(second)
    assert str(first) == str(second)
    assert str(first) != str(PollTimeoutError(501))
