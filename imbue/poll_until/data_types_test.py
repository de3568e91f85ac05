"""Tests for data_types."""

import pytest
from pydantic import ValidationError

from imbue.poll_until.data_types import PollOptions
from imbue.poll_until.primitives import Milliseconds


def test_poll_options_defaults() -> None:
    options = PollOptions()

    assert options.delay_ms == 500
    assert options.timeout_ms == 30_000
    assert isinstance(options.delay_ms, Milliseconds)
    assert isinstance(options.timeout_ms, Milliseconds)


def test_poll_options_accepts_overrides() -> None:
    options = PollOptions(delay_ms=25, timeout_ms=1_000)

    assert options.delay_ms == 25
    assert options.timeout_ms == 1_000


def test_poll_options_converts_to_seconds() -> None:
    options = PollOptions(delay_ms=250, timeout_ms=1_500)

    assert options.delay_seconds == 0.25
    assert options.timeout_seconds == 1.5


@pytest.mark.parametrize("field_name", ["delay_ms", "timeout_ms"])
@pytest.mark.parametrize("bad_value", [0, -500])
def test_poll_options_rejects_non_positive_values(field_name: str, bad_value: int) -> None:
    with pytest.raises(ValidationError):
        PollOptions(**{field_name: bad_value})


def test_poll_options_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        PollOptions(interval_ms=10)  # type: ignore[call-arg]


def test_poll_options_is_frozen() -> None:
    options = PollOptions()

    with pytest.raises(ValidationError):
        options.delay_ms = Milliseconds(1)  # type: ignore[misc]
