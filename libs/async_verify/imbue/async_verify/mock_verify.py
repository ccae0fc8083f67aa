"""Call-count verification for unittest.mock objects, retried until it holds.

Usage::

    await async_verify(client.send, Times.exactly(2), timeout=1.0)
    await async_verify(client.send, Times.once(), expected_call=call("hello"))

A PropertyMock records each attribute access as a call, so verifying property
reads goes through the same function as verifying method calls.
"""

from datetime import timedelta
from typing import Self
from unittest.mock import NonCallableMock

from pydantic import Field
from pydantic import model_validator

from imbue.async_verify.driver import retry_until_success
from imbue.async_verify.driver import retry_until_success_blocking
from imbue.async_verify.errors import ExpectationNotMetError
from imbue.async_verify.frozen_model import FrozenModel


def _plural_calls(count: int) -> str:
    return f"{count} call" if count == 1 else f"{count} calls"


class Times(FrozenModel):
    """An inclusive range of acceptable call counts."""

    min_calls: int = Field(ge=0, description="Fewest calls that satisfy the expectation")
    max_calls: int | None = Field(
        default=None,
        ge=0,
        description="Most calls that satisfy the expectation, or None for no upper bound",
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.max_calls is not None and self.max_calls < self.min_calls:
            raise ValueError(f"max_calls ({self.max_calls}) must be >= min_calls ({self.min_calls})")
        return self

    @classmethod
    def exactly(cls, count: int) -> "Times":
        return cls(min_calls=count, max_calls=count)

    @classmethod
    def once(cls) -> "Times":
        return cls.exactly(1)

    @classmethod
    def never(cls) -> "Times":
        return cls.exactly(0)

    @classmethod
    def at_least(cls, count: int) -> "Times":
        return cls(min_calls=count)

    @classmethod
    def at_most(cls, count: int) -> "Times":
        return cls(min_calls=0, max_calls=count)

    @classmethod
    def between(cls, min_calls: int, max_calls: int) -> "Times":
        return cls(min_calls=min_calls, max_calls=max_calls)

    def matches(self, count: int) -> bool:
        if count < self.min_calls:
            return False
        return self.max_calls is None or count <= self.max_calls

    def describe(self) -> str:
        if self.max_calls is None:
            return f"at least {_plural_calls(self.min_calls)}"
        if self.max_calls == 0:
            return "no calls"
        if self.min_calls == self.max_calls:
            return f"exactly {_plural_calls(self.min_calls)}"
        if self.min_calls == 0:
            return f"at most {_plural_calls(self.max_calls)}"
        return f"between {self.min_calls} and {_plural_calls(self.max_calls)}"


def count_matching_calls(mock: NonCallableMock, expected_call: object | None = None) -> int:
    """Count recorded calls on mock, optionally only those equal to expected_call."""
    if expected_call is None:
        return len(mock.call_args_list)
    return sum(1 for recorded in mock.call_args_list if recorded == expected_call)


def verify_call_count(
    mock: NonCallableMock,
    times: Times,
    expected_call: object | None = None,
) -> None:
    """Raise ExpectationNotMetError unless mock has been called an acceptable number of times.

    Passing something that is not a unittest.mock object raises TypeError, which
    the retry driver treats as fatal.
    """
    if not isinstance(mock, NonCallableMock):
        raise TypeError(f"Expected a unittest.mock object, got {type(mock).__name__}")
    count = count_matching_calls(mock, expected_call)
    if not times.matches(count):
        matching = f" matching {expected_call!r}" if expected_call is not None else ""
        raise ExpectationNotMetError(f"expected {times.describe()}{matching}, got {count}")


async def async_verify(
    mock: NonCallableMock,
    times: Times,
    timeout: float | timedelta | None = None,
    expected_call: object | None = None,
    poll_interval: float | None = None,
) -> None:
    """Wait until verify_call_count passes for mock, or raise VerificationTimeoutError."""
    await retry_until_success(
        lambda: verify_call_count(mock, times, expected_call),
        timeout,
        poll_interval=poll_interval,
    )


def async_verify_blocking(
    mock: NonCallableMock,
    times: Times,
    timeout: float | timedelta | None = None,
    expected_call: object | None = None,
    poll_interval: float | None = None,
) -> None:
    """Blocking twin of async_verify, for tests that run without an event loop."""
    retry_until_success_blocking(
        lambda: verify_call_count(mock, times, expected_call),
        timeout,
        poll_interval=poll_interval,
    )
