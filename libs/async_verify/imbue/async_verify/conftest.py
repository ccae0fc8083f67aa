import time
from collections.abc import Generator

import pytest

from imbue.async_verify.config import ENV_POLL_INTERVAL_SECONDS
from imbue.async_verify.config import ENV_TIMEOUT_SECONDS
from imbue.async_verify.errors import ExpectationNotMetError


class FlakyCheck:
    """Check that fails with ExpectationNotMetError a fixed number of times, then passes."""

    def __init__(self, failures_before_success: int, message: str = "not yet") -> None:
        self.failures_before_success = failures_before_success
        self.message = message
        self.call_count = 0
        self.call_times: list[float] = []

    def __call__(self) -> None:
        self.call_count += 1
        self.call_times.append(time.monotonic())
        if self.call_count <= self.failures_before_success:
            raise ExpectationNotMetError(f"{self.message} (call {self.call_count})")


class AlwaysFailingCheck:
    """Check that raises a fresh ExpectationNotMetError on every call."""

    def __init__(self, message: str = "expected 2 calls, got 0") -> None:
        self.message = message
        self.call_count = 0
        self.raised: list[ExpectationNotMetError] = []
        self.call_times: list[float] = []

    def __call__(self) -> None:
        self.call_count += 1
        self.call_times.append(time.monotonic())
        error = ExpectationNotMetError(self.message)
        self.raised.append(error)
        raise error


@pytest.fixture(autouse=True)
def clean_verify_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep developer-set overrides from leaking into driver defaults during tests."""
    monkeypatch.delenv(ENV_TIMEOUT_SECONDS, raising=False)
    monkeypatch.delenv(ENV_POLL_INTERVAL_SECONDS, raising=False)
    yield
