"""Tagged results of a single check invocation, and the per-invocation deadline.

The driver never relies on exception filtering to decide whether to retry.
Each attempt is turned into exactly one AttemptOutcome by run_attempt, and
the driver matches on it.
"""

import time
from collections.abc import Callable

from pydantic import ConfigDict
from pydantic import Field

from imbue.async_verify.frozen_model import FrozenModel


class Satisfied(FrozenModel):
    """The check returned normally: the condition holds."""


class ExpectationNotYetMet(FrozenModel):
    """The check raised one of the retried exception types."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cause: Exception = Field(description="The retried exception, kept for diagnostics")


class FatalFailure(FrozenModel):
    """The check raised an exception that must not be retried."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: Exception = Field(description="The exception to propagate unchanged")


AttemptOutcome = Satisfied | ExpectationNotYetMet | FatalFailure


def run_attempt(
    check: Callable[[], None],
    retry_on: tuple[type[Exception], ...],
) -> AttemptOutcome:
    """Invoke check once and classify how it finished.

    Only Exception subclasses are captured. KeyboardInterrupt, SystemExit and
    asyncio.CancelledError pass straight through.
    """
    try:
        check()
    except retry_on as e:
        return ExpectationNotYetMet(cause=e)
    except Exception as e:
        return FatalFailure(error=e)
    return Satisfied()


class DeadlineState(FrozenModel):
    """Start time and budget of one driver invocation."""

    started_at: float = Field(description="time.monotonic() reading when the invocation began")
    timeout_seconds: float = Field(description="Total retry budget in seconds")

    @classmethod
    def start(cls, timeout_seconds: float) -> "DeadlineState":
        return cls(started_at=time.monotonic(), timeout_seconds=timeout_seconds)

    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started_at

    def remaining_seconds(self) -> float:
        return self.timeout_seconds - self.elapsed_seconds()

    def is_expired(self) -> bool:
        return self.elapsed_seconds() >= self.timeout_seconds
