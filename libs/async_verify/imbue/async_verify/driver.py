"""Retry a verification check until it passes or its timeout elapses.

Both entry points share one contract:

- The check is invoked at least once, even when the timeout is zero or negative.
- A check that returns normally ends the loop immediately.
- A check that raises one of the retried exception types (ExpectationNotMetError
  by default) is retried after a fixed poll interval, as long as the deadline
  has not passed.
- Any other exception is re-raised unchanged on the spot.
- When the deadline passes without success, VerificationTimeoutError is raised,
  chained from the last retried failure.

The deadline is only consulted between attempts, so the total time spent can
overshoot the timeout by up to one poll interval plus the duration of one check.
"""

import asyncio
from collections.abc import Callable
from collections.abc import Iterator
from datetime import timedelta
from threading import Event
from typing import Final
from typing import assert_never

from loguru import logger

from imbue.async_verify.config import get_default_config
from imbue.async_verify.errors import ExpectationNotMetError
from imbue.async_verify.errors import VerificationTimeoutError
from imbue.async_verify.logging import log_span
from imbue.async_verify.outcomes import DeadlineState
from imbue.async_verify.outcomes import ExpectationNotYetMet
from imbue.async_verify.outcomes import FatalFailure
from imbue.async_verify.outcomes import Satisfied
from imbue.async_verify.outcomes import run_attempt
from imbue.async_verify.primitives import AttemptCount
from imbue.async_verify.primitives import PollIntervalSeconds
from imbue.async_verify.primitives import to_seconds

DEFAULT_RETRY_ON: Final[tuple[type[Exception], ...]] = (ExpectationNotMetError,)


def _resolve_settings(
    timeout: float | timedelta | None,
    poll_interval: float | None,
) -> tuple[float, PollIntervalSeconds]:
    config = get_default_config()
    timeout_seconds = to_seconds(timeout) if timeout is not None else config.timeout_seconds
    interval = PollIntervalSeconds(poll_interval) if poll_interval is not None else config.poll_interval_seconds
    return timeout_seconds, interval


def _describe_check(check: Callable[[], None]) -> str:
    return getattr(check, "__qualname__", None) or repr(check)


def _attempt(
    check: Callable[[], None],
    retry_on: tuple[type[Exception], ...],
    attempt_number: int,
) -> Exception | None:
    """Run one attempt. Returns None if the check passed, or the retried failure otherwise.

    Fatal failures are re-raised from here.
    """
    outcome = run_attempt(check, retry_on)
    match outcome:
        case Satisfied():
            logger.trace("Check passed on attempt {}", attempt_number)
            return None
        case ExpectationNotYetMet(cause=cause):
            logger.trace("Attempt {} not yet satisfied: {}", attempt_number, cause)
            return cause
        case FatalFailure(error=error):
            raise error
        case _ as unreachable:
            assert_never(unreachable)


def _build_timeout_error(
    deadline: DeadlineState,
    last_cause: Exception | None,
    attempt_count: AttemptCount,
) -> VerificationTimeoutError:
    logger.debug(
        "Giving up after {} attempts in {:.3f} sec (timeout {} sec)",
        attempt_count,
        deadline.elapsed_seconds(),
        deadline.timeout_seconds,
    )
    return VerificationTimeoutError(
        timeout_seconds=deadline.timeout_seconds,
        last_cause=last_cause,
        attempt_count=attempt_count,
    )


def _pauses_until_success(
    check: Callable[[], None],
    timeout_seconds: float,
    interval: PollIntervalSeconds,
    retry_on: tuple[type[Exception], ...],
) -> Iterator[PollIntervalSeconds]:
    """Drive the attempts of one verification, yielding each time the caller must pause.

    Returns once the check passes. Raises VerificationTimeoutError when the
    deadline has passed, and re-raises fatal failures. The deadline is checked
    both before and after each pause, so no attempt starts once it has expired.
    """
    deadline = DeadlineState.start(timeout_seconds)
    attempt_count = AttemptCount(0)
    while True:
        attempt_count = AttemptCount(attempt_count + 1)
        last_cause = _attempt(check, retry_on, attempt_count)
        if last_cause is None:
            return
        if deadline.is_expired():
            break
        yield interval
        if deadline.is_expired():
            break
    raise _build_timeout_error(deadline, last_cause, attempt_count) from last_cause


async def retry_until_success(
    check: Callable[[], None],
    timeout: float | timedelta | None = None,
    *,
    poll_interval: float | None = None,
    retry_on: tuple[type[Exception], ...] | None = None,
) -> None:
    """Invoke check until it passes, sleeping cooperatively between attempts.

    timeout and poll_interval are in seconds (timeout may also be a timedelta).
    When omitted they come from the environment-driven VerifyConfig. The pause
    uses asyncio.sleep, so many verifications can wait on one event loop.
    """
    timeout_seconds, interval = _resolve_settings(timeout, poll_interval)
    retried_types = retry_on if retry_on is not None else DEFAULT_RETRY_ON
    with log_span("Verifying {} (timeout {} sec)", _describe_check(check), timeout_seconds):
        for pause in _pauses_until_success(check, timeout_seconds, interval, retried_types):
            await asyncio.sleep(pause)


def retry_until_success_blocking(
    check: Callable[[], None],
    timeout: float | timedelta | None = None,
    *,
    poll_interval: float | None = None,
    retry_on: tuple[type[Exception], ...] | None = None,
) -> None:
    """Same contract as retry_until_success, for callers that are not running an event loop.

    The pause blocks the calling thread.
    """
    timeout_seconds, interval = _resolve_settings(timeout, poll_interval)
    retried_types = retry_on if retry_on is not None else DEFAULT_RETRY_ON
    with log_span("Verifying {} (timeout {} sec)", _describe_check(check), timeout_seconds):
        for pause in _pauses_until_success(check, timeout_seconds, interval, retried_types):
            Event().wait(timeout=pause)
