import os
from collections.abc import Mapping
from typing import Final

from pydantic import Field

from imbue.async_verify.errors import ConfigParseError
from imbue.async_verify.frozen_model import FrozenModel
from imbue.async_verify.primitives import PollIntervalSeconds

ENV_TIMEOUT_SECONDS: Final[str] = "ASYNC_VERIFY_TIMEOUT_SECONDS"
ENV_POLL_INTERVAL_SECONDS: Final[str] = "ASYNC_VERIFY_POLL_INTERVAL_SECONDS"

# 100 ms between attempts: small overshoot relative to typical test timeouts, no busy-spinning.
DEFAULT_POLL_INTERVAL_SECONDS: Final[PollIntervalSeconds] = PollIntervalSeconds(0.1)
DEFAULT_TIMEOUT_SECONDS: Final[float] = 5.0


class VerifyConfig(FrozenModel):
    """Defaults used by the retry driver when a call does not pass its own values."""

    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        description="Total wall-clock budget for retrying a check",
    )
    poll_interval_seconds: PollIntervalSeconds = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        description="Pause between two attempts of the same check",
    )

    def merge_with(
        self,
        timeout_seconds: float | None = None,
        poll_interval_seconds: float | None = None,
    ) -> "VerifyConfig":
        """Return a copy with the given values applied. None leaves a field unchanged."""
        return self.__class__(
            timeout_seconds=timeout_seconds if timeout_seconds is not None else self.timeout_seconds,
            poll_interval_seconds=(
                poll_interval_seconds if poll_interval_seconds is not None else self.poll_interval_seconds
            ),
        )


def _parse_float(environ: Mapping[str, str], key: str) -> float | None:
    raw_value = environ.get(key, "").strip()
    if not raw_value:
        return None
    try:
        return float(raw_value)
    except ValueError as e:
        raise ConfigParseError(f"{key} must be a number of seconds, got {raw_value!r}") from e


def load_config(environ: Mapping[str, str] | None = None) -> VerifyConfig:
    """Build a VerifyConfig from the defaults plus environment variable overrides.

    Recognized variables:
        ASYNC_VERIFY_TIMEOUT_SECONDS=2.5
        ASYNC_VERIFY_POLL_INTERVAL_SECONDS=0.05

    Empty values are ignored. Raises ConfigParseError for values that are not
    numbers, and for a poll interval that is not strictly positive.
    """
    if environ is None:
        environ = os.environ
    timeout_seconds = _parse_float(environ, ENV_TIMEOUT_SECONDS)
    poll_interval_seconds = _parse_float(environ, ENV_POLL_INTERVAL_SECONDS)
    if poll_interval_seconds is not None and poll_interval_seconds <= 0:
        raise ConfigParseError(f"{ENV_POLL_INTERVAL_SECONDS} must be > 0, got {poll_interval_seconds}")
    return VerifyConfig().merge_with(
        timeout_seconds=timeout_seconds,
        poll_interval_seconds=poll_interval_seconds,
    )


def get_default_config() -> VerifyConfig:
    """Return the config the driver falls back to. Read from the environment on every call."""
    return load_config()
