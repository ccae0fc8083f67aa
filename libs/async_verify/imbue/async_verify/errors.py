class AsyncVerifyError(Exception):
    """Base exception for all async_verify errors."""


class ExpectationNotMetError(AsyncVerifyError):
    """Raised by a check when the condition it verifies does not hold yet.

    This is the only failure the retry driver treats as transient by default.
    """


class VerificationTimeoutError(AsyncVerifyError, TimeoutError):
    """Raised when a check never succeeded within its retry budget."""

    def __init__(
        self,
        timeout_seconds: float,
        last_cause: BaseException | None,
        attempt_count: int,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.last_cause = last_cause
        self.attempt_count = attempt_count
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = (
            f"Verification always failed within given timespan of {self.timeout_seconds:g} seconds "
            f"({self.attempt_count} attempts)"
        )
        if self.last_cause is not None:
            msg += f"; last failure: {self.last_cause}"
        return msg

    def __str__(self) -> str:
        return self._format_message()


class ConfigParseError(AsyncVerifyError, ValueError):
    """Raised when a configuration override cannot be parsed."""
