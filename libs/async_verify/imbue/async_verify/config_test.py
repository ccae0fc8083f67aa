"""Tests for config loading."""

import pytest
from pydantic import ValidationError

from imbue.async_verify.config import ENV_POLL_INTERVAL_SECONDS
from imbue.async_verify.config import ENV_TIMEOUT_SECONDS
from imbue.async_verify.config import VerifyConfig
from imbue.async_verify.config import get_default_config
from imbue.async_verify.config import load_config
from imbue.async_verify.errors import ConfigParseError
from imbue.async_verify.primitives import PollIntervalSeconds


def test_default_config_polls_every_100ms() -> None:
    config = VerifyConfig()

    assert config.poll_interval_seconds == 0.1
    assert config.timeout_seconds == 5.0


def test_config_is_frozen() -> None:
    config = VerifyConfig()

    with pytest.raises(ValidationError):
        config.timeout_seconds = 1.0  # type: ignore[misc]


def test_config_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        VerifyConfig(granularity=100)  # type: ignore[call-arg]


def test_config_rejects_non_positive_poll_interval() -> None:
    with pytest.raises(ValidationError):
        VerifyConfig(poll_interval_seconds=0)  # type: ignore[arg-type]


def test_merge_with_overrides_only_given_fields() -> None:
    base = VerifyConfig(timeout_seconds=2.0)

    merged = base.merge_with(poll_interval_seconds=0.05)

    assert merged.timeout_seconds == 2.0
    assert merged.poll_interval_seconds == 0.05
    assert isinstance(merged.poll_interval_seconds, PollIntervalSeconds)
    assert base.poll_interval_seconds == 0.1


def test_load_config_without_overrides_returns_defaults() -> None:
    assert load_config({}) == VerifyConfig()


def test_load_config_reads_environment_overrides() -> None:
    config = load_config({ENV_TIMEOUT_SECONDS: "2.5", ENV_POLL_INTERVAL_SECONDS: " 0.02 "})

    assert config.timeout_seconds == 2.5
    assert config.poll_interval_seconds == 0.02


def test_load_config_ignores_empty_values() -> None:
    assert load_config({ENV_TIMEOUT_SECONDS: "", ENV_POLL_INTERVAL_SECONDS: "  "}) == VerifyConfig()


def test_load_config_rejects_non_numeric_value() -> None:
    with pytest.raises(ConfigParseError, match=ENV_TIMEOUT_SECONDS):
        load_config({ENV_TIMEOUT_SECONDS: "soon"})


@pytest.mark.parametrize("value", ["0", "-0.1"])
def test_load_config_rejects_non_positive_poll_interval(value: str) -> None:
    with pytest.raises(ConfigParseError, match="must be > 0"):
        load_config({ENV_POLL_INTERVAL_SECONDS: value})


def test_get_default_config_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ENV_TIMEOUT_SECONDS, "0.75")

    assert get_default_config().timeout_seconds == 0.75
