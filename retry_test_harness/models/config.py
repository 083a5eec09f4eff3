"""Configuration for the retry layer."""

import tempfile
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

CRASH_LOG_DIR_NAME = "KuduXunitTestLog"

DISABLE_RETRY_ENV = "RETRY_HARNESS_DISABLE_RETRY"
LOG_DIR_ENV = "RETRY_HARNESS_LOG_DIR"


def default_log_dir() -> Path:
    """Directory for catastrophic failure logs under the system temp root."""
    return Path(tempfile.gettempdir()) / CRASH_LOG_DIR_NAME


class RetryConfig(BaseModel):
    """Settings controlling retries and crash logging."""

    model_config = ConfigDict(frozen=True)

    disable_retry: bool = Field(
        default=False, description="Run each test once, without buffering"
    )
    log_dir: Path = Field(
        default_factory=default_log_dir,
        description="Directory receiving catastrophic failure logs",
    )

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "RetryConfig":
        """Build configuration from environment variables.

        Unset variables keep their defaults. Boolean values are parsed by
        pydantic, so "1", "true", "yes" and "on" all enable the flag.
        """
        values: dict[str, str] = {}
        if (disable_retry := environ.get(DISABLE_RETRY_ENV)) is not None:
            values["disable_retry"] = disable_retry
        if log_dir := environ.get(LOG_DIR_ENV):
            values["log_dir"] = log_dir
        return cls.model_validate(values)
