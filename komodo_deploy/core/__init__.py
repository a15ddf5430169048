"""Core functionality for komodo-deploy."""

from komodo_deploy.core.exceptions import (
    ApiError,
    BuildFailedError,
    BuildTimeoutError,
    CleanupError,
    ConfigError,
    ConfigReadError,
    KomodoDeployError,
    ReportWriteError,
)
from komodo_deploy.core.naming import derive
from komodo_deploy.core.polling import PollResult, RetryPolicy, poll_until

__all__ = [
    "ApiError",
    "BuildFailedError",
    "BuildTimeoutError",
    "CleanupError",
    "ConfigError",
    "ConfigReadError",
    "KomodoDeployError",
    "ReportWriteError",
    "derive",
    "PollResult",
    "RetryPolicy",
    "poll_until",
]
