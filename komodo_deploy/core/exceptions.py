"""Custom exceptions for komodo-deploy."""

from pathlib import Path
from typing import Any


class KomodoDeployError(Exception):
    """Base exception for komodo-deploy."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(KomodoDeployError):
    """Required configuration is missing or invalid."""

    pass


class ConfigReadError(ConfigError):
    """The environment bundle file could not be read."""

    def __init__(self, path: str | Path, reason: str):
        super().__init__(
            f"Cannot read environment file {path}: {reason}",
            {"path": str(path)},
        )
        self.path = Path(path)


class ApiError(KomodoDeployError):
    """A Komodo API call failed."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: Any = None,
        kind: str | None = None,
    ):
        details: dict[str, Any] = {"status": status}
        if kind:
            details["kind"] = kind
        if body is not None:
            details["response"] = body
        super().__init__(message, details)
        self.status = status
        self.body = body
        self.kind = kind


class BuildFailedError(KomodoDeployError):
    """The remote build reached a failure state."""

    def __init__(self, build: str, state: str):
        super().__init__(
            f"Build failed with state: {state}",
            {"build": build, "state": state},
        )
        self.state = state


class BuildTimeoutError(KomodoDeployError):
    """The remote build did not finish within the polling budget."""

    def __init__(self, build: str, attempts: int, interval: float):
        minutes = attempts * interval / 60
        super().__init__(
            f"Build did not complete within {minutes:g} minutes",
            {"build": build, "attempts": attempts, "interval": interval},
        )
        self.attempts = attempts


class CleanupError(KomodoDeployError):
    """A best-effort teardown step failed. Never fatal."""

    def __init__(self, step: str, resource: str, cause: BaseException):
        super().__init__(
            f"{step} failed for {resource}: {cause}",
            {"step": step, "resource": resource, "error": str(cause)},
        )
        self.step = step
        self.cause = cause


class ReportWriteError(KomodoDeployError):
    """The result record could not be persisted. Never escalated."""

    def __init__(self, path: str | Path, cause: BaseException):
        super().__init__(
            f"Failed to write deployment info to {path}: {cause}",
            {"path": str(path)},
        )
        self.cause = cause
