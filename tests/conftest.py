"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any

import pytest

from komodo_deploy.config import Settings
from komodo_deploy.core.naming import derive
from komodo_deploy.models.branch import BranchContext
from komodo_deploy.models.env import EnvBundle, EnvVar
from komodo_deploy.services.komodo import ControlPlane

READ_KINDS = ("ListStacks", "ListBuilders", "ListBuilds", "ListDeployments")


class FakeKomodo(ControlPlane):
    """In-memory control plane that records every call.

    ``resources`` answers reads. ``scripted`` queues one-off responses per
    read kind; queued exceptions are raised. ``failures`` makes a kind raise
    every time it is called.
    """

    def __init__(self):
        self.resources: dict[str, list[dict[str, Any]]] = {kind: [] for kind in READ_KINDS}
        self.scripted: dict[str, list[Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self._counter = 0

    def _next_id(self) -> str:
        self._counter += 1
        return f"{self._counter:024x}"

    def _record(self, endpoint: str, kind: str, params: dict[str, Any]) -> None:
        self.calls.append((endpoint, kind, params))
        if kind in self.failures:
            raise self.failures[kind]

    async def read(self, kind: str, params: dict[str, Any] | None = None) -> Any:
        self._record("read", kind, params or {})
        queue = self.scripted.get(kind)
        if queue:
            item = queue.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        return list(self.resources[kind])

    async def write(self, kind: str, params: dict[str, Any]) -> Any:
        self._record("write", kind, params)
        return {"_id": {"$oid": self._next_id()}, "name": params.get("name")}

    async def execute(self, kind: str, params: dict[str, Any]) -> Any:
        self._record("execute", kind, params)
        return {"id": f"update-{self._next_id()}"}

    def kinds(self, endpoint: str | None = None) -> list[str]:
        """Request kinds in call order, optionally for one endpoint."""
        return [kind for ep, kind, _ in self.calls if endpoint is None or ep == endpoint]

    def params(self, kind: str) -> dict[str, Any]:
        """Params of the last call of a kind."""
        for _, called, params in reversed(self.calls):
            if called == kind:
                return params
        raise AssertionError(f"{kind} was never called")


class SleepRecorder:
    """Sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_komodo() -> FakeKomodo:
    """Fresh fake control plane."""
    return FakeKomodo()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def result_path(tmp_path: Path) -> Path:
    """Result path inside an existing workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace / "deployment-info.json"


@pytest.fixture
def settings(result_path: Path) -> Settings:
    """Fully populated settings, independent of the process environment file."""
    return Settings(
        _env_file=None,
        komodo_url="https://komodo.example.com",
        komodo_api_key="key-1234567890",
        komodo_api_secret="s3cret",
        deployment_type="deployment",
        docker_imagebasename="webapp",
        branch_name="dev",
        repo_name="webapp",
        git_account="acme",
        komodo_server_id_deploy="srv-deploy",
        komodo_server_id_build="srv-build",
        docker_image="docker/Dockerfile",
        docker_registry="ghcr.io",
        docker_username="acme",
        pangolin_domain_id="preview.example.com",
        result_path=result_path,
        build_max_attempts=20,
        build_poll_interval=30.0,
        log_requests=False,
    )


@pytest.fixture
def branch() -> BranchContext:
    return derive("feature/login")


@pytest.fixture
def env_bundle() -> EnvBundle:
    return EnvBundle(
        variables=[
            EnvVar(variable="API_URL", value="https://api.example.com"),
            EnvVar(variable="FEATURE_FLAGS", value="beta"),
        ],
        source="docker.env",
    )


@pytest.fixture
def sample_env_file() -> str:
    """Sample docker env file content."""
    return """# Runtime configuration
API_URL=https://api.example.com
FEATURE_FLAGS=beta

# Secrets are injected at deploy time
SENTRY_DSN="https://abc@sentry.example.com/1"
"""
