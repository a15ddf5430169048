"""Inputs for the build and deploy stages, resolved from settings."""

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from komodo_deploy.models.branch import BranchContext
from komodo_deploy.models.env import EnvBundle
from komodo_deploy.models.kind import DeploymentKind

if TYPE_CHECKING:
    from komodo_deploy.config import Settings


class BuildTarget(BaseModel):
    """Everything needed to build the branch image on Komodo."""

    branch: BranchContext
    env: EnvBundle
    base_name: str | None = None
    repo_name: str | None = None
    git_account: str | None = None
    server_id: str | None = None
    dockerfile_path: str | None = None
    registry: str | None = None
    registry_account: str | None = None

    @classmethod
    def from_settings(
        cls, settings: "Settings", branch: BranchContext, env: EnvBundle
    ) -> "BuildTarget":
        return cls(
            branch=branch,
            env=env,
            base_name=settings.docker_imagebasename,
            repo_name=settings.repo_name,
            git_account=settings.git_account,
            server_id=settings.komodo_server_id_build,
            dockerfile_path=settings.docker_image,
            registry=settings.docker_registry,
            registry_account=settings.docker_username,
        )

    @property
    def builder_name(self) -> str:
        return f"{self.server_id}_builder"

    @property
    def build_name(self) -> str:
        return self.branch.build_name(self.base_name)

    @property
    def repo(self) -> str:
        """``account/repo``; REPO_NAME wins when it already names its owner."""
        if self.repo_name and "/" in self.repo_name:
            return self.repo_name
        return f"{self.git_account}/{self.repo_name}"

    @property
    def repo_account(self) -> str | None:
        if self.repo_name and "/" in self.repo_name:
            return self.repo_name.split("/")[0]
        return self.git_account

    @property
    def image(self) -> str:
        return (
            f"{self.registry}/{self.registry_account}/"
            f"{self.base_name}:latest-{self.branch.docker_tag}"
        )


class DeploymentTarget(BaseModel):
    """Everything needed to deploy the branch on Komodo."""

    kind: DeploymentKind
    branch: BranchContext
    env: EnvBundle
    base_name: str | None = None
    server_id: str | None = None
    registry: str | None = None
    registry_account: str | None = None
    repo_name: str | None = None
    pangolin_domain: str | None = None

    # Stack list fetched by the connectivity probe, reused by stack runs
    known_stacks: list[dict[str, Any]] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        kind: DeploymentKind,
        branch: BranchContext,
        env: EnvBundle,
    ) -> "DeploymentTarget":
        return cls(
            kind=kind,
            branch=branch,
            env=env,
            base_name=settings.docker_imagebasename,
            server_id=settings.komodo_server_id_deploy,
            registry=settings.docker_registry,
            registry_account=settings.docker_username,
            repo_name=settings.repo_name,
            pangolin_domain=settings.pangolin_domain_id,
        )

    @property
    def resource_name(self) -> str:
        return self.branch.resource_name(self.base_name)

    @property
    def image(self) -> str:
        """Registry image produced by the branch build."""
        return (
            f"{self.registry}/{self.registry_account}/"
            f"{self.base_name}:latest-{self.branch.docker_tag}"
        )

    @property
    def access_url(self) -> str:
        return f"https://{self.branch.host_port}.{self.pangolin_domain}"
