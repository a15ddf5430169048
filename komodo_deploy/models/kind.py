"""Deployment kinds."""

from enum import Enum

from komodo_deploy.core.exceptions import ConfigError


class DeploymentKind(str, Enum):
    """Value of ``DEPLOYMENT_TYPE``."""

    DEPLOYMENT = "deployment"
    STACK = "stack"
    REPO_THEN_STACK = "repo-then-stack"
    REPO = "repo"
    CONTAINER = "container"

    @classmethod
    def parse(cls, value: str) -> "DeploymentKind":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(kind.value for kind in cls)
            raise ConfigError(
                f"Unknown DEPLOYMENT_TYPE '{value}' (expected one of: {allowed})",
                {"deployment_type": value},
            ) from None

    @property
    def pulls_repo(self) -> bool:
        """Whether a stack run pulls the repo before deploying."""
        return self in (DeploymentKind.REPO_THEN_STACK, DeploymentKind.REPO)

    @property
    def uses_stack(self) -> bool:
        return self in (
            DeploymentKind.STACK,
            DeploymentKind.REPO_THEN_STACK,
            DeploymentKind.REPO,
        )
