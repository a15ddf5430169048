"""Data models for komodo-deploy."""

from komodo_deploy.models.branch import BranchContext
from komodo_deploy.models.env import EnvBundle, EnvVar
from komodo_deploy.models.kind import DeploymentKind
from komodo_deploy.models.payloads import (
    BuildConfig,
    BuilderConfig,
    ContainerConfig,
    DeploymentConfig,
    ImageRegistry,
    ImageSource,
    PortMapping,
    ServerBuilderParams,
    StackConfig,
)
from komodo_deploy.models.result import DeploymentResultRecord
from komodo_deploy.models.target import BuildTarget, DeploymentTarget

__all__ = [
    # Branch models
    "BranchContext",
    "DeploymentKind",
    # Environment models
    "EnvBundle",
    "EnvVar",
    # API payloads
    "BuildConfig",
    "BuilderConfig",
    "ContainerConfig",
    "DeploymentConfig",
    "ImageRegistry",
    "ImageSource",
    "PortMapping",
    "ServerBuilderParams",
    "StackConfig",
    # Stage inputs
    "BuildTarget",
    "DeploymentTarget",
    # Result
    "DeploymentResultRecord",
]
