"""Deployment stages run against the Komodo API."""

from komodo_deploy.stages.base import BaseStage, StageOutput, StepResult
from komodo_deploy.stages.build import BuildOutput, BuildStage
from komodo_deploy.stages.deploy import (
    ContainerHandler,
    DeploymentHandler,
    DeployOutput,
    DeployStage,
    StackHandler,
)
from komodo_deploy.stages.registry import StageRegistry, get_stage_registry

__all__ = [
    "BaseStage",
    "StageOutput",
    "StepResult",
    "BuildOutput",
    "BuildStage",
    "ContainerHandler",
    "DeploymentHandler",
    "DeployOutput",
    "DeployStage",
    "StackHandler",
    "StageRegistry",
    "get_stage_registry",
]
