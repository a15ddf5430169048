"""Registry mapping deployment kinds to their deploy handlers."""

import asyncio
from functools import lru_cache

from komodo_deploy.core.polling import SleepFn
from komodo_deploy.models.kind import DeploymentKind
from komodo_deploy.services.komodo import ControlPlane
from komodo_deploy.stages.deploy import (
    ContainerHandler,
    DeploymentHandler,
    DeployStage,
    StackHandler,
)
from komodo_deploy.utils.logging import get_logger

logger = get_logger(__name__)


class StageRegistry:
    """Registry of deploy handlers keyed by deployment kind."""

    def __init__(self):
        self._handlers: dict[DeploymentKind, type[DeployStage]] = {}

    def register(self, kind: DeploymentKind, handler_class: type[DeployStage]) -> None:
        """Register the handler for a kind."""
        if kind in self._handlers:
            logger.warning("registry.overwrite", kind=kind.value)
        self._handlers[kind] = handler_class

    def get(self, kind: DeploymentKind) -> type[DeployStage] | None:
        """Get the handler class for a kind."""
        return self._handlers.get(kind)

    def create(
        self,
        kind: DeploymentKind,
        client: ControlPlane,
        sleep: SleepFn = asyncio.sleep,
    ) -> DeployStage:
        """Create the handler for a kind, bound to a client."""
        handler_class = self.get(kind)
        if handler_class is None:
            raise KeyError(f"No deploy handler registered for {kind.value}")
        return handler_class(client, sleep)

    def list_kinds(self) -> list[DeploymentKind]:
        return list(self._handlers)


@lru_cache
def get_stage_registry() -> StageRegistry:
    """Get the registry with the built-in handlers."""
    registry = StageRegistry()
    registry.register(DeploymentKind.DEPLOYMENT, DeploymentHandler)
    registry.register(DeploymentKind.STACK, StackHandler)
    registry.register(DeploymentKind.REPO_THEN_STACK, StackHandler)
    registry.register(DeploymentKind.REPO, StackHandler)
    registry.register(DeploymentKind.CONTAINER, ContainerHandler)
    return registry
