"""Base stage class for deployment steps."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel, Field

from komodo_deploy.core.exceptions import ApiError, CleanupError
from komodo_deploy.core.polling import SleepFn
from komodo_deploy.services.komodo import ControlPlane
from komodo_deploy.utils.logging import get_logger

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


@dataclass
class StepResult:
    """Outcome of a best-effort step. Failures carry their CleanupError."""

    step: str
    ok: bool
    error: CleanupError | None = None


class StageOutput(BaseModel):
    """Fields every stage reports back."""

    warnings: list[dict[str, Any]] = Field(default_factory=list)


class BaseStage(ABC, Generic[InputT, OutputT]):
    """Base class for steps run against the Komodo API.

    Subclasses implement:
    - name: Stage identifier
    - description: What the stage does
    - execute(): Main execution logic
    """

    def __init__(self, client: ControlPlane, sleep: SleepFn = asyncio.sleep):
        self.client = client
        self.sleep = sleep
        self.logger = get_logger(f"stage.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage name/identifier."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this stage does."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """Execute the stage.

        Args:
            input_data: Typed input for this stage

        Returns:
            Typed output from this stage
        """
        pass

    async def best_effort(
        self,
        step: str,
        resource: str,
        call: Callable[[str], Awaitable[Any]],
    ) -> StepResult:
        """Run a teardown call whose API failure must not stop the run."""
        try:
            await call(resource)
        except ApiError as e:
            error = CleanupError(step, resource, e)
            self.logger.warning(f"{self.name}.cleanup_failed", **error.details)
            return StepResult(step=step, ok=False, error=error)
        return StepResult(step=step, ok=True)
