"""Deployment pipeline.

Runs one branch deployment in sequence: connectivity probe, optional image
build, the deploy handler for the configured kind, and the result record.
"""

import asyncio
from contextlib import AsyncExitStack

from komodo_deploy.config import Settings
from komodo_deploy.core.exceptions import ApiError
from komodo_deploy.core.polling import RetryPolicy, SleepFn
from komodo_deploy.models.branch import BranchContext
from komodo_deploy.models.env import EnvBundle
from komodo_deploy.models.kind import DeploymentKind
from komodo_deploy.models.result import DeploymentResultRecord
from komodo_deploy.models.target import BuildTarget, DeploymentTarget
from komodo_deploy.services.komodo import ControlPlane, KomodoClient
from komodo_deploy.stages.build import BuildOutput, BuildStage
from komodo_deploy.stages.deploy import DeployOutput
from komodo_deploy.stages.registry import StageRegistry, get_stage_registry
from komodo_deploy.utils.logging import get_logger
from komodo_deploy.utils.report import write_result


class DeployPipeline:
    """Orchestrates one deployment run.

    Pipeline phases:
    1. probe - ListStacks with request logging, to fail fast on bad credentials
    2. build - only when an image build was requested
    3. deploy - the handler selected for the deployment kind
    4. report - the result record, on success and on failure
    """

    def __init__(
        self,
        settings: Settings,
        client: ControlPlane,
        branch: BranchContext,
        env: EnvBundle,
        kind: DeploymentKind,
        build_image: bool = False,
        sleep: SleepFn = asyncio.sleep,
        registry: StageRegistry | None = None,
    ):
        self.settings = settings
        self.client = client
        self.branch = branch
        self.env = env
        self.kind = kind
        self.build_image = build_image
        self.logger = get_logger("pipeline")

        self.builder = BuildStage(
            client,
            sleep,
            RetryPolicy(
                max_attempts=settings.build_max_attempts,
                interval=settings.build_poll_interval,
            ),
        )
        self.handler = (registry or get_stage_registry()).create(kind, client, sleep)

    async def run(self) -> DeploymentResultRecord:
        """Run the complete pipeline.

        Returns:
            The success record, already written to disk

        Raises:
            Exception: whatever stopped the run, after the failure record
                has been written
        """
        self.logger.info(
            "pipeline.started",
            branch=self.branch.branch_name,
            kind=self.kind.value,
            build=self.build_image,
        )

        try:
            stacks = await self._probe()

            if self.build_image:
                await self._run_build()

            output = await self._run_deploy(stacks)
        except Exception as e:
            details = getattr(e, "details", None)
            self.logger.error(
                "pipeline.failed",
                error=str(e),
                error_type=type(e).__name__,
                details=details,
                exc_info=True,
            )
            write_result(
                DeploymentResultRecord.failed(self.branch.branch_name, str(e), self.kind.value),
                self.settings.result_path,
            )
            raise

        if output.warnings:
            self.logger.warning("run.warnings", count=len(output.warnings), warnings=output.warnings)

        record = DeploymentResultRecord.succeeded(
            branch=self.branch.branch_name,
            host_port=self.branch.host_port,
            resource_name=output.resource_name,
            image_tag=self.branch.docker_tag,
            deployment_type=self.kind.value,
        )
        self.logger.info(
            "pipeline.completed",
            resource_name=output.resource_name,
            update_id=output.update_id,
        )
        write_result(record, self.settings.result_path)
        return record

    async def _probe(self) -> list[dict]:
        """List stacks, logging the raw requests when enabled."""
        self.logger.info("pipeline.connecting", url=self.settings.komodo_url, api_key=self.settings.masked_api_key)

        async with AsyncExitStack() as scope:
            if self.settings.log_requests:
                await scope.enter_async_context(self.client.request_logging())
            try:
                stacks = await self.client.list_stacks()
            except ApiError as e:
                self.logger.error(
                    "pipeline.connection_failed",
                    status=e.status,
                    message=e.message,
                    response=e.body,
                )
                raise

        self.logger.info("pipeline.connected", stacks=len(stacks))
        return stacks

    async def _run_build(self) -> BuildOutput:
        target = BuildTarget.from_settings(self.settings, self.branch, self.env)
        return await self.builder.execute(target)

    async def _run_deploy(self, stacks: list[dict]) -> DeployOutput:
        target = DeploymentTarget.from_settings(self.settings, self.kind, self.branch, self.env)
        target.known_stacks = stacks
        return await self.handler.execute(target)


async def run_deployment(
    settings: Settings,
    branch: BranchContext,
    env: EnvBundle,
    kind: DeploymentKind,
    build_image: bool = False,
) -> DeploymentResultRecord:
    """Open a Komodo client and run one deployment with it."""
    async with KomodoClient(
        settings.komodo_url,
        settings.komodo_api_key,
        settings.komodo_api_secret,
        timeout=settings.request_timeout,
    ) as client:
        pipeline = DeployPipeline(settings, client, branch, env, kind, build_image)
        return await pipeline.run()
