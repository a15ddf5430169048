"""Build stage.

Makes sure the branch image exists in the registry: resolves the builder,
creates or refreshes the branch build, runs it and waits for a terminal
state.
"""

import asyncio

from pydantic import BaseModel

from komodo_deploy.core.exceptions import ApiError, BuildFailedError, BuildTimeoutError
from komodo_deploy.core.polling import RetryPolicy, SleepFn, poll_until
from komodo_deploy.models.payloads import (
    BuildConfig,
    BuilderConfig,
    ImageRegistry,
    ServerBuilderParams,
)
from komodo_deploy.models.target import BuildTarget
from komodo_deploy.services.komodo import ControlPlane, find_by_name, resource_id
from komodo_deploy.stages.base import BaseStage, StageOutput

SUCCESS_STATES = frozenset({"complete", "success", "Ok"})
FAILURE_STATES = frozenset({"failed", "error"})


class BuildOutput(StageOutput):
    """Output from the build stage."""

    build_name: str
    build_id: str | None = None
    builder_id: str | None = None
    run_id: str | None = None
    state: str | None = None
    attempts: int = 0
    image: str


class BuildStage(BaseStage[BuildTarget, BuildOutput]):
    """Stage that builds the branch image on the build server.

    This stage:
    1. Finds or creates the ``<server>_builder`` builder
    2. Creates the branch build, or re-applies its config if it exists
    3. Runs the build
    4. Polls the build list until success, failure or timeout
    """

    def __init__(
        self,
        client: ControlPlane,
        sleep: SleepFn = asyncio.sleep,
        policy: RetryPolicy | None = None,
    ):
        super().__init__(client, sleep)
        self.policy = policy or RetryPolicy()

    @property
    def name(self) -> str:
        return "build"

    @property
    def description(self) -> str:
        return "Builds and pushes the branch image through a Komodo build"

    async def execute(self, input_data: BuildTarget) -> BuildOutput:
        self.logger.info("build.started", branch=input_data.branch.branch_name)

        builder_id = await self._ensure_builder(input_data)
        build_id = await self._upsert_build(input_data, builder_id)

        build_name = input_data.build_name
        self.logger.info(
            "build.triggering",
            build=build_name,
            image=f"{input_data.base_name}:{input_data.branch.docker_tag}",
        )
        update = await self.client.run_build(build_name)
        run_id = resource_id(update)
        self.logger.info("build.triggered", build=build_name, update_id=run_id)

        state, attempts = await self._wait_for_build(build_name)

        self.logger.info("build.completed", build=build_name, image=input_data.image)
        return BuildOutput(
            build_name=build_name,
            build_id=build_id,
            builder_id=builder_id,
            run_id=run_id,
            state=state,
            attempts=attempts,
            image=input_data.image,
        )

    async def _ensure_builder(self, target: BuildTarget) -> str | None:
        """Resolve the builder by exact name, creating it if missing."""
        builders = await self.client.list_builders()
        self.logger.info(
            "build.builders_listed",
            count=len(builders),
            builders=[f"{b.get('name')} ({resource_id(b)})" for b in builders],
        )

        name = target.builder_name
        builder = find_by_name(builders, name)
        if builder is None:
            self.logger.info("build.builder_creating", builder=name)
            config = BuilderConfig(params=ServerBuilderParams(server_id=target.server_id))
            builder = await self.client.create_builder(name, config.to_params())
            self.logger.info("build.builder_created", builder=name)
        else:
            self.logger.info("build.builder_found", builder=name)

        builder_id = resource_id(builder)
        self.logger.info("build.builder_selected", builder=name, builder_id=builder_id)
        return builder_id

    def _build_config(self, target: BuildTarget, builder_id: str | None) -> BuildConfig:
        return BuildConfig(
            server_id=target.server_id,
            builder_id=builder_id,
            repo=target.repo,
            branch=target.branch.branch_name,
            git_account=target.repo_account,
            dockerfile_path=target.dockerfile_path,
            docker_build_args=target.env.build_args(target.branch.branch_name),
            image_registry=ImageRegistry(
                domain=target.registry,
                account=target.registry_account,
            ),
            image_name=target.base_name,
            image_tag=target.branch.docker_tag,
        )

    async def _upsert_build(self, target: BuildTarget, builder_id: str | None) -> str | None:
        """Create the branch build, or refresh its config when it exists."""
        builds = await self.client.list_builds()
        name = target.build_name
        config = self._build_config(target, builder_id).to_params()

        existing = find_by_name(builds, name)
        if existing is not None:
            build_id = resource_id(existing)
            self.logger.info("build.updating", build=name, build_id=build_id)
            await self.client.update_build(build_id, config)
            self.logger.info("build.updated", build=name)
            return build_id

        self.logger.info("build.creating", build=name)
        created = await self.client.create_build(name, config)
        build_id = resource_id(created)
        self.logger.info("build.created", build=name, build_id=build_id)
        return build_id

    async def _wait_for_build(self, build_name: str) -> tuple[str | None, int]:
        policy = self.policy

        async def probe(attempt: int) -> str | None:
            self.logger.info(
                "build.poll.attempt",
                attempt=attempt,
                max_attempts=policy.max_attempts,
            )
            build = find_by_name(await self.client.list_builds(), build_name)
            info = (build or {}).get("info") or {}
            return info.get("state")

        def is_done(state: str | None) -> bool:
            if state in SUCCESS_STATES:
                return True
            if state in FAILURE_STATES:
                self.logger.error("build.failed", build=build_name, state=state)
                raise BuildFailedError(build_name, state)
            self.logger.info(
                "build.poll.waiting",
                state=state or "unknown",
                wait_seconds=policy.interval,
            )
            return False

        self.logger.info(
            "build.waiting",
            build=build_name,
            budget_seconds=policy.budget_seconds,
        )
        result = await poll_until(
            probe,
            is_done,
            policy,
            sleep=self.sleep,
            retry_on=(ApiError,),
            label="build.poll",
        )
        if not result.done:
            raise BuildTimeoutError(build_name, policy.max_attempts, policy.interval)
        return result.value, result.attempts
