"""Deploy stages, one per deployment kind.

Each handler applies idempotent create-or-update semantics against the
branch resource name and ends by triggering a deploy.
"""

from komodo_deploy.generators.compose import render_stack_compose
from komodo_deploy.models.payloads import (
    ContainerConfig,
    DeploymentConfig,
    ImageSource,
    PortMapping,
    StackConfig,
)
from komodo_deploy.models.target import DeploymentTarget
from komodo_deploy.services.komodo import find_by_name, resource_id
from komodo_deploy.stages.base import BaseStage, StageOutput, StepResult

STOP_SETTLE_SECONDS = 2.0
REMOVE_SETTLE_SECONDS = 1.0
STATUS_CHECK_DELAY_SECONDS = 10.0

CONTAINER_ENVIRONMENT = "BRANCH={branch}\nNODE_ENV=development\nPORT=3001"


class DeployOutput(StageOutput):
    """Output from a deploy stage."""

    resource_name: str
    created: bool
    update_id: str | None = None
    state: str | None = None


class DeployStage(BaseStage[DeploymentTarget, DeployOutput]):
    """Base for the per-kind deploy handlers."""

    @property
    def description(self) -> str:
        return f"Deploys the branch as a Komodo {self.name}"


class DeploymentHandler(DeployStage):
    """Bridge-networked deployment on the branch port.

    Komodo cannot replace a deployment atomically, so an existing one is
    stopped and removed first to release its port and container name.
    """

    @property
    def name(self) -> str:
        return "deployment"

    def config(self, target: DeploymentTarget) -> DeploymentConfig:
        return DeploymentConfig(
            server_id=target.server_id,
            image=ImageSource.of(target.image),
            ports=[PortMapping(local=str(target.branch.host_port))],
            environment=target.env.with_branch(target.branch.branch_name),
        )

    async def execute(self, input_data: DeploymentTarget) -> DeployOutput:
        name = input_data.resource_name
        port = input_data.branch.host_port
        self.logger.info("deployment.checking", deployment=name)

        deployments = await self.client.list_deployments()
        existing = find_by_name(deployments, name)
        config = self.config(input_data).to_params()
        warnings = []
        state = None

        if existing is not None:
            self.logger.info("deployment.updating", deployment=name, port=port)
            for step in await self.teardown(name):
                if step.error is not None:
                    warnings.append(step.error.details)

            await self.client.update_deployment(resource_id(existing), config)
            self.logger.info("deployment.updated", deployment=name)
            update = await self.client.deploy(name)
        else:
            self.logger.info("deployment.creating", deployment=name, port=port)
            created = await self.client.create_deployment(name, config)
            self.logger.info("deployment.created", deployment=name, deployment_id=resource_id(created))
            update = await self.client.deploy(name)

        update_id = resource_id(update)
        self.logger.info("deployment.deploy_started", deployment=name, update_id=update_id)

        if existing is None:
            state = await self.check_status(input_data)

        self.logger.info(
            "deployment.summary",
            branch=input_data.branch.branch_name,
            image=input_data.image,
            port=port,
            server_id=input_data.server_id,
            deployment=name,
            access_url=input_data.access_url,
        )
        return DeployOutput(
            resource_name=name,
            created=existing is None,
            update_id=update_id,
            state=state,
            warnings=warnings,
        )

    async def teardown(self, name: str) -> list[StepResult]:
        """Stop then remove the running container, ignoring API failures."""
        self.logger.info("deployment.stopping", deployment=name)
        stopped = await self.best_effort("StopDeployment", name, self.client.stop_deployment)
        if stopped.ok:
            self.logger.info("deployment.stopped", deployment=name)
        await self.sleep(STOP_SETTLE_SECONDS)

        self.logger.info("deployment.removing", deployment=name)
        removed = await self.best_effort("RemoveDeployment", name, self.client.remove_deployment)
        if removed.ok:
            self.logger.info("deployment.removed", deployment=name)
        await self.sleep(REMOVE_SETTLE_SECONDS)

        return [stopped, removed]

    async def check_status(self, target: DeploymentTarget) -> str | None:
        """Read the new deployment's state once, for the log only."""
        name = target.resource_name
        self.logger.info("deployment.status_wait", seconds=STATUS_CHECK_DELAY_SECONDS)
        await self.sleep(STATUS_CHECK_DELAY_SECONDS)

        try:
            current = find_by_name(await self.client.list_deployments(), name)
        except Exception as e:
            self.logger.warning("deployment.status_unavailable", deployment=name, error=str(e))
            return None

        info = (current or {}).get("info")
        if not info:
            return None

        state = info.get("state")
        if state == "running":
            self.logger.info("deployment.running", deployment=name)
        else:
            self.logger.warning(
                "deployment.not_running",
                deployment=name,
                state=state or "unknown",
                hints=[
                    f"docker logs {name}",
                    f"docker run --rm -it {target.image} sh",
                    f"docker run --rm {target.image} ls -la build/",
                    f"docker pull {target.image}",
                ],
            )
        return state


class StackHandler(DeployStage):
    """Compose stack, always deleted and recreated.

    Updating compose file contents in place proved unreliable, so a stack
    with the branch name is never updated, only replaced.
    """

    @property
    def name(self) -> str:
        return "stack"

    def config(self, target: DeploymentTarget) -> StackConfig:
        name = target.resource_name
        branch_name = target.branch.branch_name
        return StackConfig(
            server_id=target.server_id,
            project_name=name,
            file_contents=render_stack_compose(
                name,
                target.image,
                target.branch.host_port,
                target.env,
                branch_name,
            ),
            environment=target.env.env_blob(branch_name),
        )

    async def execute(self, input_data: DeploymentTarget) -> DeployOutput:
        name = input_data.resource_name
        self.logger.info("stack.checking", stack=name)

        stacks = input_data.known_stacks
        if stacks is None:
            stacks = await self.client.list_stacks()

        existing = find_by_name(stacks, name)
        if existing is not None:
            self.logger.info("stack.deleting", stack=name, stack_id=resource_id(existing))
            await self.client.delete_stack(resource_id(existing))
            self.logger.info("stack.deleted", stack=name)

        self.logger.info("stack.creating", stack=name)
        created = await self.client.create_stack(name, self.config(input_data).to_params())
        self.logger.info("stack.created", stack=name, stack_id=resource_id(created))

        # Not awaited to completion; DeployStack follows immediately
        if input_data.repo_name and input_data.kind.pulls_repo:
            self.logger.info("stack.repo_pulling", repo=input_data.repo_name)
            pull = await self.client.pull_repo(input_data.repo_name)
            self.logger.info("stack.repo_pull_started", update_id=resource_id(pull))

        self.logger.info("stack.deploying", stack=name)
        update = await self.client.deploy_stack(name)
        update_id = resource_id(update)
        self.logger.info("stack.deploy_started", stack=name, update_id=update_id)

        return DeployOutput(
            resource_name=name,
            created=existing is None,
            update_id=update_id,
        )


class ContainerHandler(DeployStage):
    """Host-networked container created once and redeployed every run."""

    @property
    def name(self) -> str:
        return "container"

    def config(self, target: DeploymentTarget) -> ContainerConfig:
        branch_name = target.branch.branch_name
        return ContainerConfig(
            server_id=target.server_id,
            image=ImageSource.of(f"{target.base_name}:{branch_name}"),
            environment=CONTAINER_ENVIRONMENT.format(branch=branch_name),
        )

    async def execute(self, input_data: DeploymentTarget) -> DeployOutput:
        name = input_data.resource_name
        self.logger.info("container.checking", deployment=name)

        existing = find_by_name(await self.client.list_deployments(), name)
        if existing is None:
            self.logger.info("container.creating", deployment=name)
            created = await self.client.create_deployment(name, self.config(input_data).to_params())
            self.logger.info("container.created", deployment=name, deployment_id=resource_id(created))
        else:
            self.logger.info("container.exists", deployment=name)

        self.logger.info("container.deploying", deployment=name)
        update = await self.client.deploy(name)
        update_id = resource_id(update)
        self.logger.info("container.deploy_started", deployment=name, update_id=update_id)

        return DeployOutput(
            resource_name=name,
            created=existing is None,
            update_id=update_id,
        )
