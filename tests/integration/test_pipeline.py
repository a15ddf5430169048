"""Integration tests for the deployment pipeline."""

import json

import pytest

from komodo_deploy.core.exceptions import ApiError, BuildFailedError
from komodo_deploy.core.naming import derive
from komodo_deploy.core.orchestrator import DeployPipeline
from komodo_deploy.models.kind import DeploymentKind


def build_list(name: str, state: str) -> list[dict]:
    return [{"id": "build-1", "name": name, "info": {"state": state}}]


class TestDeployPipeline:
    """Tests for DeployPipeline."""

    @pytest.fixture
    def make_pipeline(self, settings, env_bundle, fake_komodo, sleeper):
        def factory(kind=DeploymentKind.DEPLOYMENT, branch="dev", build_image=False):
            return DeployPipeline(
                settings,
                fake_komodo,
                derive(branch),
                env_bundle,
                kind,
                build_image=build_image,
                sleep=sleeper,
            )

        return factory

    @pytest.mark.asyncio
    async def test_deployment_success_record(self, make_pipeline, fake_komodo, result_path):
        record = await make_pipeline().run()

        assert record.success is True
        assert fake_komodo.kinds()[0] == "ListStacks"
        data = json.loads(result_path.read_text())
        assert data == {
            "success": True,
            "branch": "dev",
            "hostPort": 3349,
            "resourceName": "webapp-dev",
            "imageTag": "dev",
            "deploymentType": "deployment",
        }

    @pytest.mark.asyncio
    async def test_build_runs_before_deploy(self, make_pipeline, fake_komodo):
        fake_komodo.scripted["ListBuilds"] = [[], build_list("webapp-build-dev", "complete")]

        await make_pipeline(build_image=True).run()

        kinds = fake_komodo.kinds()
        assert kinds.index("RunBuild") < kinds.index("CreateDeployment")

    @pytest.mark.asyncio
    async def test_no_build_unless_requested(self, make_pipeline, fake_komodo):
        await make_pipeline().run()

        assert "ListBuilders" not in fake_komodo.kinds()
        assert "RunBuild" not in fake_komodo.kinds()

    @pytest.mark.asyncio
    async def test_stack_reuses_probe_listing(self, make_pipeline, fake_komodo):
        fake_komodo.resources["ListStacks"] = [{"id": "stack-1", "name": "webapp-dev"}]

        record = await make_pipeline(kind=DeploymentKind.STACK).run()

        assert fake_komodo.kinds() == ["ListStacks", "DeleteStack", "CreateStack", "DeployStack"]
        assert record.resource_name == "webapp-dev"
        assert record.deployment_type == "stack"

    @pytest.mark.asyncio
    async def test_container_record(self, make_pipeline, result_path):
        record = await make_pipeline(kind=DeploymentKind.CONTAINER, branch="Feature/X_1").run()

        assert record.resource_name == "webapp-feature-x-1"
        assert json.loads(result_path.read_text())["deploymentType"] == "container"

    @pytest.mark.asyncio
    async def test_build_failure_writes_failure_record(self, make_pipeline, fake_komodo, result_path):
        fake_komodo.scripted["ListBuilds"] = [[], build_list("webapp-build-dev", "failed")]

        with pytest.raises(BuildFailedError):
            await make_pipeline(build_image=True).run()

        data = json.loads(result_path.read_text())
        assert data == {
            "success": False,
            "branch": "dev",
            "deploymentType": "deployment",
            "error": "Build failed with state: failed",
        }
        assert "CreateDeployment" not in fake_komodo.kinds()

    @pytest.mark.asyncio
    async def test_probe_failure_writes_failure_record(self, make_pipeline, fake_komodo, result_path):
        fake_komodo.failures["ListStacks"] = ApiError("unauthorized", status=401)

        with pytest.raises(ApiError):
            await make_pipeline().run()

        data = json.loads(result_path.read_text())
        assert data["success"] is False
        assert data["error"] == "unauthorized"
        assert fake_komodo.kinds() == ["ListStacks"]

    @pytest.mark.asyncio
    async def test_cleanup_failures_do_not_fail_run(self, make_pipeline, fake_komodo, result_path):
        fake_komodo.resources["ListDeployments"] = [{"id": "dep-1", "name": "webapp-dev"}]
        fake_komodo.failures["StopDeployment"] = ApiError("not running", status=500)

        record = await make_pipeline().run()

        assert record.success is True
        assert json.loads(result_path.read_text())["success"] is True
