"""Unit tests for the build stage."""

import pytest

from komodo_deploy.core.exceptions import ApiError, BuildFailedError, BuildTimeoutError
from komodo_deploy.core.polling import RetryPolicy
from komodo_deploy.models.target import BuildTarget
from komodo_deploy.stages.build import BuildStage

BUILD_NAME = "webapp-build-feature-login"


def build_list(state: str | None) -> list[dict]:
    info = {"state": state} if state is not None else {}
    return [{"id": "build-1", "name": BUILD_NAME, "info": info}]


class TestBuildStage:
    """Tests for BuildStage."""

    @pytest.fixture
    def target(self, settings, branch, env_bundle) -> BuildTarget:
        return BuildTarget.from_settings(settings, branch, env_bundle)

    @pytest.fixture
    def stage(self, fake_komodo, sleeper) -> BuildStage:
        return BuildStage(fake_komodo, sleeper, RetryPolicy(max_attempts=20, interval=30.0))

    def test_stage_properties(self, stage: BuildStage):
        assert stage.name == "build"
        assert stage.description

    @pytest.mark.asyncio
    async def test_creates_builder_and_build(self, stage, target, fake_komodo):
        fake_komodo.scripted["ListBuilds"] = [[], build_list("complete")]

        output = await stage.execute(target)

        assert fake_komodo.kinds() == [
            "ListBuilders",
            "CreateBuilder",
            "ListBuilds",
            "CreateBuild",
            "RunBuild",
            "ListBuilds",
        ]
        builder = fake_komodo.params("CreateBuilder")
        assert builder == {
            "name": "srv-build_builder",
            "config": {"type": "Server", "params": {"server_id": "srv-build"}},
        }
        assert fake_komodo.params("RunBuild") == {"build": BUILD_NAME}
        assert output.build_name == BUILD_NAME
        assert output.state == "complete"
        assert output.image == "ghcr.io/acme/webapp:latest-feature-login"

    @pytest.mark.asyncio
    async def test_build_config(self, stage, target, fake_komodo):
        fake_komodo.resources["ListBuilders"] = [{"id": "builder-9", "name": "srv-build_builder"}]
        fake_komodo.scripted["ListBuilds"] = [[], build_list("Ok")]

        await stage.execute(target)

        config = fake_komodo.params("CreateBuild")["config"]
        assert config == {
            "server_id": "srv-build",
            "builder_id": "builder-9",
            "repo": "acme/webapp",
            "branch": "feature/login",
            "git_provider": "github.com",
            "git_https": True,
            "git_account": "acme",
            "dockerfile_path": "docker/Dockerfile",
            "docker_build_args": "BRANCH=feature/login API_URL=https://api.example.com FEATURE_FLAGS=beta",
            "image_registry": {"domain": "ghcr.io", "account": "acme"},
            "image_name": "webapp",
            "image_tag": "feature-login",
        }
        assert "CreateBuilder" not in fake_komodo.kinds()

    @pytest.mark.asyncio
    async def test_existing_build_is_updated(self, stage, target, fake_komodo):
        fake_komodo.resources["ListBuilders"] = [{"_id": {"$oid": "b0"}, "name": "srv-build_builder"}]
        fake_komodo.scripted["ListBuilds"] = [build_list(None), build_list("success")]

        output = await stage.execute(target)

        assert "CreateBuild" not in fake_komodo.kinds()
        update = fake_komodo.params("UpdateBuild")
        assert update["id"] == "build-1"
        assert update["config"]["builder_id"] == "b0"
        assert output.build_id == "build-1"

    @pytest.mark.asyncio
    async def test_polls_until_complete(self, stage, target, fake_komodo, sleeper):
        fake_komodo.scripted["ListBuilds"] = [
            [],
            build_list("running"),
            build_list("running"),
            build_list("running"),
            build_list("complete"),
        ]

        output = await stage.execute(target)

        polls = fake_komodo.kinds("read")[fake_komodo.kinds("read").index("ListBuilds") + 1 :]
        assert polls == ["ListBuilds"] * 4
        assert output.attempts == 4
        assert sleeper.delays == [30.0, 30.0, 30.0]

    @pytest.mark.asyncio
    async def test_unknown_state_keeps_waiting(self, stage, target, fake_komodo, sleeper):
        fake_komodo.scripted["ListBuilds"] = [[], [], build_list(None), build_list("complete")]

        output = await stage.execute(target)

        assert output.attempts == 3
        assert len(sleeper.delays) == 2

    @pytest.mark.asyncio
    async def test_failed_state_stops_immediately(self, stage, target, fake_komodo, sleeper):
        fake_komodo.scripted["ListBuilds"] = [[], build_list("failed"), build_list("complete")]

        with pytest.raises(BuildFailedError) as exc_info:
            await stage.execute(target)

        assert exc_info.value.state == "failed"
        assert fake_komodo.kinds().count("ListBuilds") == 2
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_read_error_during_polling_is_retried(self, stage, target, fake_komodo, sleeper):
        fake_komodo.scripted["ListBuilds"] = [
            [],
            ApiError("gateway timeout", status=504),
            build_list("complete"),
        ]

        output = await stage.execute(target)

        assert output.attempts == 2
        assert sleeper.delays == [30.0]

    @pytest.mark.asyncio
    async def test_read_error_on_final_attempt_is_fatal(self, fake_komodo, sleeper, target):
        stage = BuildStage(fake_komodo, sleeper, RetryPolicy(max_attempts=2, interval=1.0))
        fake_komodo.scripted["ListBuilds"] = [
            [],
            build_list("running"),
            ApiError("gateway timeout", status=504),
        ]

        with pytest.raises(ApiError):
            await stage.execute(target)

    @pytest.mark.asyncio
    async def test_timeout(self, fake_komodo, sleeper, target):
        stage = BuildStage(fake_komodo, sleeper, RetryPolicy(max_attempts=3, interval=30.0))
        fake_komodo.scripted["ListBuilds"] = [[]] + [build_list("running")] * 3

        with pytest.raises(BuildTimeoutError) as exc_info:
            await stage.execute(target)

        assert exc_info.value.attempts == 3
        assert "1.5 minutes" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_run_build_failure_propagates(self, stage, target, fake_komodo):
        fake_komodo.failures["RunBuild"] = ApiError("no such build", status=404)

        with pytest.raises(ApiError):
            await stage.execute(target)
