"""Unit tests for settings."""

import pytest

from komodo_deploy.config import Settings
from komodo_deploy.core.exceptions import ConfigError


class TestSettings:
    """Tests for Settings."""

    @pytest.fixture
    def clean_env(self, monkeypatch):
        for name in (
            "KOMODO_URL",
            "KOMODO_API_KEY",
            "KOMODO_API_SECRET",
            "DEPLOYMENT_TYPE",
            "BRANCH_NAME",
            "BUILD_IMAGE",
        ):
            monkeypatch.delenv(name, raising=False)
        return monkeypatch

    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.deployment_type == "deployment"
        assert settings.branch_name == "dev"
        assert settings.build_image is False
        assert settings.docker_env_file == "docker.env"
        assert str(settings.result_path) == "/app/workspace/deployment-info.json"

    def test_reads_environment(self, clean_env):
        clean_env.setenv("KOMODO_URL", "https://komodo.example.com")
        clean_env.setenv("DEPLOYMENT_TYPE", "stack")
        clean_env.setenv("BUILD_IMAGE", "true")
        clean_env.setenv("DOCKER_IMAGEBASENAME", "webapp")

        settings = Settings(_env_file=None)

        assert settings.komodo_url == "https://komodo.example.com"
        assert settings.deployment_type == "stack"
        assert settings.build_image is True
        assert settings.docker_imagebasename == "webapp"

    def test_empty_build_image_means_no_build(self, clean_env):
        clean_env.setenv("BUILD_IMAGE", "")

        assert Settings(_env_file=None).build_image is False

    def test_empty_deployment_type_falls_back(self, clean_env):
        clean_env.setenv("DEPLOYMENT_TYPE", "")

        assert Settings(_env_file=None).deployment_type == "deployment"

    def test_empty_branch_name_falls_back(self, clean_env):
        clean_env.setenv("BRANCH_NAME", "")

        assert Settings(_env_file=None).branch_name == "dev"

    def test_missing_required(self, clean_env):
        settings = Settings(_env_file=None, komodo_api_key="key")

        assert settings.missing_required() == ["KOMODO_URL", "KOMODO_API_SECRET"]

    def test_require_names_first_missing(self, clean_env):
        settings = Settings(_env_file=None, komodo_url="https://komodo.example.com")

        with pytest.raises(ConfigError) as exc_info:
            settings.require()

        assert exc_info.value.message == "KOMODO_API_KEY is required in .env file"

    def test_require_passes(self, settings):
        settings.require()

    def test_masked_api_key(self, settings):
        assert settings.masked_api_key == "key-1234..."
