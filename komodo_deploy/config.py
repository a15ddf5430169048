"""Deployment configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from komodo_deploy.core.exceptions import ConfigError

# Load .env file and override existing env vars
load_dotenv(override=True)

DEFAULT_RESULT_PATH = Path("/app/workspace/deployment-info.json")

REQUIRED_VARIABLES = ("komodo_url", "komodo_api_key", "komodo_api_secret")


class Settings(BaseSettings):
    """Deployment settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Komodo API
    komodo_url: str = Field(default="")
    komodo_api_key: str = Field(default="")
    komodo_api_secret: str = Field(default="")
    request_timeout: float = 30.0

    # What to deploy
    deployment_type: str = "deployment"
    docker_imagebasename: str | None = None
    branch_name: str = "dev"
    repo_name: str | None = None
    git_account: str | None = None

    # Servers
    komodo_server_id_deploy: str | None = None
    komodo_server_id_build: str | None = None
    komodo_builder_id: str | None = None

    # Image build
    build_image: bool = False
    docker_image: str | None = None  # dockerfile path
    docker_registry: str | None = None
    docker_username: str | None = None
    docker_env_file: str = "docker.env"
    build_max_attempts: int = 20
    build_poll_interval: float = 30.0

    # Public routing
    pangolin_domain_id: str | None = None

    # Result record read by the CI pipeline
    result_path: Path = DEFAULT_RESULT_PATH

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_requests: bool = True

    def missing_required(self) -> list[str]:
        """Names of required variables that are unset, in check order."""
        return [name.upper() for name in REQUIRED_VARIABLES if not getattr(self, name)]

    def require(self) -> None:
        """Raise ConfigError for the first missing required variable."""
        missing = self.missing_required()
        if missing:
            raise ConfigError(
                f"{missing[0]} is required in .env file",
                {"missing": missing},
            )

    @property
    def masked_api_key(self) -> str:
        return f"{self.komodo_api_key[:8]}..."


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
