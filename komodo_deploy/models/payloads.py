"""Request payloads for Komodo write calls.

Field names follow the Komodo resource config schema, so ``model_dump``
output is sent as-is. Unset optional fields are dropped from the request.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from komodo_deploy.models.env import EnvVar

GIT_PROVIDER = "github.com"
CONTAINER_PORT = "3000"
LOOPBACK = "127.0.0.1"


class KomodoPayload(BaseModel):
    """Base for config objects sent to the API."""

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ServerBuilderParams(BaseModel):
    server_id: str | None = None


class BuilderConfig(KomodoPayload):
    """Builder that runs image builds on a server."""

    type: Literal["Server"] = "Server"
    params: ServerBuilderParams


class ImageRegistry(BaseModel):
    domain: str | None = None
    account: str | None = None


class BuildConfig(KomodoPayload):
    """How to build and tag the branch image."""

    server_id: str | None = None
    builder_id: str | None = None
    repo: str
    branch: str
    git_provider: str = GIT_PROVIDER
    git_https: bool = True
    git_account: str | None = None
    dockerfile_path: str | None = None
    docker_build_args: str
    image_registry: ImageRegistry
    image_name: str | None = None
    image_tag: str


class ImageParams(BaseModel):
    image: str


class ImageSource(BaseModel):
    type: Literal["Image"] = "Image"
    params: ImageParams

    @classmethod
    def of(cls, image: str) -> "ImageSource":
        return cls(params=ImageParams(image=image))


class PortMapping(BaseModel):
    local: str
    container: str = CONTAINER_PORT
    protocol: str = "tcp"
    bind_ip: str = LOOPBACK


class DeploymentConfig(KomodoPayload):
    """Single-container deployment on a bridge network."""

    server_id: str | None = None
    image: ImageSource
    network: str = "bridge"
    ports: list[PortMapping]
    environment: list[EnvVar] = Field(default_factory=list)
    restart: str = "unless-stopped"


class ContainerConfig(KomodoPayload):
    """Host-networked container that follows its image tag."""

    server_id: str | None = None
    image: ImageSource
    network: str = "host"
    restart: str = "unless-stopped"
    environment: str
    ports: str = "3001:3000"
    auto_update: bool = True
    poll_for_updates: bool = True


class StackConfig(KomodoPayload):
    """Compose stack with its rendered compose file."""

    server_id: str | None = None
    project_name: str
    file_contents: str
    environment: str
