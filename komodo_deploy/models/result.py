"""Deployment result record read by the CI pipeline."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DeploymentResultRecord(BaseModel):
    """Outcome of one run. Serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    branch: str
    host_port: int | None = None
    resource_name: str | None = None
    image_tag: str | None = None
    deployment_type: str
    error: str | None = None

    @classmethod
    def succeeded(
        cls,
        branch: str,
        host_port: int,
        resource_name: str,
        image_tag: str,
        deployment_type: str,
    ) -> "DeploymentResultRecord":
        return cls(
            success=True,
            branch=branch,
            host_port=host_port,
            resource_name=resource_name,
            image_tag=image_tag,
            deployment_type=deployment_type,
        )

    @classmethod
    def failed(
        cls, branch: str | None, error: str | None, deployment_type: str | None
    ) -> "DeploymentResultRecord":
        return cls(
            success=False,
            branch=branch or "unknown",
            error=error or "Unknown error",
            deployment_type=deployment_type or "unknown",
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
