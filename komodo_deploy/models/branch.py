"""Branch-derived deployment identifiers."""

from pydantic import BaseModel, ConfigDict, Field


class BranchContext(BaseModel):
    """Names, tag and port derived from one branch name."""

    model_config = ConfigDict(frozen=True)

    branch_name: str
    branch_suffix: str
    docker_tag: str
    host_port: int = Field(ge=3000, le=3999)

    def resource_name(self, base_name: str | None) -> str:
        """Stack and deployment name for this branch."""
        return f"{base_name}-{self.branch_suffix}"

    def build_name(self, base_name: str | None) -> str:
        return f"{base_name}-build-{self.branch_suffix}"
