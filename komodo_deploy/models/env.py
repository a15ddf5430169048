"""Environment variable bundle models."""

from pydantic import BaseModel, Field


class EnvVar(BaseModel):
    """One variable as Komodo expects it in deployment configs."""

    variable: str
    value: str


class EnvBundle(BaseModel):
    """Ordered variables from the docker env file.

    File order is kept verbatim, duplicates included.
    """

    variables: list[EnvVar] = Field(default_factory=list)
    source: str | None = None

    def __len__(self) -> int:
        return len(self.variables)

    def pairs(self) -> list[str]:
        return [f"{env.variable}={env.value}" for env in self.variables]

    def with_branch(self, branch_name: str) -> list[EnvVar]:
        """Variables followed by ``BRANCH``."""
        return [*self.variables, EnvVar(variable="BRANCH", value=branch_name)]

    def build_args(self, branch_name: str) -> str:
        """Space-separated docker build args, ``BRANCH`` first."""
        return " ".join([f"BRANCH={branch_name}", *self.pairs()])

    def env_blob(self, branch_name: str) -> str:
        """Newline-separated ``KEY=VALUE`` lines ending with ``BRANCH``."""
        return "\n".join([*self.pairs(), f"BRANCH={branch_name}"])
