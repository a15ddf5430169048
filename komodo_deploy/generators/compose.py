"""Compose file generator for branch stacks."""

from komodo_deploy.models.env import EnvBundle

INDENT = "      "


def render_environment(env: EnvBundle, branch_name: str) -> str:
    """YAML ``environment:`` mapping body, ``BRANCH`` last."""
    return "\n".join(
        f"{INDENT}{var.variable}: {var.value}" for var in env.with_branch(branch_name)
    )


def render_stack_compose(
    stack_name: str,
    image: str,
    host_port: int,
    env: EnvBundle,
    branch_name: str,
) -> str:
    """Single-service compose file bound to loopback on the branch port."""
    return (
        "services:\n"
        f"  {stack_name}:\n"
        f"    container_name: {stack_name}\n"
        f"    image: {image}\n"
        "    restart: unless-stopped\n"
        "    ports:\n"
        f"      - '127.0.0.1:{host_port}:3000'\n"
        "    environment:\n"
        f"{render_environment(env, branch_name)}"
    )
