"""Command-line entry point."""

import asyncio
from typing import Optional

import typer

from komodo_deploy import __version__
from komodo_deploy.config import Settings, get_settings
from komodo_deploy.core.exceptions import KomodoDeployError
from komodo_deploy.core.naming import derive
from komodo_deploy.core.orchestrator import run_deployment
from komodo_deploy.models.branch import BranchContext
from komodo_deploy.models.kind import DeploymentKind
from komodo_deploy.parsers.env_file import load_env_file
from komodo_deploy.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

cli = typer.Typer(
    name="komodo-deploy",
    help="Deploy a branch to a Komodo server and record the result for CI.",
    add_completion=False,
)


def log_configuration(settings: Settings, build_image: bool) -> None:
    """Log the effective configuration, secrets masked."""
    logger.info(
        "config.loaded",
        version=__version__,
        komodo_url=settings.komodo_url,
        deployment_type=settings.deployment_type,
        base_name=settings.docker_imagebasename,
        branch_name=settings.branch_name,
        repo_name=settings.repo_name,
        server_id_deploy=settings.komodo_server_id_deploy or "NOT SET",
        server_id_build=settings.komodo_server_id_build or "NOT SET",
        builder_id=settings.komodo_builder_id,
        docker_registry=settings.docker_registry,
        docker_username=settings.docker_username,
        git_account=settings.git_account,
        build_image=build_image,
    )


def log_branch(ctx: BranchContext, base_name: str | None) -> None:
    logger.info(
        "branch.derived",
        resource_name=ctx.resource_name(base_name),
        host_port=ctx.host_port,
        docker_tag=ctx.docker_tag,
    )


@cli.command()
def deploy(
    branch: Optional[str] = typer.Argument(
        None, help="Branch to deploy. Defaults to BRANCH_NAME, then 'dev'."
    ),
    build: bool = typer.Option(
        False, "--build", help="Build the branch image before deploying."
    ),
) -> None:
    """Build (optionally) and deploy one branch."""
    settings = get_settings()
    if branch:
        settings = settings.model_copy(update={"branch_name": branch})

    configure_logging(settings)
    build_image = build or settings.build_image

    logger.info(
        "branch.selected",
        branch=settings.branch_name,
        source="argument" if branch else "environment",
    )
    log_configuration(settings, build_image)

    # Pre-flight: nothing is called or recorded if these fail
    try:
        settings.require()
        kind = DeploymentKind.parse(settings.deployment_type)
        env = load_env_file(settings.docker_env_file)
    except KomodoDeployError as e:
        logger.error("preflight.failed", error=e.message, **e.details)
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)

    ctx = derive(settings.branch_name)
    log_branch(ctx, settings.docker_imagebasename)

    try:
        asyncio.run(run_deployment(settings, ctx, env, kind, build_image))
    except Exception:
        # Already logged and recorded by the pipeline
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    cli()
