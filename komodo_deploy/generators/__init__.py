"""File generators."""

from komodo_deploy.generators.compose import render_environment, render_stack_compose

__all__ = [
    "render_environment",
    "render_stack_compose",
]
