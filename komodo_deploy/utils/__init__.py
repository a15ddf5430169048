"""Utility functions for komodo-deploy."""

from komodo_deploy.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
