"""Branch deployments to a Komodo server for CI pipelines."""

__version__ = "0.1.0"
