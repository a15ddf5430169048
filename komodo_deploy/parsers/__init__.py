"""Input file parsers."""

from komodo_deploy.parsers.env_file import EnvFileParser, load_env_file

__all__ = [
    "EnvFileParser",
    "load_env_file",
]
