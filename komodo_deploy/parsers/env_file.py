"""Docker env file parser.

Reads the ``KEY=VALUE`` file whose variables are injected into both the
image build args and the deployment environment.
"""

from pathlib import Path

from dotenv.parser import parse_stream

from komodo_deploy.core.exceptions import ConfigReadError
from komodo_deploy.models.env import EnvBundle, EnvVar
from komodo_deploy.utils.logging import get_logger

logger = get_logger(__name__)


class EnvFileParser:
    """Parser for ``.env``-style files.

    Comment and blank lines are skipped, values are taken literally (no
    ``${VAR}`` expansion) and repeated keys are all kept in file order.
    """

    def parse(self, content: str, source: str | None = None) -> EnvBundle:
        """Parse env file content into an ordered bundle."""
        import io

        variables: list[EnvVar] = []
        for binding in parse_stream(io.StringIO(content)):
            if binding.error:
                logger.warning(
                    "env_file.unparsable_line",
                    source=source,
                    line=binding.original.line,
                )
                continue
            if binding.key is None:
                continue
            if binding.value is None:
                # A bare KEY without '=' carries no value to inject
                logger.warning("env_file.missing_value", source=source, key=binding.key)
                continue
            variables.append(EnvVar(variable=binding.key, value=binding.value))

        return EnvBundle(variables=variables, source=source)

    def load(self, path: str | Path) -> EnvBundle:
        """Read and parse an env file from disk."""
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigReadError(path, "file not found") from None
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigReadError(path, str(e)) from e

        bundle = self.parse(content, source=str(path))
        logger.info("env_file.loaded", path=str(path), count=len(bundle))
        return bundle


def load_env_file(path: str | Path) -> EnvBundle:
    """Convenience function to load a docker env file."""
    return EnvFileParser().load(path)
