"""Result record writer for the CI pipeline."""

from pathlib import Path

from komodo_deploy.config import DEFAULT_RESULT_PATH
from komodo_deploy.core.exceptions import ReportWriteError
from komodo_deploy.models.result import DeploymentResultRecord
from komodo_deploy.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_result_path(path: Path = DEFAULT_RESULT_PATH) -> Path:
    """Return ``path``, or its file name in the CWD when its directory is missing."""
    base_dir = path.parent
    try:
        if base_dir.is_dir():
            return path
        logger.info("report.fallback", reason="missing_directory", directory=str(base_dir))
    except OSError as e:
        logger.info("report.fallback", reason="inaccessible_directory", directory=str(base_dir), error=str(e))
    return Path(path.name)


def write_result(
    record: DeploymentResultRecord,
    path: Path = DEFAULT_RESULT_PATH,
) -> Path | None:
    """Persist the result record as pretty-printed JSON.

    Failures are logged and swallowed so they never replace the run's
    outcome. Returns the written path, or None if nothing was written.
    """
    kind = "success" if record.success else "failure"
    target = resolve_result_path(path)
    content = record.to_json()

    logger.info("report.writing", kind=kind, path=str(target), content=content)

    try:
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        error = ReportWriteError(target, e)
        logger.error("report.write_failed", error=error.message, **error.details)
        return None

    if target.exists():
        logger.info("report.written", kind=kind, path=str(target))
    else:
        logger.error("report.missing_after_write", kind=kind, path=str(target))

    return target
