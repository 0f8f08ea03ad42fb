import sys
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

from poster_core.config_manager import PathsConfig

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
REDACTED = "***"


def redacting_patcher(secrets: Iterable[Optional[str]]):
    """Builds a loguru patcher that masks each secret in the record message."""
    values = [s for s in secrets if s]

    def patch(record):
        message = record["message"]
        for secret in values:
            if secret in message:
                message = message.replace(secret, REDACTED)
        record["message"] = message

    return patch


def setup_logger(
    paths: Optional[PathsConfig] = None,
    level: str = "INFO",
    secrets: Iterable[Optional[str]] = (),
) -> Any:
    """
    Configures loguru for the poster pipeline.

    Sinks: coloured stderr at ``level``, a rotating DEBUG file, a serialized
    JSON file and an error-only file, all under ``paths.log_dir`` with the
    configured rotation and retention. Every value in ``secrets`` (the
    generation API key) is masked before a record reaches any sink.
    """
    paths = paths or PathsConfig()
    log_path = Path(paths.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.configure(patcher=redacting_patcher(secrets))

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)
    file_opts = {"rotation": paths.log_rotation, "retention": paths.log_retention}
    logger.add(log_path / "posterflow.log", level="DEBUG", compression="zip", **file_opts)
    logger.add(log_path / "posterflow.json.log", level="INFO", serialize=True, **file_opts)
    logger.add(log_path / "error.log", level="ERROR", **file_opts)

    logger.info(f"Logging to {log_path.absolute()} (rotation {paths.log_rotation}, retention {paths.log_retention})")
    return logger
