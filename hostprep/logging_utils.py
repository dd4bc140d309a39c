from __future__ import annotations

import logging
import os
from pathlib import Path

DEFAULT_OUTPUT_DIR = "/var/log/hostprep"
FALLBACK_OUTPUT_DIR = "hostprep-logs"

# Status tags shown next to INFO/WARNING/ERROR on the console and in the log.
RETRY = 22
SUCCESS = 25

logging.addLevelName(RETRY, "RETRY")
logging.addLevelName(SUCCESS, "SUCCESS")


def log_success(logger: logging.Logger, msg: str, *args: object) -> None:
    logger.log(SUCCESS, msg, *args)


def log_retry(logger: logging.Logger, msg: str, *args: object) -> None:
    logger.log(RETRY, msg, *args)


def log_filename(run_stamp: str) -> str:
    return f"hostprep_{run_stamp}.log"


def resolve_output_dir(output_dir: str = DEFAULT_OUTPUT_DIR) -> str:
    """Return output_dir if it can be created, else a local fallback.

    Both the log and the report live here; they share the fallback so the
    report's "output files" section points at real paths.
    """

    try:
        Path(output_dir).mkdir(parents=True, exist_ok=True)
        if os.access(output_dir, os.W_OK):
            return output_dir
    except OSError:
        pass
    fallback = Path.cwd() / FALLBACK_OUTPUT_DIR
    fallback.mkdir(parents=True, exist_ok=True)
    return str(fallback)


def configure_logging(
    output_dir: str,
    run_stamp: str,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging for one run.

    Every status-tagged message goes to a timestamped, append-only file
    under output_dir (hostprep_<stamp>.log) and, optionally, the console.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_hostprep_configured", False):
        return getattr(logger, "_hostprep_log_path")

    log_path = str(Path(output_dir) / log_filename(run_stamp))
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(message)s"))
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_hostprep_configured", True)
    setattr(logger, "_hostprep_log_path", log_path)
    setattr(logger, "_hostprep_handlers", handlers)

    logging.getLogger(__name__).info("Logging initialized (%s)", log_path)
    return log_path


def reset_logging() -> None:
    """Detach handlers installed by configure_logging()."""

    logger = logging.getLogger()
    if not getattr(logger, "_hostprep_configured", False):
        return
    for h in getattr(logger, "_hostprep_handlers", []):
        logger.removeHandler(h)
        h.close()
    setattr(logger, "_hostprep_handlers", [])
    setattr(logger, "_hostprep_configured", False)
