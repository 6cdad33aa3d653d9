from __future__ import annotations

import logging
import os
from pathlib import Path

DEFAULT_LOG_PATH = str(Path.home() / ".cache" / "cli-reinstaller" / "reinstall.log")
FALLBACK_LOG_NAME = "cli-reinstaller.log"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(message)s"


def _open_log_file(log_path: str) -> tuple[logging.FileHandler, str]:
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging for one reinstall run.

    The log file always receives DEBUG, so captured command output is kept
    even when the console is quiet. `level` only applies to the console.

    If the requested log location is not writable, a file in the working
    directory is used instead. Returns the path actually written to.
    """

    root = logging.getLogger()
    if getattr(root, "_reinstaller_configured", False):
        return getattr(root, "_reinstaller_log_path", log_path)
    root.setLevel(logging.DEBUG)

    file_handler, chosen_path = _open_log_file(log_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    root.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(console)

    setattr(root, "_reinstaller_configured", True)
    setattr(root, "_reinstaller_log_path", chosen_path)

    logging.getLogger(__name__).debug("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
