from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Tuple

DEFAULT_LOG_PATH = "~/.local/state/autonomy-installer/install.log"
FALLBACK_LOG_NAME = "autonomy-installer.log"

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)s %(message)s"


def _open_log_file(requested: str) -> Tuple[logging.Handler, str]:
    try:
        Path(requested).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(requested), requested
    except OSError:
        # Never the working directory: that is usually the target project.
        fallback = os.path.join(tempfile.gettempdir(), FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Attach a file handler (and optionally a console handler) to the root logger.

    The log lives outside the target project so a dry run or a rolled-back
    run leaves the project tree untouched. An unwritable location falls back
    to the system temp directory. Returns the file path actually used.
    Safe to call more than once; only the level changes on later calls.
    """

    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_autonomy_configured", False):
        return getattr(root, "_autonomy_log_path", log_path)

    file_handler, chosen = _open_log_file(os.path.expanduser(log_path))
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    handlers: List[logging.Handler] = [file_handler]

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        handlers.append(console)

    for h in handlers:
        root.addHandler(h)
    root._autonomy_configured = True  # type: ignore[attr-defined]
    root._autonomy_log_path = chosen  # type: ignore[attr-defined]

    logging.getLogger(__name__).debug("Logging to %s (requested %s)", chosen, log_path)
    return chosen
