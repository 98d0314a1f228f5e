from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

import httpx

from .command import fmt_argv

logger = logging.getLogger(__name__)

READY_ATTEMPTS = 10
READY_INTERVAL_S = 2.0
PROBE_TIMEOUT_S = 2.0


def start_background(
    argv: Sequence[str],
    *,
    cwd: Path,
    log_path: Path,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Spawn a detached process writing to log_path and return its pid."""

    logger.info("SPAWN %s (log: %s)", fmt_argv(argv), log_path)
    with log_path.open("ab") as log:
        p = subprocess.Popen(
            list(argv),
            cwd=str(cwd),
            stdout=log,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            env=dict(os.environ, **(env or {})),
            start_new_session=True,
        )
    return p.pid


def probe(url: str, *, timeout_s: float = PROBE_TIMEOUT_S) -> bool:
    try:
        r = httpx.get(url, timeout=timeout_s)
    except httpx.HTTPError as e:
        logger.debug("Probe %s failed: %s", url, e)
        return False
    return r.status_code < 500


def wait_until_ready(
    url: str,
    *,
    attempts: int = READY_ATTEMPTS,
    interval_s: float = READY_INTERVAL_S,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll url with a fixed backoff; the only bounded wait in the installer."""

    for attempt in range(1, attempts + 1):
        if probe(url):
            logger.info("Service ready at %s (attempt %d/%d)", url, attempt, attempts)
            return True
        if attempt < attempts:
            sleep(interval_s)
    return False
