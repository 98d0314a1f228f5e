from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from .command import run_cmd

logger = logging.getLogger(__name__)


def pip_install_user(manifest: Path, *, python: Optional[str] = None, dry_run: bool = False) -> bool:
    """Install a requirements manifest into the user site.

    Returns True when pip installed anything; a manifest that was already
    satisfied returns False.
    """

    # Not --quiet: pip's "Successfully installed" line is how we tell the two apart.
    argv = [python or sys.executable, "-m", "pip", "install", "--user", "--disable-pip-version-check", "-r", str(manifest)]
    r = run_cmd(argv, dry_run=dry_run)
    return "Successfully installed" in r.stdout


def npm_install(project_dir: Path, *, dry_run: bool = False) -> None:
    run_cmd(["npm", "install", "--no-audit", "--no-fund"], cwd=project_dir, dry_run=dry_run)


def run_script(script: Path, *, cwd: Path, dry_run: bool = False) -> None:
    """Run a shipped entry point with the interpreter its suffix implies."""

    if script.suffix == ".py":
        argv = [sys.executable, str(script)]
    elif script.suffix == ".sh":
        argv = ["bash", str(script)]
    else:
        argv = [str(script)]
    run_cmd(argv, cwd=cwd, dry_run=dry_run)
