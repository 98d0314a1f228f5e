from __future__ import annotations

import logging
import os
from typing import Optional, Union

from .command import run_cmd

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def _git(cwd: PathLike, *args: str, check: bool = True, quiet: bool = False, dry_run: bool = False):
    return run_cmd(["git", *args], cwd=cwd, check=check, quiet=quiet, dry_run=dry_run)


def is_work_tree(cwd: PathLike) -> bool:
    r = _git(cwd, "rev-parse", "--is-inside-work-tree", check=False, quiet=True)
    return r.ok and r.stdout.strip() == "true"


def has_commits(cwd: PathLike) -> bool:
    return _git(cwd, "rev-parse", "--verify", "--quiet", "HEAD", check=False, quiet=True).ok


def has_uncommitted_changes(cwd: PathLike) -> bool:
    r = _git(cwd, "diff-index", "--quiet", "HEAD", "--", check=False, quiet=True)
    return r.returncode != 0


def is_tracked(cwd: PathLike, path: str) -> bool:
    return _git(cwd, "ls-files", "--error-unmatch", path, check=False, quiet=True).ok


def remote_url(cwd: PathLike, name: str) -> Optional[str]:
    r = _git(cwd, "remote", "get-url", name, check=False, quiet=True)
    return r.stdout.strip() if r.ok else None


def add_remote(cwd: PathLike, name: str, url: str) -> None:
    _git(cwd, "remote", "add", name, url)


def remove_remote(cwd: PathLike, name: str) -> None:
    _git(cwd, "remote", "remove", name)


def add(cwd: PathLike, *paths: str) -> None:
    _git(cwd, "add", "--", *paths)


def commit(cwd: PathLike, message: str) -> None:
    _git(cwd, "commit", "--quiet", "-m", message)


def subtree_add(cwd: PathLike, *, prefix: str, remote: str, branch: str) -> None:
    """Merge remote/branch into prefix as a single squashed commit."""

    _git(cwd, "subtree", "add", f"--prefix={prefix}", remote, branch, "--squash")


def version(cwd: Optional[PathLike] = None) -> Optional[str]:
    r = run_cmd(["git", "--version"], check=False, cwd=cwd, quiet=True)
    if not r.ok:
        return None
    # "git version 2.43.0" (Apple builds append " (Apple Git-...)")
    parts = r.stdout.split()
    return parts[2] if len(parts) >= 3 else None
