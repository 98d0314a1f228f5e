from __future__ import annotations

import enum
import logging
import os
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

BACKUP_TIME_FORMAT = "%Y%m%d_%H%M%S"


class TargetKind(enum.Enum):
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    GENERATED_FILE = "generated_file"


class Decision(enum.Enum):
    APPLY = "apply"
    SKIP_ALREADY_SATISFIED = "skip_already_satisfied"
    SKIP_CONFLICT = "skip_conflict"


def should_apply(
    target: Path,
    kind: TargetKind,
    *,
    link_target: Optional[str] = None,
    content: Optional[bytes] = None,
) -> Decision:
    """Decide whether a mutation of `target` is needed.

    DIRECTORY: skip if it already exists as a directory.
    SYMLINK: an existing link is replaced unless it already points at
      `link_target`; a regular file or directory in the way is a conflict.
    GENERATED_FILE: skip if the current bytes equal `content`; otherwise the
      caller backs the existing file up and applies.
    """

    if kind is TargetKind.DIRECTORY:
        if target.is_dir() and not target.is_symlink():
            return Decision.SKIP_ALREADY_SATISFIED
        if target.exists() or target.is_symlink():
            logger.warning("%s exists and is not a directory (skipping)", target)
            return Decision.SKIP_CONFLICT
        return Decision.APPLY

    if kind is TargetKind.SYMLINK:
        if target.is_symlink():
            if link_target is not None and os.readlink(target) == link_target:
                return Decision.SKIP_ALREADY_SATISFIED
            return Decision.APPLY
        if target.exists():
            logger.warning("%s exists as a regular file (skipping)", target)
            return Decision.SKIP_CONFLICT
        return Decision.APPLY

    if kind is TargetKind.GENERATED_FILE:
        if target.is_symlink() or target.is_dir():
            logger.warning("%s is not a regular file (skipping)", target)
            return Decision.SKIP_CONFLICT
        if target.exists() and content is not None and target.read_bytes() == content:
            return Decision.SKIP_ALREADY_SATISFIED
        return Decision.APPLY

    raise ValueError(f"Unknown target kind: {kind}")


def backup_path_for(path: Path, *, now: Optional[float] = None) -> Path:
    stamp = time.strftime(BACKUP_TIME_FORMAT, time.localtime(now))
    candidate = path.with_name(f"{path.name}.backup.{stamp}")
    n = 1
    while candidate.exists() or candidate.is_symlink():
        candidate = path.with_name(f"{path.name}.backup.{stamp}.{n}")
        n += 1
    return candidate


def backup_file(path: Path) -> Path:
    """Move an existing file aside under a timestamped name and return the new path."""

    backup = backup_path_for(path)
    os.replace(path, backup)
    logger.warning("Existing %s backed up to: %s", path.name, backup)
    return backup
