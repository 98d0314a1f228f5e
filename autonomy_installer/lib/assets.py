from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from ..guard import Decision, TargetKind, backup_file, should_apply
from ..ledger import ChangeEntry, DirectoryCreated, FileCreated, FileCreatedWithBackup, SymlinkCreated

logger = logging.getLogger(__name__)

Record = Callable[[ChangeEntry], Any]


@dataclass(frozen=True)
class AssetGlob:
    """Files under `root` matching `pattern`, enumerated fresh on every iteration."""

    root: Path
    pattern: str = "*"

    def __iter__(self) -> Iterator[Path]:
        if not self.root.is_dir():
            return iter(())
        return (p for p in sorted(self.root.glob(self.pattern)) if p.is_file())

    def relative(self) -> Iterator[Path]:
        for p in self:
            yield p.relative_to(self.root)


def ensure_dir(path: Path, record: Record, *, dry_run: bool = False) -> Decision:
    """Create `path` and any missing parents, recording each directory created."""

    decision = should_apply(path, TargetKind.DIRECTORY)
    if decision is not Decision.APPLY:
        return decision

    missing = []
    p = path
    while not p.exists() and not p.is_symlink():
        missing.append(p)
        p = p.parent

    for d in reversed(missing):
        if dry_run:
            logger.info("[DRY RUN] Would create: %s", d)
            continue
        d.mkdir()
        record(DirectoryCreated(path=d))
        logger.info("Created %s", d)
    return decision


def copy_file(src: Path, dst: Path, record: Record, *, dry_run: bool = False) -> Decision:
    """Copy one file, refreshing a differing destination after backing it up."""

    content = src.read_bytes()
    decision = should_apply(dst, TargetKind.GENERATED_FILE, content=content)
    if decision is not Decision.APPLY:
        return decision

    if dry_run:
        logger.info("[DRY RUN] Would copy %s -> %s", src, dst)
        return decision

    ensure_dir(dst.parent, record)
    if dst.exists():
        backup = backup_file(dst)
        # The rename alone is a change; record it before the copy can fail.
        record(FileCreatedWithBackup(path=dst, backup=backup))
        shutil.copy2(src, dst)
        return decision

    try:
        shutil.copy2(src, dst)
    finally:
        # A failed copy can still leave a partial file behind.
        if dst.exists():
            record(FileCreated(path=dst))
    return decision


def copy_tree(assets: AssetGlob, dst: Path, record: Record, *, dry_run: bool = False) -> int:
    """Copy every enumerated asset under `dst`, keeping relative paths.

    Returns the number of files written (or that would be written).
    """

    written = 0
    for rel in assets.relative():
        if copy_file(assets.root / rel, dst / rel, record, dry_run=dry_run) is Decision.APPLY:
            written += 1
    return written


def link(
    target: str,
    path: Path,
    record: Record,
    *,
    dry_run: bool = False,
    conflicts: Optional[list] = None,
) -> Decision:
    """Create or replace a symlink at `path` pointing at `target`.

    A regular file at `path` is left untouched and reported as a conflict.
    """

    decision = should_apply(path, TargetKind.SYMLINK, link_target=target)
    if decision is Decision.SKIP_CONFLICT:
        if conflicts is not None:
            conflicts.append(path)
        return decision
    if decision is not Decision.APPLY:
        return decision

    previous = os.readlink(path) if path.is_symlink() else None
    if dry_run:
        verb = "replace existing symlink" if previous is not None else "create symlink"
        logger.info("[DRY RUN] Would %s: %s -> %s", verb, path, target)
        return decision

    if previous is not None:
        path.unlink()
        record(SymlinkCreated(path=path, previous_target=previous))
        os.symlink(target, path)
    else:
        os.symlink(target, path)
        record(SymlinkCreated(path=path))
    logger.info("  %s%s", path.name, " (replaced)" if previous is not None else "")
    return decision
