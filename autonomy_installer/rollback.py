from __future__ import annotations

import logging
import os
import shutil
import signal
from dataclasses import dataclass
from typing import Callable, Dict, List, Type

from .ledger import (
    AuxServiceStarted,
    ChangeEntry,
    ChangeLedger,
    DependenciesInstalled,
    DirectoryCreated,
    FileCreated,
    FileCreatedWithBackup,
    HooksInstalled,
    IndexCreated,
    RemoteAdded,
    SettingsWritten,
    SubtreeAdded,
    SymlinkCreated,
)
from .lib import git

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoOutcome:
    entry: ChangeEntry
    ok: bool
    message: str


def _undo_remote(e: RemoteAdded) -> str:
    git.remove_remote(e.repo, e.name)
    return f"Removed remote '{e.name}'"


def _undo_subtree(e: SubtreeAdded) -> str:
    # History is not rewritten; only the working tree copy goes away.
    if e.path.exists():
        shutil.rmtree(e.path)
    return f"Removed {e.path}"


def _undo_directory(e: DirectoryCreated) -> str:
    if not e.path.is_dir():
        return f"{e.path} already gone"
    if any(e.path.iterdir()):
        return f"Left {e.path} in place (not empty)"
    e.path.rmdir()
    return f"Removed {e.path}"


def _remove_file(path) -> None:
    if path.is_symlink() or path.exists():
        path.unlink()


def _restore(path, backup) -> str:
    _remove_file(path)
    if backup is None:
        return f"Removed {path}"
    os.replace(backup, path)
    return f"Restored {path} from {backup.name}"


def _undo_settings(e: SettingsWritten) -> str:
    return _restore(e.path, e.backup)


def _undo_file(e: FileCreated) -> str:
    return _restore(e.path, None)


def _undo_file_with_backup(e: FileCreatedWithBackup) -> str:
    return _restore(e.path, e.backup)


def _undo_symlink(e: SymlinkCreated) -> str:
    _remove_file(e.path)
    if e.previous_target is not None:
        os.symlink(e.previous_target, e.path)
        return f"Restored symlink {e.path} -> {e.previous_target}"
    return f"Removed symlink {e.path}"


def _undo_dependencies(e: DependenciesInstalled) -> str:
    return f"Left user-scope packages from {e.manifest} installed (pip uninstall -r {e.manifest} to remove)"


def _undo_hooks(e: HooksInstalled) -> str:
    for p in e.paths:
        _remove_file(p)
    return f"Removed {len(e.paths)} git hook(s)"


def _undo_index(e: IndexCreated) -> str:
    if e.path.is_dir():
        shutil.rmtree(e.path)
    else:
        _remove_file(e.path)
    return f"Removed {e.path}"


def _undo_service(e: AuxServiceStarted) -> str:
    try:
        os.kill(e.pid, signal.SIGTERM)
    except ProcessLookupError:
        return f"Service pid={e.pid} already exited"
    return f"Terminated service pid={e.pid}"


_UNDO: Dict[Type[ChangeEntry], Callable] = {
    RemoteAdded: _undo_remote,
    SubtreeAdded: _undo_subtree,
    DirectoryCreated: _undo_directory,
    SettingsWritten: _undo_settings,
    SymlinkCreated: _undo_symlink,
    FileCreated: _undo_file,
    FileCreatedWithBackup: _undo_file_with_backup,
    DependenciesInstalled: _undo_dependencies,
    HooksInstalled: _undo_hooks,
    IndexCreated: _undo_index,
    AuxServiceStarted: _undo_service,
}


def rollback(ledger: ChangeLedger) -> List[UndoOutcome]:
    """Apply compensating actions newest-first.

    Each undo is best-effort: a failure is logged and the walk continues with
    the next entry. The ledger is left in the terminal rolling-back state.
    """

    ledger.begin_rollback()
    logger.error("Installation failed! Rolling back %d change(s)...", len(ledger))

    outcomes: List[UndoOutcome] = []
    for entry in ledger.newest_first():
        undo = _UNDO.get(type(entry))
        if undo is None:
            logger.error("  No compensating action for %s", entry.describe())
            outcomes.append(UndoOutcome(entry=entry, ok=False, message="no compensating action"))
            continue
        try:
            msg = undo(entry)
        except Exception as e:
            logger.error("  Failed to undo %s: %s", entry.describe(), e)
            outcomes.append(UndoOutcome(entry=entry, ok=False, message=str(e)))
            continue
        logger.info("  %s", msg)
        outcomes.append(UndoOutcome(entry=entry, ok=True, message=msg))

    failed = sum(1 for o in outcomes if not o.ok)
    if failed:
        logger.error("Rollback complete with %d failure(s); manual cleanup may be needed", failed)
    else:
        logger.error("Rollback complete")
    return outcomes
