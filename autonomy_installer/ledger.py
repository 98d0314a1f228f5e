"""Change ledger: ordered record of mutations applied during one run.

An entry is appended as soon as its mutation has altered filesystem or VCS
state; for a replace that is the moment the original is moved aside, before
the new content is written. Skipped steps and dry runs never produce entries.
The ledger is owned by the pipeline context and dropped when the run ends.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Iterator, List, Optional, Tuple


class ChangeEntry(abc.ABC):
    kind: ClassVar[str] = "change"

    @abc.abstractmethod
    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class RemoteAdded(ChangeEntry):
    kind: ClassVar[str] = "remote_added"
    repo: Path
    name: str

    def describe(self) -> str:
        return f"remote '{self.name}'"


@dataclass(frozen=True)
class SubtreeAdded(ChangeEntry):
    kind: ClassVar[str] = "subtree_added"
    path: Path

    def describe(self) -> str:
        return f"subtree {self.path}"


@dataclass(frozen=True)
class DirectoryCreated(ChangeEntry):
    kind: ClassVar[str] = "directory_created"
    path: Path

    def describe(self) -> str:
        return f"directory {self.path}"


@dataclass(frozen=True)
class SettingsWritten(ChangeEntry):
    kind: ClassVar[str] = "settings_written"
    path: Path
    backup: Optional[Path] = None

    def describe(self) -> str:
        return f"settings {self.path}"


@dataclass(frozen=True)
class SymlinkCreated(ChangeEntry):
    kind: ClassVar[str] = "symlink_created"
    path: Path
    # Target of the link this one replaced, if any.
    previous_target: Optional[str] = None

    def describe(self) -> str:
        return f"symlink {self.path}"


@dataclass(frozen=True)
class FileCreated(ChangeEntry):
    kind: ClassVar[str] = "file_created"
    path: Path

    def describe(self) -> str:
        return f"file {self.path}"


@dataclass(frozen=True)
class FileCreatedWithBackup(ChangeEntry):
    kind: ClassVar[str] = "file_created_with_backup"
    path: Path
    backup: Path

    def describe(self) -> str:
        return f"file {self.path} (backup {self.backup.name})"


@dataclass(frozen=True)
class DependenciesInstalled(ChangeEntry):
    kind: ClassVar[str] = "dependencies_installed"
    manifest: Path

    def describe(self) -> str:
        return f"dependencies from {self.manifest}"


@dataclass(frozen=True)
class HooksInstalled(ChangeEntry):
    kind: ClassVar[str] = "hooks_installed"
    paths: Tuple[Path, ...] = ()

    def describe(self) -> str:
        return f"{len(self.paths)} git hook(s)"


@dataclass(frozen=True)
class IndexCreated(ChangeEntry):
    kind: ClassVar[str] = "index_created"
    path: Path

    def describe(self) -> str:
        return f"index {self.path}"


@dataclass(frozen=True)
class AuxServiceStarted(ChangeEntry):
    kind: ClassVar[str] = "aux_service_started"
    pid: int
    path: Path

    def describe(self) -> str:
        return f"service pid={self.pid} ({self.path})"


class LedgerState(enum.Enum):
    RECORDING = "recording"
    ROLLING_BACK = "rolling_back"


class LedgerClosed(RuntimeError):
    pass


@dataclass
class ChangeLedger:
    _entries: List[ChangeEntry] = field(default_factory=list)
    state: LedgerState = LedgerState.RECORDING

    def record(self, entry: ChangeEntry) -> ChangeEntry:
        if self.state is not LedgerState.RECORDING:
            raise LedgerClosed(f"Cannot record {entry.kind} while {self.state.value}")
        self._entries.append(entry)
        return entry

    def begin_rollback(self) -> None:
        if self.state is LedgerState.ROLLING_BACK:
            raise LedgerClosed("Rollback already started")
        self.state = LedgerState.ROLLING_BACK

    @property
    def entries(self) -> Tuple[ChangeEntry, ...]:
        return tuple(self._entries)

    def newest_first(self) -> Iterator[ChangeEntry]:
        return reversed(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
