from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import LayoutNotFoundError

logger = logging.getLogger(__name__)


class LayoutKind(enum.Enum):
    NESTED = "nested"
    FLAT = "flat"


# Probe order matters: a nested tree also contains the flat prefix directory.
PROBE_ORDER = (LayoutKind.NESTED, LayoutKind.FLAT)


@dataclass(frozen=True)
class SourceLayout:
    kind: LayoutKind
    root: Path
    # Relative prefix from a .claude/<category> directory back to `root`,
    # used to build symlink targets.
    base_path: str

    def source(self, rel: str) -> Path:
        return self.root / rel


def detect_layout(
    target: Path,
    candidates: Mapping[str, str],
    *,
    marker: str = "hooks",
) -> SourceLayout:
    """Return the first layout whose <target>/<candidate>/<marker> exists.

    Raises LayoutNotFoundError when no candidate matches.
    """

    for kind in PROBE_ORDER:
        rel = candidates.get(kind.value)
        if not rel:
            continue
        if (target / rel / marker).is_dir():
            logger.info("Detected %s structure (%s)", kind.value, rel)
            return SourceLayout(kind=kind, root=target / rel, base_path=f"../../{rel}")

    probed = ", ".join(f"{rel}/{marker}" for rel in candidates.values())
    raise LayoutNotFoundError(
        f"Cannot find autonomous system {marker} directory (probed: {probed})",
        remediation="Check that the subtree fetch completed and that the branch contains a hooks/ directory",
    )


def try_detect_layout(
    target: Path, candidates: Mapping[str, str], *, marker: str = "hooks"
) -> Optional[SourceLayout]:
    try:
        return detect_layout(target, candidates, marker=marker)
    except LayoutNotFoundError:
        return None
