from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from .layout import try_detect_layout
from .lib.assets import AssetGlob
from .lib.manifests import Components

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationFinding:
    item: str
    ok: bool
    note: str


@dataclass(frozen=True)
class VerificationReport:
    checks: Tuple[VerificationFinding, ...]

    @property
    def error_count(self) -> int:
        return sum(1 for c in self.checks if not c.ok)

    @property
    def ok(self) -> bool:
        return self.error_count == 0

    def failures(self) -> List[VerificationFinding]:
        return [c for c in self.checks if not c.ok]

    def resolved_links(self, label: str) -> int:
        """Symlinks under `label` that resolve."""
        prefix = f"{label}/"
        return sum(1 for c in self.checks if c.ok and c.item.startswith(prefix))


def _check_links(directory: Path, label: str) -> List[VerificationFinding]:
    out: List[VerificationFinding] = []
    if not directory.is_dir():
        return [VerificationFinding(item=label, ok=False, note=f"{directory} missing")]
    links = 0
    for entry in sorted(directory.iterdir()):
        if not entry.is_symlink():
            continue
        links += 1
        if entry.exists():
            out.append(VerificationFinding(item=f"{label}/{entry.name}", ok=True, note="OK"))
        else:
            out.append(VerificationFinding(item=f"{label}/{entry.name}", ok=False, note="BROKEN"))
    out.append(VerificationFinding(item=label, ok=True, note=f"{links} symlink(s)"))
    return out


def _check_settings(path: Path) -> VerificationFinding:
    try:
        json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return VerificationFinding(item=path.name, ok=False, note="missing")
    except (ValueError, OSError) as e:
        return VerificationFinding(item=path.name, ok=False, note=f"invalid JSON syntax: {e}")
    return VerificationFinding(item=path.name, ok=True, note="valid JSON")


def verify_installation(target: Path, components: Components) -> VerificationReport:
    """Read-only pass over an installed target."""

    checks: List[VerificationFinding] = []

    for category in components.links:
        checks.extend(_check_links(target / category.dest, category.dest))

    layout = try_detect_layout(target, components.layouts, marker=components.layout_marker)
    if layout is None:
        checks.append(VerificationFinding(item="source", ok=False, note="component tree not found"))
    else:
        for category in components.copies:
            assets = AssetGlob(layout.source(category.source), category.pattern or "*")
            dest = target / category.dest
            missing = [str(rel) for rel in assets.relative() if not (dest / rel).is_file()]
            total = sum(1 for _ in assets)
            if missing:
                checks.append(
                    VerificationFinding(
                        item=category.dest,
                        ok=False,
                        note=f"{len(missing)} of {total} missing: {', '.join(missing[:5])}",
                    )
                )
            else:
                checks.append(VerificationFinding(item=category.dest, ok=True, note=f"{total} present"))

    checks.append(_check_settings(target / components.settings_path))
    return VerificationReport(checks=tuple(checks))


def log_report(report: VerificationReport) -> None:
    for c in report.checks:
        if c.ok:
            logger.info("  %s -> %s", c.item, c.note)
        else:
            logger.error("  %s -> %s", c.item, c.note)
    if report.ok:
        logger.info("All verification checks passed!")
    else:
        logger.error("Verification found %d error(s)", report.error_count)
