from __future__ import annotations

from pathlib import Path

import pytest

from autonomy_installer.errors import LayoutNotFoundError
from autonomy_installer.layout import LayoutKind, detect_layout, try_detect_layout

CANDIDATES = {"nested": ".autonomous-system/.autonomous-system", "flat": ".autonomous-system"}


def test_flat_layout(tmp_path: Path):
    (tmp_path / ".autonomous-system" / "hooks").mkdir(parents=True)
    layout = detect_layout(tmp_path, CANDIDATES)
    assert layout.kind is LayoutKind.FLAT
    assert layout.root == tmp_path / ".autonomous-system"
    assert layout.base_path == "../../.autonomous-system"


def test_nested_layout_wins_over_flat(tmp_path: Path):
    (tmp_path / ".autonomous-system" / "hooks").mkdir(parents=True)
    (tmp_path / ".autonomous-system" / ".autonomous-system" / "hooks").mkdir(parents=True)
    layout = detect_layout(tmp_path, CANDIDATES)
    assert layout.kind is LayoutKind.NESTED
    assert layout.base_path == "../../.autonomous-system/.autonomous-system"
    assert layout.source("agents") == tmp_path / ".autonomous-system/.autonomous-system/agents"


def test_marker_must_be_a_directory(tmp_path: Path):
    (tmp_path / ".autonomous-system").mkdir()
    (tmp_path / ".autonomous-system" / "hooks").write_text("not a dir")
    with pytest.raises(LayoutNotFoundError):
        detect_layout(tmp_path, CANDIDATES)


def test_missing_layout_is_fatal_and_leaves_no_trace(tmp_path: Path):
    with pytest.raises(LayoutNotFoundError) as exc:
        detect_layout(tmp_path, CANDIDATES)
    assert exc.value.remediation
    assert list(tmp_path.iterdir()) == []
    assert try_detect_layout(tmp_path, CANDIDATES) is None
