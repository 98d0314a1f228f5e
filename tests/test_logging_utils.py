from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pytest

from autonomy_installer.logging_utils import FALLBACK_LOG_NAME, configure_logging


@pytest.fixture
def fresh_root(monkeypatch):
    """A root logger with no handlers and no prior configuration."""

    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.delattr(root, "_autonomy_configured", raising=False)
    monkeypatch.delattr(root, "_autonomy_log_path", raising=False)
    monkeypatch.setattr(root, "level", root.level)
    yield root
    for h in root.handlers:
        h.close()


def test_writes_requested_file(fresh_root, tmp_path: Path):
    path = tmp_path / "state" / "install.log"
    assert configure_logging(str(path), also_console=False) == str(path)
    assert path.parent.is_dir()
    assert len(fresh_root.handlers) == 1


def test_second_call_adds_no_handlers(fresh_root, tmp_path: Path):
    path = str(tmp_path / "install.log")
    configure_logging(path)
    configure_logging(str(tmp_path / "other.log"), level=logging.DEBUG)
    assert len(fresh_root.handlers) == 2
    assert fresh_root.level == logging.DEBUG


def test_unwritable_location_falls_back_outside_the_project(fresh_root, tmp_path: Path, monkeypatch):
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    chosen = configure_logging(str(blocker / "install.log"), also_console=False)

    assert chosen == os.path.join(tempfile.gettempdir(), FALLBACK_LOG_NAME)
    assert list(project.iterdir()) == []
