from __future__ import annotations

import os
from pathlib import Path

from autonomy_installer.guard import Decision, TargetKind, backup_file, backup_path_for, should_apply


class TestDirectories:
    def test_missing_directory_applies(self, tmp_path: Path):
        assert should_apply(tmp_path / "new", TargetKind.DIRECTORY) is Decision.APPLY

    def test_existing_directory_is_satisfied(self, tmp_path: Path):
        assert should_apply(tmp_path, TargetKind.DIRECTORY) is Decision.SKIP_ALREADY_SATISFIED

    def test_file_in_the_way_is_a_conflict(self, tmp_path: Path):
        (tmp_path / "x").write_text("x")
        assert should_apply(tmp_path / "x", TargetKind.DIRECTORY) is Decision.SKIP_CONFLICT


class TestSymlinks:
    def test_absent_link_applies(self, tmp_path: Path):
        assert should_apply(tmp_path / "l", TargetKind.SYMLINK, link_target="a") is Decision.APPLY

    def test_link_to_same_target_is_satisfied(self, tmp_path: Path):
        os.symlink("a", tmp_path / "l")
        assert should_apply(tmp_path / "l", TargetKind.SYMLINK, link_target="a") is Decision.SKIP_ALREADY_SATISFIED

    def test_link_to_other_target_is_replaced(self, tmp_path: Path):
        os.symlink("old", tmp_path / "l")
        assert should_apply(tmp_path / "l", TargetKind.SYMLINK, link_target="new") is Decision.APPLY

    def test_broken_link_is_replaced(self, tmp_path: Path):
        os.symlink("does-not-exist", tmp_path / "l")
        assert should_apply(tmp_path / "l", TargetKind.SYMLINK, link_target="new") is Decision.APPLY

    def test_regular_file_is_never_overwritten(self, tmp_path: Path):
        (tmp_path / "l").write_text("mine")
        assert should_apply(tmp_path / "l", TargetKind.SYMLINK, link_target="a") is Decision.SKIP_CONFLICT


class TestGeneratedFiles:
    def test_identical_content_is_satisfied(self, tmp_path: Path):
        (tmp_path / "s.json").write_bytes(b"{}\n")
        assert should_apply(tmp_path / "s.json", TargetKind.GENERATED_FILE, content=b"{}\n") is Decision.SKIP_ALREADY_SATISFIED

    def test_different_content_applies(self, tmp_path: Path):
        (tmp_path / "s.json").write_bytes(b"{\"a\": 1}\n")
        assert should_apply(tmp_path / "s.json", TargetKind.GENERATED_FILE, content=b"{}\n") is Decision.APPLY

    def test_directory_in_the_way_is_a_conflict(self, tmp_path: Path):
        (tmp_path / "s.json").mkdir()
        assert should_apply(tmp_path / "s.json", TargetKind.GENERATED_FILE, content=b"{}") is Decision.SKIP_CONFLICT


def test_backup_renames_with_timestamp(tmp_path: Path):
    p = tmp_path / "settings.json"
    p.write_text("old")
    backup = backup_file(p)
    assert not p.exists()
    assert backup.read_text() == "old"
    assert backup.name.startswith("settings.json.backup.")


def test_backup_names_do_not_collide(tmp_path: Path):
    p = tmp_path / "settings.json"
    first = backup_path_for(p, now=0)
    first.write_text("taken")
    second = backup_path_for(p, now=0)
    assert second != first
    assert second.name == first.name + ".1"
