"""
Shared test fixtures: throwaway git projects and a fake component tree.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Tuple

import pytest

from autonomy_installer.plan import InstallationPlan

REPO_URL = "https://example.com/lunigy/ai-autonomous-system.git"

ALL_HOOKS = [
    "session-start-market-intelligence.py",
    "user-prompt-validator.py",
    "post-tool-quality-check.sh",
    "feature-request-detector.py",
    "pre-implementation-design-check.py",
    "session-end-learning-extraction.py",
    "subagent-stop-tracker.py",
]

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(path: Path, *args: str) -> str:
    p = subprocess.run(["git", "-C", str(path), *args], capture_output=True, text=True, check=True)
    return p.stdout


def init_repo(path: Path, *, commit: bool = True) -> Path:
    """Create a git repo, optionally with one commit (needed for HEAD)."""
    path.mkdir(parents=True, exist_ok=True)
    subprocess.run(["git", "init", "-q", str(path)], capture_output=True, check=True)
    git(path, "config", "user.name", "Test User")
    git(path, "config", "user.email", "test@test.com")
    git(path, "config", "commit.gpgsign", "false")
    if commit:
        (path / "README.md").write_text("# Test\n")
        git(path, "add", "README.md")
        git(path, "commit", "-q", "-m", "initial")
    return path


def make_component_tree(root: Path) -> Path:
    """Write a flat component tree (hooks, styles, agents, commands, skills...)."""
    for name in ALL_HOOKS:
        p = root / "hooks" / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("#!/bin/sh\necho hook\n")
    for name in ("discovery-mode.md", "engineering-mode.md", "launch-mode.md"):
        p = root / "output-styles" / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(f"# {name}\n")
    files = {
        "agents/architect.md": "# Architect\n",
        "agents/reviewer.md": "# Reviewer\n",
        "commands/discovery.md": "# /discovery\n",
        "commands/ops/launch.md": "# /launch\n",
        "skills/market-research/SKILL.md": "# Market research\n",
        "skills/market-research/scripts/scan.py": "print('scan')\n",
        "templates/CLAUDE.md.template": "# Project instructions\n",
        "requirements.txt": "requests\n",
        "dashboard/package.json": '{"name": "dashboard"}\n',
    }
    for rel, content in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)
    return root


def make_plan(target: Path, **overrides) -> InstallationPlan:
    values = dict(
        target=target,
        repo_url=REPO_URL,
        variant="minimal",
        install_dependencies=False,
        install_git_hooks=False,
        run_initial_index=False,
        provision_service=False,
        skip_prompts=True,
    )
    values.update(overrides)
    return InstallationPlan(**values)


def snapshot(root: Path) -> Dict[str, Tuple]:
    """Map every path under root (outside .git) to its type and content."""
    out: Dict[str, Tuple] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if not (dirpath == str(root) and d == ".git")]
        for name in dirnames + filenames:
            p = Path(dirpath) / name
            rel = str(p.relative_to(root))
            if p.is_symlink():
                out[rel] = ("link", os.readlink(p))
            elif p.is_dir():
                out[rel] = ("dir",)
            else:
                out[rel] = ("file", p.read_bytes())
    return out


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A git project with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return init_repo(tmp_path / "project")


@pytest.fixture
def fake_subtree(monkeypatch):
    """Replace `git subtree add` with writing a flat component tree."""
    calls = []

    def _subtree_add(cwd, *, prefix, remote, branch):
        calls.append((prefix, remote, branch))
        make_component_tree(Path(cwd) / prefix)

    monkeypatch.setattr("autonomy_installer.lib.git.subtree_add", _subtree_add)
    return calls


@pytest.fixture
def installed_tree(tmp_path: Path) -> Path:
    """A plain directory that already holds the fetched component tree."""
    target = tmp_path / "plain"
    make_component_tree(target / ".autonomous-system")
    return target
