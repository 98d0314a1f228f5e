from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from .errors import ConfigurationError, InstallCancelled
from .lib import git
from .lib.manifests import VARIANTS

logger = logging.getLogger(__name__)

_REPO_URL = re.compile(r"^(https?://|git@)")

Prompt = Callable[[str], str]


@dataclass(frozen=True)
class InstallationPlan:
    """Everything the pipeline needs, resolved before the first step runs."""

    target: Path
    repo_url: str
    branch: str = "main"
    variant: str = "full"
    install_dependencies: bool = True
    install_git_hooks: bool = False
    run_initial_index: bool = False
    provision_service: bool = True
    start_service: bool = True
    service_port: int = 3000
    dry_run: bool = False
    skip_prompts: bool = False
    allow_initial_commit: bool = True

    @property
    def service_url(self) -> str:
        return f"http://localhost:{self.service_port}"


_PLAN_KEYS = {f.name for f in fields(InstallationPlan)}

# CLI destination -> (plan field, transform)
_FLAG_MAP: Dict[str, tuple[str, Callable[[Any], Any]]] = {
    "config": ("variant", str),
    "repo_url": ("repo_url", str),
    "branch": ("branch", str),
    "skip_prompts": ("skip_prompts", bool),
    "dry_run": ("dry_run", bool),
    "skip_rag": ("install_dependencies", lambda v: not v),
    "rag_hooks": ("install_git_hooks", bool),
    "rag_index": ("run_initial_index", bool),
    "skip_dashboard": ("provision_service", lambda v: not v),
    "no_start_dashboard": ("start_service", lambda v: not v),
    "dashboard_port": ("service_port", int),
}


def build_parser(prog: str = "autonomy-install") -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=prog,
        description="Install the autonomous system into a git project.",
    )
    p.add_argument("--config", choices=VARIANTS, default=None, help="Configuration type (default: full)")
    p.add_argument("--repo-url", default=None, help="Repository URL (required)")
    p.add_argument("--branch", default=None, help="Branch name (default: main)")
    p.add_argument("--skip-prompts", action="store_true", default=None, help="Use defaults without prompting")
    p.add_argument("--dry-run", action="store_true", default=None, help="Show what would be done without doing it")
    p.add_argument("--skip-rag", action="store_true", default=None, help="Skip optional dependency installation")
    p.add_argument("--rag-hooks", action="store_true", default=None, help="Install auto-indexing git hooks")
    p.add_argument("--rag-index", action="store_true", default=None, help="Run the initial index")
    p.add_argument("--skip-dashboard", action="store_true", default=None, help="Skip dashboard provisioning")
    p.add_argument("--no-start-dashboard", action="store_true", default=None, help="Provision but do not start the dashboard")
    p.add_argument("--dashboard-port", type=int, default=None, help="Dashboard port (default: 3000)")
    p.add_argument("--target", default=".", help="Project directory to install into (default: cwd)")
    p.add_argument("--plan-file", default=None, help="YAML file with default plan values")
    p.add_argument("--log", default=None, help="Path to installer log")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    p.add_argument("--verify-only", action="store_true", help="Verify an existing installation and exit")
    return p


def load_plan_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Plan file not found: {path}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Plan file must contain a mapping/object: {path}")
    if "config" in raw and "variant" not in raw:
        raw["variant"] = raw.pop("config")
    unknown = sorted(set(raw) - _PLAN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown plan keys in {path}: {', '.join(unknown)}")
    return raw


def _merged_values(args: argparse.Namespace) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if getattr(args, "plan_file", None):
        values.update(load_plan_file(args.plan_file))
    for dest, (key, conv) in _FLAG_MAP.items():
        v = getattr(args, dest, None)
        if v is not None:
            values[key] = conv(v)
    return values


def _confirm(prompt: Prompt, question: str, *, default: bool) -> bool:
    answer = prompt(question).strip().lower()
    if not answer:
        return default
    return answer in {"y", "yes"}


def _prompt_variant(prompt: Prompt) -> str:
    print("Choose configuration type:")
    print("  1) Minimal (3 core hooks: SessionStart, UserPromptSubmit, PostToolUse)")
    print("  2) Full (learning extraction, design checks, subagent tracking) [RECOMMENDED]")
    choice = prompt("Enter choice [1-2] (default: 2): ").strip()
    if choice == "1":
        return "minimal"
    if choice not in {"", "2"}:
        logger.warning("Invalid choice. Using 'full' configuration.")
    return "full"


def resolve_plan(args: argparse.Namespace, *, prompt: Optional[Prompt] = None) -> InstallationPlan:
    """Resolve flags, plan file, defaults and (optionally) prompts into a plan.

    Only reads the target repository; never mutates it.
    """

    ask = prompt or input
    values = _merged_values(args)
    target = Path(args.target).expanduser().resolve()
    interactive = not values.get("skip_prompts", False)

    repo_url = str(values.get("repo_url") or "").strip()
    if not repo_url:
        if not interactive:
            raise ConfigurationError("Repository URL required when using --skip-prompts")
        repo_url = ask("Enter the autonomous system repository URL: ").strip()
        if not repo_url:
            raise ConfigurationError("Repository URL is required")
    if not _REPO_URL.match(repo_url):
        raise ConfigurationError(
            f"Invalid repository URL format: {repo_url}",
            remediation="URL must start with http://, https://, or git@",
        )
    values["repo_url"] = repo_url

    if interactive and "variant" not in values:
        values["variant"] = _prompt_variant(ask)
    variant = values.get("variant", "full")
    if variant not in VARIANTS:
        raise ConfigurationError(f"Unknown configuration type: {variant}")

    allow_initial_commit = True
    if git.is_work_tree(target):
        if not git.has_commits(target):
            logger.warning("Git repository has no commits yet; subtree fetch needs one.")
            if interactive:
                allow_initial_commit = _confirm(ask, "Create initial commit? [Y/n]: ", default=True)
        elif git.has_uncommitted_changes(target):
            logger.warning("You have uncommitted changes. Consider committing before installation.")
            if interactive and not _confirm(ask, "Continue anyway? [y/N]: ", default=False):
                raise InstallCancelled("Installation cancelled")

    values["allow_initial_commit"] = allow_initial_commit
    values["target"] = target
    return InstallationPlan(**values)
