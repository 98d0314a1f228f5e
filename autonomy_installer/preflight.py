from __future__ import annotations

import logging
import re
import sys
from typing import List, Optional, Tuple

from .errors import PrerequisiteMissing
from .lib import git
from .lib.command import run_cmd
from .lib.env import API_KEY_ENV, REQUIREMENTS, api_key_present

logger = logging.getLogger(__name__)

_VERSION = re.compile(r"(\d+)\.(\d+)")


def parse_version(text: Optional[str]) -> Optional[Tuple[int, int]]:
    m = _VERSION.search(text or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def _fmt(v: Tuple[int, int]) -> str:
    return f"{v[0]}.{v[1]}"


def node_version() -> Optional[str]:
    r = run_cmd(["node", "--version"], check=False, quiet=True)
    return r.stdout.strip() if r.ok else None


def check_prerequisites(*, need_node: bool) -> None:
    """Check required tools before anything is changed. Raises PrerequisiteMissing."""

    problems: List[str] = []

    found = parse_version(git.version())
    if found is None:
        problems.append("Git not found. Please install Git from https://git-scm.com/")
    elif found < REQUIREMENTS.git:
        problems.append(f"Git {_fmt(REQUIREMENTS.git)}+ required (found {_fmt(found)})")
    else:
        logger.info("Git %s found", _fmt(found))

    py = sys.version_info[:2]
    if py < REQUIREMENTS.python:
        problems.append(f"Python {_fmt(REQUIREMENTS.python)}+ required (found {_fmt(py)})")

    if need_node:
        found = parse_version(node_version())
        if found is None:
            problems.append("Node.js not found. Please install Node.js v18+ from https://nodejs.org/")
        elif found < REQUIREMENTS.node:
            problems.append(f"Node.js v{REQUIREMENTS.node[0]}+ required (found v{found[0]})")
        else:
            logger.info("Node.js v%d found", found[0])

    if not api_key_present():
        logger.warning("%s not set. Hooks will not work until you set this.", API_KEY_ENV)
        logger.info("Set with: export %s='your-key-here'", API_KEY_ENV)

    if problems:
        for p in problems:
            logger.error(p)
        raise PrerequisiteMissing(
            "Prerequisites check failed: " + "; ".join(problems),
            remediation="Install the missing requirements and re-run the installer",
        )


def check_repository(plan) -> None:
    if not git.is_work_tree(plan.target):
        raise PrerequisiteMissing(
            f"Not a git repository: {plan.target}",
            remediation=f"git -C {plan.target} init",
        )
    if not git.has_commits(plan.target) and not plan.allow_initial_commit:
        raise PrerequisiteMissing(
            "Cannot proceed without at least one commit.",
            remediation="echo '# My Project' > README.md && git add README.md && git commit -m 'Initial commit'",
        )
    logger.info("Git repository is ready")


def run_preflight(ctx) -> None:
    """Everything that must hold before the first mutation."""

    check_prerequisites(need_node=ctx.plan.provision_service)
    check_repository(ctx.plan)
    # If the subtree is already present its shape must be known up front.
    if ctx.subtree_dir.is_dir():
        ctx.detect_layout()
