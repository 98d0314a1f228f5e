from __future__ import annotations

import logging

from ..errors import CommandError, NonFatalWarning
from ..ledger import HooksInstalled
from ..lib.pkg import run_script

logger = logging.getLogger(__name__)


class InstallGitHooksStep:
    step_id = "70_install_git_hooks"
    title = "Installing auto-indexing git hooks"
    optional = True
    needs_layout = True

    def run(self, ctx) -> None:
        if not ctx.plan.install_git_hooks:
            logger.info("Skipping git hooks (disabled)")
            return
        if ctx.layout is None:
            logger.info("[DRY RUN] Would install git hooks after the subtree fetch")
            return

        script = ctx.layout.source(ctx.components.section("git_hooks").get("installer", ""))
        if not script.is_file():
            raise NonFatalWarning(f"Git hooks installer not found: {script}")

        hooks_dir = ctx.target / ".git" / "hooks"
        before = set(hooks_dir.iterdir()) if hooks_dir.is_dir() else set()
        try:
            run_script(script, cwd=ctx.target, dry_run=ctx.dry_run)
        except CommandError as e:
            raise NonFatalWarning(f"Git hooks installer failed ({e.returncode}): {script}") from e
        if ctx.dry_run:
            return

        added = tuple(sorted(set(hooks_dir.iterdir()) - before)) if hooks_dir.is_dir() else ()
        if added:
            ctx.record(HooksInstalled(paths=added))
        logger.info("Git hooks installed (%d new)", len(added))
