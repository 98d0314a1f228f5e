from __future__ import annotations

import logging

from ..errors import StepError
from ..ledger import FileCreated, SubtreeAdded
from ..lib import git
from ..lib.env import PLACEHOLDER_FILE, PLACEHOLDER_MESSAGE

logger = logging.getLogger(__name__)


class FetchSubtreeStep:
    step_id = "20_fetch_subtree"
    title = "Adding autonomous system as git subtree"
    optional = False
    needs_layout = False

    def _ensure_initial_commit(self, ctx) -> None:
        if git.has_commits(ctx.target):
            return
        if not ctx.plan.allow_initial_commit:
            raise StepError(
                "Cannot proceed without at least one commit.",
                remediation=(
                    "echo '# My Project' > README.md && git add README.md && git commit -m 'Initial commit'"
                ),
            )

        readme = ctx.target / PLACEHOLDER_FILE
        if ctx.dry_run:
            logger.info("[DRY RUN] Would create initial commit (%s)", PLACEHOLDER_FILE)
            return

        if not readme.exists():
            readme.write_text(f"# {ctx.target.name}\n", encoding="utf-8")
            # Compensated by removing the file; the commit itself stays in history.
            ctx.record(FileCreated(path=readme))
            git.add(ctx.target, PLACEHOLDER_FILE)
        elif not git.is_tracked(ctx.target, PLACEHOLDER_FILE):
            logger.info("%s exists (untracked). Adding to git.", PLACEHOLDER_FILE)
            git.add(ctx.target, PLACEHOLDER_FILE)
        git.commit(ctx.target, PLACEHOLDER_MESSAGE)
        logger.info("Initial commit created")

    def run(self, ctx) -> None:
        prefix = ctx.components.subtree_prefix
        if ctx.subtree_dir.is_dir():
            logger.warning("%s directory already exists", prefix)
            logger.info("Skipping git subtree add (already added)")
            return

        self._ensure_initial_commit(ctx)

        remote = ctx.components.remote_name
        if ctx.dry_run:
            logger.info(
                "[DRY RUN] Would run: git subtree add --prefix=%s %s %s --squash",
                prefix,
                remote,
                ctx.plan.branch,
            )
            return

        logger.info("This may take a minute...")
        try:
            git.subtree_add(ctx.target, prefix=prefix, remote=remote, branch=ctx.plan.branch)
        except StepError as e:
            e.remediation = f"git subtree add --prefix={prefix} {remote} {ctx.plan.branch} --squash"
            # A failed subtree add can leave a partial checkout behind.
            if ctx.subtree_dir.exists():
                ctx.record(SubtreeAdded(path=ctx.subtree_dir))
            raise
        ctx.record(SubtreeAdded(path=ctx.subtree_dir))
        logger.info("Git subtree added successfully")
