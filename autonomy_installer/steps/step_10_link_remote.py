from __future__ import annotations

import logging

from ..errors import StepError
from ..ledger import RemoteAdded
from ..lib import git

logger = logging.getLogger(__name__)


class LinkRemoteStep:
    step_id = "10_link_remote"
    title = "Linking source remote"
    optional = False
    needs_layout = False

    def run(self, ctx) -> None:
        name = ctx.components.remote_name
        current = git.remote_url(ctx.target, name)
        if current is not None:
            if current != ctx.plan.repo_url:
                logger.warning("Remote '%s' already exists with a different URL: %s", name, current)
            logger.info("Remote '%s' already exists", name)
            return

        if ctx.dry_run:
            logger.info("[DRY RUN] Would add remote: %s", ctx.plan.repo_url)
            return

        try:
            git.add_remote(ctx.target, name, ctx.plan.repo_url)
        except StepError as e:
            e.remediation = f"git remote add {name} {ctx.plan.repo_url}"
            raise
        ctx.record(RemoteAdded(repo=ctx.target, name=name))
        logger.info("Added remote '%s'", name)
