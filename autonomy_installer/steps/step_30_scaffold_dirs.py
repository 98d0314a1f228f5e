from __future__ import annotations

import logging

from ..guard import Decision
from ..lib.assets import ensure_dir

logger = logging.getLogger(__name__)


class ScaffoldDirectoriesStep:
    step_id = "30_scaffold_dirs"
    title = "Creating directory structure"
    optional = False
    needs_layout = False

    def run(self, ctx) -> None:
        for rel in ctx.components.scaffold:
            decision = ensure_dir(ctx.target / rel, ctx.record, dry_run=ctx.dry_run)
            if decision is Decision.SKIP_ALREADY_SATISFIED:
                logger.info("%s already exists", rel)
            elif decision is Decision.SKIP_CONFLICT:
                ctx.conflicts.append(ctx.target / rel)
