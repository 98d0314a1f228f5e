from __future__ import annotations

import logging

from ..errors import CommandError, NonFatalWarning
from ..ledger import IndexCreated
from ..lib.pkg import run_script

logger = logging.getLogger(__name__)


class InitialIndexStep:
    step_id = "80_initial_index"
    title = "Running initial index"
    optional = True
    needs_layout = True

    def run(self, ctx) -> None:
        if not ctx.plan.run_initial_index:
            logger.info("Skipping initial index (disabled)")
            return
        if ctx.layout is None:
            logger.info("[DRY RUN] Would run the initial index after the subtree fetch")
            return

        spec = ctx.components.section("index")
        entry = ctx.layout.source(spec.get("entry_point", ""))
        if not entry.is_file():
            raise NonFatalWarning(f"Indexing entry point not found: {entry}")

        output = ctx.target / spec.get("output", ".rag-index")
        existed = output.exists()
        try:
            run_script(entry, cwd=ctx.target, dry_run=ctx.dry_run)
        except CommandError as e:
            raise NonFatalWarning(f"Initial indexing failed ({e.returncode}); run {entry} manually") from e
        if not ctx.dry_run and not existed and output.exists():
            ctx.record(IndexCreated(path=output))
        logger.info("Initial index complete")
