from __future__ import annotations

import logging

from ..errors import CommandError, NonFatalWarning
from ..ledger import DependenciesInstalled
from ..lib.pkg import pip_install_user

logger = logging.getLogger(__name__)


class InstallDependenciesStep:
    step_id = "60_install_dependencies"
    title = "Installing optional dependencies"
    optional = True
    needs_layout = True

    def run(self, ctx) -> None:
        if not ctx.plan.install_dependencies:
            logger.info("Skipping optional dependencies (disabled)")
            return
        if ctx.layout is None:
            logger.info("[DRY RUN] Would install optional dependencies after the subtree fetch")
            return

        manifest = ctx.layout.source(ctx.components.section("dependencies").get("manifest", "requirements.txt"))
        if not manifest.is_file():
            raise NonFatalWarning(f"Dependency manifest not found: {manifest}")

        try:
            changed = pip_install_user(manifest, dry_run=ctx.dry_run)
        except CommandError as e:
            raise NonFatalWarning(
                f"Optional dependencies failed to install ({e.returncode}); "
                f"retry with: pip install --user -r {manifest}"
            ) from e
        if ctx.dry_run:
            return
        if not changed:
            logger.info("Optional dependencies from %s already satisfied", manifest.name)
            return
        ctx.record(DependenciesInstalled(manifest=manifest))
        logger.info("Optional dependencies installed from %s", manifest.name)
