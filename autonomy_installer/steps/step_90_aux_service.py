from __future__ import annotations

import logging

from ..errors import CommandError, NonFatalWarning
from ..ledger import AuxServiceStarted
from ..lib import service
from ..lib.assets import AssetGlob, copy_tree, ensure_dir
from ..lib.pkg import npm_install

logger = logging.getLogger(__name__)


class AuxServiceStep:
    """Materialize the dashboard project, install it and optionally start it."""

    step_id = "90_aux_service"
    title = "Setting up dashboard"
    optional = True
    needs_layout = True

    def run(self, ctx) -> None:
        plan = ctx.plan
        if not plan.provision_service:
            logger.info("Skipping dashboard (disabled)")
            return
        if ctx.layout is None:
            logger.info("[DRY RUN] Would provision the dashboard after the subtree fetch")
            return

        spec = ctx.components.section("service")
        template = ctx.layout.source(spec.get("template", "dashboard"))
        if not template.is_dir():
            raise NonFatalWarning(f"Dashboard template not found: {template}")

        project = ctx.target / spec.get("dest", ".autonomous-dashboard")
        ensure_dir(project, ctx.record, dry_run=ctx.dry_run)
        copied = copy_tree(AssetGlob(template, "**/*"), project, ctx.record, dry_run=ctx.dry_run)
        logger.info("Dashboard project materialized at %s (%d file(s))", project, copied)

        try:
            npm_install(project, dry_run=ctx.dry_run)
        except CommandError as e:
            raise NonFatalWarning(f"Dashboard dependencies failed to install ({e.returncode}); run npm install in {project}") from e

        if not plan.start_service:
            logger.info("Dashboard not started (start it with: npm start in %s)", project)
            return
        if ctx.dry_run:
            logger.info("[DRY RUN] Would start dashboard on %s", plan.service_url)
            return

        url = plan.service_url + spec.get("health_path", "/")
        if service.probe(url):
            logger.info("Dashboard already running at %s", plan.service_url)
            return

        try:
            pid = service.start_background(
                ["npm", "start"],
                cwd=project,
                log_path=project / spec.get("log_file", "dashboard.log"),
                env={"PORT": str(plan.service_port)},
            )
        except OSError as e:
            raise NonFatalWarning(f"Could not start dashboard: {e}") from e
        ctx.record(AuxServiceStarted(pid=pid, path=project))

        if not service.wait_until_ready(url):
            raise NonFatalWarning(f"Dashboard did not answer at {url} yet (pid {pid}); it may still be starting")
        logger.info("Dashboard running at %s", plan.service_url)
