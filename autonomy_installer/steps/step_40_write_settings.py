from __future__ import annotations

import json
import logging

from ..errors import StepError
from ..guard import Decision, TargetKind, backup_file, should_apply
from ..ledger import SettingsWritten

logger = logging.getLogger(__name__)


def render_settings(settings) -> str:
    return json.dumps(settings, indent=2) + "\n"


class WriteSettingsStep:
    step_id = "40_write_settings"
    title = "Creating settings.json configuration"
    optional = False
    needs_layout = False

    def run(self, ctx) -> None:
        path = ctx.settings_path
        content = render_settings(ctx.variant.settings).encode("utf-8")
        points = len(ctx.variant.integration_points)

        decision = should_apply(path, TargetKind.GENERATED_FILE, content=content)
        if decision is Decision.SKIP_ALREADY_SATISFIED:
            logger.info("%s already matches the %s configuration", path.name, ctx.variant.name)
            return
        if decision is Decision.SKIP_CONFLICT:
            raise StepError(f"{path} exists and is not a regular file")

        if ctx.dry_run:
            if path.exists():
                logger.info("[DRY RUN] Would backup existing %s", path.name)
            logger.info(
                "[DRY RUN] Would create %s with %s configuration (%d integration points)",
                path.name,
                ctx.variant.name,
                points,
            )
            return

        backup = backup_file(path) if path.exists() else None
        try:
            path.write_bytes(content)
        finally:
            # Recorded even when the write fails: the backup must come back
            # and a partial file must go.
            if backup is not None or path.exists():
                ctx.record(SettingsWritten(path=path, backup=backup))
        logger.info("Created %s (%s configuration, %d integration points)", path.name, ctx.variant.name, points)
