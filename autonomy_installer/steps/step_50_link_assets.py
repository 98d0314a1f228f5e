from __future__ import annotations

import logging
from typing import List

from ..guard import Decision
from ..lib.assets import AssetGlob, copy_file, copy_tree, link
from ..lib.manifests import AssetCategory

logger = logging.getLogger(__name__)


class LinkAssetsStep:
    """Symlink hooks and output styles; copy agents, commands, skills and CLAUDE.md.

    Copies (not links) are used for anything the user is expected to edit.
    """

    step_id = "50_link_assets"
    title = "Linking and copying component assets"
    optional = False
    needs_layout = True

    def _link_names(self, ctx, category: AssetCategory) -> List[str]:
        if category.pattern is None:
            # Hooks: exactly the scripts the selected variant wires into settings.
            return list(ctx.variant.hooks)
        return [str(p) for p in AssetGlob(ctx.layout.source(category.source), category.pattern).relative()]

    def _link_category(self, ctx, category: AssetCategory) -> None:
        names = self._link_names(ctx, category)
        logger.info("Creating %s symlinks (%d)...", category.name, len(names))
        dest_dir = ctx.target / category.dest
        for name in names:
            source = ctx.layout.source(category.source) / name
            if not source.exists():
                ctx.warn(f"{category.name}: source {source} is missing; link will be broken")
            target = f"{ctx.layout.base_path}/{category.source}/{name}"
            decision = link(target, dest_dir / name, ctx.record, dry_run=ctx.dry_run, conflicts=ctx.conflicts)
            if decision is Decision.SKIP_CONFLICT:
                ctx.warn(f"{category.name}: {name} exists as regular file (skipping)")

    def _copy_category(self, ctx, category: AssetCategory) -> None:
        assets = AssetGlob(ctx.layout.source(category.source), category.pattern or "*")
        written = copy_tree(assets, ctx.target / category.dest, ctx.record, dry_run=ctx.dry_run)
        logger.info("%s: %d file(s) copied", category.name, written)

    def _copy_instruction_file(self, ctx) -> None:
        spec = ctx.components.section("instruction_file")
        if not spec:
            return
        dest = ctx.target / spec["dest"]
        if dest.exists():
            logger.info("%s already exists, skipping...", dest.name)
            return
        template = ctx.layout.source(spec["source"])
        if not template.is_file():
            ctx.warn(f"Template not found at {template}; you can create {dest.name} manually later")
            return
        if copy_file(template, dest, ctx.record, dry_run=ctx.dry_run) is Decision.APPLY and not ctx.dry_run:
            logger.info("Created %s from template (edit it to customize for your project)", dest.name)

    def run(self, ctx) -> None:
        if ctx.layout is None:
            # Dry run before the subtree exists: nothing to enumerate yet.
            logger.info("[DRY RUN] Would link and copy assets from the fetched %s", ctx.components.subtree_prefix)
            return

        for category in ctx.components.links:
            self._link_category(ctx, category)
        for category in ctx.components.copies:
            self._copy_category(ctx, category)
        self._copy_instruction_file(ctx)
