from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from .errors import InstallCancelled, InstallerError
from .lib.env import API_KEY_ENV, api_key_present
from .lib.manifests import load_components
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import InstallContext, PipelineResult, run_pipeline
from .plan import InstallationPlan, build_parser, resolve_plan
from .preflight import run_preflight
from .steps import (
    AuxServiceStep,
    FetchSubtreeStep,
    InitialIndexStep,
    InstallDependenciesStep,
    InstallGitHooksStep,
    LinkAssetsStep,
    LinkRemoteStep,
    ScaffoldDirectoriesStep,
    WriteSettingsStep,
)
from .verify import VerificationReport, log_report, verify_installation

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_WARNINGS = 2


def build_steps():
    return [
        LinkRemoteStep(),
        FetchSubtreeStep(),
        ScaffoldDirectoriesStep(),
        WriteSettingsStep(),
        LinkAssetsStep(),
        InstallDependenciesStep(),
        InstallGitHooksStep(),
        InitialIndexStep(),
        AuxServiceStep(),
    ]


def _report_error(e: InstallerError) -> None:
    logger.error("%s", e)
    if e.remediation:
        logger.error("To fix: %s", e.remediation)


def _summary(ctx: InstallContext, result: PipelineResult, report: VerificationReport) -> None:
    logger.info("Installation successful (%s configuration, %d change(s))", ctx.variant.name, result.changes)
    for category in ctx.components.links:
        logger.info("  %s symlinks: %d", category.name, report.resolved_links(category.dest))
    for w in result.warnings:
        logger.warning("  %s", w)
    if ctx.conflicts:
        logger.warning("  Left %d existing file(s) untouched: %s", len(ctx.conflicts), ", ".join(p.name for p in ctx.conflicts))
    logger.info("Next steps: open Claude Code in %s", ctx.target)
    if not api_key_present():
        logger.warning("Remember to set %s: export %s='your-key-here'", API_KEY_ENV, API_KEY_ENV)


def run_install(plan: InstallationPlan, *, steps: Optional[List] = None) -> int:
    """Preflight, pipeline, verification. Returns the process exit code."""

    ctx = InstallContext.for_plan(plan)
    if plan.dry_run:
        logger.warning("DRY RUN MODE - No changes will be made")

    try:
        run_preflight(ctx)
        result = run_pipeline(ctx, steps if steps is not None else build_steps())
    except InstallerError as e:
        _report_error(e)
        return EXIT_FAILURE

    if plan.dry_run:
        logger.info("Run without --dry-run to perform actual installation.")
        return EXIT_OK

    logger.info("▶ Verifying installation")
    report = verify_installation(plan.target, ctx.components)
    log_report(report)
    _summary(ctx, result, report)
    return EXIT_OK


def run_verify_only(target: Path) -> int:
    report = verify_installation(target, load_components())
    log_report(report)
    return EXIT_OK if report.ok else EXIT_WARNINGS


def main(argv: Optional[list[str]] = None, *, prompt: Optional[Callable[[str], str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    configure_logging(
        log_path=args.log or DEFAULT_LOG_PATH,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    if args.verify_only:
        return run_verify_only(Path(args.target).expanduser().resolve())

    try:
        plan = resolve_plan(args, prompt=prompt)
    except InstallCancelled as e:
        logger.info("%s", e)
        return EXIT_OK
    except InstallerError as e:
        _report_error(e)
        return EXIT_FAILURE

    logger.info("Using repository: %s (branch %s, %s configuration)", plan.repo_url, plan.branch, plan.variant)
    return run_install(plan)


if __name__ == "__main__":
    raise SystemExit(main())
