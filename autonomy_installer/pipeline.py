from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .errors import InstallationRolledBack, InstallerError, NonFatalWarning, StepError
from .layout import SourceLayout, detect_layout
from .ledger import ChangeEntry, ChangeLedger
from .lib.manifests import Components, VariantManifest, load_components, load_variant
from .plan import InstallationPlan
from .rollback import rollback

logger = logging.getLogger(__name__)


@dataclass
class InstallContext:
    """Per-run state threaded through every step.

    The plan is immutable; the ledger, detected layout and warnings are the
    only things steps may change.
    """

    plan: InstallationPlan
    components: Components
    variant: VariantManifest
    ledger: ChangeLedger = field(default_factory=ChangeLedger)
    layout: Optional[SourceLayout] = None
    warnings: List[str] = field(default_factory=list)
    conflicts: List[Path] = field(default_factory=list)

    @classmethod
    def for_plan(cls, plan: InstallationPlan) -> "InstallContext":
        return cls(plan=plan, components=load_components(), variant=load_variant(plan.variant))

    @property
    def target(self) -> Path:
        return self.plan.target

    @property
    def dry_run(self) -> bool:
        return self.plan.dry_run

    @property
    def subtree_dir(self) -> Path:
        return self.target / self.components.subtree_prefix

    @property
    def settings_path(self) -> Path:
        return self.target / self.components.settings_path

    def record(self, entry: ChangeEntry) -> ChangeEntry:
        return self.ledger.record(entry)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def detect_layout(self) -> SourceLayout:
        if self.layout is None:
            self.layout = detect_layout(
                self.target, self.components.layouts, marker=self.components.layout_marker
            )
        return self.layout


class Step(Protocol):
    """A single idempotent step.

    Required steps raise StepError (or anything else) to trigger rollback.
    Optional steps raise NonFatalWarning; the pipeline logs it and continues.
    """

    step_id: str
    title: str
    optional: bool
    needs_layout: bool

    def run(self, ctx: InstallContext) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    warnings: List[str]
    changes: int


def run_pipeline(ctx: InstallContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps strictly in order.

    On the first required-step failure the ledger is rolled back newest-first
    and InstallationRolledBack is raised; no later step runs.
    """

    ran: List[str] = []

    for step in steps:
        logger.info("▶ %s", step.title)
        try:
            if step.needs_layout and not (ctx.dry_run and not ctx.subtree_dir.exists()):
                ctx.detect_layout()
            step.run(ctx)
        except NonFatalWarning as e:
            ctx.warn(f"{step.step_id}: {e}")
        except (Exception, KeyboardInterrupt) as e:
            if step.optional and isinstance(e, Exception):
                ctx.warn(f"{step.step_id}: {e}")
            else:
                _fail(ctx, step, e)
        ran.append(step.step_id)

    if ctx.dry_run:
        logger.info("[DRY RUN] Installation simulation complete. No changes were made.")
    return PipelineResult(ran_steps=ran, warnings=list(ctx.warnings), changes=len(ctx.ledger))


def _fail(ctx: InstallContext, step: Step, e: BaseException) -> None:
    err = e
    if not isinstance(err, InstallerError):
        err = StepError(str(e) or type(e).__name__, step_id=step.step_id)
    elif isinstance(err, StepError) and err.step_id is None:
        err.step_id = step.step_id

    logger.error("Step %s failed: %s", step.step_id, err)
    if not ctx.ledger:
        # Nothing was changed yet; no compensation needed.
        raise InstallationRolledBack(step.step_id, err, []) from e
    outcomes = rollback(ctx.ledger)
    raise InstallationRolledBack(step.step_id, err, outcomes) from e
