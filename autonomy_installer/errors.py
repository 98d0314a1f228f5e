from __future__ import annotations

from typing import Any, List, Optional, Sequence


class InstallerError(RuntimeError):
    """Base class for every failure the installer reports to the operator."""

    def __init__(self, message: str, *, remediation: Optional[str] = None) -> None:
        super().__init__(message)
        self.remediation = remediation


class PrerequisiteMissing(InstallerError):
    """A required tool or repository precondition is absent. Raised before any mutation."""


class LayoutNotFoundError(InstallerError):
    pass


class StepError(InstallerError):
    """A required step failed while mutating; always triggers rollback."""

    def __init__(
        self,
        message: str,
        *,
        step_id: Optional[str] = None,
        remediation: Optional[str] = None,
    ) -> None:
        super().__init__(message, remediation=remediation)
        self.step_id = step_id


class CommandError(StepError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command failed ({returncode}): {' '.join(self.argv)}\n{stderr}".rstrip())


class NonFatalWarning(InstallerError):
    """Raised by optional steps. Logged; the pipeline continues."""


class InstallationRolledBack(InstallerError):
    def __init__(self, step_id: str, cause: BaseException, outcomes: List[Any]) -> None:
        super().__init__(
            f"Step {step_id} failed: {cause}",
            remediation=getattr(cause, "remediation", None),
        )
        self.step_id = step_id
        self.cause = cause
        self.outcomes = outcomes


class ConfigurationError(InstallerError):
    """Invalid or missing input while resolving the installation plan."""


class InstallCancelled(InstallerError):
    """The operator declined to continue at a prompt. Not a failure."""
