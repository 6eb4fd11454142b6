from __future__ import annotations

from typing import Sequence


class ProvisionError(RuntimeError):
    """Base class for provisioner errors."""


class PreflightError(ProvisionError):
    """A preflight condition is not met. Fatal for the whole run."""


class StepError(ProvisionError):
    """A step-local failure. Logged by the runner, never propagated."""


class PrerequisiteMissing(StepError):
    """A tool or artifact an action depends on is absent (soft failure)."""


class CommandError(StepError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"Command failed ({returncode}): {' '.join(self.argv)}{detail}")
