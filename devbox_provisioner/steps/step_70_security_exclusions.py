from __future__ import annotations

import logging
import os
from typing import Dict, List

from ..context import ProvisionCtx
from ..errors import StepError
from ..lib.defender import add_path_exclusion, add_process_exclusion, get_exclusions

logger = logging.getLogger(__name__)


def _norm_path(p: str) -> str:
    return os.path.normcase(os.path.normpath(p)).rstrip("\\/")


def _missing(ctx: ProvisionCtx, current: Dict[str, List[str]]) -> Dict[str, List[str]]:
    have_paths = {_norm_path(p) for p in current.get("paths", [])}
    have_procs = {p.lower() for p in current.get("processes", [])}
    return {
        "paths": [p for p in ctx.cfg.exclusion_paths if _norm_path(p) not in have_paths],
        "processes": [p for p in ctx.cfg.exclusion_processes if p.lower() not in have_procs],
    }


class SecurityExclusionsStep:
    """Microsoft Defender exclusions for source trees and developer tools."""

    step_id = "70_security_exclusions"
    title = "Defender exclusions"
    reapply_when_satisfied = False

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        missing = _missing(ctx, get_exclusions(dry_run=ctx.dry_run))
        return not missing["paths"] and not missing["processes"]

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        missing = _missing(ctx, get_exclusions(dry_run=ctx.dry_run))
        failures: List[str] = []

        for path in missing["paths"]:
            try:
                add_path_exclusion(path, dry_run=ctx.dry_run)
                logger.info("Excluded path %s", path)
            except StepError as e:
                logger.error("Could not exclude path %s: %s", path, e)
                failures.append(path)

        for proc in missing["processes"]:
            try:
                add_process_exclusion(proc, dry_run=ctx.dry_run)
                logger.info("Excluded process %s", proc)
            except StepError as e:
                logger.error("Could not exclude process %s: %s", proc, e)
                failures.append(proc)

        if failures:
            raise StepError(f"{len(failures)} exclusion(s) not applied: {', '.join(failures)}")
