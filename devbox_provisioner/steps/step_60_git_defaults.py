from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from ..context import ProvisionCtx
from ..lib.command import find_tool
from ..lib.git import find_git, get_global, require_git, set_global

logger = logging.getLogger(__name__)

IDENTITY_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("user.name", "Git user name"),
    ("user.email", "Git email"),
)

PREFERENCES: Dict[str, str] = {
    "init.defaultBranch": "main",
    "pull.rebase": "false",
    "core.autocrlf": "true",
    "credential.helper": "manager",
}

EDITOR = "code --wait"


def preferences() -> Dict[str, str]:
    prefs = dict(PREFERENCES)
    if find_tool("code.cmd") or find_tool("code"):
        prefs["core.editor"] = EDITOR
    return prefs


class GitDefaultsStep:
    """Git identity and global preferences.

    The identity (user.name / user.email) is prompted for only when blank.
    Preferences are re-applied every run, even when the identity is already
    configured, so they converge to the same values from any starting state.
    """

    step_id = "60_git_defaults"
    title = "Git defaults"
    reapply_when_satisfied = True

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        git = find_git()
        if not git:
            return False
        return all(get_global(git, key, dry_run=ctx.dry_run).strip() for key, _ in IDENTITY_FIELDS)

    def _prompt_identity(self, ctx: ProvisionCtx, git: str) -> List[str]:
        """Ask for blank identity fields. Returns the keys that were set."""

        updated: List[str] = []
        for key, label in IDENTITY_FIELDS:
            current = get_global(git, key, dry_run=ctx.dry_run).strip()
            if current:
                logger.info("%s already set (%s)", key, current)
                continue
            if ctx.dry_run:
                logger.info("Would prompt for %s", key)
                continue
            answer = ctx.prompt(f"{label}: ").strip()
            if not answer:
                logger.warning("No value entered for %s; leaving it unset", key)
                continue
            set_global(git, key, answer, dry_run=ctx.dry_run)
            updated.append(key)
        return updated

    def _apply_preferences(self, ctx: ProvisionCtx, git: str) -> None:
        for key, value in preferences().items():
            set_global(git, key, value, dry_run=ctx.dry_run)
        logger.info("Git preferences applied")

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        git = require_git()
        if not satisfied:
            self._prompt_identity(ctx, git)
        self._apply_preferences(ctx, git)
