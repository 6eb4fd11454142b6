from __future__ import annotations

import logging
from typing import Optional

from ..errors import PrerequisiteMissing
from .command import find_tool, run_cmd

logger = logging.getLogger(__name__)

GIT_EXTRA_DIRS = (
    r"C:\Program Files\Git\cmd",
    r"C:\Program Files (x86)\Git\cmd",
)


def find_git() -> Optional[str]:
    return find_tool("git.exe", GIT_EXTRA_DIRS) or find_tool("git")


def require_git() -> str:
    git = find_git()
    if not git:
        raise PrerequisiteMissing("git not found on PATH (was the package-install step successful?)")
    return git


def get_global(git: str, key: str, *, dry_run: bool = False) -> str:
    """Return a --global config value, or "" when unset."""

    r = run_cmd([git, "config", "--global", "--get", key], check=False, dry_run=dry_run)
    if r.returncode != 0:
        return ""
    return r.stdout.strip()


def set_global(git: str, key: str, value: str, *, dry_run: bool = False) -> None:
    run_cmd([git, "config", "--global", key, value], dry_run=dry_run)
