from __future__ import annotations

import logging

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


def winget_is_installed(package_id: str, *, dry_run: bool = False) -> bool:
    """Return True if winget reports package_id as installed."""
    if dry_run:
        # Plan every install in dry-run.
        return False
    r = run_cmd(
        ["winget", "list", "--id", package_id, "-e", "--accept-source-agreements"],
        check=False,
    )
    return r.returncode == 0


def winget_install(package_id: str, *, dry_run: bool = False) -> CmdResult:
    """Install one package. Non-zero exits are returned, not raised."""
    return run_cmd(
        [
            "winget",
            "install",
            "--id",
            package_id,
            "-e",
            "--silent",
            "--accept-source-agreements",
            "--accept-package-agreements",
        ],
        check=False,
        dry_run=dry_run,
    )
