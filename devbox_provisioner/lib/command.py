from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..errors import CommandError, PrerequisiteMissing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - A missing executable raises PrerequisiteMissing.
    - check=True raises CommandError on a non-zero exit.
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise PrerequisiteMissing(f"Executable not found: {argv_list[0]}") from e

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise CommandError(argv_list, p.returncode, p.stderr)

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def run_powershell(script: str, *, check: bool = True, dry_run: bool = False) -> CmdResult:
    return run_cmd(
        ["powershell", "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command", script],
        check=check,
        dry_run=dry_run,
    )


def find_tool(name: str, extra_dirs: Iterable[Optional[str]] = ()) -> Optional[str]:
    """Locate an executable on PATH, then in extra_dirs (in order)."""

    found = shutil.which(name)
    if found:
        return found
    for d in extra_dirs:
        if not d:
            continue
        candidate = os.path.join(d, name)
        if os.path.isfile(candidate):
            return candidate
    return None
