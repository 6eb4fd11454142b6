from __future__ import annotations

import json
import logging
from typing import Dict, List

from ..errors import PrerequisiteMissing
from .command import run_powershell

logger = logging.getLogger(__name__)

_QUERY = (
    "$p = Get-MpPreference; "
    "@{paths = @($p.ExclusionPath); processes = @($p.ExclusionProcess)} | ConvertTo-Json -Compress"
)


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def get_exclusions(*, dry_run: bool = False) -> Dict[str, List[str]]:
    """Return current Defender exclusions as {"paths": [...], "processes": [...]}.

    Raises PrerequisiteMissing when the Defender module is unavailable.
    """

    r = run_powershell(_QUERY, check=False, dry_run=dry_run)
    if r.returncode != 0:
        raise PrerequisiteMissing(f"Get-MpPreference unavailable: {r.stderr.strip() or r.returncode}")
    if not r.stdout.strip():
        return {"paths": [], "processes": []}
    try:
        data = json.loads(r.stdout)
    except ValueError as e:
        raise PrerequisiteMissing(f"Unreadable Get-MpPreference output: {e}") from e

    out: Dict[str, List[str]] = {}
    for key in ("paths", "processes"):
        items = data.get(key) or []
        if isinstance(items, str):
            items = [items]
        out[key] = [str(i) for i in items if i]
    return out


def add_path_exclusion(path: str, *, dry_run: bool = False) -> None:
    run_powershell(f"Add-MpPreference -ExclusionPath {_ps_quote(path)}", dry_run=dry_run)


def add_process_exclusion(process: str, *, dry_run: bool = False) -> None:
    run_powershell(f"Add-MpPreference -ExclusionProcess {_ps_quote(process)}", dry_run=dry_run)
