from __future__ import annotations

import logging
from typing import Optional

from .command import run_cmd

logger = logging.getLogger(__name__)


def _parse_reg_query(stdout: str, name: str) -> Optional[str]:
    # Value lines look like: "    HideFileExt    REG_DWORD    0x0"
    for line in stdout.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[0].lower() == name.lower() and parts[1].startswith("REG_"):
            return " ".join(parts[2:])
    return None


def get_dword(key: str, name: str, *, dry_run: bool = False) -> Optional[int]:
    """Return a REG_DWORD value, or None if the key/value does not exist."""

    r = run_cmd(["reg", "query", key, "/v", name], check=False, dry_run=dry_run)
    if r.returncode != 0:
        return None
    raw = _parse_reg_query(r.stdout, name)
    if raw is None:
        return None
    try:
        return int(raw, 0)
    except ValueError:
        logger.warning("Unexpected registry data for %s\\%s: %r", key, name, raw)
        return None


def set_dword(key: str, name: str, value: int, *, dry_run: bool = False) -> None:
    run_cmd(
        ["reg", "add", key, "/v", name, "/t", "REG_DWORD", "/d", str(int(value)), "/f"],
        dry_run=dry_run,
    )


def dwords_match(key: str, values: dict[str, int], *, dry_run: bool = False) -> bool:
    return all(get_dword(key, name, dry_run=dry_run) == want for name, want in values.items())
