from __future__ import annotations

import logging
import os
import time

from .command import run_cmd

logger = logging.getLogger(__name__)


def _ping_argv(host: str) -> list[str]:
    if os.name == "nt":
        return ["ping", "-n", "1", "-w", "2000", host]
    return ["ping", "-c", "1", "-W", "2", host]


def is_online(host: str, *, retries: int = 3, delay_s: float = 2.0, dry_run: bool = False) -> bool:
    """Best-effort online check: ping host up to `retries` times."""

    attempts = max(1, int(retries))
    for attempt in range(1, attempts + 1):
        try:
            r = run_cmd(_ping_argv(host), check=False, dry_run=dry_run)
        except Exception as e:
            logger.warning("Ping %s failed to start (attempt %s/%s): %s", host, attempt, attempts, e)
            return False
        if r.returncode == 0:
            return True
        logger.info("Ping %s unanswered (attempt %s/%s)", host, attempt, attempts)
        if attempt < attempts:
            time.sleep(delay_s)
    return False
