from __future__ import annotations

import ctypes
import logging
import os
import platform
from typing import Optional

from .config import ProvisionConfig
from .errors import PreflightError
from .lib.net import is_online

logger = logging.getLogger(__name__)


def is_elevated() -> bool:
    if os.name == "nt":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0


def windows_build(version: Optional[str] = None) -> Optional[int]:
    """Return the build number from a "major.minor.build" version string."""

    version = platform.version() if version is None else version
    parts = version.split(".")
    if len(parts) < 3:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


def check_elevated(*, dry_run: bool = False) -> None:
    if is_elevated():
        logger.info("Preflight: running with administrative privileges")
        return
    if dry_run:
        logger.warning("Preflight: not elevated (ignored in dry-run)")
        return
    raise PreflightError("Administrative privileges are required; re-run from an elevated shell")


def check_network(host: str, retries: int, *, dry_run: bool = False) -> None:
    if not is_online(host, retries=retries, dry_run=dry_run):
        raise PreflightError(f"No network connectivity (no reply from {host} after {retries} attempts)")
    logger.info("Preflight: network reachable (%s)", host)


def check_platform_build(min_build: int, *, version: Optional[str] = None, dry_run: bool = False) -> None:
    build = windows_build(version)
    if build is None:
        if dry_run:
            logger.warning("Preflight: Windows build unknown (ignored in dry-run)")
            return
        raise PreflightError(f"Could not determine the Windows build number from {platform.version()!r}")
    if build < min_build:
        raise PreflightError(f"Windows build {build} is older than the required {min_build}")
    logger.info("Preflight: Windows build %s (>= %s)", build, min_build)


def run_preflight(cfg: ProvisionConfig, *, dry_run: bool = False) -> None:
    """Run the fatal, non-resumable checks in order. Raises PreflightError."""

    check_elevated(dry_run=dry_run)
    check_network(cfg.network_host, cfg.network_retries, dry_run=dry_run)
    check_platform_build(cfg.min_build, dry_run=dry_run)
