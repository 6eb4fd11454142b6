from __future__ import annotations

import logging
from typing import Dict, List

from ..context import ProvisionCtx
from ..lib.pkg import winget_install, winget_is_installed

logger = logging.getLogger(__name__)


class InstallToolsStep:
    step_id = "30_install_tools"
    title = "Developer tools (winget)"
    reapply_when_satisfied = False

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        tools = ctx.cfg.tools
        return all(winget_is_installed(pkg, dry_run=ctx.dry_run) for pkg in tools.values())

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        tools: Dict[str, str] = ctx.cfg.tools
        installed: List[str] = []
        warned: List[str] = []
        errored: List[str] = []

        # Each entry is independent: one failing package never stops the rest.
        for name, package_id in tools.items():
            try:
                if winget_is_installed(package_id, dry_run=ctx.dry_run):
                    logger.info("%s (%s) already installed", name, package_id)
                    installed.append(name)
                    continue
                r = winget_install(package_id, dry_run=ctx.dry_run)
            except Exception as e:
                logger.error("Installing %s (%s) raised: %s", name, package_id, e)
                errored.append(name)
                continue

            if r.returncode != 0:
                # winget also exits non-zero for "already installed" and "reboot required".
                logger.warning("winget exited %s for %s (%s)", r.returncode, name, package_id)
                warned.append(name)
            else:
                logger.info("Installed %s (%s)", name, package_id)
                installed.append(name)

        logger.info(
            "Tools: %s ok, %s warnings, %s errors",
            len(installed),
            len(warned),
            len(errored),
        )
        if errored:
            logger.warning("Tools not installed: %s", ", ".join(errored))
