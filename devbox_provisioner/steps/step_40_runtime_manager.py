from __future__ import annotations

import logging
import os

from ..context import ProvisionCtx
from ..errors import PrerequisiteMissing
from ..lib.command import find_tool, run_cmd

logger = logging.getLogger(__name__)

NODE_VERSION = "lts"


def _find_nvm() -> str:
    appdata = os.environ.get("APPDATA")
    nvm = find_tool(
        "nvm.exe",
        [os.environ.get("NVM_HOME"), os.path.join(appdata, "nvm") if appdata else None],
    ) or find_tool("nvm")
    if not nvm:
        raise PrerequisiteMissing("nvm not found (was the package-install step successful?)")
    return nvm


class RuntimeManagerStep:
    """Install the Node.js LTS runtime through NVM for Windows."""

    step_id = "40_runtime_manager"
    title = "Node.js via nvm"
    reapply_when_satisfied = False

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        node = find_tool("node.exe") or find_tool("node")
        if not node:
            return False
        return run_cmd([node, "--version"], check=False, dry_run=ctx.dry_run).ok

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        nvm = _find_nvm()
        run_cmd([nvm, "install", NODE_VERSION], dry_run=ctx.dry_run)
        run_cmd([nvm, "use", NODE_VERSION], dry_run=ctx.dry_run)
        logger.info("Node.js %s installed and selected via %s", NODE_VERSION, nvm)
