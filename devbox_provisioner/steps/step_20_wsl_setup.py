from __future__ import annotations

import logging
from pathlib import Path

from ..context import ProvisionCtx
from ..lib.wsl import (
    WSL_FEATURES,
    enable_feature,
    feature_enabled,
    install_distro,
    list_distros,
    render_first_boot_script,
    set_default_version,
    write_first_boot_script,
)

logger = logging.getLogger(__name__)


class WslSetupStep:
    """Enable the Windows Subsystem for Linux and stage its first-boot script."""

    step_id = "20_wsl_setup"
    title = "WSL (second OS subsystem)"
    reapply_when_satisfied = False

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def _distro_installed(self, ctx: ProvisionCtx) -> bool:
        want = ctx.cfg.wsl_distro.lower()
        return any(d.lower() == want for d in list_distros(dry_run=ctx.dry_run))

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        if not all(feature_enabled(f, dry_run=ctx.dry_run) for f in WSL_FEATURES):
            return False
        if not Path(ctx.paths.wsl_first_boot_script).exists():
            return False
        return self._distro_installed(ctx)

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        for feature in WSL_FEATURES:
            if feature_enabled(feature, dry_run=ctx.dry_run):
                logger.info("Feature %s already enabled", feature)
                continue
            enable_feature(feature, dry_run=ctx.dry_run)

        set_default_version(2, dry_run=ctx.dry_run)

        distro = ctx.cfg.wsl_distro
        if self._distro_installed(ctx):
            logger.info("WSL distro %s already installed", distro)
        else:
            install_distro(distro, dry_run=ctx.dry_run)

        write_first_boot_script(
            ctx.paths.wsl_first_boot_script,
            render_first_boot_script(),
            dry_run=ctx.dry_run,
        )
        logger.info(
            "WSL ready: launch %s once, then run %s inside it",
            distro,
            ctx.paths.wsl_first_boot_script,
        )
