from __future__ import annotations

import logging

from ..context import ProvisionCtx
from ..lib.registry import dwords_match, set_dword

logger = logging.getLogger(__name__)

EXPLORER_KEY = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced"
THEME_KEY = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Themes\Personalize"

SETTINGS = {
    EXPLORER_KEY: {"HideFileExt": 0, "Hidden": 1},
    THEME_KEY: {"AppsUseLightTheme": 0, "SystemUsesLightTheme": 0},
}


class CosmeticSettingsStep:
    step_id = "50_cosmetic_settings"
    title = "Explorer and theme settings"
    reapply_when_satisfied = False

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return all(dwords_match(key, values, dry_run=ctx.dry_run) for key, values in SETTINGS.items())

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        for key, values in SETTINGS.items():
            for name, value in values.items():
                set_dword(key, name, value, dry_run=ctx.dry_run)
        logger.info("Explorer shows file extensions and hidden files; dark theme applied")
