from __future__ import annotations

import logging

from ..context import ProvisionCtx
from ..lib.registry import dwords_match, get_dword, set_dword

logger = logging.getLogger(__name__)

AU_KEY = r"HKLM\SOFTWARE\Policies\Microsoft\Windows\WindowsUpdate\AU"

# Download updates automatically, notify before install; never auto-reboot a logged-on session.
AU_VALUES = {
    "NoAutoRebootWithLoggedOnUsers": 1,
    "AUOptions": 3,
}


class UpdatePolicyStep:
    step_id = "10_update_policy"
    title = "Windows Update policy"
    reapply_when_satisfied = False

    def __init__(self, *, skip_requested: bool = False) -> None:
        self.skip_requested = skip_requested

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return dwords_match(AU_KEY, AU_VALUES, dry_run=ctx.dry_run)

    def run(self, ctx: ProvisionCtx, *, satisfied: bool) -> None:
        for name, value in AU_VALUES.items():
            if get_dword(AU_KEY, name, dry_run=ctx.dry_run) == value:
                continue
            set_dword(AU_KEY, name, value, dry_run=ctx.dry_run)
            logger.info("Set %s\\%s=%s", AU_KEY, name, value)
