from .step_10_update_policy import UpdatePolicyStep
from .step_20_wsl_setup import WslSetupStep
from .step_30_install_tools import InstallToolsStep
from .step_40_runtime_manager import RuntimeManagerStep
from .step_50_cosmetic_settings import CosmeticSettingsStep
from .step_60_git_defaults import GitDefaultsStep
from .step_70_security_exclusions import SecurityExclusionsStep

__all__ = [
    "UpdatePolicyStep",
    "WslSetupStep",
    "InstallToolsStep",
    "RuntimeManagerStep",
    "CosmeticSettingsStep",
    "GitDefaultsStep",
    "SecurityExclusionsStep",
]
