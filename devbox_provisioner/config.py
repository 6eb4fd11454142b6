from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

logger = logging.getLogger(__name__)


# display name -> winget package identifier
DEFAULT_TOOLS: Dict[str, str] = {
    "Git": "Git.Git",
    "GitHub CLI": "GitHub.cli",
    "Visual Studio Code": "Microsoft.VisualStudioCode",
    "Windows Terminal": "Microsoft.WindowsTerminal",
    "PowerShell": "Microsoft.PowerShell",
    "NVM for Windows": "CoreyButler.NVMforWindows",
    "Python 3.12": "Python.Python.3.12",
    "Docker Desktop": "Docker.DockerDesktop",
    "7-Zip": "7zip.7zip",
}

DEFAULT_NETWORK_HOST = "8.8.8.8"
DEFAULT_NETWORK_RETRIES = 3
# WSL2 needs Windows 10 2004 (build 19041) or later.
DEFAULT_MIN_BUILD = 19041
DEFAULT_WSL_DISTRO = "Ubuntu"
DEFAULT_REBOOT_COUNTDOWN = 10
DEFAULT_EXCLUSION_PROCESSES = ["git.exe", "node.exe", "code.exe", "wsl.exe"]


def _default_exclusion_paths() -> List[str]:
    home = str(Path.home())
    return [
        os.path.join(home, "source"),
        os.path.join(home, ".wsl"),
        tempfile.gettempdir(),
    ]


def merge_tool_table(defaults: Mapping[str, str], overrides: Mapping[str, str]) -> Dict[str, str]:
    """Merge overrides into defaults; the override wins on collision."""

    merged = dict(defaults)
    for name, package_id in overrides.items():
        if name in merged:
            logger.warning("Tool override: %s %s -> %s", name, merged[name], package_id)
        else:
            logger.info("Tool added: %s (%s)", name, package_id)
        merged[name] = package_id
    return merged


def parse_tool_overrides(items: Sequence[str]) -> Dict[str, str]:
    """Parse repeated NAME=PACKAGE_ID arguments."""

    out: Dict[str, str] = {}
    for item in items:
        name, sep, package_id = item.partition("=")
        name, package_id = name.strip(), package_id.strip()
        if not sep or not name or not package_id:
            raise ValueError(f"Tool override must look like NAME=PACKAGE_ID, got {item!r}")
        out[name] = package_id
    return out


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any] = field(default_factory=dict)
    tool_overrides: Dict[str, str] = field(default_factory=dict)

    @cached_property
    def tools(self) -> Dict[str, str]:
        """Install table: defaults, then config-file tools, then CLI overrides."""
        file_tools = self.raw.get("tools") or {}
        if not isinstance(file_tools, dict):
            raise ValueError("config: tools must be a mapping of name -> package id")
        merged = merge_tool_table(DEFAULT_TOOLS, {str(k): str(v) for k, v in file_tools.items()})
        return merge_tool_table(merged, self.tool_overrides)

    def _get(self, section: str, key: str, default: Any) -> Any:
        value = (self.raw.get(section) or {}).get(key)
        return default if value is None else value

    def _get_list(self, section: str, key: str) -> Optional[List[Any]]:
        value = (self.raw.get(section) or {}).get(key)
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError(f"config: {section}.{key} must be a list")
        return value

    @property
    def network_host(self) -> str:
        return str(self._get("preflight", "network_host", DEFAULT_NETWORK_HOST))

    @property
    def network_retries(self) -> int:
        return int(self._get("preflight", "network_retries", DEFAULT_NETWORK_RETRIES))

    @property
    def min_build(self) -> int:
        return int(self._get("preflight", "min_build", DEFAULT_MIN_BUILD))

    @property
    def wsl_distro(self) -> str:
        return str(self._get("wsl", "distro", DEFAULT_WSL_DISTRO))

    @property
    def exclusion_paths(self) -> List[str]:
        paths = self._get_list("security_exclusions", "paths")
        if paths is None:
            return _default_exclusion_paths()
        return [os.path.expandvars(os.path.expanduser(str(p))) for p in paths]

    @property
    def exclusion_processes(self) -> List[str]:
        procs = self._get_list("security_exclusions", "processes")
        if procs is None:
            return list(DEFAULT_EXCLUSION_PROCESSES)
        return [str(p) for p in procs]

    @property
    def reboot_countdown(self) -> int:
        value = self.raw.get("reboot_countdown")
        return DEFAULT_REBOOT_COUNTDOWN if value is None else int(value)


def load_config(path: Optional[str], *, tool_overrides: Optional[Mapping[str, str]] = None) -> ProvisionConfig:
    overrides = dict(tool_overrides or {})
    if path is None:
        return ProvisionConfig(raw={}, tool_overrides=overrides)

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("config file must contain a mapping/object")

    cfg = ProvisionConfig(raw=raw, tool_overrides=overrides)
    # List-valued settings are validated before preflight.
    cfg.exclusion_paths
    cfg.exclusion_processes
    return cfg
