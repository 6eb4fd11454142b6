from __future__ import annotations

import logging
from pathlib import Path

from ..errors import CommandError
from .command import run_cmd

logger = logging.getLogger(__name__)

WSL_FEATURES = (
    "Microsoft-Windows-Subsystem-Linux",
    "VirtualMachinePlatform",
)


def feature_enabled(feature: str, *, dry_run: bool = False) -> bool:
    r = run_cmd(
        ["dism.exe", "/online", "/get-featureinfo", f"/featurename:{feature}", "/English"],
        check=False,
        dry_run=dry_run,
    )
    if r.returncode != 0:
        return False
    for line in r.stdout.splitlines():
        key, _, value = line.partition(":")
        if key.strip().lower() == "state":
            return value.strip().lower() == "enabled"
    return False


def enable_feature(feature: str, *, dry_run: bool = False) -> None:
    # 3010 = success, reboot required.
    r = run_cmd(
        ["dism.exe", "/online", "/enable-feature", f"/featurename:{feature}", "/all", "/norestart"],
        check=False,
        dry_run=dry_run,
    )
    if r.returncode == 3010:
        logger.warning("Feature %s enabled; a reboot is required", feature)
    elif r.returncode != 0:
        raise CommandError(r.argv, r.returncode, r.stderr)


def _decode_wsl_output(text: str) -> str:
    # wsl.exe writes UTF-16LE; decoded as text it shows up with NULs between chars.
    return text.replace("\x00", "")


def list_distros(*, dry_run: bool = False) -> list[str]:
    r = run_cmd(["wsl", "--list", "--quiet"], check=False, dry_run=dry_run)
    if r.returncode != 0:
        return []
    return [ln.strip() for ln in _decode_wsl_output(r.stdout).splitlines() if ln.strip()]


def set_default_version(version: int = 2, *, dry_run: bool = False) -> None:
    run_cmd(["wsl", "--set-default-version", str(version)], dry_run=dry_run)


def install_distro(distro: str, *, dry_run: bool = False) -> None:
    run_cmd(["wsl", "--install", "-d", distro, "--no-launch"], dry_run=dry_run)


def render_first_boot_script() -> str:
    lines = [
        "#!/usr/bin/env bash",
        "# Run once inside the WSL distro after its first launch.",
        "set -euo pipefail",
        "",
        "sudo apt-get update",
        "sudo apt-get upgrade -y",
        "sudo apt-get install -y build-essential curl git unzip ca-certificates",
        "",
        "git config --global init.defaultBranch main",
        "git config --global core.autocrlf input",
        'git config --global credential.helper "/mnt/c/Program\\ Files/Git/mingw64/bin/git-credential-manager.exe"',
        "",
        'echo "WSL first-boot setup complete."',
        "",
    ]
    return "\n".join(lines)


def write_first_boot_script(path: str, contents: str, *, dry_run: bool = False) -> None:
    p = Path(path)
    if dry_run:
        logger.info("Would write %s", str(p))
        return
    p.parent.mkdir(parents=True, exist_ok=True)
    # LF endings: the script runs under bash.
    p.write_bytes(contents.encode("utf-8"))
    logger.info("Wrote WSL first-boot script: %s", str(p))
