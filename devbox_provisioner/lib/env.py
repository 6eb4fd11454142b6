from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path


def _home() -> str:
    return str(Path.home())


@dataclass(frozen=True)
class Paths:
    checkpoint: str = field(
        default_factory=lambda: os.path.join(tempfile.gettempdir(), "devbox-provisioner", "checkpoint.json")
    )
    transcript: str = field(default_factory=lambda: os.path.join(_home(), "devbox-provisioner.log"))
    wsl_first_boot_script: str = field(default_factory=lambda: os.path.join(_home(), "wsl-first-boot.sh"))


PATHS = Paths()
