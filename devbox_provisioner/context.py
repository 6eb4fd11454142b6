from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .config import ProvisionConfig
from .lib.env import PATHS, Paths


@dataclass(frozen=True)
class ProvisionCtx:
    cfg: ProvisionConfig
    paths: Paths = PATHS
    dry_run: bool = False
    prompt: Callable[[str], str] = input
