from __future__ import annotations

from typing import List, Optional

import pytest

from devbox_provisioner.config import ProvisionConfig
from devbox_provisioner.context import ProvisionCtx
from devbox_provisioner.lib.env import Paths


def _no_prompt(message: str) -> str:
    raise AssertionError(f"unexpected prompt: {message!r}")


@pytest.fixture
def paths(tmp_path) -> Paths:
    return Paths(
        checkpoint=str(tmp_path / "checkpoint.json"),
        transcript=str(tmp_path / "transcript.log"),
        wsl_first_boot_script=str(tmp_path / "wsl-first-boot.sh"),
    )


@pytest.fixture
def ctx(paths) -> ProvisionCtx:
    return ProvisionCtx(cfg=ProvisionConfig(), paths=paths, prompt=_no_prompt)


class FakeStep:
    def __init__(
        self,
        step_id: str,
        *,
        satisfied: object = False,
        error: Optional[BaseException] = None,
        skip_requested: bool = False,
        reapply_when_satisfied: bool = False,
    ) -> None:
        self.step_id = step_id
        self.title = f"fake {step_id}"
        self.skip_requested = skip_requested
        self.reapply_when_satisfied = reapply_when_satisfied
        self.satisfied = satisfied
        self.error = error
        self.runs: List[bool] = []
        self.checks = 0

    def is_satisfied(self, ctx) -> bool:
        self.checks += 1
        if isinstance(self.satisfied, BaseException):
            raise self.satisfied
        return bool(self.satisfied)

    def run(self, ctx, *, satisfied: bool) -> None:
        self.runs.append(satisfied)
        if self.error is not None:
            raise self.error
