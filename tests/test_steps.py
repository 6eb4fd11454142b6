from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from devbox_provisioner.config import ProvisionConfig
from devbox_provisioner.errors import CommandError, PrerequisiteMissing, StepError
from devbox_provisioner.lib.command import CmdResult
from devbox_provisioner.pipeline import StepOutcome, run_pipeline
from devbox_provisioner.state_store import CheckpointStore
from devbox_provisioner.steps import (
    CosmeticSettingsStep,
    GitDefaultsStep,
    InstallToolsStep,
    RuntimeManagerStep,
    SecurityExclusionsStep,
    UpdatePolicyStep,
    WslSetupStep,
)
from devbox_provisioner.steps import (
    step_10_update_policy,
    step_20_wsl_setup,
    step_30_install_tools,
    step_40_runtime_manager,
    step_50_cosmetic_settings,
    step_60_git_defaults,
    step_70_security_exclusions,
)


def _result(rc=0, stdout=""):
    return CmdResult(argv=["x"], returncode=rc, stdout=stdout, stderr="")


# --- git defaults ------------------------------------------------------------


class FakeGitConfig:
    def __init__(self, **values):
        self.values = {k.replace("_", "."): v for k, v in values.items()}
        self.writes = []

    def get(self, git, key, *, dry_run=False):
        return self.values.get(key, "")

    def set(self, git, key, value, *, dry_run=False):
        self.writes.append(key)
        self.values[key] = value


@pytest.fixture
def git_config(monkeypatch):
    def install(**values):
        fake = FakeGitConfig(**values)
        monkeypatch.setattr(step_60_git_defaults, "find_git", lambda: "git")
        monkeypatch.setattr(step_60_git_defaults, "require_git", lambda: "git")
        monkeypatch.setattr(step_60_git_defaults, "find_tool", lambda name, extra_dirs=(): None)
        monkeypatch.setattr(step_60_git_defaults, "get_global", fake.get)
        monkeypatch.setattr(step_60_git_defaults, "set_global", fake.set)
        return fake

    return install


def test_git_identity_present_skips_prompt_but_applies_preferences(ctx, git_config):
    fake = git_config(user_name="Pat", user_email="pat@example.com")
    step = GitDefaultsStep()

    assert step.is_satisfied(ctx)
    result = run_pipeline(steps=[step], store=CheckpointStore(), ctx=ctx)

    assert result.outcome_of(step.step_id) is StepOutcome.EXECUTED
    assert fake.values["init.defaultBranch"] == "main"
    assert fake.values["pull.rebase"] == "false"
    assert fake.values["core.autocrlf"] == "true"
    assert fake.values["credential.helper"] == "manager"
    assert "core.editor" not in fake.values
    assert "user.name" not in fake.writes


def test_git_prompts_only_for_blank_fields(ctx, git_config):
    fake = git_config(user_name="Pat")
    asked = []

    def prompt(message):
        asked.append(message)
        return "pat@example.com"

    ctx = dataclasses.replace(ctx, prompt=prompt)
    GitDefaultsStep().run(ctx, satisfied=False)

    assert asked == ["Git email: "]
    assert fake.values["user.email"] == "pat@example.com"
    assert fake.values["user.name"] == "Pat"


def test_git_blank_answer_skips_field_without_failing(ctx, git_config, caplog):
    fake = git_config()
    ctx = dataclasses.replace(ctx, prompt=lambda message: "   ")
    store = CheckpointStore()

    with caplog.at_level(logging.WARNING):
        result = run_pipeline(steps=[GitDefaultsStep()], store=store, ctx=ctx)

    assert result.outcome_of("60_git_defaults") is StepOutcome.EXECUTED
    assert "user.name" not in fake.values and "user.email" not in fake.values
    assert fake.values["init.defaultBranch"] == "main"
    assert "No value entered for user.name" in caplog.text


def test_git_preferences_converge_across_runs(ctx, git_config):
    fake = git_config(user_name="Pat", user_email="pat@example.com", pull_rebase="true")

    run_pipeline(steps=[GitDefaultsStep()], store=CheckpointStore(), ctx=ctx)
    after_first = dict(fake.values)
    run_pipeline(steps=[GitDefaultsStep()], store=CheckpointStore(), ctx=ctx)

    assert fake.values == after_first
    assert fake.values["pull.rebase"] == "false"


def test_git_missing_is_soft_failure(ctx, monkeypatch):
    def no_git():
        raise PrerequisiteMissing("git not found")

    monkeypatch.setattr(step_60_git_defaults, "find_git", lambda: None)
    monkeypatch.setattr(step_60_git_defaults, "require_git", no_git)
    store = CheckpointStore()

    result = run_pipeline(steps=[GitDefaultsStep()], store=store, ctx=ctx)

    assert result.outcome_of("60_git_defaults") is StepOutcome.FAILED
    assert not store.has("60_git_defaults")


# --- package install ---------------------------------------------------------


def test_install_tools_isolates_each_package(ctx, monkeypatch, caplog):
    cfg = ProvisionConfig(tool_overrides={"Extra": "Vendor.Extra"})
    ctx = dataclasses.replace(ctx, cfg=cfg)
    tools = cfg.tools
    ids = list(tools.values())
    broken, soft = ids[0], ids[1]
    attempted = []

    def fake_install(package_id, *, dry_run=False):
        attempted.append(package_id)
        if package_id == broken:
            raise CommandError(["winget"], 1)
        return _result(0x8A15002B if package_id == soft else 0)

    monkeypatch.setattr(step_30_install_tools, "winget_is_installed", lambda pkg, *, dry_run=False: False)
    monkeypatch.setattr(step_30_install_tools, "winget_install", fake_install)

    with caplog.at_level(logging.INFO):
        InstallToolsStep().run(ctx, satisfied=False)

    assert attempted == ids
    assert "Vendor.Extra" in attempted
    levels = {r.levelno for r in caplog.records if broken in r.getMessage()}
    assert logging.ERROR in levels
    levels = {r.levelno for r in caplog.records if soft in r.getMessage()}
    assert logging.WARNING in levels


def test_install_tools_skips_installed_packages(ctx, monkeypatch):
    installed = set(ctx.cfg.tools.values())
    monkeypatch.setattr(step_30_install_tools, "winget_is_installed", lambda pkg, *, dry_run=False: pkg in installed)
    monkeypatch.setattr(
        step_30_install_tools,
        "winget_install",
        lambda pkg, *, dry_run=False: pytest.fail(f"reinstalled {pkg}"),
    )

    step = InstallToolsStep()
    assert step.is_satisfied(ctx)
    step.run(ctx, satisfied=True)


# --- runtime version manager -------------------------------------------------


def test_runtime_manager_without_nvm_is_prerequisite_missing(ctx, monkeypatch):
    monkeypatch.setattr(step_40_runtime_manager, "find_tool", lambda name, extra_dirs=(): None)
    step = RuntimeManagerStep()

    assert not step.is_satisfied(ctx)
    with pytest.raises(PrerequisiteMissing):
        step.run(ctx, satisfied=False)


def test_runtime_manager_installs_lts(ctx, monkeypatch):
    calls = []
    monkeypatch.setattr(
        step_40_runtime_manager,
        "find_tool",
        lambda name, extra_dirs=(): "C:/nvm/nvm.exe" if name.startswith("nvm") else None,
    )
    monkeypatch.setattr(step_40_runtime_manager, "run_cmd", lambda argv, **kw: calls.append(argv) or _result())

    RuntimeManagerStep().run(ctx, satisfied=False)

    assert calls == [["C:/nvm/nvm.exe", "install", "lts"], ["C:/nvm/nvm.exe", "use", "lts"]]


# --- registry steps ----------------------------------------------------------


class FakeRegistry:
    def __init__(self):
        self.values = {}
        self.writes = 0

    def get(self, key, name, *, dry_run=False):
        return self.values.get((key, name))

    def set(self, key, name, value, *, dry_run=False):
        self.writes += 1
        self.values[(key, name)] = value

    def match(self, key, values, *, dry_run=False):
        return all(self.values.get((key, n)) == v for n, v in values.items())


def test_update_policy_writes_only_differing_values(ctx, monkeypatch):
    reg = FakeRegistry()
    reg.values[(step_10_update_policy.AU_KEY, "AUOptions")] = 3
    monkeypatch.setattr(step_10_update_policy, "get_dword", reg.get)
    monkeypatch.setattr(step_10_update_policy, "set_dword", reg.set)
    monkeypatch.setattr(step_10_update_policy, "dwords_match", reg.match)
    step = UpdatePolicyStep()

    assert not step.is_satisfied(ctx)
    step.run(ctx, satisfied=False)

    assert reg.writes == 1
    assert step.is_satisfied(ctx)


def test_cosmetic_settings_become_satisfied(ctx, monkeypatch):
    reg = FakeRegistry()
    monkeypatch.setattr(step_50_cosmetic_settings, "set_dword", reg.set)
    monkeypatch.setattr(step_50_cosmetic_settings, "dwords_match", reg.match)
    store = CheckpointStore()

    first = run_pipeline(steps=[CosmeticSettingsStep()], store=store, ctx=ctx)
    second = run_pipeline(steps=[CosmeticSettingsStep()], store=CheckpointStore(), ctx=ctx)

    assert first.outcome_of("50_cosmetic_settings") is StepOutcome.EXECUTED
    assert second.outcome_of("50_cosmetic_settings") is StepOutcome.SATISFIED
    assert reg.values[(step_50_cosmetic_settings.EXPLORER_KEY, "HideFileExt")] == 0


# --- WSL ---------------------------------------------------------------------


def test_wsl_setup_enables_missing_features_and_writes_script(ctx, monkeypatch):
    enabled = {"Microsoft-Windows-Subsystem-Linux"}
    distros = []
    calls = []

    monkeypatch.setattr(step_20_wsl_setup, "feature_enabled", lambda f, *, dry_run=False: f in enabled)
    monkeypatch.setattr(step_20_wsl_setup, "enable_feature", lambda f, *, dry_run=False: enabled.add(f))
    monkeypatch.setattr(step_20_wsl_setup, "list_distros", lambda *, dry_run=False: list(distros))
    monkeypatch.setattr(step_20_wsl_setup, "set_default_version", lambda v, *, dry_run=False: calls.append(v))
    monkeypatch.setattr(step_20_wsl_setup, "install_distro", lambda d, *, dry_run=False: distros.append(d))
    step = WslSetupStep()

    assert not step.is_satisfied(ctx)
    step.run(ctx, satisfied=False)

    assert "VirtualMachinePlatform" in enabled
    assert calls == [2]
    assert distros == ["Ubuntu"]
    assert Path(ctx.paths.wsl_first_boot_script).read_text(encoding="utf-8").startswith("#!/usr/bin/env bash")
    assert step.is_satisfied(ctx)


# --- security exclusions -----------------------------------------------------


def test_security_exclusions_add_only_missing_and_fail_on_errors(ctx, monkeypatch):
    cfg = ProvisionConfig(
        raw={"security_exclusions": {"paths": ["/src", "/work"], "processes": ["git.exe", "node.exe"]}}
    )
    ctx = dataclasses.replace(ctx, cfg=cfg)
    added = []

    def add_path(path, *, dry_run=False):
        if path == "/work":
            raise CommandError(["powershell"], 1, "access denied")
        added.append(path)

    monkeypatch.setattr(
        step_70_security_exclusions,
        "get_exclusions",
        lambda *, dry_run=False: {"paths": ["/src"], "processes": ["GIT.EXE"]},
    )
    monkeypatch.setattr(step_70_security_exclusions, "add_path_exclusion", add_path)
    monkeypatch.setattr(
        step_70_security_exclusions,
        "add_process_exclusion",
        lambda proc, *, dry_run=False: added.append(proc),
    )
    step = SecurityExclusionsStep()

    assert not step.is_satisfied(ctx)
    with pytest.raises(StepError, match="/work"):
        step.run(ctx, satisfied=False)

    assert added == ["node.exe"]


def test_security_exclusions_without_defender_is_soft(ctx, monkeypatch):
    def unavailable(*, dry_run=False):
        raise PrerequisiteMissing("Get-MpPreference unavailable")

    monkeypatch.setattr(step_70_security_exclusions, "get_exclusions", unavailable)
    store = CheckpointStore()

    result = run_pipeline(steps=[SecurityExclusionsStep()], store=store, ctx=ctx)

    assert result.outcome_of("70_security_exclusions") is StepOutcome.FAILED
    assert not store.has("70_security_exclusions")


def test_git_dry_run_never_prompts(ctx, git_config, caplog):
    fake = git_config()
    ctx = dataclasses.replace(ctx, dry_run=True)

    with caplog.at_level(logging.INFO):
        GitDefaultsStep().run(ctx, satisfied=False)

    assert "Would prompt for user.name" in caplog.text
    assert "Would prompt for user.email" in caplog.text
    assert "user.name" not in fake.values
