from __future__ import annotations

import argparse
import logging
from typing import Callable, List, Optional

from .config import load_config, parse_tool_overrides
from .context import ProvisionCtx
from .errors import PreflightError, StepError
from .lib.command import run_cmd
from .lib.env import PATHS, Paths
from .logging_utils import DEFAULT_LOG_PATH, configure_logging, log_success
from .pipeline import PipelineResult, Step, run_pipeline
from .preflight import run_preflight
from .state_store import CheckpointStore
from .steps import (
    CosmeticSettingsStep,
    GitDefaultsStep,
    InstallToolsStep,
    RuntimeManagerStep,
    SecurityExclusionsStep,
    UpdatePolicyStep,
    WslSetupStep,
)

logger = logging.getLogger(__name__)


DEFAULT_CHECKPOINT_PATH = PATHS.checkpoint

SKIP_FLAGS = (
    "skip_update_policy",
    "skip_wsl_setup",
    "skip_tool_install",
    "skip_runtime_manager",
    "skip_cosmetic_settings",
    "skip_git_defaults",
    "skip_security_exclusions",
)


def build_steps(
    *,
    skip_update_policy: bool = False,
    skip_wsl_setup: bool = False,
    skip_tool_install: bool = False,
    skip_runtime_manager: bool = False,
    skip_cosmetic_settings: bool = False,
    skip_git_defaults: bool = False,
    skip_security_exclusions: bool = False,
) -> List[Step]:
    # Order is significant: later steps use artifacts of earlier ones.
    return [
        UpdatePolicyStep(skip_requested=skip_update_policy),
        WslSetupStep(skip_requested=skip_wsl_setup),
        InstallToolsStep(skip_requested=skip_tool_install),
        RuntimeManagerStep(skip_requested=skip_runtime_manager),
        CosmeticSettingsStep(skip_requested=skip_cosmetic_settings),
        GitDefaultsStep(skip_requested=skip_git_defaults),
        SecurityExclusionsStep(skip_requested=skip_security_exclusions),
    ]


def log_summary(result: PipelineResult, store: CheckpointStore) -> None:
    logger.info("===== Provisioning summary =====")
    for step_id, outcome in result.outcomes:
        logger.info("  %-24s %s", step_id, outcome.value)
    logger.info(
        "Executed=%s skipped=%s failed=%s checkpointed=%s",
        len(result.ran),
        len(result.skipped),
        len(result.failed),
        len(store.completed_steps()),
    )
    if result.failed:
        logger.warning("Failed steps: %s (re-run with --resume to retry them)", ", ".join(result.failed))
    else:
        log_success(logger, "Provisioning complete")


def finalize(
    *,
    reboot: bool,
    countdown: int,
    prompt: Callable[[str], str] = input,
    dry_run: bool = False,
) -> None:
    """Reboot after a countdown, or ask the operator."""

    if not reboot:
        if dry_run:
            logger.info("Would prompt for a restart")
            return
        answer = prompt("A restart is recommended. Restart now? [y/N] ").strip().lower()
        if answer not in {"y", "yes"}:
            logger.info("Restart skipped; restart manually to finish applying changes")
            return
    logger.info("Restarting in %s seconds", countdown)
    try:
        run_cmd(["shutdown", "/r", "/t", str(countdown)], check=False, dry_run=dry_run)
    except StepError as e:
        logger.error("Could not schedule restart: %s", e)


def run(
    *,
    config_path: Optional[str] = None,
    checkpoint_path: str = DEFAULT_CHECKPOINT_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    resume: bool = False,
    reboot: bool = False,
    dry_run: bool = False,
    tool_overrides: Optional[dict] = None,
    skips: Optional[dict] = None,
    prompt: Callable[[str], str] = input,
) -> int:
    """Run preflight, then every step, persisting a checkpoint for resume.

    Returns the process exit code.
    """

    actual_log_path = configure_logging(log_path=log_path)
    logger.info("Session transcript: %s", actual_log_path)

    cfg = load_config(config_path, tool_overrides=tool_overrides)

    try:
        run_preflight(cfg, dry_run=dry_run)
    except PreflightError as e:
        logger.error("Preflight failed: %s", e)
        return 1

    store = CheckpointStore(None if dry_run else checkpoint_path, resume=resume)
    store.load()

    ctx = ProvisionCtx(
        cfg=cfg,
        paths=Paths(checkpoint=checkpoint_path, transcript=actual_log_path),
        dry_run=dry_run,
        prompt=prompt,
    )
    steps = build_steps(**(skips or {}))
    result = run_pipeline(steps=steps, store=store, ctx=ctx)

    log_summary(result, store)
    finalize(reboot=reboot, countdown=cfg.reboot_countdown, prompt=prompt, dry_run=dry_run)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="devbox-provisioner")
    p.add_argument("--config", default=None, help="Path to a YAML config file")
    p.add_argument("--checkpoint", default=DEFAULT_CHECKPOINT_PATH, help="Path to the checkpoint file (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the session transcript")
    p.add_argument("--resume", action="store_true", help="Skip steps recorded in the checkpoint")
    p.add_argument("--reboot", action="store_true", help="Restart automatically after the summary")
    p.add_argument("--dry-run", action="store_true", help="Log commands without executing them")
    p.add_argument(
        "--tool",
        action="append",
        default=[],
        metavar="NAME=PACKAGE_ID",
        help="Add or override a winget package (repeatable)",
    )
    p.add_argument("--skip-update-policy", action="store_true")
    p.add_argument("--skip-wsl-setup", action="store_true")
    p.add_argument("--skip-tool-install", action="store_true")
    p.add_argument("--skip-runtime-manager", action="store_true")
    p.add_argument("--skip-cosmetic-settings", action="store_true")
    p.add_argument("--skip-git-defaults", action="store_true")
    p.add_argument("--skip-security-exclusions", action="store_true")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = _build_parser()
    args = p.parse_args(argv)

    try:
        tool_overrides = parse_tool_overrides(args.tool)
    except ValueError as e:
        p.error(str(e))

    return run(
        config_path=args.config,
        checkpoint_path=args.checkpoint,
        log_path=args.log,
        resume=bool(args.resume),
        reboot=bool(args.reboot),
        dry_run=bool(args.dry_run),
        tool_overrides=tool_overrides,
        skips={name: bool(getattr(args, name)) for name in SKIP_FLAGS},
    )


if __name__ == "__main__":
    raise SystemExit(main())
