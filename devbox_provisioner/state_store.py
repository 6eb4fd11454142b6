from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    if _detect_format(p) in {"yaml", "yml"}:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"Checkpoint file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(state, sort_keys=True), encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")


class CheckpointStore:
    """Record of completed step names (step_id -> True).

    The record is rewritten in full on every mark_done(). With path=None the
    store lives in memory only (dry-run, tests).
    """

    def __init__(self, path: Optional[str] = None, *, resume: bool = False) -> None:
        self.path = path
        self.resume = resume
        self._completed: Dict[str, bool] = {}

    def load(self) -> None:
        self._completed = {}
        if not self.resume or self.path is None:
            return
        if not Path(self.path).exists():
            logger.info("No checkpoint at %s; starting fresh", self.path)
            return
        try:
            data = load_state(self.path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable checkpoint %s: %s", self.path, e)
            return

        self._completed = {str(k): True for k, v in data.items() if v is True}
        logger.info(
            "Resuming from checkpoint %s (%s completed: %s)",
            self.path,
            len(self._completed),
            ", ".join(sorted(self._completed)) or "-",
        )

    def has(self, step_id: str) -> bool:
        return self._completed.get(step_id) is True

    def mark_done(self, step_id: str) -> None:
        self._completed[step_id] = True
        if self.path is None:
            return
        try:
            save_state(self.path, dict(self._completed))
        except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
            logger.error("Failed to persist checkpoint %s after %s: %s", self.path, step_id, e)

    def completed_steps(self) -> List[str]:
        return sorted(self._completed)
