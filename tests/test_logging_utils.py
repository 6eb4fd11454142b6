from __future__ import annotations

import logging

import pytest

from devbox_provisioner.logging_utils import SUCCESS, configure_logging, log_success


@pytest.fixture
def clean_root_logger():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_devbox_configured", "_devbox_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


def test_success_level_is_registered(caplog):
    assert logging.getLevelName(SUCCESS) == "SUCCESS"
    with caplog.at_level(logging.INFO):
        log_success(logging.getLogger("devbox_provisioner.test"), "Step %s completed", "x")
    assert caplog.records[-1].levelname == "SUCCESS"


def test_transcript_is_appended_and_configured_once(tmp_path, clean_root_logger):
    log_path = tmp_path / "logs" / "transcript.log"
    log_path.parent.mkdir()
    log_path.write_text("previous session\n", encoding="utf-8")

    actual = configure_logging(log_path=str(log_path), also_console=False)
    handlers = len(clean_root_logger.handlers)
    again = configure_logging(log_path=str(tmp_path / "other.log"), also_console=False)

    logging.getLogger("devbox_provisioner.test").warning("hello transcript")
    for h in clean_root_logger.handlers:
        h.flush()

    assert actual == again == str(log_path)
    assert len(clean_root_logger.handlers) == handlers
    text = log_path.read_text(encoding="utf-8")
    assert text.startswith("previous session\n")
    assert "hello transcript" in text
