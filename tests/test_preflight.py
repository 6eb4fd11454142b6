from __future__ import annotations

import pytest

from devbox_provisioner import preflight
from devbox_provisioner.config import ProvisionConfig
from devbox_provisioner.errors import PreflightError


@pytest.mark.parametrize(
    "version,expected",
    [("10.0.19045", 19045), ("10.0.22631", 22631), ("#1 SMP", None), ("10.0.x", None)],
)
def test_windows_build(version, expected):
    assert preflight.windows_build(version) == expected


def test_platform_build_floor():
    preflight.check_platform_build(19041, version="10.0.19041")
    with pytest.raises(PreflightError, match="older than"):
        preflight.check_platform_build(19041, version="10.0.18363")


def test_unknown_build_is_fatal_outside_dry_run():
    with pytest.raises(PreflightError):
        preflight.check_platform_build(19041, version="unknown")
    preflight.check_platform_build(19041, version="unknown", dry_run=True)


def test_not_elevated_is_fatal(monkeypatch):
    monkeypatch.setattr(preflight, "is_elevated", lambda: False)
    with pytest.raises(PreflightError, match="Administrative"):
        preflight.check_elevated()
    preflight.check_elevated(dry_run=True)


def test_checks_run_in_order_and_stop_at_first_failure(monkeypatch):
    calls = []

    def fake_elevated():
        calls.append("elevated")
        return True

    def fake_online(host, *, retries, dry_run=False):
        calls.append(("network", host, retries))
        return False

    def fake_version():
        calls.append("build")
        return "10.0.22631"

    monkeypatch.setattr(preflight, "is_elevated", fake_elevated)
    monkeypatch.setattr(preflight, "is_online", fake_online)
    monkeypatch.setattr(preflight.platform, "version", fake_version)

    cfg = ProvisionConfig(raw={"preflight": {"network_host": "example.test", "network_retries": 2}})
    with pytest.raises(PreflightError, match="example.test"):
        preflight.run_preflight(cfg)

    assert calls == ["elevated", ("network", "example.test", 2)]


def test_all_checks_pass(monkeypatch):
    monkeypatch.setattr(preflight, "is_elevated", lambda: True)
    monkeypatch.setattr(preflight, "is_online", lambda host, *, retries, dry_run=False: True)
    monkeypatch.setattr(preflight.platform, "version", lambda: "10.0.22631")

    preflight.run_preflight(ProvisionConfig())
