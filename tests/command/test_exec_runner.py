import subprocess

import pytest

from kubenode.command.runner import Asset, ExecRunner
from kubenode.errors import CommandError


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def test_run_returns_stdout(monkeypatch):
    calls = []

    def fake_run(argv, capture_output=False, text=False, timeout=None):
        calls.append(argv)
        return DummyCP(0, "hello\n")

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert ExecRunner(label="local").run("echo hello") == "hello\n"
    assert calls == [["/bin/bash", "-c", "echo hello"]]


def test_non_zero_exit_raises(monkeypatch):
    monkeypatch.setattr(subprocess, "run", lambda argv, **kw: DummyCP(3, "", "bad things"))
    with pytest.raises(CommandError) as ei:
        ExecRunner().run("false")
    assert ei.value.exit_code == 3
    assert ei.value.stderr == "bad things"
    assert "bad things" in str(ei.value)


def test_launch_failure_raises(monkeypatch):
    def fake_run(argv, **kw):
        raise FileNotFoundError("/bin/bash")

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(CommandError) as ei:
        ExecRunner().run("true")
    assert ei.value.exit_code is None


def test_dry_run_skips_execution(monkeypatch):
    monkeypatch.setattr(subprocess, "run", lambda *a, **k: pytest.fail("must not run"))
    assert ExecRunner(dry_run=True).run("rm -rf /") == ""


def test_copy_installs_asset_with_permissions(monkeypatch):
    seen = []

    def fake_run(argv, **kw):
        cmd = argv[2]
        seen.append(cmd)
        # the temp file holds the asset bytes while the command runs
        src = cmd.split("sudo cp ", 1)[1].split(" ", 1)[0]
        with open(src, "rb") as f:
            seen.append(f.read())
        return DummyCP(0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    ExecRunner().copy(Asset("/etc/kubenode", "a.conf", content="x=1\n", permissions="0600"))

    cmd, data = seen
    assert cmd.startswith("sudo mkdir -p /etc/kubenode && sudo cp ")
    assert cmd.endswith("/etc/kubenode/a.conf && sudo chmod 0600 /etc/kubenode/a.conf")
    assert data == b"x=1\n"


def test_asset_sources(tmp_path):
    f = tmp_path / "kubelet"
    f.write_bytes(b"bin")
    assert Asset("/opt", "kubelet", source_path=f).read() == b"bin"
    assert Asset("/opt", "x", content=b"raw").read() == b"raw"
    assert Asset("/opt", "x").target_path == "/opt/x"
    with pytest.raises(ValueError):
        Asset("/opt", "x").read()
