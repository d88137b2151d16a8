import subprocess

import pytest

from kubenode.build import build_image, docker_env, tls_flags
from kubenode.drivers.virtualbox import VirtualBoxDriver
from kubenode.errors import CommandError, KubenodeError
from kubenode.host.models import AuthOptions, Host, HostOptions


class DummyCP:
    def __init__(self, rc=0):
        self.returncode = rc


class FakeRunner:
    def __init__(self, error=None):
        self.commands = []
        self.error = error

    def run(self, cmd):
        self.commands.append(cmd)
        if self.error:
            raise self.error
        return "STEP 1/2\n"


class FakeAPI:
    def __init__(self, host, runner=None):
        self.host = host
        self.runner = runner

    def load(self, name):
        assert name == self.host.name
        return self.host

    def runner_for(self, host):
        return self.runner


def _host():
    driver = VirtualBoxDriver("demo", "/home/u/.kubenode", ip_address="192.168.99.100")
    return Host(
        name="demo",
        driver_name="virtualbox",
        driver=driver,
        host_options=HostOptions(auth_options=AuthOptions(store_path="/home/u/.kubenode/machines/demo")),
    )


def test_docker_env_and_flags():
    env = docker_env(_host())
    assert env == {
        "DOCKER_TLS_VERIFY": "1",
        "DOCKER_HOST": "tcp://192.168.99.100:2376",
        "DOCKER_CERT_PATH": "/home/u/.kubenode/machines/demo",
    }
    assert tls_flags(env) == [
        "--tlsverify",
        "--tlscacert", "/home/u/.kubenode/machines/demo/ca.pem",
        "--tlscert", "/home/u/.kubenode/machines/demo/cert.pem",
        "--tlskey", "/home/u/.kubenode/machines/demo/key.pem",
        "-H", "tcp://192.168.99.100:2376",
    ]


def test_build_passes_exit_code_through(monkeypatch):
    calls = []

    def fake_run(argv, check=False):
        calls.append(argv)
        return DummyCP(7)

    monkeypatch.setattr(subprocess, "run", fake_run)
    rc = build_image(FakeAPI(_host()), "demo", ["-t", "app:dev", "."])

    assert rc == 7
    argv = calls[0]
    assert argv[0] == "docker"
    assert argv[-4:] == ["build", "-t", "app:dev", "."]
    assert "--tlsverify" in argv


def test_build_missing_client_is_exit_1(monkeypatch):
    def fake_run(argv, check=False):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert build_image(FakeAPI(_host()), "demo", ["."], docker_binary="docker") == 1


def test_build_requires_arguments():
    with pytest.raises(KubenodeError, match="Usage"):
        build_image(FakeAPI(_host()), "demo", [])


def test_podman_build_runs_on_the_machine(monkeypatch):
    monkeypatch.setattr(subprocess, "run", lambda *a, **k: pytest.fail("no local client in podman mode"))
    runner = FakeRunner()
    assert build_image(FakeAPI(_host(), runner), "demo", ["-t", "app", "."], use_podman=True) == 0
    assert runner.commands == ["sudo podman build -t app ."]


def test_podman_build_failure_is_exit_1():
    runner = FakeRunner(error=CommandError("sudo podman build", 125))
    assert build_image(FakeAPI(_host(), runner), "demo", ["."], use_podman=True) == 1
