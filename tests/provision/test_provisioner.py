from pathlib import Path

import pytest
from cryptography import x509

from kubenode.config.models import MachineConfig
from kubenode.errors import CommandError, DaemonNotAvailableError, KubenodeError, ProvisionError
from kubenode.machine.api import MachineAPI
from kubenode.observers.dispatcher import EventBus
from kubenode.observers.events import ProvisionFailed, ProvisionStep, ProvisionSucceeded
from kubenode.provision.certs import bootstrap_certificates
from kubenode.provision.provisioner import (
    LISTEN_SOCKETS_CMD,
    REMOVE_BRIDGE_CMD,
    Provisioner,
    configure_auth,
    docker_client_version,
    match_listen_output,
    parse_engine_port,
    server_cert_hosts,
    wait_for_docker,
)

NETSTAT_LISTENING = (
    "Active Internet connections (only servers)\n"
    "Proto Recv-Q Send-Q Local Address           Foreign Address         State\n"
    "tcp        0      0 0.0.0.0:22              0.0.0.0:*               LISTEN\n"
    "tcp        0      0 :::2376                 :::*                    LISTEN\n"
)
NETSTAT_QUIET = "tcp        0      0 0.0.0.0:22              0.0.0.0:*               LISTEN\n"


class FakeRunner:
    """Records commands; the daemon starts listening after `quiet_polls` polls."""

    def __init__(self, quiet_polls=0, fail_on=None):
        self.commands = []
        self.quiet_polls = quiet_polls
        self.fail_on = fail_on

    def run(self, cmd):
        self.commands.append(cmd)
        if self.fail_on and self.fail_on in cmd:
            raise CommandError(cmd, 1, stderr="boom")
        if cmd == LISTEN_SOCKETS_CMD:
            if self.quiet_polls > 0:
                self.quiet_polls -= 1
                return NETSTAT_QUIET
            return NETSTAT_LISTENING
        return ""

    def copy(self, asset):
        raise AssertionError("provisioning must not need file transfer")

    def polls(self):
        return self.commands.count(LISTEN_SOCKETS_CMD)


class Recorder:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)


def _host(tmp_path: Path, sans=None):
    api = MachineAPI(tmp_path, username="tester")
    host = api.new_host(MachineConfig(machine_name="demo", driver="virtualbox"))
    host.driver.ip_address = "192.168.99.100"
    if sans is not None:
        host.auth_options.server_cert_sans = list(sans)
    bootstrap_certificates(host.auth_options, org="tester")
    return host


def _provisioner(host, runner, bus=None):
    sleeps = []
    p = Provisioner(host, runner, bus=bus, sleep=sleeps.append)
    return p, sleeps


def _san_values(cert_path):
    cert = x509.load_pem_x509_certificate(Path(cert_path).read_bytes())
    names = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    return [str(n.value) for n in names]


# ----------------- configure_auth -----------------

def test_configure_auth_runs_steps_in_order(tmp_path):
    host = _host(tmp_path)
    runner = FakeRunner()
    p, _ = _provisioner(host, runner)

    configure_auth(p, username="tester")

    cmds = runner.commands
    assert cmds[0] == "sudo systemctl -f stop docker"
    assert cmds[1] == REMOVE_BRIDGE_CMD
    assert cmds[2].endswith("| sudo tee /etc/docker/ca.pem")
    assert cmds[3].endswith("| sudo tee /etc/docker/server.pem")
    assert cmds[4].endswith("| sudo tee /etc/docker/server-key.pem")
    assert cmds[5].startswith("sudo mkdir -p /etc/systemd/system/docker.service.d && printf %s")
    assert cmds[5].endswith("| sudo tee /etc/systemd/system/docker.service.d/10-machine.conf")
    assert cmds[6] == "sudo systemctl daemon-reload"
    assert cmds[7] == "sudo systemctl -f start docker"
    assert cmds[8:] == [LISTEN_SOCKETS_CMD]


def test_certs_are_piped_verbatim(tmp_path):
    host = _host(tmp_path)
    runner = FakeRunner()
    p, _ = _provisioner(host, runner)
    configure_auth(p, username="tester")

    ca = Path(host.auth_options.ca_cert_path).read_text()
    assert runner.commands[2] == f"printf '%s' '{ca}' | sudo tee /etc/docker/ca.pem"


def test_local_machine_dir_gets_client_credentials(tmp_path):
    host = _host(tmp_path)
    p, _ = _provisioner(host, FakeRunner())
    configure_auth(p, username="tester")

    mdir = Path(host.auth_options.store_path)
    for name in ("ca.pem", "cert.pem", "key.pem", "server.pem", "server-key.pem"):
        assert (mdir / name).is_file(), name
    assert (mdir / "ca.pem").read_bytes() == Path(host.auth_options.ca_cert_path).read_bytes()


def test_engine_options_carry_tls_and_labels(tmp_path):
    host = _host(tmp_path)
    runner = FakeRunner()
    p, _ = _provisioner(host, runner)
    configure_auth(p, username="tester")

    opts = runner.commands[5]
    assert "-H tcp://0.0.0.0:2376" in opts
    assert "--tlsverify" in opts
    assert "--tlscacert /etc/docker/ca.pem" in opts
    assert "--label provider=virtualbox" in opts
    assert "--storage-driver overlay2" in opts


def test_server_cert_sans_with_empty_list(tmp_path):
    host = _host(tmp_path, sans=[])
    p, _ = _provisioner(host, FakeRunner())
    configure_auth(p, username="tester")
    assert _san_values(host.auth_options.server_cert_path) == ["192.168.99.100", "localhost", "127.0.0.1"]


def test_server_cert_sans_keep_duplicates(tmp_path):
    host = _host(tmp_path, sans=["demo.local", "demo.local"])
    p, _ = _provisioner(host, FakeRunner())
    configure_auth(p, username="tester")
    assert _san_values(host.auth_options.server_cert_path) == [
        "demo.local", "demo.local", "192.168.99.100", "localhost", "127.0.0.1",
    ]


def test_failed_step_aborts(tmp_path):
    host = _host(tmp_path)
    runner = FakeRunner(fail_on="ip link")
    rec = Recorder()
    p, _ = _provisioner(host, runner, bus=EventBus([rec]))

    with pytest.raises(ProvisionError) as ei:
        configure_auth(p, username="tester")

    assert ei.value.step == "Removing default bridge"
    assert ei.value.machine == "demo"
    assert isinstance(ei.value.__cause__, CommandError)
    assert len(runner.commands) == 2
    assert not Path(host.auth_options.server_cert_path).exists()
    assert isinstance(rec.events[-1], ProvisionFailed)


def test_events_for_successful_run(tmp_path):
    host = _host(tmp_path)
    rec = Recorder()
    p, _ = _provisioner(host, FakeRunner(), bus=EventBus([rec], run_id="run-42"))
    configure_auth(p, username="tester")

    steps = [e.step for e in rec.events if isinstance(e, ProvisionStep)]
    assert steps[0] == "Stopping docker"
    assert steps[-1] == "Starting docker"
    assert len(steps) == 8
    assert isinstance(rec.events[-1], ProvisionSucceeded)
    assert rec.events[-1].port == 2376
    assert {e.run_id for e in rec.events} == {"run-42"}


# ----------------- readiness -----------------

@pytest.mark.parametrize("quiet", [0, 1, 4, 9])
def test_readiness_succeeds_after_quiet_polls(tmp_path, quiet):
    host = _host(tmp_path)
    runner = FakeRunner(quiet_polls=quiet)
    p, sleeps = _provisioner(host, runner)

    wait_for_docker(p, 2376)

    assert runner.polls() == quiet + 1
    assert sleeps == [3.0] * quiet


def test_readiness_gives_up_after_ten_attempts(tmp_path):
    host = _host(tmp_path)
    runner = FakeRunner(quiet_polls=100)
    p, sleeps = _provisioner(host, runner)

    with pytest.raises(DaemonNotAvailableError) as ei:
        wait_for_docker(p, 2376)

    assert runner.polls() == 10
    assert sum(sleeps) == 30.0
    assert ei.value.port == 2376
    assert "2376" in str(ei.value)


def test_readiness_keeps_last_channel_error(tmp_path):
    host = _host(tmp_path)
    runner = FakeRunner(fail_on="netstat")
    p, sleeps = _provisioner(host, runner)

    with pytest.raises(DaemonNotAvailableError) as ei:
        wait_for_docker(p, 2376)

    assert runner.polls() == 10
    assert isinstance(ei.value.last_error, CommandError)


# ----------------- helpers -----------------

def test_server_cert_hosts():
    assert server_cert_hosts([], "10.0.0.2") == ["10.0.0.2", "localhost", "127.0.0.1"]
    assert server_cert_hosts(["a", "a"], "10.0.0.2")[:2] == ["a", "a"]


@pytest.mark.parametrize(
    "url, port",
    [("", 2376), ("tcp://192.168.99.100:2377", 2377), ("tcp://192.168.99.100", 2376)],
)
def test_parse_engine_port(url, port):
    assert parse_engine_port(url) == port


def test_parse_engine_port_rejects_garbage():
    with pytest.raises(ValueError):
        parse_engine_port("tcp://192.168.99.100:docker")


def test_match_listen_output():
    assert match_listen_output(r":2376\s+.*:.*", NETSTAT_LISTENING)
    assert not match_listen_output(r":2376\s+.*:.*", NETSTAT_QUIET)
    assert not match_listen_output(r":2376\s+.*:.*", "")
    assert not match_listen_output("(", NETSTAT_LISTENING)


def test_ss_output_matches_too():
    ss = (
        "State   Recv-Q  Send-Q  Local Address:Port  Peer Address:Port\n"
        "LISTEN  0       128     *:2376              *:*\n"
    )
    assert match_listen_output(r":2376\s+.*:.*", ss)


class _VersionRunner:
    def __init__(self, out):
        self.out = out

    def run(self, cmd):
        assert cmd == "docker --version"
        return self.out


def test_docker_client_version():
    assert docker_client_version(_VersionRunner("Docker version 1.12.1, build 7a86f89\n")) == "1.12.1"


@pytest.mark.parametrize("out", ["", "podman version 4.0.0", "Docker"])
def test_docker_client_version_unparseable(out):
    with pytest.raises(KubenodeError):
        docker_client_version(_VersionRunner(out))
