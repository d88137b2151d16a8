# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/provision/provisioner.py

from __future__ import annotations

import logging
import posixpath
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlsplit

from kubenode.command.runner import CommandRunner
from kubenode.errors import (
    CommandError,
    DaemonNotAvailableError,
    KubenodeError,
    ProvisionError,
)
from kubenode.host.models import Host
from kubenode.observers.dispatcher import EventBus
from kubenode.observers.events import (
    ProvisionFailed,
    ProvisionStep,
    ProvisionSucceeded,
    new_ctx,
)
from kubenode.utils.fileutil import copy_file
from kubenode.utils.retry import RetryError, wait_for

from .certs import DEFAULT_BITS, CertOptions, generate_cert
from .options import DockerOptions, generate_docker_options

log = logging.getLogger("kubenode")

DEFAULT_ENGINE_PORT = 2376
READINESS_ATTEMPTS = 10
READINESS_INTERVAL = 3.0

# prefer netstat, fall back to ss on images that do not ship it
LISTEN_SOCKETS_CMD = "if ! type netstat 1>/dev/null; then ss -tln; else netstat -tln; fi"
REMOVE_BRIDGE_CMD = 'if [ ! -z "$(ip link show docker0)" ]; then sudo ip link delete docker0; fi'

# printf chokes on the leading dashes of a PEM block unless it gets a format string
CERT_TRANSFER_FMT = "printf '%s' '{content}' | sudo tee {path}"
ENGINE_OPTIONS_FMT = 'sudo mkdir -p {dir} && printf %s "{content}" | sudo tee {path}'


class ServiceAction(str, Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    ENABLE = "enable"
    DISABLE = "disable"


def server_cert_hosts(sans: list[str], ip: str) -> list[str]:
    """The machine IP and loopback names are always part of the server cert."""
    return list(sans) + [ip, "localhost", "127.0.0.1"]


def parse_engine_port(url: str) -> int:
    if not url:
        return DEFAULT_ENGINE_PORT
    port = urlsplit(url).port     # ValueError on a non-numeric port
    return port if port is not None else DEFAULT_ENGINE_PORT


def match_listen_output(pattern: str, output: str) -> bool:
    for line in output.split("\n"):
        try:
            match = re.search(pattern, line)
        except re.error as e:
            log.warning("Regex warning: %s", e)
            return False
        if match and line != "":
            return True
    return False


def docker_client_version(runner: CommandRunner) -> str:
    """
    Version of the docker client on the machine, e.g. "1.12.1".

    `docker version --format {{.Client.Version}}` would be nicer but fails
    while the daemon is down, so parse `docker --version` instead:

        Docker version 1.12.1, build 7a86f89
    """
    output = runner.run("docker --version")
    words = output.split()
    if len(words) < 3 or words[0] != "Docker" or words[1] != "version":
        raise KubenodeError(f"DockerClientVersion: cannot parse version string from {output!r}")
    return words[2].rstrip(",")


@dataclass
class Provisioner:
    """
    Turns a running machine into a TLS-secured docker host using nothing
    but shell commands over its command channel.
    """

    host: Host
    runner: CommandRunner
    bus: Optional[EventBus] = None
    cluster: Optional[str] = None
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self):
        if self.bus:
            self._ctx = self.bus.ctx(machine=self.host.name, cluster=self.cluster)
        else:
            self._ctx = new_ctx(machine=self.host.name, cluster=self.cluster)

    def ssh_command(self, cmd: str) -> str:
        return self.runner.run(cmd)

    def service(self, name: str, action: ServiceAction) -> None:
        if action in (ServiceAction.START, ServiceAction.RESTART):
            self.ssh_command("sudo systemctl daemon-reload")
        self.ssh_command(f"sudo systemctl -f {action.value} {name}")

    def generate_docker_options(self, port: int) -> DockerOptions:
        return generate_docker_options(
            port, self.host.auth_options, self.host.engine_options, self.host.driver_name
        )

    def _emit(self, event) -> None:
        if self.bus:
            self.bus.emit(event)

    @contextmanager
    def step(self, name: str):
        log.info("[%s] %s", self.host.name, name)
        self._emit(ProvisionStep(step=name, **self._ctx))
        try:
            yield
        except (KubenodeError, OSError, ValueError) as e:
            self._emit(ProvisionFailed(step=name, error=str(e), **self._ctx))
            raise ProvisionError(name, self.host.name, str(e)) from e

    def provision(self, *, username: str) -> None:
        configure_auth(self, username=username)


def _transfer(p: Provisioner, content: bytes, remote_path: str) -> None:
    p.ssh_command(CERT_TRANSFER_FMT.format(content=content.decode(), path=remote_path))


def configure_auth(p: Provisioner, *, username: str) -> None:
    """
    Strictly ordered; the first failing step aborts with ProvisionError and
    nothing is rolled back. Re-running is safe.
    """
    driver = p.host.driver
    machine = driver.get_machine_name()
    auth = p.host.auth_options
    org = f"{username}.{machine}"

    with p.step("Stopping docker"):
        p.service("docker", ServiceAction.STOP)

    with p.step("Removing default bridge"):
        p.ssh_command(REMOVE_BRIDGE_CMD)

    with p.step("Generating server certificate"):
        ip = driver.get_ip()
        hosts = server_cert_hosts(auth.server_cert_sans, ip)
        log.debug(
            "generating server cert: %s ca-key=%s private-key=%s org=%s san=%s",
            auth.server_cert_path, auth.ca_cert_path, auth.ca_private_key_path, org, hosts,
        )
        generate_cert(CertOptions(
            cert_file=auth.server_cert_path,
            key_file=auth.server_key_path,
            ca_file=auth.ca_cert_path,
            ca_key_file=auth.ca_private_key_path,
            org=org,
            hosts=hosts,
            bits=DEFAULT_BITS,
        ))

    with p.step("Copying certs to the local machine directory"):
        store = Path(auth.store_path)
        copy_file(auth.ca_cert_path, store / "ca.pem")
        copy_file(auth.client_cert_path, store / "cert.pem")
        copy_file(auth.client_key_path, store / "key.pem")

    with p.step("Copying certs to the remote machine"):
        ca_cert = Path(auth.ca_cert_path).read_bytes()
        server_cert = Path(auth.server_cert_path).read_bytes()
        server_key = Path(auth.server_key_path).read_bytes()
        _transfer(p, ca_cert, auth.ca_cert_remote_path)
        _transfer(p, server_cert, auth.server_cert_remote_path)
        _transfer(p, server_key, auth.server_key_remote_path)

    with p.step("Resolving docker port"):
        port = parse_engine_port(driver.get_url())

    with p.step("Setting Docker configuration on the remote daemon"):
        opts = p.generate_docker_options(port)
        p.ssh_command(ENGINE_OPTIONS_FMT.format(
            dir=posixpath.dirname(opts.engine_options_path),
            content=opts.engine_options,
            path=opts.engine_options_path,
        ))

    with p.step("Starting docker"):
        p.service("docker", ServiceAction.START)

    wait_for_docker(p, port)
    p._emit(ProvisionSucceeded(port=port, **p._ctx))


def wait_for_docker(
    p: Provisioner,
    port: int,
    *,
    attempts: int = READINESS_ATTEMPTS,
    interval: float = READINESS_INTERVAL,
) -> None:
    pattern = rf":{port}\s+.*:.*"

    def daemon_up() -> bool:
        # no direct probe through the channel: look for a listener on the port
        try:
            out = p.ssh_command(LISTEN_SOCKETS_CMD)
        except CommandError as e:
            log.warning("Error running SSH command: %s", e)
            raise
        return match_listen_output(pattern, out)

    try:
        wait_for(daemon_up, attempts=attempts, interval=interval, sleep=p.sleep)
    except RetryError as e:
        raise DaemonNotAvailableError(port, e.last_error) from e
