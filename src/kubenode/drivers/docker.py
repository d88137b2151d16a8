# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/drivers/docker.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kubenode.config.models import MachineConfig
from kubenode.errors import CommandError, DriverError

from .base import BaseDriver, CliRunner, run_cli
from .state import MachineState

log = logging.getLogger("kubenode")

DRIVER_DOCKER = "docker"
DEFAULT_IMAGE = "kubenode/base:v0.0.1"

_CONTAINER_STATES = {
    "running": MachineState.RUNNING,
    "paused": MachineState.PAUSED,
    "restarting": MachineState.STARTING,
    "created": MachineState.STARTING,
    "removing": MachineState.STOPPING,
    "exited": MachineState.STOPPED,
    "dead": MachineState.STOPPED,
}


@dataclass
class DockerDriver(BaseDriver):
    """
    Container-backed machine: a privileged container running systemd,
    sshd and dockerd, with its ssh port published on 127.0.0.1.
    """

    image: str = DEFAULT_IMAGE
    cpus: int = 2
    memory_mb: int = 2048

    cli: CliRunner = field(default=run_cli, repr=False, compare=False, metadata={"persist": False})

    driver_name = DRIVER_DOCKER

    def configure(self, cfg: MachineConfig) -> None:
        super().configure(cfg)
        self.image = cfg.image or DEFAULT_IMAGE
        self.cpus = cfg.cpus
        self.memory_mb = cfg.memory_mb

    def _docker(self, *args: str) -> str:
        return self.cli(["docker", *args])

    def create(self) -> None:
        self._docker(
            "run", "-d", "-t", "--privileged",
            "--security-opt", "seccomp=unconfined",
            "--tmpfs", "/run", "--tmpfs", "/tmp",
            "--hostname", self.machine_name,
            "--name", self.machine_name,
            "--label", "created_by.kubenode=true",
            f"--cpus={self.cpus}",
            f"--memory={self.memory_mb}mb",
            "-p", "127.0.0.1::22",
            "-p", "127.0.0.1::2376",
            self.image,
        )

    def start(self) -> None:
        self._docker("start", self.machine_name)
        self.ip_address = ""

    def stop(self) -> None:
        self._docker("stop", self.machine_name)
        self.ip_address = ""

    def kill(self) -> None:
        self._docker("kill", self.machine_name)
        self.ip_address = ""

    def remove(self) -> None:
        try:
            self._docker("rm", "-f", "-v", self.machine_name)
        except CommandError as e:
            if "No such container" in e.stderr:
                log.debug("container %s already gone", self.machine_name)
                return
            raise

    def _inspect(self, fmt: str) -> str:
        try:
            return self._docker("inspect", "-f", fmt, self.machine_name).strip()
        except CommandError as e:
            raise DriverError(f"container {self.machine_name} does not exist") from e

    def get_state(self) -> MachineState:
        return _CONTAINER_STATES.get(self._inspect("{{.State.Status}}"), MachineState.NONE)

    def get_ip(self) -> str:
        if self.ip_address:
            return self.ip_address
        self.ip_address = self._inspect("{{range .NetworkSettings.Networks}}{{.IPAddress}}{{end}}")
        return self.ip_address

    def get_url(self) -> str:
        ip = self.get_ip()
        if not ip:
            return ""
        return f"tcp://{ip}:2376"

    def get_ssh_hostname(self) -> str:
        return "127.0.0.1"

    def get_ssh_port(self) -> int:
        out = self._docker("port", self.machine_name, "22/tcp").strip()
        # "127.0.0.1:32768" (possibly one line per address family)
        first = out.splitlines()[0] if out else ""
        try:
            return int(first.rsplit(":", 1)[1])
        except (IndexError, ValueError) as e:
            raise DriverError(f"cannot find published ssh port for {self.machine_name}: {out!r}") from e
