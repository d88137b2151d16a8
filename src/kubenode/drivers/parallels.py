# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from kubenode.config.models import MachineConfig
from kubenode.errors import CommandError, DriverError

from .base import BaseDriver, CliRunner, run_cli
from .state import MachineState

DRIVER_PARALLELS = "parallels"

# Parallels Desktop only exists on macOS
PLATFORMS = frozenset({"darwin"})

_VM_STATES = {
    "running": MachineState.RUNNING,
    "stopped": MachineState.STOPPED,
    "paused": MachineState.PAUSED,
    "suspended": MachineState.SAVED,
    "starting": MachineState.STARTING,
    "resuming": MachineState.STARTING,
    "stopping": MachineState.STOPPING,
}


@dataclass
class ParallelsDriver(BaseDriver):
    cpus: int = 2
    memory_mb: int = 2048
    disk_size_mb: int = 20000
    iso_path: str = ""

    cli: CliRunner = field(default=run_cli, repr=False, compare=False, metadata={"persist": False})

    driver_name = DRIVER_PARALLELS

    def configure(self, cfg: MachineConfig) -> None:
        super().configure(cfg)
        self.cpus = cfg.cpus
        self.memory_mb = cfg.memory_mb
        self.disk_size_mb = cfg.disk_size_mb
        self.iso_path = cfg.image or ""

    def _prl(self, *args: str) -> str:
        return self.cli(["prlctl", *args])

    def _info(self) -> dict:
        try:
            out = self._prl("list", self.machine_name, "--full", "--json")
        except CommandError as e:
            raise DriverError(f"machine {self.machine_name} does not exist") from e
        try:
            items = json.loads(out)
        except ValueError as e:
            raise DriverError(f"unexpected prlctl output: {out!r}") from e
        if not items:
            raise DriverError(f"machine {self.machine_name} does not exist")
        return items[0]

    def create(self) -> None:
        mdir = Path(self.store_path) / "machines" / self.machine_name
        mdir.mkdir(parents=True, exist_ok=True)
        name = self.machine_name
        self._prl("create", name, "--distribution", "linux-2.6", "--dst", str(mdir), "--no-hdd")
        self._prl("set", name, "--cpus", str(self.cpus), "--memsize", str(self.memory_mb))
        self._prl("set", name, "--device-add", "hdd", "--size", str(self.disk_size_mb))
        if self.iso_path:
            self._prl("set", name, "--device-set", "cdrom0", "--image", self.iso_path, "--connect")
        self.start()

    def start(self) -> None:
        self._prl("start", self.machine_name)
        self.ip_address = ""

    def stop(self) -> None:
        self._prl("stop", self.machine_name)
        self.ip_address = ""

    def kill(self) -> None:
        self._prl("stop", self.machine_name, "--kill")
        self.ip_address = ""

    def remove(self) -> None:
        try:
            st = self.get_state()
        except DriverError:
            return
        if st != MachineState.STOPPED:
            self.kill()
        self._prl("delete", self.machine_name)

    def get_state(self) -> MachineState:
        return _VM_STATES.get(self._info().get("status", ""), MachineState.NONE)

    def get_ip(self) -> str:
        if self.ip_address:
            return self.ip_address
        ip = self._info().get("ip_configured", "-")
        if not ip or ip == "-":
            raise DriverError(f"{self.machine_name} has no IP yet")
        self.ip_address = ip.split(",")[0].split("/")[0].strip()
        return self.ip_address

    def get_url(self) -> str:
        ip = self.get_ip()
        if not ip:
            return ""
        return f"tcp://{ip}:2376"
