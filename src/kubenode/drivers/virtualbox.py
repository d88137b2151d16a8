# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/drivers/virtualbox.py

from __future__ import annotations

import logging
import re
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from kubenode.config.models import MachineConfig
from kubenode.errors import CommandError, DriverError
from kubenode.utils.retry import RetryError, wait_for

from .base import BaseDriver, CliRunner, run_cli
from .sshkeys import generate_ssh_key, make_userdata_tar
from .state import MachineState

log = logging.getLogger("kubenode")

DRIVER_VIRTUALBOX = "virtualbox"
DEFAULT_ISO = "boot2docker.iso"

_VM_STATES: Dict[str, MachineState] = {
    "running": MachineState.RUNNING,
    "paused": MachineState.PAUSED,
    "saved": MachineState.SAVED,
    "poweroff": MachineState.STOPPED,
    "aborted": MachineState.STOPPED,
    "starting": MachineState.STARTING,
    "restoring": MachineState.STARTING,
    "stopping": MachineState.STOPPING,
}


@dataclass
class VirtualBoxDriver(BaseDriver):
    """
    Hypervisor-backed machine driven through VBoxManage. SSH reaches the guest
    through a NAT port forward on 127.0.0.1; the docker endpoint uses the
    host-only address.
    """

    cpus: int = 2
    memory_mb: int = 2048
    disk_size_mb: int = 20000
    iso_path: str = ""
    host_only_cidr: str = "192.168.99.1/24"
    ssh_host_port: int = 0

    cli: CliRunner = field(default=run_cli, repr=False, compare=False, metadata={"persist": False})

    driver_name = DRIVER_VIRTUALBOX

    def configure(self, cfg: MachineConfig) -> None:
        super().configure(cfg)
        self.cpus = cfg.cpus
        self.memory_mb = cfg.memory_mb
        self.disk_size_mb = cfg.disk_size_mb
        self.iso_path = cfg.image or str(Path(self.store_path) / "cache" / DEFAULT_ISO)
        self.host_only_cidr = cfg.host_only_cidr

    def _vbm(self, *args: str) -> str:
        return self.cli(["VBoxManage", *args])

    def _machine_dir(self) -> Path:
        return Path(self.store_path) / "machines" / self.machine_name

    # ------------------ lifecycle ------------------

    def create(self) -> None:
        mdir = self._machine_dir()
        mdir.mkdir(parents=True, exist_ok=True)
        if not self.ssh_key_path:
            self.ssh_key_path = str(mdir / "id_rsa")
        pub = generate_ssh_key(self.ssh_key_path)

        if not self.ssh_host_port:
            self.ssh_host_port = _free_port()

        disk = mdir / "disk.vmdk"
        raw = mdir / "userdata.tar"
        raw.write_bytes(make_userdata_tar(pub))
        self._vbm("convertfromraw", str(raw), str(disk), "--format", "VMDK")
        self._vbm("modifymedium", "disk", str(disk), "--resize", str(self.disk_size_mb))

        name = self.machine_name
        self._vbm("createvm", "--basefolder", str(mdir), "--name", name, "--register")
        self._vbm(
            "modifyvm", name,
            "--firmware", "bios",
            "--ostype", "Linux26_64",
            "--cpus", str(self.cpus),
            "--memory", str(self.memory_mb),
            "--acpi", "on",
            "--ioapic", "on",
            "--boot1", "dvd",
            "--nic1", "nat",
            "--natpf1", f"ssh,tcp,127.0.0.1,{self.ssh_host_port},,22",
        )
        hostonly = self._host_only_network()
        self._vbm("modifyvm", name, "--nic2", "hostonly", "--hostonlyadapter2", hostonly)
        self._vbm("storagectl", name, "--name", "SATA", "--add", "sata", "--hostiocache", "on")
        self._vbm("storageattach", name, "--storagectl", "SATA", "--port", "0", "--device", "0",
                  "--type", "dvddrive", "--medium", self.iso_path)
        self._vbm("storageattach", name, "--storagectl", "SATA", "--port", "1", "--device", "0",
                  "--type", "hdd", "--medium", str(disk))
        self.start()

    def start(self) -> None:
        st = self.get_state()
        if st == MachineState.RUNNING:
            return
        if st == MachineState.PAUSED:
            self._vbm("controlvm", self.machine_name, "resume", "--type", "headless")
        else:
            self._vbm("startvm", self.machine_name, "--type", "headless")
        # the address is only known once the guest additions report it
        self.ip_address = ""

    def stop(self) -> None:
        self._vbm("controlvm", self.machine_name, "acpipowerbutton")
        try:
            wait_for(lambda: self.get_state() == MachineState.STOPPED, attempts=60, interval=1)
        except RetryError as e:
            raise DriverError(f"{self.machine_name} did not power off") from e
        self.ip_address = ""

    def kill(self) -> None:
        self._vbm("controlvm", self.machine_name, "poweroff")
        self.ip_address = ""

    def remove(self) -> None:
        try:
            st = self.get_state()
        except DriverError:
            log.debug("%s is not registered, nothing to remove", self.machine_name)
            return
        if st in (MachineState.RUNNING, MachineState.PAUSED, MachineState.STARTING):
            self.kill()
        self._vbm("unregistervm", "--delete", self.machine_name)

    # ------------------ queries ------------------

    def get_state(self) -> MachineState:
        try:
            out = self._vbm("showvminfo", self.machine_name, "--machinereadable")
        except CommandError as e:
            raise DriverError(f"machine {self.machine_name} does not exist") from e
        m = re.search(r'^VMState="(\w+)"', out, re.MULTILINE)
        if not m:
            return MachineState.NONE
        return _VM_STATES.get(m.group(1), MachineState.NONE)

    def get_ip(self) -> str:
        if self.ip_address:
            return self.ip_address
        out = self._vbm("guestproperty", "get", self.machine_name, "/VirtualBox/GuestInfo/Net/1/V4/IP")
        m = re.search(r"Value:\s*(\S+)", out)
        if not m:
            raise DriverError(f"{self.machine_name} has no host-only IP yet")
        self.ip_address = m.group(1)
        return self.ip_address

    def get_url(self) -> str:
        ip = self.get_ip()
        if not ip:
            return ""
        return f"tcp://{ip}:2376"

    def get_ssh_hostname(self) -> str:
        return "127.0.0.1"

    def get_ssh_port(self) -> int:
        return self.ssh_host_port

    # ------------------ helpers ------------------

    def _host_only_network(self) -> str:
        gateway = self.host_only_cidr.split("/", 1)[0]
        out = self._vbm("list", "hostonlyifs")
        current = None
        for line in out.splitlines():
            if line.startswith("Name:"):
                current = line.split(":", 1)[1].strip()
            elif line.startswith("IPAddress:") and line.split(":", 1)[1].strip() == gateway and current:
                return current
        out = self._vbm("hostonlyif", "create")
        m = re.search(r"Interface '([^']+)'", out)
        if not m:
            raise DriverError(f"could not create host-only interface: {out.strip()}")
        name = m.group(1)
        self._vbm("hostonlyif", "ipconfig", name, "--ip", gateway, "--netmask", "255.255.255.0")
        return name


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
