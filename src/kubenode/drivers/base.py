# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/drivers/base.py

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import MISSING, dataclass, fields
from typing import Callable, ClassVar, List

from kubenode.config.models import MachineConfig
from kubenode.errors import CommandError, HostDecodeError

from .state import MachineState

log = logging.getLogger("kubenode")

# Runs a host-side CLI (VBoxManage, prlctl, docker) and returns its stdout.
CliRunner = Callable[[List[str]], str]


def run_cli(argv: List[str]) -> str:
    cmd_str = " ".join(argv)
    log.debug("[driver] $ %s", cmd_str)
    try:
        cp = subprocess.run(argv, capture_output=True, text=True, check=False)
    except OSError as e:
        raise CommandError(cmd_str, reason=str(e)) from e
    if cp.returncode != 0:
        log.debug("[driver][exit %d]\n%s", cp.returncode, cp.stderr.rstrip())
        raise CommandError(cmd_str, cp.returncode, cp.stdout, cp.stderr)
    return cp.stdout


@dataclass
class BaseDriver(ABC):
    """
    A machine backend. Subclasses add their own persisted fields; every
    dataclass field not marked persist=False is part of the driver payload
    stored in the host record.
    """

    machine_name: str
    store_path: str
    ip_address: str = ""
    ssh_user: str = "docker"
    ssh_port: int = 22
    ssh_key_path: str = ""

    driver_name: ClassVar[str] = ""

    # ------------------ lifecycle ------------------

    @abstractmethod
    def create(self) -> None: ...

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def kill(self) -> None: ...

    @abstractmethod
    def remove(self) -> None: ...

    def restart(self) -> None:
        self.stop()
        self.start()

    # ------------------ queries ------------------

    @abstractmethod
    def get_state(self) -> MachineState: ...

    @abstractmethod
    def get_ip(self) -> str: ...

    @abstractmethod
    def get_url(self) -> str: ...

    def get_ssh_hostname(self) -> str:
        return self.get_ip()

    def get_ssh_port(self) -> int:
        return self.ssh_port

    def get_ssh_username(self) -> str:
        return self.ssh_user

    def get_ssh_key_path(self) -> str:
        return self.ssh_key_path

    def get_machine_name(self) -> str:
        return self.machine_name

    def name(self) -> str:
        return self.driver_name

    # ------------------ configuration & payload ------------------

    def configure(self, cfg: MachineConfig) -> None:
        """Copy the relevant parts of a MachineConfig onto the driver before create()."""
        self.ssh_user = cfg.ssh_user
        self.ssh_port = cfg.ssh_port
        if cfg.ssh_key_path:
            self.ssh_key_path = cfg.ssh_key_path

    def _persisted_fields(self):
        return [f for f in fields(self) if f.metadata.get("persist", True)]

    def to_payload(self) -> bytes:
        data = {f.name: getattr(self, f.name) for f in self._persisted_fields()}
        return json.dumps(data, sort_keys=True).encode()

    def load_payload(self, data: bytes) -> None:
        try:
            values = json.loads(data)
        except ValueError as e:
            raise HostDecodeError(f"malformed {self.driver_name} driver payload: {e}") from e
        if values is None:
            return
        if not isinstance(values, dict):
            raise HostDecodeError(f"{self.driver_name} driver payload is not an object")
        # unknown keys belong to other kubenode versions; keep what we understand
        for f in self._persisted_fields():
            if f.name in values:
                setattr(self, f.name, values[f.name])

    def merge_payload(self, raw: bytes) -> bytes:
        """
        Re-encode the driver against the payload it was loaded from. An
        unchanged driver gives back raw untouched; otherwise only the changed
        fields are written into the original object and unknown keys stay.
        """
        try:
            values = json.loads(raw) if raw else None
        except ValueError:
            values = None
        if not isinstance(values, dict):
            return self.to_payload()

        changed = {}
        for f in self._persisted_fields():
            current = getattr(self, f.name)
            if f.name in values:
                if values[f.name] != current:
                    changed[f.name] = current
            elif f.default is not MISSING and current != f.default:
                changed[f.name] = current
        if not changed:
            return raw
        values.update(changed)
        return json.dumps(values).encode()
