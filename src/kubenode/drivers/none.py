# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass

from kubenode.errors import DriverError

from .base import BaseDriver
from .state import MachineState

DRIVER_NONE = "none"


@dataclass
class NoneDriver(BaseDriver):
    """
    The local machine itself. It is always Running, has no SSH identity
    (commands run locally) and cannot be lifecycle-managed.
    """

    driver_name = DRIVER_NONE

    def create(self) -> None:
        return None

    def remove(self) -> None:
        return None

    def start(self) -> None:
        raise DriverError("hosts without a driver cannot be started")

    def stop(self) -> None:
        raise DriverError("hosts without a driver cannot be stopped")

    def restart(self) -> None:
        raise DriverError("hosts without a driver cannot be restarted")

    def kill(self) -> None:
        raise DriverError("hosts without a driver cannot be killed")

    def get_state(self) -> MachineState:
        return MachineState.RUNNING

    def get_ip(self) -> str:
        return self.ip_address

    def get_url(self) -> str:
        return ""

    def get_ssh_hostname(self) -> str:
        return ""

    def get_ssh_port(self) -> int:
        return 0

    def get_ssh_username(self) -> str:
        return ""

    def get_ssh_key_path(self) -> str:
        return ""
