# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass, field

from kubenode.errors import DriverNotSupportedError

from .base import BaseDriver
from .state import MachineState


@dataclass
class NotSupportedDriver(BaseDriver):
    """
    Placeholder for a backend that cannot run on this platform. Every
    mutating call fails; GetState/GetIP answer fixed defaults so status
    checks keep working.
    """

    unsupported_name: str = field(default="", compare=False)

    def name(self) -> str:
        return self.unsupported_name

    def merge_payload(self, raw: bytes) -> bytes:
        # nothing here can change the machine, so the stored payload stands
        return raw or self.to_payload()

    def _fail(self, op: str):
        raise DriverNotSupportedError(self.unsupported_name, op)

    def create(self) -> None:
        self._fail("create")

    def start(self) -> None:
        self._fail("start")

    def stop(self) -> None:
        self._fail("stop")

    def restart(self) -> None:
        self._fail("restart")

    def kill(self) -> None:
        self._fail("kill")

    def remove(self) -> None:
        self._fail("remove")

    def get_url(self) -> str:
        self._fail("url")

    def get_ssh_hostname(self) -> str:
        self._fail("ssh hostname")

    def get_state(self) -> MachineState:
        return MachineState.ERROR

    def get_ip(self) -> str:
        return ""
