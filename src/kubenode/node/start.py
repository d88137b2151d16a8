# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from typing import List

from kubenode.config.models import MachineConfig
from kubenode.host.models import Host
from kubenode.machine.api import MachineAPI, start_host

log = logging.getLogger("kubenode")


def new_config(base_config: MachineConfig, machine_name: str) -> MachineConfig:
    return base_config.model_copy(update={"machine_name": machine_name})


def start_nodes(api: MachineAPI, base_config: MachineConfig, count: int) -> List[Host]:
    """
    Create <base>-1 .. <base>-<count> one after another. The first failure
    stops the loop and is raised as is.
    """
    hosts = []
    for i in range(count):
        name = f"{base_config.machine_name}-{i + 1}"
        log.info("Creating machine: %s", name)
        hosts.append(start_host(api, new_config(base_config, name)))
    return hosts
