# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/node/node.py

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict

from kubenode.command.runner import CommandRunner
from kubenode.config.models import MachineConfig, NodeConfig
from kubenode.drivers.state import MachineState
from kubenode.errors import KubenodeError, NodeStatusError
from kubenode.machine.api import MachineAPI, start_host

log = logging.getLogger("kubenode")


class NodeStatus(str, Enum):
    NOT_CREATED = "NotCreated"
    RUNNING = "Running"
    STOPPED = "Stopped"

    def __str__(self) -> str:
        return self.value


_STATUS: Dict[MachineState, NodeStatus] = {
    MachineState.RUNNING: NodeStatus.RUNNING,
    MachineState.STARTING: NodeStatus.RUNNING,
    MachineState.STOPPING: NodeStatus.RUNNING,
    MachineState.STOPPED: NodeStatus.STOPPED,
    MachineState.PAUSED: NodeStatus.STOPPED,
    MachineState.SAVED: NodeStatus.STOPPED,
}


def node_status_for(machine: str, state: MachineState) -> NodeStatus:
    """Collapse a driver state; Error, Timeout and anything unknown raise."""
    if state in (MachineState.ERROR, MachineState.TIMEOUT):
        raise NodeStatusError(machine, state)
    try:
        return _STATUS[state]
    except KeyError:
        raise NodeStatusError(machine, state, unknown=True) from None


def machine_name_for(cluster_name: str, node_name: str) -> str:
    return f"{cluster_name}-{node_name}"


class Node:
    """A cluster member backed by the machine <cluster>-<node>."""

    def __init__(
        self,
        config: NodeConfig,
        base_config: MachineConfig,
        cluster_name: str,
        api: MachineAPI,
    ):
        self.config = config
        self.base_config = base_config
        self.cluster_name = cluster_name
        self.api = api

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def machine_name(self) -> str:
        return machine_name_for(self.cluster_name, self.config.name)

    def machine_config(self) -> MachineConfig:
        return self.base_config.model_copy(update={"machine_name": self.machine_name})

    def ip(self) -> str:
        host = self.api.load(self.machine_name)
        try:
            return host.driver.get_ip()
        except KubenodeError as e:
            raise KubenodeError(f"Error getting IP of {self.machine_name}: {e}") from e

    def start(self) -> None:
        start_host(self.api, self.machine_config())

    def stop(self) -> None:
        host = self.api.load(self.machine_name)
        host.driver.stop()
        self.api.save(host)

    def status(self) -> NodeStatus:
        """Always asks the driver; never cached."""
        if not self.api.exists(self.machine_name):
            return NodeStatus.NOT_CREATED
        host = self.api.load(self.machine_name)
        return node_status_for(self.machine_name, host.driver.get_state())

    def runner(self) -> CommandRunner:
        host = self.api.load(self.machine_name)
        return self.api.runner_for(host)
