# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/bootstrapper/worker.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from kubenode.config.models import KubernetesConfig
from kubenode.errors import BootstrapError, KubenodeError
from kubenode.observers.dispatcher import EventBus
from kubenode.observers.events import BootstrapStage, NodeJoined

from .interface import JoinableNode
from .kubeadm import KubeadmBootstrapper

log = logging.getLogger("kubenode")


class WorkerBootstrapper:
    """
    Joins a node to an existing control plane: assets, then certs, then
    kubeadm join. No retries here; the first failed stage aborts.
    """

    def __init__(
        self,
        config: KubernetesConfig,
        *,
        certs_dir: Path,
        bus: Optional[EventBus] = None,
        factory: Optional[Callable[..., KubeadmBootstrapper]] = None,
    ):
        self.config = config
        self.certs_dir = Path(certs_dir)
        self.bus = bus or EventBus()
        self.factory = factory or KubeadmBootstrapper

    def bootstrap(self, n: JoinableNode) -> None:
        machine = n.machine_name
        ctx = self.bus.ctx(machine=machine)

        try:
            ip = n.ip()
        except KubenodeError as e:
            raise BootstrapError("Error getting node's IP", machine, str(e)) from e
        try:
            runner = n.runner()
        except KubenodeError as e:
            raise BootstrapError("Error getting node's runner", machine, str(e)) from e

        b = self.factory(
            machine,
            ip,
            runner,
            ca_cert_path=self.certs_dir / "ca.crt",
            ca_key_path=self.certs_dir / "ca.key",
            work_dir=self.certs_dir / machine,
        )

        for stage, message, failure, op in (
            ("update_node", "Moving assets into node...", "Error updating node", b.update_node),
            ("setup_certs", "Setting up certs...", "Error configuring authentication", b.setup_certs),
            ("join_node", "Joining node to cluster...", "Error joining node to cluster", b.join_node),
        ):
            log.info("[%s] %s", machine, message)
            self.bus.emit(BootstrapStage(stage=stage, message=message, **ctx))
            try:
                op(self.config)
            except (KubenodeError, OSError) as e:
                raise BootstrapError(failure, machine, str(e)) from e

        self.bus.emit(NodeJoined(ip=ip, **ctx))
