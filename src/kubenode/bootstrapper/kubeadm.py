# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/bootstrapper/kubeadm.py

from __future__ import annotations

import logging
import shlex
import textwrap
from pathlib import Path
from typing import Dict, Optional

from kubenode.command.runner import Asset, CommandRunner
from kubenode.config.models import KubernetesConfig
from kubenode.errors import KubenodeError
from kubenode.provision.certs import CertOptions, generate_cert

log = logging.getLogger("kubenode")

BINARIES_DIR = "/var/lib/kubenode/binaries"
KUBELET_UNIT_DIR = "/lib/systemd/system"
KUBELET_DROPIN_DIR = "/etc/systemd/system/kubelet.service.d"


class KubeadmBootstrapper:
    """
    kubeadm-backed operations against a single node, all through its
    command runner.
    """

    def __init__(
        self,
        machine_name: str,
        ip: str,
        runner: CommandRunner,
        *,
        ca_cert_path: Path,
        ca_key_path: Path,
        work_dir: Path,
        binaries: Optional[Dict[str, Path]] = None,
    ):
        self.machine_name = machine_name
        self.ip = ip
        self.runner = runner
        self.ca_cert_path = Path(ca_cert_path)
        self.ca_key_path = Path(ca_key_path)
        self.work_dir = Path(work_dir)
        self.binaries = binaries or {}

    def _bin_dir(self, k8s: KubernetesConfig) -> str:
        return f"{BINARIES_DIR}/{k8s.version}"

    def _kubelet_unit(self, k8s: KubernetesConfig) -> str:
        return textwrap.dedent(f"""\
            [Unit]
            Description=kubelet: The Kubernetes Node Agent
            Documentation=https://kubernetes.io/docs/home/

            [Service]
            ExecStart={self._bin_dir(k8s)}/kubelet
            Restart=always
            StartLimitInterval=0
            RestartSec=10

            [Install]
            WantedBy=multi-user.target
            """)

    def _kubelet_dropin(self, k8s: KubernetesConfig) -> str:
        flags = " ".join([
            "--bootstrap-kubeconfig=/etc/kubernetes/bootstrap-kubelet.conf",
            "--kubeconfig=/etc/kubernetes/kubelet.conf",
            "--config=/var/lib/kubelet/config.yaml",
            f"--client-ca-file={k8s.cert_dir}/ca.crt",
            f"--hostname-override={self.machine_name}",
            f"--node-ip={self.ip}",
            f"--port={k8s.node_port}",
        ])
        return textwrap.dedent(f"""\
            [Unit]
            Wants=docker.socket

            [Service]
            ExecStart=
            ExecStart={self._bin_dir(k8s)}/kubelet {flags}

            [Install]
            """)

    def update_node(self, k8s: KubernetesConfig) -> None:
        """Move binaries and kubelet service files onto the node."""
        assets = [
            Asset(KUBELET_UNIT_DIR, "kubelet.service", content=self._kubelet_unit(k8s)),
            Asset(KUBELET_DROPIN_DIR, "10-kubeadm.conf", content=self._kubelet_dropin(k8s)),
        ]
        for name, path in sorted(self.binaries.items()):
            assets.append(Asset(self._bin_dir(k8s), name, source_path=path, permissions="0755"))

        for a in assets:
            log.debug("[%s] copying %s", self.machine_name, a.target_path)
            self.runner.copy(a)
        self.runner.run("sudo systemctl daemon-reload && sudo systemctl enable kubelet")

    def setup_certs(self, k8s: KubernetesConfig) -> None:
        """Issue this node's kubelet client cert from the cluster CA and install both."""
        crt = self.work_dir / "kubelet.crt"
        key = self.work_dir / "kubelet.key"
        generate_cert(CertOptions(
            cert_file=str(crt),
            key_file=str(key),
            ca_file=str(self.ca_cert_path),
            ca_key_file=str(self.ca_key_path),
            org="system:nodes",
            common_name=f"system:node:{self.machine_name}",
            hosts=[self.machine_name, self.ip],
            client=True,
        ))
        for a in (
            Asset(k8s.cert_dir, "ca.crt", source_path=self.ca_cert_path),
            Asset(k8s.cert_dir, "kubelet.crt", source_path=crt),
            Asset(k8s.cert_dir, "kubelet.key", source_path=key, permissions="0600"),
        ):
            self.runner.copy(a)

    def join_command(self, k8s: KubernetesConfig) -> str:
        if not k8s.control_plane_ip:
            raise KubenodeError("control plane address is not set")
        if not k8s.token:
            raise KubenodeError("bootstrap token is not set")
        parts = [
            f"sudo env PATH={self._bin_dir(k8s)}:$PATH kubeadm join",
            f"{k8s.control_plane_ip}:{k8s.control_plane_port}",
            "--token", shlex.quote(k8s.token),
        ]
        if k8s.discovery_hash:
            parts += ["--discovery-token-ca-cert-hash", shlex.quote(k8s.discovery_hash)]
        else:
            parts.append("--discovery-token-unsafe-skip-ca-verification")
        parts += ["--node-name", shlex.quote(self.machine_name), "--ignore-preflight-errors=all"]
        return " ".join(parts)

    def join_node(self, k8s: KubernetesConfig) -> None:
        self.runner.run(self.join_command(k8s))
