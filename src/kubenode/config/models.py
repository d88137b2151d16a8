# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/config/models.py

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kubenode.utils.units import calculate_size_in_mb


class MachineConfig(BaseModel):
    """Desired shape of one machine. Copied, never mutated, per node."""

    model_config = ConfigDict(frozen=True)

    machine_name: str = "kubenode"
    driver: str = "virtualbox"
    cpus: int = 2
    memory_mb: int = 2048
    disk_size_mb: int = 20000
    image: Optional[str] = None             # ISO for VMs, image ref for containers
    ssh_user: str = "docker"
    ssh_port: int = 22
    ssh_key_path: Optional[str] = None
    host_only_cidr: str = "192.168.99.1/24"

    # engine options handed to the remote daemon
    insecure_registry: List[str] = Field(default_factory=list)
    registry_mirror: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    storage_driver: str = "overlay2"

    @field_validator("memory_mb", "disk_size_mb", mode="before")
    @classmethod
    def _human_size(cls, v):
        if isinstance(v, str):
            return calculate_size_in_mb(v)
        return v


class NodeConfig(BaseModel):
    """A logical cluster node. Its machine name is derived, never stored."""

    model_config = ConfigDict(frozen=True)

    name: str


class KubernetesConfig(BaseModel):
    version: str = "v1.17.0"
    control_plane_ip: str = ""
    control_plane_port: int = 8443
    token: str = ""
    discovery_hash: str = ""
    cert_dir: str = "/var/lib/kubenode/certs"
    node_port: int = 10250


class ClusterConfig(BaseModel):
    name: str
    machine_config: MachineConfig = Field(default_factory=MachineConfig)
    kubernetes_config: KubernetesConfig = Field(default_factory=KubernetesConfig)
    nodes: List[NodeConfig] = Field(default_factory=list)

    # Helper method
    def by_name(self) -> Dict[str, NodeConfig]:
        return {n.name: n for n in self.nodes}
