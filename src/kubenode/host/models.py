# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/host/models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from kubenode.drivers.base import BaseDriver

CONFIG_VERSION = 1


class AuthOptions(BaseModel):
    """
    Certificate material for one machine. Local paths seed the client's TLS
    conversations, remote paths are where the daemon expects its certs.
    """

    model_config = ConfigDict(extra="ignore")

    store_path: str = ""                 # <home>/machines/<name>
    ca_cert_path: str = ""
    ca_private_key_path: str = ""
    ca_cert_remote_path: str = ""
    server_cert_path: str = ""
    server_key_path: str = ""
    client_key_path: str = ""
    server_cert_remote_path: str = ""
    server_key_remote_path: str = ""
    client_cert_path: str = ""
    server_cert_sans: List[str] = Field(default_factory=list)


class EngineOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    arbitrary_flags: List[str] = Field(default_factory=list)
    dns: List[str] = Field(default_factory=list)
    insecure_registry: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    registry_mirror: List[str] = Field(default_factory=list)
    storage_driver: str = ""
    tls_verify: bool = True


class HostOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    driver: str = ""
    memory: int = 0
    disk: int = 0
    engine_options: EngineOptions = Field(default_factory=EngineOptions)
    auth_options: AuthOptions = Field(default_factory=AuthOptions)


class MetadataV0(BaseModel):
    """
    The oldest record layout: cert paths sat flat on the record and
    store_path pointed at the machine directory.
    """

    model_config = ConfigDict(extra="ignore")

    config_version: int = 0
    driver_name: str = ""
    store_path: str = ""
    ca_cert_path: str = ""
    private_key_path: str = ""
    server_cert_path: str = ""
    server_key_path: str = ""
    client_cert_path: str = ""


class Metadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    config_version: int = CONFIG_VERSION
    driver_name: str = ""
    host_options: HostOptions = Field(default_factory=HostOptions)


@dataclass
class Host:
    """
    Binds a machine name to its driver. The host is the only writer of the
    driver's persisted fields; raw_driver keeps the payload exactly as read.
    """

    name: str
    driver_name: str
    driver: BaseDriver
    host_options: HostOptions
    config_version: int = CONFIG_VERSION
    raw_driver: bytes = b""
    migrated: bool = False

    @property
    def auth_options(self) -> AuthOptions:
        return self.host_options.auth_options

    @property
    def engine_options(self) -> EngineOptions:
        return self.host_options.engine_options
