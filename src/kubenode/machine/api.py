# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/machine/api.py

from __future__ import annotations

import getpass
import logging
from pathlib import Path
from typing import Callable, Optional

from kubenode.command.runner import CommandRunner, ExecRunner
from kubenode.command.ssh import new_ssh_runner
from kubenode.config.models import MachineConfig
from kubenode.config.paths import certs_dir, kubenode_home, machines_dir
from kubenode.drivers.base import BaseDriver
from kubenode.drivers.none import DRIVER_NONE
from kubenode.drivers.registry import new_driver
from kubenode.drivers.state import MachineState
from kubenode.errors import HostExistsError
from kubenode.host.models import AuthOptions, EngineOptions, Host, HostOptions
from kubenode.host.store import FileStore
from kubenode.observers.dispatcher import EventBus
from kubenode.observers.events import MachineCreated, MachineCreating
from kubenode.provision.certs import bootstrap_certificates
from kubenode.provision.provisioner import Provisioner

log = logging.getLogger("kubenode")

REMOTE_CERT_DIR = "/etc/docker"


class MachineAPI:
    """
    Creates, loads and provisions machines. One operation per machine name
    at a time; nothing here takes a lock.
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        *,
        bus: Optional[EventBus] = None,
        username: Optional[str] = None,
        cluster: Optional[str] = None,
        ssh_runner_factory: Callable[[BaseDriver], CommandRunner] = new_ssh_runner,
    ):
        self.home = Path(home) if home else kubenode_home()
        self.store = FileStore(self.home)
        self.bus = bus or EventBus()
        self.username = username or getpass.getuser()
        self.cluster = cluster
        self.ssh_runner_factory = ssh_runner_factory

    # ------------------ records ------------------

    def new_host(self, cfg: MachineConfig) -> Host:
        name = cfg.machine_name
        driver = new_driver(cfg.driver, name, str(self.home))
        driver.configure(cfg)

        mdir = machines_dir(self.home) / name
        certs = certs_dir(self.home)
        auth = AuthOptions(
            store_path=str(mdir),
            ca_cert_path=str(certs / "ca.pem"),
            ca_private_key_path=str(certs / "ca-key.pem"),
            client_cert_path=str(certs / "cert.pem"),
            client_key_path=str(certs / "key.pem"),
            server_cert_path=str(mdir / "server.pem"),
            server_key_path=str(mdir / "server-key.pem"),
            ca_cert_remote_path=f"{REMOTE_CERT_DIR}/ca.pem",
            server_cert_remote_path=f"{REMOTE_CERT_DIR}/server.pem",
            server_key_remote_path=f"{REMOTE_CERT_DIR}/server-key.pem",
        )
        engine = EngineOptions(
            insecure_registry=list(cfg.insecure_registry),
            registry_mirror=list(cfg.registry_mirror),
            labels=list(cfg.labels),
            storage_driver=cfg.storage_driver,
        )
        return Host(
            name=name,
            driver_name=cfg.driver,
            driver=driver,
            host_options=HostOptions(
                driver=cfg.driver,
                memory=cfg.memory_mb,
                disk=cfg.disk_size_mb,
                engine_options=engine,
                auth_options=auth,
            ),
        )

    def exists(self, name: str) -> bool:
        return self.store.exists(name)

    def load(self, name: str) -> Host:
        return self.store.load(name)

    def save(self, host: Host) -> None:
        self.store.save(host)

    def remove(self, name: str) -> None:
        host = self.load(name)
        host.driver.remove()
        self.store.remove(name)

    # ------------------ lifecycle ------------------

    def create(self, host: Host) -> None:
        if self.exists(host.name):
            raise HostExistsError(host.name)
        ctx = self.bus.ctx(machine=host.name, cluster=self.cluster)

        bootstrap_certificates(host.auth_options, org=self.username)
        # record first, so a half-created machine can still be removed
        self.save(host)

        log.info("Creating %s machine %s", host.driver_name, host.name)
        self.bus.emit(MachineCreating(driver=host.driver_name, **ctx))
        host.driver.create()
        self.save(host)

        self.provision(host)
        self.bus.emit(MachineCreated(driver=host.driver_name, ip=host.driver.get_ip(), **ctx))

    def provision(self, host: Host) -> None:
        if host.driver.name() == DRIVER_NONE:
            log.debug("%s uses the none driver, skipping provisioning", host.name)
            return
        runner = self.runner_for(host)
        Provisioner(host, runner, bus=self.bus, cluster=self.cluster).provision(username=self.username)

    def runner_for(self, host: Host) -> CommandRunner:
        # the none driver is this machine: run commands directly
        if host.driver.name() == DRIVER_NONE:
            return ExecRunner(label=host.name)
        return self.ssh_runner_factory(host.driver)


def start_host(api: MachineAPI, cfg: MachineConfig) -> Host:
    """Create the machine if it does not exist yet, otherwise make sure it runs."""
    if not api.exists(cfg.machine_name):
        host = api.new_host(cfg)
        api.create(host)
        return host

    host = api.load(cfg.machine_name)
    if host.migrated:
        log.info("Upgrading stored record for %s", host.name)
        api.save(host)

    st = host.driver.get_state()
    if st == MachineState.RUNNING:
        log.info("%s is already running", host.name)
        return host

    log.info("Starting %s (state %s)", host.name, st)
    host.driver.start()
    api.save(host)
    api.provision(host)
    return host
