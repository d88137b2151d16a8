# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/host/store.py

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from kubenode.config.paths import kubenode_home, machines_dir as machines_root
from kubenode.drivers.registry import new_driver
from kubenode.errors import HostNotFoundError
from kubenode.utils.fileutil import atomic_write

from .migrate import driver_payload, encode_host, migrate_host
from .models import Host

log = logging.getLogger("kubenode")


class FileStore:
    """Host records at <home>/machines/<name>/config.json."""

    def __init__(self, home: Optional[Path] = None):
        self.home = Path(home) if home else kubenode_home()

    @property
    def machines_dir(self) -> Path:
        return machines_root(self.home)

    def _config_path(self, name: str) -> Path:
        return self.machines_dir / name / "config.json"

    def exists(self, name: str) -> bool:
        return self._config_path(name).is_file()

    def list(self) -> List[str]:
        if not self.machines_dir.is_dir():
            return []
        return sorted(p.name for p in self.machines_dir.iterdir() if (p / "config.json").is_file())

    def save(self, host: Host) -> None:
        path = self._config_path(host.name)
        host.raw_driver = driver_payload(host)
        atomic_write(path, encode_host(host))
        log.debug("saved host %s to %s", host.name, path)

    def load(self, name: str) -> Host:
        path = self._config_path(name)
        if not path.is_file():
            raise HostNotFoundError(name)
        host, _ = migrate_host(name, path.read_bytes())

        # second pass: now that the driver name is known, decode the payload for real
        driver = new_driver(host.driver_name, host.name, host.driver.store_path)
        if host.raw_driver:
            driver.load_payload(host.raw_driver)
        host.driver = driver
        return host

    def remove(self, name: str) -> None:
        mdir = self.machines_dir / name
        if not mdir.exists():
            raise HostNotFoundError(name)
        shutil.rmtree(mdir)
