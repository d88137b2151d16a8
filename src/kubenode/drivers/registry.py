# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/drivers/registry.py

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional

from kubenode.errors import UnknownDriverError

from .base import BaseDriver
from .docker import DRIVER_DOCKER, DockerDriver
from .none import DRIVER_NONE, NoneDriver
from .not_supported import NotSupportedDriver
from .parallels import DRIVER_PARALLELS, PLATFORMS as PARALLELS_PLATFORMS, ParallelsDriver
from .virtualbox import DRIVER_VIRTUALBOX, VirtualBoxDriver

DriverFactory = Callable[[str, str], BaseDriver]


@dataclass(frozen=True)
class DriverDef:
    name: str
    factory: DriverFactory
    platforms: Optional[FrozenSet[str]] = None   # None → every platform

    def supported_on(self, platform: str) -> bool:
        return self.platforms is None or platform in self.platforms


_REGISTRY: Dict[str, DriverDef] = {}


def register(d: DriverDef) -> None:
    _REGISTRY[d.name] = d


def new_driver(
    name: str,
    machine_name: str,
    store_path: str,
    platform: Optional[str] = None,
) -> BaseDriver:
    """
    Instantiate the backend called *name*. A backend that exists but does not
    run on this platform comes back as a NotSupportedDriver.
    """
    d = _REGISTRY.get(name)
    if d is None:
        raise UnknownDriverError(name)
    if not d.supported_on(platform or sys.platform):
        return NotSupportedDriver(machine_name, store_path, unsupported_name=name)
    return d.factory(machine_name, store_path)


def supported_drivers(platform: Optional[str] = None) -> List[str]:
    platform = platform or sys.platform
    return sorted(n for n, d in _REGISTRY.items() if d.supported_on(platform))


register(DriverDef(DRIVER_NONE, NoneDriver, frozenset({"linux"})))
register(DriverDef(DRIVER_VIRTUALBOX, VirtualBoxDriver))
register(DriverDef(DRIVER_PARALLELS, ParallelsDriver, PARALLELS_PLATFORMS))
register(DriverDef(DRIVER_DOCKER, DockerDriver))
