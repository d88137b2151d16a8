# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/observers/dispatcher.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from .events import BaseEvent, new_ctx

log = logging.getLogger("kubenode")


class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


class EventBus:
    """
    Fans each event out to every observer, in registration order. Every
    event built from ctx() carries the bus run_id.
    """

    def __init__(self, observers: Optional[List[Observer]] = None, run_id: Optional[str] = None):
        self._observers = observers or []
        self.run_id = run_id or str(uuid.uuid4())

    def ctx(self, machine: str, cluster: Optional[str] = None) -> Dict[str, Any]:
        return new_ctx(machine=machine, cluster=cluster, run_id=self.run_id)

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                # observers must not break provisioning
                log.debug("observer %s failed: %s", type(ob).__name__, exc)
