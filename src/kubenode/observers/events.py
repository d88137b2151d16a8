# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/observers/events.py

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                 # ISO timestamp
    run_id: str             # correlates all events in a single invocation
    cluster: Optional[str]  # profile / cluster name
    machine: str

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(machine: str, cluster: Optional[str] = None, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "cluster": cluster,
        "machine": machine,
    }


# ---------------------------------------------------------------------
# Machine lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class MachineCreating(BaseEvent):
    driver: str

@dataclass(frozen=True)
class MachineCreated(BaseEvent):
    driver: str
    ip: str


# ---------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProvisionStep(BaseEvent):
    step: str

@dataclass(frozen=True)
class ProvisionSucceeded(BaseEvent):
    port: int

@dataclass(frozen=True)
class ProvisionFailed(BaseEvent):
    step: str
    error: str


# ---------------------------------------------------------------------
# Node join
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BootstrapStage(BaseEvent):
    stage: str
    message: str

@dataclass(frozen=True)
class NodeJoined(BaseEvent):
    ip: str
