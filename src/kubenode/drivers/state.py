# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from enum import Enum


class MachineState(str, Enum):
    """Lifecycle state as reported by a backend. Owned by the backend, not by kubenode."""

    NONE = ""
    RUNNING = "Running"
    PAUSED = "Paused"
    SAVED = "Saved"
    STOPPED = "Stopped"
    STOPPING = "Stopping"
    STARTING = "Starting"
    ERROR = "Error"
    TIMEOUT = "Timeout"

    def __str__(self) -> str:
        return self.value
