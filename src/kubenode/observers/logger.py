# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/observers/logger.py

from __future__ import annotations

import logging

from .events import BaseEvent, ProvisionFailed

# context fields already carried by every record's prefix
_CTX = ("ts", "run_id", "cluster", "machine")


class LoggerObserver:
    """Mirror lifecycle events into the run log; failures at WARNING."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        fields = ", ".join(f"{k}={v}" for k, v in d.items() if k not in _CTX)
        level = logging.WARNING if isinstance(event, ProvisionFailed) else logging.INFO
        self.logger.log(
            level,
            "[EVENT] %s [%s/%s]: %s",
            type(event).__name__, d["cluster"] or "-", d["machine"], fields,
        )
