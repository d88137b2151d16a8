# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from kubenode.config.paths import kubenode_home
from kubenode.observers.console import ConsoleObserver
from kubenode.observers.dispatcher import EventBus
from kubenode.observers.logger import LoggerObserver

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "kubenode",
    profile: str | None = None,
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path]:
    """
    One log file per invocation under <home>/logs holding every driver call,
    remote command and its output; the console only gets INFO unless
    *verbose*. paramiko's own chatter goes to the file at WARNING.

    The file is named <name>[-<profile>]-<utc stamp>-<run_id>.log so runs
    against one profile sort together.

    Returns (logger, run_id, log_path).
    """
    run_id = str(uuid.uuid4())

    if base_dir is None:
        base_dir = kubenode_home() / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)

    stem = f"{name}-{profile}" if profile else name
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{stem}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    fh = logging.FileHandler(log_path)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)

    logger.addHandler(fh)
    logger.addHandler(ch)

    transport = logging.getLogger("paramiko")
    transport.setLevel(logging.WARNING)
    transport.handlers[:] = [fh]
    transport.propagate = False

    logger.debug("kubenode run %s profile=%s log_file=%s", run_id, profile or "-", log_path)
    return logger, run_id, log_path


def init_run(profile: str, *, verbose: bool = False, base_dir: Path | None = None) -> EventBus:
    """Set up logging for one CLI invocation and an event bus sharing its run_id."""
    logger, run_id, _ = init_logging(base_dir=base_dir, profile=profile, verbose=verbose)
    return EventBus(observers=[ConsoleObserver(), LoggerObserver(logger)], run_id=run_id)
