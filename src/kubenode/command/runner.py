# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/command/runner.py

from __future__ import annotations

import logging
import os
import posixpath
import shlex
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from kubenode.errors import CommandError

log = logging.getLogger("kubenode")


@dataclass(frozen=True)
class Asset:
    """A file to place on a machine: in-memory bytes or a local path."""

    target_dir: str
    target_name: str
    content: Union[bytes, str, None] = None
    source_path: Optional[Path] = None
    permissions: str = "0644"

    @property
    def target_path(self) -> str:
        return posixpath.join(self.target_dir, self.target_name)

    def read(self) -> bytes:
        if self.content is not None:
            return self.content.encode() if isinstance(self.content, str) else self.content
        if self.source_path is None:
            raise ValueError(f"asset {self.target_path} has neither content nor source path")
        return Path(self.source_path).read_bytes()


class CommandRunner(Protocol):
    """
    Runs a shell command on a machine. run() returns stdout and raises
    CommandError on a non-zero exit or when the command cannot be executed.
    """

    def run(self, cmd: str) -> str: ...

    def copy(self, asset: Asset) -> None: ...


@dataclass
class ExecRunner:
    """Runs commands directly on this machine (the `none` driver)."""

    label: str = "exec"
    dry_run: bool = False
    timeout: Optional[float] = None

    def run(self, cmd: str) -> str:
        log.debug(f"[{self.label}] $ {cmd}")

        if self.dry_run:
            log.debug(f"[{self.label}] dry-run: skipped execution")
            return ""

        start = time.time()
        try:
            result = subprocess.run(
                ["/bin/bash", "-c", cmd],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CommandError(cmd, reason=str(e)) from e

        duration = time.time() - start

        if result.stdout:
            log.debug(f"[{self.label}][stdout]\n{result.stdout.rstrip()}")
        if result.stderr:
            log.debug(f"[{self.label}][stderr]\n{result.stderr.rstrip()}")
        log.debug(f"[{self.label}][exit {result.returncode}] ({duration:.2f}s)")

        if result.returncode != 0:
            raise CommandError(cmd, result.returncode, result.stdout, result.stderr)
        return result.stdout

    def copy(self, asset: Asset) -> None:
        fd, tmp = tempfile.mkstemp(prefix=".kubenode.asset.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(asset.read())
            target = shlex.quote(asset.target_path)
            self.run(
                f"sudo mkdir -p {shlex.quote(asset.target_dir)} && "
                f"sudo cp {shlex.quote(tmp)} {target} && "
                f"sudo chmod {asset.permissions} {target}"
            )
        finally:
            os.remove(tmp)
