# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/config/paths.py

from __future__ import annotations

import os
from pathlib import Path


def kubenode_home() -> Path:
    """KUBENODE_HOME when set, otherwise ~/.kubenode."""
    env = os.environ.get("KUBENODE_HOME")
    if env:
        return Path(env)
    return Path.home() / ".kubenode"


def machines_dir(home: Path | None = None) -> Path:
    return (home or kubenode_home()) / "machines"


def certs_dir(home: Path | None = None) -> Path:
    return (home or kubenode_home()) / "certs"


def profile_file(profile: str, home: Path | None = None) -> Path:
    return (home or kubenode_home()) / "profiles" / profile / "config.yaml"


def profile_files(home: Path | None = None) -> list[Path]:
    root = (home or kubenode_home()) / "profiles"
    if not root.is_dir():
        return []
    return sorted(p / "config.yaml" for p in root.iterdir() if (p / "config.yaml").is_file())
