# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/config/profile.py

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from kubenode.errors import ConfigDecodeError, KubenodeError, ProfileNotFoundError
from kubenode.utils.fileutil import atomic_write

from .models import ClusterConfig
from .paths import profile_file, profile_files

log = logging.getLogger("kubenode")


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    try:
        return yaml.safe_load(expanded) or {}
    except yaml.YAMLError as e:
        raise ConfigDecodeError(f"malformed profile config {path}: {e}") from e


def _decode(path: Path) -> ClusterConfig:
    data = _load_yaml(path)
    try:
        return ClusterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigDecodeError(f"invalid profile config {path}: {e}") from e


def save_config(profile: str, cfg: ClusterConfig, home: Optional[Path] = None) -> Path:
    """
    Save a profile's cluster configuration to
    <home>/profiles/<profile>/config.yaml, atomically replacing any previous copy.
    """
    if not profile:
        raise KubenodeError("Profile name cannot be empty.")
    path = profile_file(profile, home)
    data = yaml.safe_dump(cfg.model_dump(mode="json"), sort_keys=False)
    atomic_write(path, data.encode())
    log.debug("saved profile %s to %s", profile, path)
    return path


def load_config(profile: str, home: Optional[Path] = None) -> ClusterConfig:
    """
    Load and validate a profile config.

    Raises ProfileNotFoundError when the file does not exist and
    ConfigDecodeError when it exists but cannot be parsed.
    """
    if not profile:
        raise KubenodeError("Profile name cannot be empty.")
    path = profile_file(profile, home)
    if not path.is_file():
        raise ProfileNotFoundError(profile, path)
    return _decode(path)


def load_cluster_configs(home: Optional[Path] = None) -> List[ClusterConfig]:
    configs = []
    for f in profile_files(home):
        try:
            configs.append(_decode(f))
        except ConfigDecodeError as e:
            raise ConfigDecodeError(f"Error loading config from file: {f}: {e}") from e
    return configs
