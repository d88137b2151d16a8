# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/utils/units.py

from __future__ import annotations

import re

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB
TIB = 1024 * GIB

_MULTIPLIERS = {"": 1, "k": KIB, "m": MIB, "g": GIB, "t": TIB}
_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgt]?)(?:i?b)?\s*$", re.IGNORECASE)


def ram_in_bytes(size: str) -> int:
    """Parse a human readable size ("512m", "2GiB") using binary multiples."""
    m = _SIZE_RE.match(size)
    if not m:
        raise ValueError(f"invalid size: {size!r}")
    return int(float(m.group(1)) * _MULTIPLIERS[m.group(2).lower()])


def calculate_size_in_mb(human_readable_size: str | int) -> int:
    """
    Number of MB in a human readable size. A bare number is already MB,
    so "2048" and "2g" both give 2048.
    """
    text = str(human_readable_size).strip()
    if text.isdigit():
        text += "mb"
    try:
        size = ram_in_bytes(text)
    except ValueError as e:
        raise ValueError(f"FromHumanSize: {e}") from e
    return size // MIB


def convert_mb_to_bytes(mb_size: int) -> int:
    return mb_size * MIB


def convert_bytes_to_mb(byte_size: int) -> int:
    return byte_size // MIB
