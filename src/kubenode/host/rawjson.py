# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/host/rawjson.py

"""
Split a JSON object into its top-level members without re-encoding them,
so a member can be written back out byte for byte.
"""

from __future__ import annotations

import json
from typing import Dict

_WS = " \t\n\r"
_decoder = json.JSONDecoder()


def _skip_ws(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _WS:
        idx += 1
    return idx


def _expect(text: str, idx: int, ch: str) -> None:
    if idx >= len(text) or text[idx] != ch:
        raise json.JSONDecodeError(f"Expecting '{ch}'", text, idx)


def scan_members(data: bytes) -> Dict[str, bytes]:
    """
    Map each top-level key of a JSON object to the exact bytes of its value.
    Raises json.JSONDecodeError (a ValueError) on malformed input.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise json.JSONDecodeError(f"invalid utf-8: {e}", "", 0) from e

    members: Dict[str, bytes] = {}
    idx = _skip_ws(text, 0)
    _expect(text, idx, "{")
    idx = _skip_ws(text, idx + 1)
    if idx < len(text) and text[idx] == "}":
        idx += 1
    else:
        while True:
            _expect(text, idx, '"')
            key, idx = json.decoder.scanstring(text, idx + 1)
            idx = _skip_ws(text, idx)
            _expect(text, idx, ":")
            idx = _skip_ws(text, idx + 1)
            _, end = _decoder.raw_decode(text, idx)
            members[key] = text[idx:end].encode("utf-8")
            idx = _skip_ws(text, end)
            if idx < len(text) and text[idx] == ",":
                idx = _skip_ws(text, idx + 1)
                continue
            _expect(text, idx, "}")
            idx += 1
            break

    if _skip_ws(text, idx) != len(text):
        raise json.JSONDecodeError("Extra data", text, idx)
    return members
