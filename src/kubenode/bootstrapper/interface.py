# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/bootstrapper/interface.py

from __future__ import annotations

from typing import Protocol

from kubenode.command.runner import CommandRunner


class JoinableNode(Protocol):
    """What a bootstrapper needs from a node."""

    @property
    def machine_name(self) -> str: ...

    def ip(self) -> str: ...

    def runner(self) -> CommandRunner: ...


class Bootstrapper(Protocol):
    """
    Contract for turning a machine into a member of an existing cluster.
    Implementations must raise on the first failed stage.
    """

    def bootstrap(self, node: JoinableNode) -> None:
        ...
