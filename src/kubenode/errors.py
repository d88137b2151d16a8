# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/errors.py

from __future__ import annotations

from typing import Optional


class KubenodeError(RuntimeError):
    """Base class for every failure raised by kubenode."""


# ---------------------------------------------------------------------
# Drivers
# ---------------------------------------------------------------------
class DriverError(KubenodeError):
    """A machine backend refused or failed a lifecycle operation."""


class DriverNotSupportedError(DriverError):
    def __init__(self, driver_name: str, operation: str = ""):
        self.driver_name = driver_name
        self.operation = operation
        what = f" ({operation})" if operation else ""
        super().__init__(f"driver '{driver_name}' is not supported on this platform{what}")


class UnknownDriverError(DriverError):
    def __init__(self, driver_name: str):
        self.driver_name = driver_name
        super().__init__(f"unknown driver '{driver_name}'")


# ---------------------------------------------------------------------
# Command channel
# ---------------------------------------------------------------------
class CommandError(KubenodeError):
    """A command exited non-zero or could not be executed at all."""

    def __init__(
        self,
        cmd: str,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        reason: Optional[str] = None,
    ):
        self.cmd = cmd
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        msg = f"command failed: {cmd}"
        if exit_code is not None:
            msg += f" (exit {exit_code})"
        if reason:
            msg += f": {reason}"
        elif stderr.strip():
            msg += f": {stderr.strip()}"
        super().__init__(msg)


class SSHConnectionError(CommandError):
    def __init__(self, address: str, port: int, reason: str):
        self.address = address
        self.port = port
        super().__init__(f"ssh {address}:{port}", reason=reason)


# ---------------------------------------------------------------------
# Host records
# ---------------------------------------------------------------------
class HostDecodeError(KubenodeError):
    """Persisted host state is malformed or unreadable."""


class HostNotFoundError(KubenodeError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"machine '{name}' does not exist")


class HostExistsError(KubenodeError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"machine '{name}' already exists")


# ---------------------------------------------------------------------
# Provisioning / bootstrap
# ---------------------------------------------------------------------
class ProvisionError(KubenodeError):
    def __init__(self, step: str, machine: str, reason: str):
        self.step = step
        self.machine = machine
        super().__init__(f"provisioning '{machine}' failed at step '{step}': {reason}")


class DaemonNotAvailableError(KubenodeError):
    """The remote daemon never started listening within the poll budget."""

    def __init__(self, port: int, last_error: Optional[BaseException] = None):
        self.port = port
        self.last_error = last_error
        msg = (
            f"Unable to verify the Docker daemon is listening on port {port}. "
            "Maybe there's a firewall blocking the port, or the daemon failed to start; "
            "re-run provisioning or inspect the daemon logs on the machine"
        )
        if last_error is not None:
            msg += f" (last error: {last_error})"
        super().__init__(msg)


class BootstrapError(KubenodeError):
    def __init__(self, stage: str, machine: str, reason: str):
        self.stage = stage
        self.machine = machine
        super().__init__(f"{stage} for '{machine}': {reason}")


class NodeStatusError(KubenodeError):
    def __init__(self, machine: str, state: object, unknown: bool = False):
        self.machine = machine
        self.state = state
        kind = "Unknown" if unknown else "Error"
        super().__init__(f"{kind} state {state} from driver for '{machine}'")


# ---------------------------------------------------------------------
# Profile config
# ---------------------------------------------------------------------
class ProfileNotFoundError(KubenodeError):
    def __init__(self, profile: str, path: object):
        self.profile = profile
        self.path = path
        super().__init__(f"profile '{profile}' not found at {path}")


class ConfigDecodeError(KubenodeError):
    """Profile config exists but cannot be parsed or validated."""
