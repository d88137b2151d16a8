# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/command/ssh.py

from __future__ import annotations

import io
import logging
import os
import shlex
from typing import Optional, Tuple

import paramiko

from kubenode.errors import CommandError, SSHConnectionError
from kubenode.utils.retry import RetryError, retry

from .runner import Asset

log = logging.getLogger("kubenode")


class SSHRunner:
    """Runs commands on a machine over an authenticated SSH session."""

    def __init__(self, client: paramiko.SSHClient, *, label: str = "ssh", timeout: Optional[float] = None):
        self.client = client
        self.label = label
        self.timeout = timeout

    def exec(self, cmd: str) -> Tuple[int, str, str]:
        log.debug(f"[{self.label}] $ {cmd}")
        try:
            _, stdout, stderr = self.client.exec_command(cmd, timeout=self.timeout)
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
            rc = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise CommandError(cmd, reason=str(e)) from e
        if out:
            log.debug(f"[{self.label}][stdout]\n{out.rstrip()}")
        if err:
            log.debug(f"[{self.label}][stderr]\n{err.rstrip()}")
        log.debug(f"[{self.label}][exit {rc}]")
        return rc, out, err

    def run(self, cmd: str) -> str:
        rc, out, err = self.exec(cmd)
        if rc != 0:
            raise CommandError(cmd, rc, out, err)
        return out

    def copy(self, asset: Asset) -> None:
        """
        Upload over SFTP to a temp path, then move it into place with sudo
        so root-owned targets work.
        """
        tmp = f"/tmp/.kubenode.upload.{os.getpid()}.{asset.target_name}"
        try:
            sftp = self.client.open_sftp()
        except (paramiko.SSHException, OSError) as e:
            raise CommandError(f"sftp {asset.target_path}", reason=str(e)) from e
        try:
            sftp.putfo(io.BytesIO(asset.read()), tmp)
        except (paramiko.SSHException, OSError) as e:
            raise CommandError(f"sftp put {tmp}", reason=str(e)) from e
        finally:
            sftp.close()
        target = shlex.quote(asset.target_path)
        self.run(
            f"sudo mkdir -p {shlex.quote(asset.target_dir)} && "
            f"sudo mv {shlex.quote(tmp)} {target} && sudo chmod {asset.permissions} {target}"
        )

    def close(self) -> None:
        self.client.close()


def _load_pkey(key_path: str, address: str = "-", port: int = 0):
    for key_cls in (
        paramiko.RSAKey,
        paramiko.Ed25519Key,
        paramiko.ECDSAKey,
    ):
        try:
            return key_cls.from_private_key_file(key_path)
        except paramiko.SSHException:
            continue
        except OSError as e:
            raise SSHConnectionError(address, port, f"cannot read private key {key_path}: {e}") from e
    raise SSHConnectionError(address, port, f"unsupported private key format for {key_path}")


def open_ssh(
    address: str,
    port: int,
    username: str,
    key_path: Optional[str] = None,
    *,
    connect_timeout: float = 20.0,
    retries: int = 3,
    delay: float = 2.0,
) -> SSHRunner:
    pkey = _load_pkey(key_path, address, port) if key_path else None

    @retry(retries=retries, delay=delay, retry_on=(paramiko.SSHException, OSError),
           on_retry=lambda n, e: log.debug("ssh %s:%d attempt %d failed: %s", address, port, n, e))
    def _connect() -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        client.connect(
            hostname=address,
            port=port,
            username=username,
            pkey=pkey,
            timeout=connect_timeout,
            allow_agent=pkey is None,
            look_for_keys=pkey is None,
        )
        return client

    try:
        client = _connect()
    except RetryError as e:
        raise SSHConnectionError(address, port, str(e.last_error)) from e
    return SSHRunner(client, label=f"ssh {address}")


def new_ssh_runner(driver) -> SSHRunner:
    """Open a session using the SSH identity a driver reports."""
    return open_ssh(
        driver.get_ssh_hostname(),
        driver.get_ssh_port(),
        driver.get_ssh_username(),
        driver.get_ssh_key_path() or None,
    )
