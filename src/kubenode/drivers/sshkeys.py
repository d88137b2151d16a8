# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import io
import os
import tarfile
from pathlib import Path

import paramiko

# boot2docker-style images format their data disk when they find this marker
B2D_MAGIC = "boot2docker, please format-me"


def generate_ssh_key(path: str | Path, bits: int = 2048) -> str:
    """
    Write an RSA private key to *path* (and *path*.pub) unless one is already
    there. Returns the public key line.
    """
    path = Path(path)
    if path.exists():
        key = paramiko.RSAKey.from_private_key_file(str(path))
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        key = paramiko.RSAKey.generate(bits)
        key.write_private_key_file(str(path))
        os.chmod(path, 0o600)
    pub = f"{key.get_name()} {key.get_base64()}"
    Path(f"{path}.pub").write_text(pub + "\n")
    return pub


def make_userdata_tar(public_key: str) -> bytes:
    """Tarball the guest picks up on first boot: format marker + authorized_keys."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in (
            (B2D_MAGIC, B2D_MAGIC.encode()),
            (".ssh/authorized_keys", (public_key + "\n").encode()),
            (".ssh/authorized_keys2", (public_key + "\n").encode()),
        ):
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()
