# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/build.py

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from typing import Dict, List, Sequence

from kubenode.errors import CommandError, KubenodeError
from kubenode.host.models import Host
from kubenode.machine.api import MachineAPI
from kubenode.provision.provisioner import parse_engine_port

log = logging.getLogger("kubenode")

USAGE = "Usage: kubenode build -- [OPTIONS] PATH | URL | -"


def docker_env(host: Host) -> Dict[str, str]:
    """The DOCKER_* variables a client needs to talk to the machine's daemon."""
    ip = host.driver.get_ip()
    port = parse_engine_port(host.driver.get_url())
    return {
        "DOCKER_TLS_VERIFY": "1" if host.engine_options.tls_verify else "",
        "DOCKER_HOST": f"tcp://{ip}:{port}",
        "DOCKER_CERT_PATH": host.auth_options.store_path,
    }


def tls_flags(env: Dict[str, str]) -> List[str]:
    options: List[str] = []
    if env.get("DOCKER_TLS_VERIFY"):
        options.append("--tlsverify")
    cert_path = env.get("DOCKER_CERT_PATH")
    if cert_path:
        options += ["--tlscacert", os.path.join(cert_path, "ca.pem")]
        options += ["--tlscert", os.path.join(cert_path, "cert.pem")]
        options += ["--tlskey", os.path.join(cert_path, "key.pem")]
    options += ["-H", env["DOCKER_HOST"]]
    return options


def build_image(
    api: MachineAPI,
    machine_name: str,
    args: Sequence[str],
    *,
    docker_binary: str = "docker",
    use_podman: bool = False,
) -> int:
    """
    Run an image build against the machine and return the exit code of the
    build client unchanged.
    """
    if not args:
        raise KubenodeError(USAGE)
    host = api.load(machine_name)

    if use_podman:
        runner = api.runner_for(host)
        cmd = " ".join(shlex.quote(a) for a in ["sudo", "podman", "build", *args])
        log.info("Running %s on %s", cmd, machine_name)
        try:
            sys.stdout.write(runner.run(cmd))
        except CommandError as e:
            log.error("Error running ssh sudo podman: %s", e)
            return 1
        return 0

    argv = [docker_binary, *tls_flags(docker_env(host)), "build", *args]
    log.info("Running %s %s", docker_binary, argv[1:])
    try:
        # stdio is inherited so the build streams straight to the user
        cp = subprocess.run(argv, check=False)
    except OSError as e:
        log.error("Error running %s: %s", docker_binary, e)
        return 1
    return cp.returncode
