# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass

from kubenode.host.models import AuthOptions, EngineOptions

ENGINE_OPTIONS_PATH = "/etc/systemd/system/docker.service.d/10-machine.conf"


@dataclass(frozen=True)
class DockerOptions:
    engine_options: str
    engine_options_path: str


def generate_docker_options(
    port: int,
    auth: AuthOptions,
    engine: EngineOptions,
    driver_name: str,
) -> DockerOptions:
    """systemd drop-in that restarts dockerd listening on tcp://0.0.0.0:<port> with TLS."""
    flags = [
        f"-H tcp://0.0.0.0:{port}",
        "-H unix:///var/run/docker.sock",
        "--default-ulimit=nofile=1048576:1048576",
    ]
    if engine.tls_verify:
        flags += [
            "--tlsverify",
            f"--tlscacert {auth.ca_cert_remote_path}",
            f"--tlscert {auth.server_cert_remote_path}",
            f"--tlskey {auth.server_key_remote_path}",
        ]
    if engine.storage_driver:
        flags.append(f"--storage-driver {engine.storage_driver}")
    flags.append(f"--label provider={driver_name}")
    flags += [f"--label {label}" for label in engine.labels]
    flags += [f"--insecure-registry {r}" for r in engine.insecure_registry]
    flags += [f"--registry-mirror {m}" for m in engine.registry_mirror]
    flags += [f"--dns {d}" for d in engine.dns]
    flags += [f"--{f}" for f in engine.arbitrary_flags]

    content = "\n".join([
        "[Service]",
        "ExecStart=",
        "ExecStart=/usr/bin/dockerd " + " ".join(flags),
        "",
    ])
    return DockerOptions(engine_options=content, engine_options_path=ENGINE_OPTIONS_PATH)
