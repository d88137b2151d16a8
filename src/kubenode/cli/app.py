# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubenode/cli/app.py
from __future__ import annotations

from typing import List, Optional

import typer

from kubenode.bootstrapper.interface import Bootstrapper
from kubenode.bootstrapper.worker import WorkerBootstrapper
from kubenode.build import build_image
from kubenode.config.models import ClusterConfig, NodeConfig
from kubenode.config.paths import kubenode_home
from kubenode.config.profile import load_config, save_config
from kubenode.errors import KubenodeError, ProfileNotFoundError
from kubenode.logging.log import init_run
from kubenode.machine.api import MachineAPI
from kubenode.node.node import Node, machine_name_for
from kubenode.node.start import start_nodes

# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="kubenode: local Kubernetes machines and nodes")
node_app = typer.Typer(help="Manage the nodes of a cluster profile")
app.add_typer(node_app, name="node")

ProfileOpt = typer.Option("kubenode", "--profile", "-p", help="Cluster profile name")


def _fail(err: BaseException) -> None:
    """Print the wrapped error chain and exit non-zero."""
    typer.secho(f"Error: {err}", fg=typer.colors.RED, err=True)
    cause = err.__cause__
    while cause is not None:
        typer.secho(f"  caused by: {cause}", err=True)
        cause = cause.__cause__
    raise typer.Exit(code=1)


def _api(profile: str, debug: bool) -> MachineAPI:
    bus = init_run(profile, verbose=debug)
    return MachineAPI(kubenode_home(), bus=bus, cluster=profile)


def _load_or_new(profile: str) -> ClusterConfig:
    try:
        return load_config(profile)
    except ProfileNotFoundError:
        return ClusterConfig(name=profile)


def _node(cfg: ClusterConfig, name: str, api: MachineAPI) -> Node:
    nc = cfg.by_name().get(name)
    if nc is None:
        raise KubenodeError(f"node '{name}' is not part of profile '{cfg.name}'")
    return Node(nc, cfg.machine_config, cfg.name, api)


# ------------------------------------------------------------------------------
# node commands
# ------------------------------------------------------------------------------

@node_app.command("add")
def node_add(
    name: Optional[str] = typer.Argument(None, help="Node name (default node-<n>)"),
    profile: str = ProfileOpt,
):
    """Adds a node to the cluster profile."""
    try:
        cfg = _load_or_new(profile)
        node_name = name or f"node-{len(cfg.nodes) + 1}"
        if node_name in cfg.by_name():
            raise KubenodeError(f"node '{node_name}' already exists in profile '{profile}'")
        cfg = cfg.model_copy(update={"nodes": [*cfg.nodes, NodeConfig(name=node_name)]})
        save_config(profile, cfg)
    except KubenodeError as e:
        _fail(e)
    typer.echo(f"Added node: {node_name} (machine {machine_name_for(profile, node_name)})")


@node_app.command("start")
def node_start(name: str, profile: str = ProfileOpt, debug: bool = typer.Option(False, "--debug")):
    try:
        cfg = load_config(profile)
        _node(cfg, name, _api(profile, debug)).start()
    except KubenodeError as e:
        _fail(e)


@node_app.command("stop")
def node_stop(name: str, profile: str = ProfileOpt, debug: bool = typer.Option(False, "--debug")):
    try:
        cfg = load_config(profile)
        _node(cfg, name, _api(profile, debug)).stop()
    except KubenodeError as e:
        _fail(e)


@node_app.command("status")
def node_status(name: str, profile: str = ProfileOpt):
    try:
        cfg = load_config(profile)
        status = _node(cfg, name, MachineAPI(kubenode_home(), cluster=profile)).status()
    except KubenodeError as e:
        _fail(e)
    typer.echo(f"{name}: {status}")


@node_app.command("list")
def node_list(profile: str = ProfileOpt):
    try:
        cfg = load_config(profile)
    except KubenodeError as e:
        _fail(e)
    api = MachineAPI(kubenode_home(), cluster=profile)
    failed = False
    for nc in cfg.nodes:
        n = Node(nc, cfg.machine_config, cfg.name, api)
        try:
            typer.echo(f"{n.name}\t{n.machine_name}\t{n.status()}")
        except KubenodeError as e:
            failed = True
            typer.secho(f"{n.name}\t{n.machine_name}\terror: {e}", fg=typer.colors.RED)
    if failed:
        raise typer.Exit(code=1)


@node_app.command("join")
def node_join(name: str, profile: str = ProfileOpt, debug: bool = typer.Option(False, "--debug")):
    """Joins a running node to the profile's control plane."""
    try:
        cfg = load_config(profile)
        api = _api(profile, debug)
        b: Bootstrapper = WorkerBootstrapper(
            cfg.kubernetes_config,
            certs_dir=kubenode_home() / "profiles" / profile / "certs",
            bus=api.bus,
        )
        b.bootstrap(_node(cfg, name, api))
    except KubenodeError as e:
        _fail(e)


# ------------------------------------------------------------------------------
# top-level commands
# ------------------------------------------------------------------------------

@app.command("start-nodes")
def start_nodes_cmd(
    count: int = typer.Argument(..., min=1),
    profile: str = ProfileOpt,
    debug: bool = typer.Option(False, "--debug"),
):
    """Create COUNT machines from the profile's machine config, one at a time."""
    try:
        cfg = load_config(profile)
        start_nodes(_api(profile, debug), cfg.machine_config, count)
    except KubenodeError as e:
        _fail(e)


@app.command(
    "build",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def build(
    ctx: typer.Context,
    machine: Optional[str] = typer.Option(None, "--machine", help="Machine to build on (default: profile name)"),
    podman: bool = typer.Option(False, "--podman", help="Use Podman to build, instead of Docker"),
    docker_binary: str = typer.Option("docker", "--docker-binary"),
    profile: str = ProfileOpt,
):
    """Run the docker client against the machine: kubenode build -- [OPTIONS] PATH | URL | -"""
    args: List[str] = list(ctx.args)
    try:
        rc = build_image(
            MachineAPI(kubenode_home(), cluster=profile),
            machine or profile,
            args,
            docker_binary=docker_binary,
            use_podman=podman,
        )
    except KubenodeError as e:
        _fail(e)
    raise typer.Exit(code=rc)


if __name__ == "__main__":
    app()
