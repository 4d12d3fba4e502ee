# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Cluster subcommands (create, get, list, status, delete, kubeconfig, token)."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.table import Table

from spawner import console
from spawner.commands._common import (
    ACCOUNT_OPTION,
    LABEL_OPTION,
    PROVIDER_OPTION,
    REGION_OPTION,
    get_config,
    get_service,
    load_yaml_file,
    parse_labels,
)
from spawner.models import (
    ClusterDeleteRequest,
    ClusterRequest,
    ClusterSpec,
    ClusterStatusRequest,
    GetClusterRequest,
    GetClustersRequest,
    GetKubeConfigRequest,
    GetTokenRequest,
)
from spawner.orchestrator import create_cluster_and_wait, wait_for_cluster

app = typer.Typer(help="Manage clusters.")

NAME_ARGUMENT = typer.Argument(..., help="Cluster name")


def _node_table(cluster: ClusterSpec) -> Table:
    table = Table(title=f"Cluster {cluster.name}")
    table.add_column("Name")
    table.add_column("Instance type")
    table.add_column("Disk (MB)", justify="right")
    table.add_column("GPU")
    table.add_column("IP")
    table.add_column("Zone")
    table.add_column("State")
    for node in cluster.node_specs:
        table.add_row(
            node.name,
            node.instance_type,
            str(node.disk_size_mb),
            "yes" if node.gpu_enabled else "no",
            node.ip_addr,
            node.availability_zone,
            node.state or "",
        )
    return table


@app.command()
def create(
    ctx: typer.Context,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    name: str = typer.Option("", "--name", "-n", help="Cluster name, default {provider}-{region}"),
    labels: list[str] | None = LABEL_OPTION,
    subnets: list[str] | None = typer.Option(None, "--subnet", help="Control-plane subnet id, repeatable"),
    security_groups: list[str] | None = typer.Option(
        None, "--security-group", help="Control-plane security group id, repeatable"),
    kubernetes_version: str | None = typer.Option(None, "--kubernetes-version", help="Kubernetes version"),
    from_file: Path | None = typer.Option(
        None, "--from-file", "-f", exists=True, dir_okay=False,
        help="YAML file with cluster fields and node_specs"),
    wait: bool = typer.Option(False, "--wait", help="Wait for the cluster, then add its node groups"),
) -> None:
    """Create a cluster, or return the existing one with the same name."""
    data = load_yaml_file(from_file)
    data.update(provider=provider, region=region, account_name=account)
    if name:
        data["cluster_name"] = name
    if labels:
        data["labels"] = {**data.get("labels", {}), **parse_labels(labels)}
    if subnets:
        data["subnet_ids"] = subnets
    if security_groups:
        data["security_group_ids"] = security_groups
    if kubernetes_version is not None:
        data["kubernetes_version"] = kubernetes_version
    try:
        request = ClusterRequest.model_validate(data)
    except ValidationError as e:
        raise typer.BadParameter(str(e), param_hint="--from-file") from e

    service = get_service(ctx)
    if wait:
        cluster_name = create_cluster_and_wait(service, request, get_config(ctx))
    else:
        cluster_name = service.create_cluster(request).cluster_name
        console.print(f"[green]\u2705 Cluster '{cluster_name}' requested[/green]")
    typer.echo(cluster_name)


@app.command()
def get(
    ctx: typer.Context,
    name: str = NAME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
) -> None:
    """Show the nodes of a cluster as reported by Kubernetes."""
    cluster = get_service(ctx).get_cluster(GetClusterRequest(
        provider=provider, region=region, account_name=account, cluster_name=name))
    console.print(_node_table(cluster))


@app.command("list")
def list_clusters(
    ctx: typer.Context,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
) -> None:
    """List clusters in a region with their node groups."""
    response = get_service(ctx).get_clusters(GetClustersRequest(
        provider=provider, region=region, account_name=account))
    if not response.clusters:
        console.print("[yellow]\u2139\ufe0f  No clusters found[/yellow]")
        return
    for cluster in response.clusters:
        console.print(_node_table(cluster))


@app.command()
def status(
    ctx: typer.Context,
    name: str = NAME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    wait: bool = typer.Option(False, "--wait", help="Poll until the status is terminal"),
) -> None:
    """Print the lifecycle status of a cluster."""
    request = ClusterStatusRequest(
        provider=provider, region=region, account_name=account, cluster_name=name)
    service = get_service(ctx)
    if wait:
        typer.echo(wait_for_cluster(service, request, get_config(ctx)))
    else:
        typer.echo(service.cluster_status(request).status)


@app.command()
def delete(
    ctx: typer.Context,
    name: str = NAME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
) -> None:
    """Request deletion of a cluster."""
    get_service(ctx).delete_cluster(ClusterDeleteRequest(
        provider=provider, region=region, account_name=account, cluster_name=name))
    console.print(f"[green]\u2705 Cluster '{name}' deletion requested[/green]")


@app.command()
def kubeconfig(
    ctx: typer.Context,
    name: str = NAME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
) -> None:
    """Render a kubeconfig for a cluster."""
    response = get_service(ctx).get_kube_config(GetKubeConfigRequest(
        provider=provider, region=region, account_name=account, cluster_name=name))
    if output is None:
        typer.echo(response.kube_config)
        return
    output.write_text(response.kube_config)
    output.chmod(0o600)
    console.print(f"[green]\u2705 Kubeconfig written to {output}[/green]")


@app.command()
def token(
    ctx: typer.Context,
    name: str = NAME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
) -> None:
    """Print a bearer token and endpoint for a cluster as JSON."""
    response = get_service(ctx).get_token(GetTokenRequest(
        provider=provider, region=region, account_name=account, cluster_name=name))
    typer.echo(response.model_dump_json(indent=2))
