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

"""Node group subcommands (add, delete, tag)."""

from __future__ import annotations

import typer

from spawner import console
from spawner.commands._common import (
    ACCOUNT_OPTION,
    CLUSTER_OPTION,
    LABEL_OPTION,
    PROVIDER_OPTION,
    REGION_OPTION,
    get_service,
    parse_labels,
)
from spawner.models import NodeDeleteRequest, NodeSpawnRequest, NodeSpec, TagNodeInstanceRequest

app = typer.Typer(help="Manage node groups.")

NODE_GROUP_OPTION = typer.Option(..., "--name", "-n", help="Node group name")


@app.command()
def add(
    ctx: typer.Context,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    cluster: str = CLUSTER_OPTION,
    name: str = NODE_GROUP_OPTION,
    instance_type: str = typer.Option(..., "--instance-type", "-t", help="Vendor machine type"),
    disk_size_mb: int = typer.Option(0, "--disk-size-mb", min=0, help="Disk size in MB, 0 for the default"),
    gpu: bool = typer.Option(False, "--gpu", help="Use the GPU machine image"),
    labels: list[str] | None = LABEL_OPTION,
) -> None:
    """Add a node group to a cluster."""
    node_spec = NodeSpec(
        name=name,
        instance_type=instance_type,
        disk_size_mb=disk_size_mb,
        gpu_enabled=gpu,
        labels=parse_labels(labels),
    )
    get_service(ctx).add_node(NodeSpawnRequest(
        provider=provider, region=region, account_name=account,
        cluster_name=cluster, node_spec=node_spec,
    ))
    console.print(f"[green]\u2705 Nodegroup '{name}' requested on cluster '{cluster}'[/green]")


@app.command()
def delete(
    ctx: typer.Context,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    cluster: str = CLUSTER_OPTION,
    name: str = NODE_GROUP_OPTION,
) -> None:
    """Request deletion of a node group."""
    get_service(ctx).delete_node(NodeDeleteRequest(
        provider=provider, region=region, account_name=account,
        cluster_name=cluster, node_group_name=name,
    ))
    console.print(f"[green]\u2705 Nodegroup '{name}' deletion requested[/green]")


@app.command()
def tag(
    ctx: typer.Context,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    cluster: str = CLUSTER_OPTION,
    name: str = NODE_GROUP_OPTION,
    labels: list[str] | None = LABEL_OPTION,
) -> None:
    """Tag the running instances of a node group."""
    tags = parse_labels(labels)
    if not tags:
        raise typer.BadParameter("at least one label is required", param_hint="--label")
    response = get_service(ctx).tag_node_instance(TagNodeInstanceRequest(
        provider=provider, region=region, account_name=account,
        cluster_name=cluster, node_group_name=name, labels=tags,
    ))
    for instance_id in response.instance_ids:
        console.print(f"[green]  \u2713 {instance_id}[/green]")
    console.print(f"[green]\u2705 Tagged {len(response.instance_ids)} instance(s)[/green]")
