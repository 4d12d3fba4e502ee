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

"""Volume subcommands (create, delete, snapshot, snapshot-and-delete)."""

from __future__ import annotations

import typer

from spawner import console
from spawner.commands._common import (
    ACCOUNT_OPTION,
    LABEL_OPTION,
    PROVIDER_OPTION,
    REGION_OPTION,
    get_service,
    parse_labels,
)
from spawner.constants import DEFAULT_VOLUME_TYPE
from spawner.models import (
    CreateSnapshotAndDeleteRequest,
    CreateSnapshotRequest,
    CreateVolumeRequest,
    DeleteVolumeRequest,
)

app = typer.Typer(help="Manage volumes and snapshots.")

VOLUME_ARGUMENT = typer.Argument(..., help="Volume id")


@app.command()
def create(
    ctx: typer.Context,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    zone: str = typer.Option(..., "--zone", "-z", help="Availability zone"),
    size_gb: int = typer.Option(..., "--size-gb", min=1, help="Size in GiB"),
    volume_type: str = typer.Option(DEFAULT_VOLUME_TYPE, "--type", help="Vendor volume type"),
    snapshot_id: str = typer.Option("", "--snapshot-id", help="Restore from this snapshot"),
    labels: list[str] | None = LABEL_OPTION,
) -> None:
    """Create a volume and print its id."""
    response = get_service(ctx).create_volume(CreateVolumeRequest(
        provider=provider, region=region, account_name=account,
        availability_zone=zone, size_gb=size_gb, volume_type=volume_type,
        snapshot_id=snapshot_id, labels=parse_labels(labels),
    ))
    typer.echo(response.volume_id)


@app.command()
def delete(
    ctx: typer.Context,
    volume_id: str = VOLUME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
) -> None:
    """Delete a volume."""
    get_service(ctx).delete_volume(DeleteVolumeRequest(
        provider=provider, region=region, account_name=account, volume_id=volume_id))
    console.print(f"[green]\u2705 Volume '{volume_id}' deleted[/green]")


@app.command()
def snapshot(
    ctx: typer.Context,
    volume_id: str = VOLUME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    labels: list[str] | None = LABEL_OPTION,
) -> None:
    """Snapshot a volume and print the snapshot id."""
    response = get_service(ctx).create_snapshot(CreateSnapshotRequest(
        provider=provider, region=region, account_name=account,
        volume_id=volume_id, labels=parse_labels(labels),
    ))
    typer.echo(response.snapshot_id)


@app.command("snapshot-and-delete")
def snapshot_and_delete(
    ctx: typer.Context,
    volume_id: str = VOLUME_ARGUMENT,
    provider: str = PROVIDER_OPTION,
    region: str = REGION_OPTION,
    account: str = ACCOUNT_OPTION,
    labels: list[str] | None = LABEL_OPTION,
) -> None:
    """Snapshot a volume, wait for the snapshot, then delete the volume."""
    console.print(f"[yellow]\u2139\ufe0f  Snapshotting '{volume_id}', this can take a while...[/yellow]")
    response = get_service(ctx).create_snapshot_and_delete(CreateSnapshotAndDeleteRequest(
        provider=provider, region=region, account_name=account,
        volume_id=volume_id, labels=parse_labels(labels),
    ))
    console.print(f"[green]\u2705 Volume '{volume_id}' deleted[/green]")
    typer.echo(response.snapshot_id)
