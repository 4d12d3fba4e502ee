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

"""Caller-side workflows that compose service operations and poll for status."""

from __future__ import annotations

from rich.panel import Panel
from tenacity import RetryError, retry, retry_if_result, stop_after_attempt, wait_fixed

from spawner import console, logger
from spawner.config import SpawnerConfig
from spawner.constants import CLUSTER_READY_STATUSES, CLUSTER_TERMINAL_STATUSES
from spawner.errors import NodeGroupExists
from spawner.models import ClusterRequest, ClusterStatusRequest, NodeSpawnRequest
from spawner.service import SpawnerService


def wait_for_cluster(service: SpawnerService, request: ClusterStatusRequest, config: SpawnerConfig) -> str:
    """Poll ClusterStatus until the cluster reaches a terminal status.

    Args:
        service: Spawner service.
        request: Status request for the cluster.
        config: Configuration with the poll interval and attempt limit.

    Returns:
        The terminal status.

    Raises:
        RuntimeError: If the cluster is still transitioning after all attempts.
    """
    console.print(f"[yellow]\u2139\ufe0f  Waiting for cluster '{request.cluster_name}' to settle...[/yellow]")

    @retry(
        stop=stop_after_attempt(config.status_poll_attempts),
        wait=wait_fixed(config.status_poll_interval),
        retry=retry_if_result(lambda status: status not in CLUSTER_TERMINAL_STATUSES),
    )
    def _poll() -> str:
        status = service.cluster_status(request).status
        console.print(f"[yellow]   status: {status}[/yellow]")
        return status

    try:
        return _poll()
    except RetryError as err:
        raise RuntimeError(
            f"cluster '{request.cluster_name}' not settled after {config.status_poll_attempts} checks"
        ) from err


def create_cluster_and_wait(
    service: SpawnerService, request: ClusterRequest, config: SpawnerConfig
) -> str:
    """Create a cluster, wait for it, then add each requested node group.

    Node groups that already exist are left as they are.

    Args:
        service: Spawner service.
        request: Cluster creation request.
        config: Configuration with the poll interval and attempt limit.

    Returns:
        The cluster name.

    Raises:
        RuntimeError: If the cluster does not become active.
    """
    console.print(Panel.fit("Creating cluster", style="bold blue"))
    cluster_name = service.create_cluster(request).cluster_name
    console.print(f"[green]\u2705 Cluster '{cluster_name}' requested[/green]")

    status_request = ClusterStatusRequest(
        provider=request.provider,
        region=request.region,
        account_name=request.account_name,
        cluster_name=cluster_name,
    )
    status = wait_for_cluster(service, status_request, config)
    if status not in CLUSTER_READY_STATUSES:
        raise RuntimeError(f"cluster '{cluster_name}' ended in status {status}")

    for node_spec in request.node_specs:
        try:
            service.add_node(NodeSpawnRequest(
                provider=request.provider,
                region=request.region,
                account_name=request.account_name,
                cluster_name=cluster_name,
                node_spec=node_spec,
            ))
            console.print(f"[green]  \u2713 nodegroup '{node_spec.name}' requested[/green]")
        except NodeGroupExists:
            logger.info("nodegroup '%s' already present on '%s'", node_spec.name, cluster_name)
    console.print(f"[green]\u2705 Cluster '{cluster_name}' is {status}[/green]")
    return cluster_name
