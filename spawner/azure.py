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

"""AKS cluster and agent pool lifecycle."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import yaml
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.containerservice.models import (
    AgentPool,
    ManagedCluster,
    ManagedClusterAgentPoolProfile,
    ManagedClusterIdentity,
)

from spawner import logger
from spawner.constants import (
    AZURE_DEFAULT_VM_SIZE,
    AZURE_LABEL,
    AZURE_OS_TYPE,
    AZURE_POOL_MODE_SYSTEM,
    AZURE_POOL_MODE_USER,
    AZURE_SYSTEM_POOL_NAME,
)
from spawner.controller import Controller
from spawner.errors import ClusterUnreachable, NoNodeGroup, NodeGroupExists, VendorError
from spawner.kube import KubeConfig, core_client, kubeconfig_from_document, list_node_specs
from spawner.models import (
    ClusterDeleteRequest,
    ClusterDeleteResponse,
    ClusterRequest,
    ClusterResponse,
    ClusterSpec,
    ClusterStatusRequest,
    ClusterStatusResponse,
    GetClusterRequest,
    GetClustersRequest,
    GetClustersResponse,
    GetKubeConfigRequest,
    GetKubeConfigResponse,
    GetTokenRequest,
    GetTokenResponse,
    NodeDeleteRequest,
    NodeDeleteResponse,
    NodeSpawnRequest,
    NodeSpawnResponse,
    NodeSpec,
)
from spawner.session import AzureSession
from spawner.utils import (
    default_cluster_name,
    disk_size_gib,
    gib_to_mb,
    node_group_labels,
    pick_default_node_group,
)

if TYPE_CHECKING:
    from spawner.config import SpawnerConfig
    from spawner.credentials import CredentialStore

SessionFactory = Callable[..., AzureSession]


def _vendor_error(operation: str, err: HttpResponseError, response_cls: type | None = None) -> VendorError:
    message = err.message or str(err)
    code = getattr(err.error, "code", None) if err.error is not None else None
    response = response_cls(error=message) if response_cls is not None else None
    return VendorError(operation, message, code=code, response=response)


def agent_pool_from_cluster(cluster: ManagedCluster, node_spec: NodeSpec) -> AgentPool:
    """Build an agent pool from the cluster's own settings.

    Used when the cluster has no agent pool to copy from.
    """
    return AgentPool(
        count=1,
        vm_size=node_spec.instance_type or AZURE_DEFAULT_VM_SIZE,
        os_disk_size_gb=disk_size_gib(node_spec.disk_size_mb),
        os_type=AZURE_OS_TYPE,
        mode=AZURE_POOL_MODE_USER,
        orchestrator_version=cluster.kubernetes_version,
        node_labels=node_group_labels(node_spec),
    )


def agent_pool_from_default(default_pool: AgentPool, node_spec: NodeSpec) -> AgentPool:
    """Build an agent pool copying subnet, OS, and version from an existing pool."""
    return AgentPool(
        count=1,
        vm_size=node_spec.instance_type or default_pool.vm_size,
        os_disk_size_gb=disk_size_gib(node_spec.disk_size_mb) or default_pool.os_disk_size_gb,
        os_type=default_pool.os_type,
        os_sku=default_pool.os_sku,
        mode=AZURE_POOL_MODE_USER,
        vnet_subnet_id=default_pool.vnet_subnet_id,
        orchestrator_version=default_pool.orchestrator_version,
        node_labels=node_group_labels(node_spec, default_pool.node_labels),
    )


class AzureController(Controller):
    """AKS engine. Agent pools play the role of node groups."""

    provider = AZURE_LABEL

    def __init__(
        self,
        config: SpawnerConfig,
        store: CredentialStore | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        super().__init__(config, store)
        self._session_factory = session_factory or AzureSession.open

    def _session(self, region: str, account_name: str) -> AzureSession:
        return self._session_factory(self.config, region, account_name, self.store)

    # -- Clusters --

    def create_cluster(self, request: ClusterRequest) -> ClusterResponse:
        """Create a cluster unless one with the same name exists.

        The first node spec, if any, becomes the system agent pool.
        """
        cluster_name = request.cluster_name or default_cluster_name(request.provider, request.region)
        session = self._session(request.region, request.account_name)
        client = session.container_client()

        try:
            cluster = client.managed_clusters.get(session.resource_group, cluster_name)
            logger.info("cluster '%s' already exist, state %s", cluster_name, cluster.provisioning_state)
            return ClusterResponse(cluster_name=cluster.name)
        except ResourceNotFoundError:
            logger.debug("cluster '%s' does not exist, creating ...", cluster_name)
        except HttpResponseError as err:
            raise _vendor_error(f"get cluster '{cluster_name}'", err) from err

        system_spec = request.node_specs[0] if request.node_specs else NodeSpec(name=AZURE_SYSTEM_POOL_NAME)
        profile = ManagedClusterAgentPoolProfile(
            name=system_spec.name,
            count=1,
            vm_size=system_spec.instance_type or AZURE_DEFAULT_VM_SIZE,
            os_disk_size_gb=disk_size_gib(system_spec.disk_size_mb),
            os_type=AZURE_OS_TYPE,
            mode=AZURE_POOL_MODE_SYSTEM,
            node_labels=node_group_labels(system_spec),
        )
        cluster = ManagedCluster(
            location=request.region,
            dns_prefix=cluster_name,
            kubernetes_version=request.kubernetes_version,
            identity=ManagedClusterIdentity(type="SystemAssigned"),
            agent_pool_profiles=[profile],
            tags=dict(request.labels) or None,
        )
        try:
            client.managed_clusters.begin_create_or_update(session.resource_group, cluster_name, cluster)
        except HttpResponseError as err:
            logger.error("failed to create cluster '%s': %s", cluster_name, err)
            raise _vendor_error(f"create cluster '{cluster_name}'", err) from err
        logger.info("cluster '%s' is creating, it might take some time", cluster_name)
        return ClusterResponse(cluster_name=cluster_name)

    def _user_kubeconfig(self, session: AzureSession, cluster_name: str) -> dict[str, Any]:
        client = session.container_client()
        try:
            creds = client.managed_clusters.list_cluster_user_credentials(session.resource_group, cluster_name)
        except HttpResponseError as err:
            raise _vendor_error(f"get credentials of cluster '{cluster_name}'", err) from err
        if not creds.kubeconfigs:
            raise ClusterUnreachable(cluster_name, "no kubeconfig issued yet")
        raw = creds.kubeconfigs[0].value
        return yaml.safe_load(raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw)

    def get_cluster(self, request: GetClusterRequest) -> ClusterSpec:
        session = self._session(request.region, request.account_name)
        document = self._user_kubeconfig(session, request.cluster_name)
        nodes = list_node_specs(core_client(document), request.cluster_name)
        return ClusterSpec(name=request.cluster_name, node_specs=nodes)

    def get_clusters(self, request: GetClustersRequest) -> GetClustersResponse:
        session = self._session(request.region, request.account_name)
        client = session.container_client()
        try:
            clusters = list(client.managed_clusters.list_by_resource_group(session.resource_group))
        except HttpResponseError as err:
            raise _vendor_error("list clusters", err) from err

        specs = []
        for cluster in clusters:
            try:
                pools = list(client.agent_pools.list(session.resource_group, cluster.name))
            except HttpResponseError as err:
                logger.error("failed to fetch agent pools of cluster '%s': %s", cluster.name, err)
                pools = []
            specs.append(ClusterSpec(
                name=cluster.name,
                node_specs=[
                    NodeSpec(
                        name=pool.name,
                        instance_type=pool.vm_size or "",
                        disk_size_mb=gib_to_mb(pool.os_disk_size_gb),
                        labels=pool.node_labels or {},
                    )
                    for pool in pools
                ],
            ))
        return GetClustersResponse(clusters=specs)

    def cluster_status(self, request: ClusterStatusRequest) -> ClusterStatusResponse:
        session = self._session(request.region, request.account_name)
        client = session.container_client()
        try:
            cluster = client.managed_clusters.get(session.resource_group, request.cluster_name)
        except HttpResponseError as err:
            logger.error("failed to fetch cluster status for '%s': %s", request.cluster_name, err)
            raise _vendor_error(
                f"get cluster '{request.cluster_name}'", err, ClusterStatusResponse
            ) from err
        return ClusterStatusResponse(status=cluster.provisioning_state or "")

    def delete_cluster(self, request: ClusterDeleteRequest) -> ClusterDeleteResponse:
        session = self._session(request.region, request.account_name)
        client = session.container_client()
        try:
            client.managed_clusters.begin_delete(session.resource_group, request.cluster_name)
        except HttpResponseError as err:
            logger.error("failed to delete cluster '%s': %s", request.cluster_name, err)
            raise _vendor_error(
                f"delete cluster '{request.cluster_name}'", err, ClusterDeleteResponse
            ) from err
        logger.info("requested cluster '%s' to be deleted, it might take some time", request.cluster_name)
        return ClusterDeleteResponse()

    # -- Agent pools --

    def add_node(self, request: NodeSpawnRequest) -> NodeSpawnResponse:
        cluster_name = request.cluster_name
        node_spec = request.node_spec
        session = self._session(request.region, request.account_name)
        client = session.container_client()

        try:
            pools = {pool.name: pool for pool in client.agent_pools.list(session.resource_group, cluster_name)}
        except HttpResponseError as err:
            raise _vendor_error(f"list agent pools of '{cluster_name}'", err) from err

        try:
            default_name = pick_default_node_group(cluster_name, list(pools), node_spec.name)
        except NodeGroupExists:
            logger.error("agent pool '%s' already exist in cluster '%s'", node_spec.name, cluster_name)
            raise
        except NoNodeGroup:
            logger.info("no agent pool in cluster '%s', creating agent pool from cluster config", cluster_name)
            try:
                cluster = client.managed_clusters.get(session.resource_group, cluster_name)
            except HttpResponseError as err:
                raise _vendor_error(f"get cluster '{cluster_name}'", err) from err
            pool = agent_pool_from_cluster(cluster, node_spec)
        else:
            logger.info("found default agent pool '%s' in cluster '%s'", default_name, cluster_name)
            pool = agent_pool_from_default(pools[default_name], node_spec)

        try:
            client.agent_pools.begin_create_or_update(session.resource_group, cluster_name, node_spec.name, pool)
        except HttpResponseError as err:
            logger.error("failed to add agent pool '%s': %s", node_spec.name, err)
            raise _vendor_error(f"create agent pool '{node_spec.name}'", err) from err
        logger.info("creating agent pool '%s' on cluster '%s', it might take some time", node_spec.name, cluster_name)
        return NodeSpawnResponse()

    def delete_node(self, request: NodeDeleteRequest) -> NodeDeleteResponse:
        session = self._session(request.region, request.account_name)
        client = session.container_client()
        try:
            client.agent_pools.begin_delete(session.resource_group, request.cluster_name, request.node_group_name)
        except HttpResponseError as err:
            logger.error("failed to delete agent pool '%s': %s", request.node_group_name, err)
            raise _vendor_error(
                f"delete agent pool '{request.node_group_name}'", err, NodeDeleteResponse
            ) from err
        logger.info("requested agent pool '%s' to be deleted", request.node_group_name)
        return NodeDeleteResponse()

    # -- Kube access --

    def get_token(self, request: GetTokenRequest) -> GetTokenResponse:
        session = self._session(request.region, request.account_name)
        kube_cfg: KubeConfig = kubeconfig_from_document(
            request.cluster_name, self._user_kubeconfig(session, request.cluster_name)
        )
        return GetTokenResponse(token=kube_cfg.token, ca_data=kube_cfg.ca_data, endpoint=kube_cfg.endpoint)

    def get_kube_config(self, request: GetKubeConfigRequest) -> GetKubeConfigResponse:
        session = self._session(request.region, request.account_name)
        document = self._user_kubeconfig(session, request.cluster_name)
        return GetKubeConfigResponse(
            cluster_name=request.cluster_name,
            kube_config=yaml.safe_dump(document, default_flow_style=False, sort_keys=False),
        )
