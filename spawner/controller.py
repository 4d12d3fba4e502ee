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

"""The operations every provider engine answers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from spawner.errors import OperationNotSupported
from spawner.models import (
    ClusterDeleteRequest,
    ClusterDeleteResponse,
    ClusterRequest,
    ClusterResponse,
    ClusterSpec,
    ClusterStatusRequest,
    ClusterStatusResponse,
    CreateSnapshotAndDeleteRequest,
    CreateSnapshotAndDeleteResponse,
    CreateSnapshotRequest,
    CreateSnapshotResponse,
    CreateVolumeRequest,
    CreateVolumeResponse,
    DeleteVolumeRequest,
    DeleteVolumeResponse,
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
    TagNodeInstanceRequest,
    TagNodeInstanceResponse,
)

if TYPE_CHECKING:
    from spawner.config import SpawnerConfig
    from spawner.credentials import CredentialStore


class Controller:
    """Cluster and node group lifecycle engine for one provider.

    Every operation is one synchronous call sequence against the vendor.
    Engines keep no state between requests; each call opens its own
    session. Operations an engine does not override raise
    OperationNotSupported.
    """

    provider: str = ""

    def __init__(self, config: SpawnerConfig, store: CredentialStore | None = None) -> None:
        self.config = config
        self.store = store

    def _unsupported(self, operation: str) -> OperationNotSupported:
        return OperationNotSupported(self.provider, operation)

    def create_cluster(self, request: ClusterRequest) -> ClusterResponse:
        raise self._unsupported("CreateCluster")

    def get_cluster(self, request: GetClusterRequest) -> ClusterSpec:
        raise self._unsupported("GetCluster")

    def get_clusters(self, request: GetClustersRequest) -> GetClustersResponse:
        raise self._unsupported("GetClusters")

    def cluster_status(self, request: ClusterStatusRequest) -> ClusterStatusResponse:
        raise self._unsupported("ClusterStatus")

    def add_node(self, request: NodeSpawnRequest) -> NodeSpawnResponse:
        raise self._unsupported("AddNode")

    def delete_cluster(self, request: ClusterDeleteRequest) -> ClusterDeleteResponse:
        raise self._unsupported("DeleteCluster")

    def delete_node(self, request: NodeDeleteRequest) -> NodeDeleteResponse:
        raise self._unsupported("DeleteNode")

    def get_token(self, request: GetTokenRequest) -> GetTokenResponse:
        raise self._unsupported("GetToken")

    def get_kube_config(self, request: GetKubeConfigRequest) -> GetKubeConfigResponse:
        raise self._unsupported("GetKubeConfig")

    def tag_node_instance(self, request: TagNodeInstanceRequest) -> TagNodeInstanceResponse:
        raise self._unsupported("TagNodeInstance")

    def create_volume(self, request: CreateVolumeRequest) -> CreateVolumeResponse:
        raise self._unsupported("CreateVolume")

    def delete_volume(self, request: DeleteVolumeRequest) -> DeleteVolumeResponse:
        raise self._unsupported("DeleteVolume")

    def create_snapshot(self, request: CreateSnapshotRequest) -> CreateSnapshotResponse:
        raise self._unsupported("CreateSnapshot")

    def create_snapshot_and_delete(
        self, request: CreateSnapshotAndDeleteRequest
    ) -> CreateSnapshotAndDeleteResponse:
        raise self._unsupported("CreateSnapshotAndDelete")
