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

"""Vendor-neutral cluster and node models, requests, and responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from spawner.constants import DEFAULT_VOLUME_TYPE
from spawner.credentials import Credentials


# ============================================================================
# Canonical cluster shape
# ============================================================================

class NodeSpec(BaseModel):
    """A node group request, or a node as reported by the cluster.

    Attributes:
        name: Node group name, or the node name when reported by the cluster.
        instance_type: Vendor machine type.
        disk_size_mb: Disk size in MB.
        gpu_enabled: Whether the GPU machine image is used.
        labels: Kubernetes labels.
        host_name: Node host name.
        ip_addr: Node internal IP address.
        uuid: Kubernetes node UID.
        availability_zone: Zone the node runs in.
        state: ``active`` when the node reports Ready, otherwise ``inactive``.
    """

    name: str
    instance_type: str = ""
    disk_size_mb: int = Field(default=0, ge=0)
    gpu_enabled: bool = False
    labels: dict[str, str] = Field(default_factory=dict)
    host_name: str = ""
    ip_addr: str = ""
    uuid: str = ""
    availability_zone: str = ""
    state: Literal["active", "inactive"] | None = None


class ClusterSpec(BaseModel):
    name: str
    node_specs: list[NodeSpec] = Field(default_factory=list)


# ============================================================================
# Requests
# ============================================================================

class ProviderRequest(BaseModel):
    """Fields every dispatched request carries."""

    provider: str
    region: str
    account_name: str = ""


class ClusterRequest(ProviderRequest):
    """Create a cluster.

    Attributes:
        cluster_name: Cluster name, or empty for ``{provider}-{region}``.
        node_specs: Node groups wanted on the cluster.
        labels: Tags applied to the cluster.
        subnet_ids: Subnets for the control plane, or empty for the region's default VPC.
        security_group_ids: Extra security groups for the control plane.
        kubernetes_version: Kubernetes version, or None for the vendor default.
    """

    cluster_name: str = ""
    node_specs: list[NodeSpec] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    subnet_ids: list[str] = Field(default_factory=list)
    security_group_ids: list[str] = Field(default_factory=list)
    kubernetes_version: str | None = None


class GetClusterRequest(ProviderRequest):
    cluster_name: str


class GetClustersRequest(ProviderRequest):
    pass


class ClusterStatusRequest(ProviderRequest):
    cluster_name: str


class NodeSpawnRequest(ProviderRequest):
    cluster_name: str
    node_spec: NodeSpec


class ClusterDeleteRequest(ProviderRequest):
    cluster_name: str


class NodeDeleteRequest(ProviderRequest):
    cluster_name: str
    node_group_name: str


class GetTokenRequest(ProviderRequest):
    cluster_name: str


class GetKubeConfigRequest(ProviderRequest):
    cluster_name: str


class TagNodeInstanceRequest(ProviderRequest):
    cluster_name: str
    node_group_name: str
    labels: dict[str, str] = Field(default_factory=dict)


class CreateVolumeRequest(ProviderRequest):
    """Create a block volume.

    Attributes:
        availability_zone: Zone to create the volume in.
        volume_type: Vendor volume type.
        size_gb: Volume size in GiB.
        snapshot_id: Snapshot to restore from, or empty.
        labels: Tags applied to the volume.
    """

    availability_zone: str
    volume_type: str = DEFAULT_VOLUME_TYPE
    size_gb: int = Field(ge=1)
    snapshot_id: str = ""
    labels: dict[str, str] = Field(default_factory=dict)


class DeleteVolumeRequest(ProviderRequest):
    volume_id: str


class CreateSnapshotRequest(ProviderRequest):
    volume_id: str
    labels: dict[str, str] = Field(default_factory=dict)


class CreateSnapshotAndDeleteRequest(ProviderRequest):
    volume_id: str
    labels: dict[str, str] = Field(default_factory=dict)


class WriteCredentialRequest(BaseModel):
    account: str
    provider: str
    credential: Credentials | None = None


class ReadCredentialRequest(BaseModel):
    account: str
    provider: str


# ============================================================================
# Responses
# ============================================================================

class ClusterResponse(BaseModel):
    cluster_name: str


class GetClustersResponse(BaseModel):
    clusters: list[ClusterSpec] = Field(default_factory=list)


class ClusterStatusResponse(BaseModel):
    status: str = ""
    error: str = ""


class NodeSpawnResponse(BaseModel):
    pass


class ClusterDeleteResponse(BaseModel):
    error: str = ""


class NodeDeleteResponse(BaseModel):
    error: str = ""


class GetTokenResponse(BaseModel):
    token: str
    ca_data: str
    endpoint: str


class GetKubeConfigResponse(BaseModel):
    cluster_name: str
    kube_config: str


class TagNodeInstanceResponse(BaseModel):
    instance_ids: list[str] = Field(default_factory=list)


class CreateVolumeResponse(BaseModel):
    volume_id: str = ""
    error: str = ""


class DeleteVolumeResponse(BaseModel):
    deleted: bool = False
    error: str = ""


class CreateSnapshotResponse(BaseModel):
    snapshot_id: str = ""
    error: str = ""


class CreateSnapshotAndDeleteResponse(BaseModel):
    snapshot_id: str = ""
    volume_deleted: bool = False
    error: str = ""


class WriteCredentialResponse(BaseModel):
    updated: bool = False


class ReadCredentialResponse(BaseModel):
    account: str
    credential: Credentials
