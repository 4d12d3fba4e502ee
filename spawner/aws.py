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

"""EKS cluster and node group lifecycle, EBS volumes, and snapshots."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from spawner import logger
from spawner.constants import (
    AMI_TYPE_GPU,
    AMI_TYPE_STANDARD,
    AWS_CLUSTER_ROLE_NAME,
    AWS_LABEL,
    AWS_NODE_GROUP_ROLE_NAME,
    CAPACITY_TYPE_ON_DEMAND,
    CLUSTER_ROLE_POLICIES,
    EC2_ASSUME_ROLE_DOC,
    EKS_ASSUME_ROLE_DOC,
    ERR_CODE_RESOURCE_NOT_FOUND,
    NODE_GROUP_ROLE_POLICIES,
    NODE_GROUP_SCALING,
    TAG_EKS_CLUSTER_NAME,
    TAG_EKS_NODEGROUP_NAME,
)
from spawner.controller import Controller
from spawner.errors import BOTO_ERRORS, NoNodeGroup, NodeGroupExists, VendorError, client_error_code
from spawner.iam import ensure_role_with_policies
from spawner.kube import list_node_specs, render_kubeconfig
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
    NodeSpec,
    TagNodeInstanceRequest,
    TagNodeInstanceResponse,
)
from spawner.session import AwsSession
from spawner.utils import (
    default_cluster_name,
    disk_size_gib,
    gib_to_mb,
    node_group_labels,
    pick_default_node_group,
    to_aws_tags,
)

if TYPE_CHECKING:
    from spawner.config import SpawnerConfig
    from spawner.credentials import CredentialStore

SessionFactory = Callable[..., AwsSession]


def _vendor_error(operation: str, err: Exception, response_cls: type | None = None) -> VendorError:
    """Wrap a boto3 API or transport error with operation context.

    Args:
        operation: What was being attempted.
        err: The boto3 error.
        response_cls: Response model to populate with the error message, if any.
    """
    message = str(err)
    response = response_cls(error=message) if response_cls is not None else None
    return VendorError(operation, message, code=client_error_code(err), response=response)


def describe_cluster(eks: Any, name: str) -> dict[str, Any]:
    """Describe an EKS cluster, returning the ``cluster`` object.

    Raises:
        ClientError: Unwrapped, so callers can branch on not-found.
        BotoCoreError: Unwrapped transport failures.
    """
    return eks.describe_cluster(name=name)["cluster"]


# ============================================================================
# Node group payloads
# ============================================================================

def ami_type(node_spec: NodeSpec) -> str:
    return AMI_TYPE_GPU if node_spec.gpu_enabled else AMI_TYPE_STANDARD


def node_group_from_cluster(
    cluster: dict[str, Any], node_role_arn: str, node_spec: NodeSpec
) -> dict[str, Any]:
    """Build a CreateNodegroup payload from the cluster's network config.

    Used when the cluster has no node group to copy from. A zero disk size
    leaves ``diskSize`` out so EKS applies its default.

    Args:
        cluster: The ``cluster`` object returned by DescribeCluster.
        node_role_arn: ARN of the node group instance role.
        node_spec: Requested node group.

    Returns:
        Keyword arguments for ``eks.create_nodegroup``.
    """
    payload = {
        "clusterName": cluster["name"],
        "nodegroupName": node_spec.name,
        "amiType": ami_type(node_spec),
        "capacityType": CAPACITY_TYPE_ON_DEMAND,
        "nodeRole": node_role_arn,
        "instanceTypes": [node_spec.instance_type],
        "diskSize": disk_size_gib(node_spec.disk_size_mb),
        "labels": node_group_labels(node_spec),
        "subnets": list(cluster["resourcesVpcConfig"]["subnetIds"]),
        "scalingConfig": dict(NODE_GROUP_SCALING),
    }
    return {key: value for key, value in payload.items() if value is not None}


def node_group_from_default(
    default_node: dict[str, Any], cluster_name: str, node_spec: NodeSpec
) -> dict[str, Any]:
    """Build a CreateNodegroup payload by copying an existing node group.

    AMI type, capacity type, role, subnets, and release version come from
    the default node group; name, instance type, disk size, and labels
    come from *node_spec*. A zero disk size keeps the default
    node group's disk size.

    Args:
        default_node: The ``nodegroup`` object returned by DescribeNodegroup.
        cluster_name: Cluster the node group is added to.
        node_spec: Requested node group.

    Returns:
        Keyword arguments for ``eks.create_nodegroup``.
    """
    payload = {
        "clusterName": cluster_name,
        "nodegroupName": node_spec.name,
        "amiType": default_node.get("amiType"),
        "capacityType": default_node.get("capacityType"),
        "nodeRole": default_node.get("nodeRole"),
        "instanceTypes": [node_spec.instance_type],
        "diskSize": disk_size_gib(node_spec.disk_size_mb) or default_node.get("diskSize"),
        "releaseVersion": default_node.get("releaseVersion"),
        "labels": node_group_labels(node_spec, default_node.get("labels")),
        "subnets": list(default_node.get("subnets", [])),
        "scalingConfig": dict(NODE_GROUP_SCALING),
    }
    return {key: value for key, value in payload.items() if value is not None}


# ============================================================================
# Controller
# ============================================================================

class AwsController(Controller):
    """EKS engine."""

    provider = AWS_LABEL

    def __init__(
        self,
        config: SpawnerConfig,
        store: CredentialStore | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        super().__init__(config, store)
        self._session_factory = session_factory or AwsSession.open

    def _session(self, region: str, account_name: str) -> AwsSession:
        return self._session_factory(self.config, region, account_name, self.store)

    # -- Clusters --

    def create_cluster(self, request: ClusterRequest) -> ClusterResponse:
        """Create a cluster unless one with the same name exists.

        Creation is asynchronous; poll ClusterStatus for progress. Two
        concurrent calls for a new name can both issue a create.
        """
        cluster_name = request.cluster_name or default_cluster_name(request.provider, request.region)
        session = self._session(request.region, request.account_name)
        eks = session.eks_client()

        logger.debug("checking cluster status for '%s', region '%s'", cluster_name, request.region)
        try:
            cluster = describe_cluster(eks, cluster_name)
            logger.info("cluster '%s' already exist, status %s", cluster_name, cluster.get("status"))
            return ClusterResponse(cluster_name=cluster["name"])
        except BOTO_ERRORS as err:
            if client_error_code(err) != ERR_CODE_RESOURCE_NOT_FOUND:
                logger.error("failed to describe cluster '%s': %s", cluster_name, err)
                raise _vendor_error(f"describe cluster '{cluster_name}'", err) from err

        logger.debug("cluster '%s' does not exist, creating ...", cluster_name)
        cluster = self._create_cluster_internal(session, cluster_name, request)
        logger.info("cluster '%s' is in %s state, it might take some time, check AWS console for status",
                    cluster_name, cluster.get("status"))
        return ClusterResponse(cluster_name=cluster["name"])

    def _cluster_subnets(self, ec2: Any, request: ClusterRequest) -> list[str]:
        if request.subnet_ids:
            return list(request.subnet_ids)
        try:
            vpcs = ec2.describe_vpcs(Filters=[{"Name": "isDefault", "Values": ["true"]}])["Vpcs"]
            if not vpcs:
                raise VendorError("find default vpc", f"region '{request.region}' has no default VPC")
            subnets = ec2.describe_subnets(
                Filters=[{"Name": "vpc-id", "Values": [vpcs[0]["VpcId"]]}]
            )["Subnets"]
        except BOTO_ERRORS as err:
            raise _vendor_error("find default subnets", err) from err
        return [subnet["SubnetId"] for subnet in subnets]

    def _create_cluster_internal(
        self, session: AwsSession, cluster_name: str, request: ClusterRequest
    ) -> dict[str, Any]:
        role = ensure_role_with_policies(
            session.iam_client(),
            AWS_CLUSTER_ROLE_NAME,
            "EKS cluster service role",
            EKS_ASSUME_ROLE_DOC,
            CLUSTER_ROLE_POLICIES,
        )
        vpc_config: dict[str, Any] = {
            "subnetIds": self._cluster_subnets(session.ec2_client(), request),
            "endpointPublicAccess": True,
            "endpointPrivateAccess": True,
        }
        if request.security_group_ids:
            vpc_config["securityGroupIds"] = list(request.security_group_ids)

        params: dict[str, Any] = {
            "name": cluster_name,
            "roleArn": role["Arn"],
            "resourcesVpcConfig": vpc_config,
        }
        if request.kubernetes_version:
            params["version"] = request.kubernetes_version
        if request.labels:
            params["tags"] = dict(request.labels)

        try:
            return session.eks_client().create_cluster(**params)["cluster"]
        except BOTO_ERRORS as err:
            logger.error("failed to create cluster '%s': %s", cluster_name, err)
            raise _vendor_error(f"create cluster '{cluster_name}'", err) from err

    def get_cluster(self, request: GetClusterRequest) -> ClusterSpec:
        """Describe a cluster and list its nodes through its own API.

        Raises:
            ClusterUnreachable: If the control plane has no endpoint yet.
        """
        session = self._session(request.region, request.account_name)
        logger.debug("fetching cluster '%s', region '%s'", request.cluster_name, request.region)
        try:
            cluster = describe_cluster(session.eks_client(), request.cluster_name)
        except BOTO_ERRORS as err:
            logger.error("failed to fetch cluster '%s': %s", request.cluster_name, err)
            raise _vendor_error(f"describe cluster '{request.cluster_name}'", err) from err

        core = session.kubernetes_client(cluster)
        return ClusterSpec(name=request.cluster_name, node_specs=list_node_specs(core, request.cluster_name))

    def get_clusters(self, request: GetClustersRequest) -> GetClustersResponse:
        """List every cluster in the region with its node groups.

        Node group lookups are best effort: a node group whose details
        cannot be fetched is logged and left out.
        """
        session = self._session(request.region, request.account_name)
        eks = session.eks_client()
        try:
            cluster_names = [
                name
                for page in eks.get_paginator("list_clusters").paginate()
                for name in page["clusters"]
            ]
        except BOTO_ERRORS as err:
            logger.error("failed to list clusters: %s", err)
            raise _vendor_error("list clusters", err) from err

        clusters = [
            ClusterSpec(name=name, node_specs=self._node_group_specs(eks, name))
            for name in cluster_names
        ]
        return GetClustersResponse(clusters=clusters)

    def _node_group_specs(self, eks: Any, cluster_name: str) -> list[NodeSpec]:
        try:
            node_groups = self._list_node_groups(eks, cluster_name)
        except BOTO_ERRORS as err:
            logger.error("failed to fetch nodegroups of cluster '%s': %s", cluster_name, err)
            return []

        specs: list[NodeSpec] = []
        for node_group in node_groups:
            try:
                details = eks.describe_nodegroup(clusterName=cluster_name, nodegroupName=node_group)["nodegroup"]
            except BOTO_ERRORS as err:
                logger.error("failed to fetch nodegroup details '%s' of cluster '%s': %s",
                             node_group, cluster_name, err)
                continue
            instance_types = details.get("instanceTypes") or [""]
            specs.append(NodeSpec(
                name=node_group,
                instance_type=instance_types[0],
                disk_size_mb=gib_to_mb(details.get("diskSize")),
                labels=details.get("labels") or {},
            ))
        return specs

    @staticmethod
    def _list_node_groups(eks: Any, cluster_name: str) -> list[str]:
        return [
            name
            for page in eks.get_paginator("list_nodegroups").paginate(clusterName=cluster_name)
            for name in page["nodegroups"]
        ]

    def cluster_status(self, request: ClusterStatusRequest) -> ClusterStatusResponse:
        """Return the vendor status of a cluster.

        Raises:
            VendorError: With ``response.error`` populated, if the describe fails.
        """
        session = self._session(request.region, request.account_name)
        logger.debug("fetching cluster status for '%s', region '%s'", request.cluster_name, request.region)
        try:
            cluster = describe_cluster(session.eks_client(), request.cluster_name)
        except BOTO_ERRORS as err:
            logger.error("failed to fetch cluster status for '%s': %s", request.cluster_name, err)
            raise _vendor_error(
                f"describe cluster '{request.cluster_name}'", err, ClusterStatusResponse
            ) from err
        return ClusterStatusResponse(status=cluster["status"])

    def delete_cluster(self, request: ClusterDeleteRequest) -> ClusterDeleteResponse:
        """Request deletion of a cluster; EKS refuses while node groups remain."""
        session = self._session(request.region, request.account_name)
        try:
            out = session.eks_client().delete_cluster(name=request.cluster_name)
        except BOTO_ERRORS as err:
            logger.error("failed to delete cluster '%s': %s", request.cluster_name, err)
            raise _vendor_error(
                f"delete cluster '{request.cluster_name}'", err, ClusterDeleteResponse
            ) from err
        logger.info("requested cluster '%s' to be deleted, status %s, it might take some time",
                    request.cluster_name, out["cluster"].get("status"))
        return ClusterDeleteResponse()

    # -- Node groups --

    def _default_node_group(self, eks: Any, cluster_name: str, node_name: str) -> dict[str, Any]:
        try:
            node_groups = self._list_node_groups(eks, cluster_name)
        except BOTO_ERRORS as err:
            logger.error("failed to fetch nodegroups of cluster '%s': %s", cluster_name, err)
            raise _vendor_error(f"list nodegroups of '{cluster_name}'", err) from err

        default_name = pick_default_node_group(cluster_name, node_groups, node_name)
        try:
            return eks.describe_nodegroup(clusterName=cluster_name, nodegroupName=default_name)["nodegroup"]
        except BOTO_ERRORS as err:
            raise _vendor_error(f"describe nodegroup '{default_name}'", err) from err

    def _node_group_from_cluster_config(
        self, session: AwsSession, cluster_name: str, node_spec: NodeSpec
    ) -> dict[str, Any]:
        try:
            cluster = describe_cluster(session.eks_client(), cluster_name)
        except BOTO_ERRORS as err:
            raise _vendor_error(f"describe cluster '{cluster_name}'", err) from err

        role = ensure_role_with_policies(
            session.iam_client(),
            AWS_NODE_GROUP_ROLE_NAME,
            "node group instance policy role",
            EC2_ASSUME_ROLE_DOC,
            NODE_GROUP_ROLE_POLICIES,
        )
        return node_group_from_cluster(cluster, role["Arn"], node_spec)

    def add_node(self, request: NodeSpawnRequest) -> NodeSpawnResponse:
        """Add a node group, copying an existing node group when there is one.

        Raises:
            NodeGroupExists: If the cluster already has a node group with that name.
        """
        cluster_name = request.cluster_name
        node_spec = request.node_spec
        session = self._session(request.region, request.account_name)
        eks = session.eks_client()

        logger.info("querying default nodes on cluster '%s' in region '%s'", cluster_name, request.region)
        try:
            default_node = self._default_node_group(eks, cluster_name, node_spec.name)
        except NodeGroupExists:
            logger.error("nodegroup '%s' already exist in cluster '%s'", node_spec.name, cluster_name)
            raise
        except NoNodeGroup:
            logger.info("default nodegroup not found in cluster '%s', creating nodegroup from cluster config",
                        cluster_name)
            payload = self._node_group_from_cluster_config(session, cluster_name, node_spec)
        else:
            logger.info("found default nodegroup '%s' in cluster '%s', creating nodegroup from its config",
                        default_node.get("nodegroupName"), cluster_name)
            payload = node_group_from_default(default_node, cluster_name, node_spec)

        try:
            out = eks.create_nodegroup(**payload)
        except BOTO_ERRORS as err:
            logger.error("failed to add node '%s': %s", node_spec.name, err)
            raise _vendor_error(f"create nodegroup '{node_spec.name}'", err) from err
        logger.info("creating nodegroup '%s' on cluster '%s', status %s, it might take some time",
                    node_spec.name, cluster_name, out["nodegroup"].get("status"))
        return NodeSpawnResponse()

    def delete_node(self, request: NodeDeleteRequest) -> NodeDeleteResponse:
        session = self._session(request.region, request.account_name)
        try:
            out = session.eks_client().delete_nodegroup(
                clusterName=request.cluster_name, nodegroupName=request.node_group_name
            )
        except BOTO_ERRORS as err:
            logger.error("failed to delete nodegroup '%s': %s", request.node_group_name, err)
            raise _vendor_error(
                f"delete nodegroup '{request.node_group_name}'", err, NodeDeleteResponse
            ) from err
        logger.info("requested nodegroup '%s' to be deleted, status %s, it might take some time",
                    request.node_group_name, out["nodegroup"].get("status"))
        return NodeDeleteResponse()

    def tag_node_instance(self, request: TagNodeInstanceRequest) -> TagNodeInstanceResponse:
        """Apply *labels* as tags to every running instance of a node group."""
        session = self._session(request.region, request.account_name)
        ec2 = session.ec2_client()
        filters = [
            {"Name": f"tag:{TAG_EKS_CLUSTER_NAME}", "Values": [request.cluster_name]},
            {"Name": f"tag:{TAG_EKS_NODEGROUP_NAME}", "Values": [request.node_group_name]},
            {"Name": "instance-state-name", "Values": ["pending", "running"]},
        ]
        try:
            instance_ids = [
                instance["InstanceId"]
                for page in ec2.get_paginator("describe_instances").paginate(Filters=filters)
                for reservation in page["Reservations"]
                for instance in reservation["Instances"]
            ]
            if instance_ids and request.labels:
                ec2.create_tags(Resources=instance_ids, Tags=to_aws_tags(request.labels))
        except BOTO_ERRORS as err:
            raise _vendor_error(f"tag instances of nodegroup '{request.node_group_name}'", err) from err

        if not instance_ids:
            logger.warning("no instances found for nodegroup '%s' in cluster '%s'",
                           request.node_group_name, request.cluster_name)
        return TagNodeInstanceResponse(instance_ids=instance_ids)

    # -- Kube access --

    def get_token(self, request: GetTokenRequest) -> GetTokenResponse:
        session = self._session(request.region, request.account_name)
        try:
            cluster = describe_cluster(session.eks_client(), request.cluster_name)
        except BOTO_ERRORS as err:
            raise _vendor_error(f"describe cluster '{request.cluster_name}'", err) from err
        kube_cfg = session.kube_config(cluster)
        return GetTokenResponse(token=kube_cfg.token, ca_data=kube_cfg.ca_data, endpoint=kube_cfg.endpoint)

    def get_kube_config(self, request: GetKubeConfigRequest) -> GetKubeConfigResponse:
        session = self._session(request.region, request.account_name)
        try:
            cluster = describe_cluster(session.eks_client(), request.cluster_name)
        except BOTO_ERRORS as err:
            raise _vendor_error(f"describe cluster '{request.cluster_name}'", err) from err
        return GetKubeConfigResponse(
            cluster_name=request.cluster_name,
            kube_config=render_kubeconfig(session.kube_config(cluster)),
        )

    # -- Volumes and snapshots --

    def create_volume(self, request: CreateVolumeRequest) -> CreateVolumeResponse:
        session = self._session(request.region, request.account_name)
        params: dict[str, Any] = {
            "AvailabilityZone": request.availability_zone,
            "Size": request.size_gb,
            "VolumeType": request.volume_type,
        }
        if request.snapshot_id:
            params["SnapshotId"] = request.snapshot_id
        if request.labels:
            params["TagSpecifications"] = [
                {"ResourceType": "volume", "Tags": to_aws_tags(request.labels)}
            ]
        try:
            out = session.ec2_client().create_volume(**params)
        except BOTO_ERRORS as err:
            logger.error("failed to create volume in '%s': %s", request.availability_zone, err)
            raise _vendor_error("create volume", err, CreateVolumeResponse) from err
        logger.info("created volume '%s', state %s", out["VolumeId"], out.get("State"))
        return CreateVolumeResponse(volume_id=out["VolumeId"])

    def delete_volume(self, request: DeleteVolumeRequest) -> DeleteVolumeResponse:
        session = self._session(request.region, request.account_name)
        try:
            session.ec2_client().delete_volume(VolumeId=request.volume_id)
        except BOTO_ERRORS as err:
            logger.error("failed to delete volume '%s': %s", request.volume_id, err)
            raise _vendor_error(f"delete volume '{request.volume_id}'", err, DeleteVolumeResponse) from err
        logger.info("deleted volume '%s'", request.volume_id)
        return DeleteVolumeResponse(deleted=True)

    def _snapshot(self, ec2: Any, volume_id: str, labels: dict[str, str], response_cls: type) -> str:
        params: dict[str, Any] = {"VolumeId": volume_id}
        if labels:
            params["TagSpecifications"] = [{"ResourceType": "snapshot", "Tags": to_aws_tags(labels)}]
        try:
            out = ec2.create_snapshot(**params)
        except BOTO_ERRORS as err:
            logger.error("failed to snapshot volume '%s': %s", volume_id, err)
            raise _vendor_error(f"snapshot volume '{volume_id}'", err, response_cls) from err
        logger.info("created snapshot '%s' of volume '%s'", out["SnapshotId"], volume_id)
        return out["SnapshotId"]

    def create_snapshot(self, request: CreateSnapshotRequest) -> CreateSnapshotResponse:
        session = self._session(request.region, request.account_name)
        snapshot_id = self._snapshot(session.ec2_client(), request.volume_id, request.labels,
                                     CreateSnapshotResponse)
        return CreateSnapshotResponse(snapshot_id=snapshot_id)

    def create_snapshot_and_delete(
        self, request: CreateSnapshotAndDeleteRequest
    ) -> CreateSnapshotAndDeleteResponse:
        """Snapshot a volume, wait for the snapshot to complete, then delete the volume.

        If the volume cannot be deleted the error carries the snapshot id.
        """
        session = self._session(request.region, request.account_name)
        ec2 = session.ec2_client()
        snapshot_id = self._snapshot(ec2, request.volume_id, request.labels, CreateSnapshotAndDeleteResponse)

        try:
            ec2.get_waiter("snapshot_completed").wait(SnapshotIds=[snapshot_id])
            ec2.delete_volume(VolumeId=request.volume_id)
        except BOTO_ERRORS as err:
            logger.error("snapshot '%s' taken but volume '%s' not deleted: %s", snapshot_id, request.volume_id, err)
            raise VendorError(
                f"delete volume '{request.volume_id}'",
                str(err),
                code=client_error_code(err),
                response=CreateSnapshotAndDeleteResponse(snapshot_id=snapshot_id, error=str(err)),
            ) from err
        logger.info("deleted volume '%s' after snapshot '%s'", request.volume_id, snapshot_id)
        return CreateSnapshotAndDeleteResponse(snapshot_id=snapshot_id, volume_deleted=True)
