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

"""Constants for providers, IAM roles, node group labels, and defaults."""

from __future__ import annotations

import json

# -- Providers --
AWS_LABEL = "aws"
AZURE_LABEL = "azure"
GCP_LABEL = "gcp"
PROVIDERS = (AWS_LABEL, AZURE_LABEL, GCP_LABEL)

# -- IAM roles --
AWS_CLUSTER_ROLE_NAME = "spawner-AWS-ServiceRoleForEKS"
AWS_NODE_GROUP_ROLE_NAME = "spawner-AWS-NodeGroupInstanceRole"

# -- Managed policies --
EKS_CLUSTER_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonEKSClusterPolicy"
EKS_SERVICE_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonEKSServicePolicy"
EKS_WORKER_NODE_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonEKSWorkerNodePolicy"
EKS_EC2_CONTAINER_RO_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonEC2ContainerRegistryReadOnly"
EKS_CNI_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonEKS_CNI_Policy"

CLUSTER_ROLE_POLICIES = (EKS_CLUSTER_POLICY_ARN, EKS_SERVICE_POLICY_ARN)
NODE_GROUP_ROLE_POLICIES = (
    EKS_WORKER_NODE_POLICY_ARN,
    EKS_EC2_CONTAINER_RO_POLICY_ARN,
    EKS_CNI_POLICY_ARN,
)


def assume_role_doc(service: str) -> str:
    """Build a trust policy document allowing *service* to assume a role.

    Args:
        service: Service principal (e.g. ``eks.amazonaws.com``).

    Returns:
        JSON policy document string.
    """
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Service": [service]},
            "Action": ["sts:AssumeRole"],
        }],
    }, separators=(",", ":"))


EKS_ASSUME_ROLE_DOC = assume_role_doc("eks.amazonaws.com")
EC2_ASSUME_ROLE_DOC = assume_role_doc("ec2.amazonaws.com")

# -- AWS error codes --
ERR_CODE_RESOURCE_NOT_FOUND = "ResourceNotFoundException"
ERR_CODE_IAM_NO_SUCH_ENTITY = "NoSuchEntity"

# -- Node group defaults --
AMI_TYPE_STANDARD = "AL2_x86_64"
AMI_TYPE_GPU = "AL2_x86_64_GPU"
CAPACITY_TYPE_ON_DEMAND = "ON_DEMAND"
NODE_GROUP_SCALING = {"desiredSize": 1, "minSize": 1, "maxSize": 1}

# -- Reserved node group labels --
CREATOR_LABEL = "creator"
SPAWNER_SERVICE_LABEL = "spawner-service"
NODE_NAME_LABEL = "spawner.io/node-name"
NODE_LABEL_SELECTOR_LABEL = "spawner.io/node-selector"
INSTANCE_LABEL = "spawner.io/instance-type"
TYPE_LABEL = "type"
TYPE_NODEGROUP = "nodegroup"

# -- Kubernetes node labels --
LABEL_INSTANCE_TYPE = "node.kubernetes.io/instance-type"
LABEL_ZONE = "topology.kubernetes.io/zone"
ADDRESS_INTERNAL_IP = "InternalIP"
ADDRESS_HOSTNAME = "Hostname"
CONDITION_READY = "Ready"
STATE_ACTIVE = "active"
STATE_INACTIVE = "inactive"

# -- EKS instance tags --
TAG_EKS_CLUSTER_NAME = "eks:cluster-name"
TAG_EKS_NODEGROUP_NAME = "eks:nodegroup-name"

# -- EKS auth --
EKS_TOKEN_PREFIX = "k8s-aws-v1."
EKS_CLUSTER_ID_HEADER = "x-k8s-aws-id"
EKS_TOKEN_EXPIRES_SECONDS = 60

# -- Cluster status --
CLUSTER_STATUS_ACTIVE = "ACTIVE"
CLUSTER_STATUS_FAILED = "FAILED"
CLUSTER_READY_STATUSES = (CLUSTER_STATUS_ACTIVE, "Succeeded")
CLUSTER_TERMINAL_STATUSES = (*CLUSTER_READY_STATUSES, CLUSTER_STATUS_FAILED, "Failed")

# -- Azure defaults --
AZURE_SYSTEM_POOL_NAME = "agentpool"
AZURE_DEFAULT_VM_SIZE = "Standard_DS2_v2"
AZURE_POOL_MODE_USER = "User"
AZURE_POOL_MODE_SYSTEM = "System"
AZURE_OS_TYPE = "Linux"

# -- Config defaults --
DEFAULT_ACCOUNT = "default"
DEFAULT_SECRET_HOST_REGION = "us-east-1"
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 60
DEFAULT_STATUS_POLL_INTERVAL_SECONDS = 30
DEFAULT_STATUS_POLL_ATTEMPTS = 40
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_VOLUME_TYPE = "gp3"

SECRET_NAME_FORMAT = "spawner/{account}/{provider}"
