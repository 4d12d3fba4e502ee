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

"""Kubeconfig rendering, kube API clients, and node mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.exceptions import ApiException
from kubernetes.utils import parse_quantity
from urllib3.exceptions import HTTPError

from spawner.constants import (
    ADDRESS_HOSTNAME,
    ADDRESS_INTERNAL_IP,
    CONDITION_READY,
    LABEL_INSTANCE_TYPE,
    LABEL_ZONE,
    STATE_ACTIVE,
    STATE_INACTIVE,
)
from spawner.errors import VendorError
from spawner.models import NodeSpec


@dataclass(frozen=True)
class KubeConfig:
    """Everything needed to reach a cluster's own API.

    Attributes:
        cluster_name: Cluster the endpoint belongs to.
        endpoint: API server URL.
        ca_data: Base64-encoded cluster CA bundle.
        token: Bearer token for the API server.
    """

    cluster_name: str
    endpoint: str
    ca_data: str
    token: str


# ============================================================================
# Kubeconfig
# ============================================================================

def kubeconfig_dict(kube_cfg: KubeConfig) -> dict[str, Any]:
    """Build a single-context kubeconfig document.

    Args:
        kube_cfg: Endpoint, CA, and token of the cluster.

    Returns:
        Kubeconfig as a dictionary ready for YAML serialization.
    """
    name = kube_cfg.cluster_name
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{
            "name": name,
            "cluster": {
                "server": kube_cfg.endpoint,
                "certificate-authority-data": kube_cfg.ca_data,
            },
        }],
        "users": [{"name": name, "user": {"token": kube_cfg.token}}],
        "contexts": [{"name": name, "context": {"cluster": name, "user": name}}],
        "current-context": name,
        "preferences": {},
    }


def render_kubeconfig(kube_cfg: KubeConfig) -> str:
    return yaml.safe_dump(kubeconfig_dict(kube_cfg), default_flow_style=False, sort_keys=False)


def kubeconfig_from_document(cluster_name: str, document: dict[str, Any]) -> KubeConfig:
    """Extract endpoint, CA, and token from the current context of a kubeconfig.

    Args:
        cluster_name: Cluster the kubeconfig belongs to.
        document: Parsed kubeconfig.

    Returns:
        KubeConfig of the current context.
    """
    contexts = {c["name"]: c["context"] for c in document.get("contexts", [])}
    clusters = {c["name"]: c["cluster"] for c in document.get("clusters", [])}
    users = {u["name"]: u.get("user", {}) for u in document.get("users", [])}

    current = document.get("current-context") or next(iter(contexts), "")
    context = contexts.get(current, {})
    cluster = clusters.get(context.get("cluster"), {})
    user = users.get(context.get("user"), {})
    return KubeConfig(
        cluster_name=cluster_name,
        endpoint=cluster.get("server", ""),
        ca_data=cluster.get("certificate-authority-data", ""),
        token=user.get("token", ""),
    )


def core_client(document: dict[str, Any]) -> k8s_client.CoreV1Api:
    """Create a CoreV1 API client from a kubeconfig document."""
    api_client = k8s_config.new_client_from_config_dict(document)
    return k8s_client.CoreV1Api(api_client)


# ============================================================================
# Node mapping
# ============================================================================

def _disk_size_mb(capacity: dict[str, str] | None) -> int:
    storage = (capacity or {}).get("ephemeral-storage")
    if not storage:
        return 0
    return int(parse_quantity(storage)) // 1024 // 1024


def node_spec_from_node(node: k8s_client.V1Node) -> NodeSpec:
    """Map a Kubernetes node into the canonical NodeSpec.

    Args:
        node: Node as returned by the cluster's API.

    Returns:
        NodeSpec with addresses, labels, capacity, and readiness.
    """
    labels = node.metadata.labels or {}
    status = node.status or k8s_client.V1NodeStatus()
    ip_addr = ""
    host_name = node.metadata.name
    for address in status.addresses or []:
        if address.type == ADDRESS_INTERNAL_IP:
            ip_addr = address.address
        elif address.type == ADDRESS_HOSTNAME:
            host_name = address.address

    ready = any(
        cond.type == CONDITION_READY and cond.status == "True"
        for cond in status.conditions or []
    )
    return NodeSpec(
        name=node.metadata.name,
        instance_type=labels.get(LABEL_INSTANCE_TYPE, ""),
        disk_size_mb=_disk_size_mb(status.capacity),
        host_name=host_name,
        ip_addr=ip_addr,
        uuid=node.metadata.uid or "",
        labels=dict(labels),
        availability_zone=labels.get(LABEL_ZONE, ""),
        state=STATE_ACTIVE if ready else STATE_INACTIVE,
    )


def list_node_specs(core: k8s_client.CoreV1Api, cluster_name: str) -> list[NodeSpec]:
    """List every node of a cluster as NodeSpecs.

    Raises:
        VendorError: If the cluster's API refuses the call or cannot be reached.
    """
    try:
        nodes = core.list_node()
    except ApiException as err:
        raise VendorError(
            f"list nodes of cluster '{cluster_name}'", err.reason or str(err), code=str(err.status)
        ) from err
    except HTTPError as err:
        raise VendorError(f"list nodes of cluster '{cluster_name}'", str(err)) from err
    return [node_spec_from_node(node) for node in nodes.items]
