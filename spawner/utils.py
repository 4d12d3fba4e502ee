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

"""Helpers for cluster naming, node group labels, and size conversions."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from spawner.constants import (
    CREATOR_LABEL,
    INSTANCE_LABEL,
    NODE_LABEL_SELECTOR_LABEL,
    NODE_NAME_LABEL,
    SPAWNER_SERVICE_LABEL,
    TYPE_LABEL,
    TYPE_NODEGROUP,
)
from spawner.errors import NodeGroupExists, NoNodeGroup

if TYPE_CHECKING:
    from spawner.models import NodeSpec


def default_cluster_name(provider: str, region: str) -> str:
    """Build the cluster name used when a request does not name one.

    Args:
        provider: Provider identifier (e.g. ``aws``).
        region: Vendor region (e.g. ``us-east-1``).

    Returns:
        Cluster name of the form ``{provider}-{region}``.
    """
    return f"{provider}-{region}"


def node_group_labels(
    node_spec: NodeSpec, default_labels: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Merge reserved, default node group, and caller labels.

    Later sources win on key collision: reserved labels first, then the
    labels of the default node group, then the caller's labels. The keys
    naming the node group and its instance type are set again after the
    default labels, so a donor created by spawner cannot lend its own name.

    Args:
        node_spec: Requested node spec with name, instance type, and labels.
        default_labels: Labels of the default node group, if one is used.

    Returns:
        Label mapping for the new node group.
    """
    own = {
        NODE_NAME_LABEL: node_spec.name,
        NODE_LABEL_SELECTOR_LABEL: node_spec.name,
        INSTANCE_LABEL: node_spec.instance_type,
    }
    labels = {CREATOR_LABEL: SPAWNER_SERVICE_LABEL, **own, TYPE_LABEL: TYPE_NODEGROUP}
    labels.update(default_labels or {})
    labels.update(own)
    labels.update(node_spec.labels)
    return labels


def pick_default_node_group(cluster_name: str, node_groups: Sequence[str], new_name: str) -> str:
    """Choose the node group whose configuration a new node group copies.

    The first listed node group is used. Vendor list order is unspecified,
    so the choice is not stable across calls.

    Args:
        cluster_name: Cluster owning the node groups.
        node_groups: Node group names as listed by the vendor.
        new_name: Name of the node group about to be created.

    Returns:
        Name of the default node group.

    Raises:
        NoNodeGroup: If the cluster has no node groups.
        NodeGroupExists: If a node group named *new_name* already exists.
    """
    if not node_groups:
        raise NoNodeGroup(cluster_name)
    if new_name in node_groups:
        raise NodeGroupExists(cluster_name, new_name)
    return node_groups[0]


def to_aws_tags(labels: Mapping[str, str]) -> list[dict[str, str]]:
    """Convert a label mapping into the AWS ``[{Key, Value}]`` tag shape."""
    return [{"Key": key, "Value": value} for key, value in labels.items()]


def mb_to_gib(size_mb: int) -> int:
    """Round a size in MB up to whole GiB, the unit vendors take for disks."""
    return max(1, math.ceil(size_mb / 1024))


def disk_size_gib(size_mb: int) -> int | None:
    """Vendor disk size for a node spec, or None to keep the vendor default when *size_mb* is 0."""
    return mb_to_gib(size_mb) if size_mb > 0 else None


def gib_to_mb(size_gib: int | None) -> int:
    return (size_gib or 0) * 1024
