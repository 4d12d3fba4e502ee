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

"""Tests for the create-and-wait workflow."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from spawner.config import SpawnerConfig
from spawner.errors import NodeGroupExists
from spawner.models import (
    ClusterRequest,
    ClusterResponse,
    ClusterStatusRequest,
    ClusterStatusResponse,
    NodeSpec,
)
from spawner.orchestrator import create_cluster_and_wait, wait_for_cluster


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip tenacity's sleeps between polls."""
    with patch("tenacity.nap.time.sleep"):
        yield


def statuses(*values: str) -> list[ClusterStatusResponse]:
    return [ClusterStatusResponse(status=v) for v in values]


class TestWaitForCluster:
    """Test status polling."""

    def test_polls_until_terminal(self, config: SpawnerConfig) -> None:
        """Polling should stop at the first terminal status."""
        service = MagicMock()
        service.cluster_status.side_effect = statuses("CREATING", "ACTIVE")
        request = ClusterStatusRequest(provider="aws", region="us-east-1", cluster_name="c")

        assert wait_for_cluster(service, request, config) == "ACTIVE"
        assert service.cluster_status.call_count == 2

    def test_gives_up(self, config: SpawnerConfig) -> None:
        """A cluster still transitioning after every attempt should raise RuntimeError."""
        service = MagicMock()
        service.cluster_status.return_value = ClusterStatusResponse(status="CREATING")
        request = ClusterStatusRequest(provider="aws", region="us-east-1", cluster_name="c")

        with pytest.raises(RuntimeError, match="not settled"):
            wait_for_cluster(service, request, config)
        assert service.cluster_status.call_count == config.status_poll_attempts


class TestCreateClusterAndWait:
    """Test the full create workflow."""

    def test_adds_node_groups_once_active(self, config: SpawnerConfig) -> None:
        """Node groups should be added after the cluster is active, skipping existing ones."""
        service = MagicMock()
        service.create_cluster.return_value = ClusterResponse(cluster_name="aws-us-east-1")
        service.cluster_status.side_effect = statuses("CREATING", "ACTIVE")
        service.add_node.side_effect = [NodeGroupExists("aws-us-east-1", "cpu"), None]
        request = ClusterRequest(
            provider="aws",
            region="us-east-1",
            account_name="acme",
            node_specs=[NodeSpec(name="cpu"), NodeSpec(name="gpu", gpu_enabled=True)],
        )

        assert create_cluster_and_wait(service, request, config) == "aws-us-east-1"

        added = [c.args[0] for c in service.add_node.call_args_list]
        assert [r.node_spec.name for r in added] == ["cpu", "gpu"]
        assert all(r.cluster_name == "aws-us-east-1" and r.account_name == "acme" for r in added)

    def test_failed_cluster(self, config: SpawnerConfig) -> None:
        """A failed cluster should raise without adding node groups."""
        service = MagicMock()
        service.create_cluster.return_value = ClusterResponse(cluster_name="c")
        service.cluster_status.return_value = ClusterStatusResponse(status="FAILED")
        request = ClusterRequest(provider="aws", region="us-east-1", node_specs=[NodeSpec(name="cpu")])

        with pytest.raises(RuntimeError, match="FAILED"):
            create_cluster_and_wait(service, request, config)
        service.add_node.assert_not_called()
