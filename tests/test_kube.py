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

"""Tests for kubeconfig rendering and node mapping."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import yaml
from kubernetes import client as k8s_client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import MaxRetryError

from conftest import make_node
from spawner.errors import VendorError
from spawner.kube import (
    KubeConfig,
    kubeconfig_from_document,
    list_node_specs,
    node_spec_from_node,
    render_kubeconfig,
)

KUBE_CFG = KubeConfig(cluster_name="prod", endpoint="https://prod.example", ca_data="Q0E=", token="k8s-aws-v1.abc")


class TestKubeconfig:
    """Test kubeconfig documents."""

    def test_render_single_context(self) -> None:
        """The rendered kubeconfig should point its only context at the cluster."""
        doc = yaml.safe_load(render_kubeconfig(KUBE_CFG))

        assert doc["current-context"] == "prod"
        assert doc["clusters"][0]["cluster"] == {
            "server": "https://prod.example",
            "certificate-authority-data": "Q0E=",
        }
        assert doc["users"][0]["user"]["token"] == "k8s-aws-v1.abc"

    def test_document_round_trip(self) -> None:
        """Reading a rendered kubeconfig should give back the same access details."""
        doc = yaml.safe_load(render_kubeconfig(KUBE_CFG))

        assert kubeconfig_from_document("prod", doc) == KUBE_CFG

    def test_document_without_token(self) -> None:
        """Users authenticating without a token should give an empty token."""
        doc = {
            "clusters": [{"name": "c", "cluster": {"server": "https://c"}}],
            "users": [{"name": "u", "user": {"client-certificate-data": "x"}}],
            "contexts": [{"name": "ctx", "context": {"cluster": "c", "user": "u"}}],
        }

        kube_cfg = kubeconfig_from_document("c", doc)

        assert kube_cfg.endpoint == "https://c"
        assert kube_cfg.token == ""


class TestNodeMapping:
    """Test V1Node to NodeSpec mapping."""

    def test_ready_node(self) -> None:
        """A Ready node should be active with its addresses, labels, and disk."""
        node = make_node(
            "ip-10-0-0-7",
            ip_addr="10.0.0.7",
            host_name="ip-10-0-0-7.ec2.internal",
            labels={
                "node.kubernetes.io/instance-type": "m5.large",
                "topology.kubernetes.io/zone": "us-east-1a",
            },
            storage="20Gi",
            uid="abc-123",
        )

        spec = node_spec_from_node(node)

        assert spec.name == "ip-10-0-0-7"
        assert spec.ip_addr == "10.0.0.7"
        assert spec.host_name == "ip-10-0-0-7.ec2.internal"
        assert spec.instance_type == "m5.large"
        assert spec.availability_zone == "us-east-1a"
        assert spec.uuid == "abc-123"
        assert spec.disk_size_mb == 20480
        assert spec.state == "active"

    def test_not_ready_node(self) -> None:
        """Ready=False or Unknown should be inactive."""
        assert node_spec_from_node(make_node("a", ready="False")).state == "inactive"
        assert node_spec_from_node(make_node("b", ready="Unknown")).state == "inactive"

    def test_node_without_conditions(self) -> None:
        """A node reporting no Ready condition should be inactive."""
        assert node_spec_from_node(make_node("a", ready=None)).state == "inactive"

    def test_node_without_status(self) -> None:
        """A node with no status should map with empty fields."""
        node = k8s_client.V1Node(metadata=k8s_client.V1ObjectMeta(name="bare"))

        spec = node_spec_from_node(node)

        assert spec.host_name == "bare"
        assert spec.ip_addr == ""
        assert spec.disk_size_mb == 0
        assert spec.state == "inactive"


class TestListNodeSpecs:
    """Test node listing through the cluster API."""

    def test_lists_every_node(self) -> None:
        """Every listed node should map to a node spec."""
        core = MagicMock()
        core.list_node.return_value = k8s_client.V1NodeList(items=[make_node("a"), make_node("b")])

        assert [n.name for n in list_node_specs(core, "prod")] == ["a", "b"]

    def test_refused_call(self) -> None:
        """An API error should raise VendorError with the HTTP status as code."""
        core = MagicMock()
        core.list_node.side_effect = ApiException(status=401, reason="Unauthorized")

        with pytest.raises(VendorError) as exc_info:
            list_node_specs(core, "prod")
        assert exc_info.value.code == "401"
        assert "Unauthorized" in str(exc_info.value)

    def test_unreachable_api(self) -> None:
        """A connection failure should raise VendorError naming the cluster."""
        core = MagicMock()
        core.list_node.side_effect = MaxRetryError(None, "/api/v1/nodes", reason="connection refused")

        with pytest.raises(VendorError) as exc_info:
            list_node_specs(core, "prod")
        assert exc_info.value.operation == "list nodes of cluster 'prod'"
        assert exc_info.value.code is None
