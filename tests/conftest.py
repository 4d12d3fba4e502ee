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

"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from kubernetes import client as k8s_client

from spawner.aws import AwsController
from spawner.config import SpawnerConfig
from spawner.credentials import CredentialStore

ErrorFactory = Callable[..., ClientError]


def _client_error(code: str, operation: str = "Operation", message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


@pytest.fixture
def client_error() -> ErrorFactory:
    """Factory for botocore ClientErrors with a given error code."""
    return _client_error


class FakeSecretsManager:
    """In-memory stand-in for a Secrets Manager client."""

    def __init__(self) -> None:
        self.secrets: dict[str, str] = {}
        self.calls: list[str] = []

    def get_secret_value(self, SecretId: str) -> dict[str, Any]:
        self.calls.append("get_secret_value")
        if SecretId not in self.secrets:
            raise _client_error("ResourceNotFoundException", "GetSecretValue")
        return {"Name": SecretId, "SecretString": self.secrets[SecretId]}

    def put_secret_value(self, SecretId: str, SecretString: str) -> dict[str, Any]:
        self.calls.append("put_secret_value")
        if SecretId not in self.secrets:
            raise _client_error("ResourceNotFoundException", "PutSecretValue")
        self.secrets[SecretId] = SecretString
        return {"Name": SecretId}

    def create_secret(self, Name: str, SecretString: str, Description: str = "") -> dict[str, Any]:
        self.calls.append("create_secret")
        self.secrets[Name] = SecretString
        return {"Name": Name}

    def stored(self, secret_id: str) -> dict[str, Any]:
        return json.loads(self.secrets[secret_id])


@pytest.fixture
def config() -> SpawnerConfig:
    """Config with fast polling."""
    return SpawnerConfig(status_poll_interval=1, status_poll_attempts=3)


@pytest.fixture
def secrets() -> FakeSecretsManager:
    return FakeSecretsManager()


@pytest.fixture
def store(secrets: FakeSecretsManager) -> CredentialStore:
    """Credential store backed by the in-memory secrets client."""
    return CredentialStore(lambda region: secrets)


@pytest.fixture
def aws() -> SimpleNamespace:
    """Mock EKS, IAM, and EC2 clients behind one mock session."""
    eks, iam, ec2 = MagicMock(), MagicMock(), MagicMock()
    session = MagicMock()
    session.eks_client.return_value = eks
    session.iam_client.return_value = iam
    session.ec2_client.return_value = ec2
    return SimpleNamespace(session=session, eks=eks, iam=iam, ec2=ec2)


@pytest.fixture
def aws_controller(config: SpawnerConfig, store: CredentialStore, aws: SimpleNamespace) -> AwsController:
    """EKS engine wired to the mock session."""
    aws.factory = MagicMock(return_value=aws.session)
    return AwsController(config, store, session_factory=aws.factory)


def paginator(*pages: dict[str, Any]) -> MagicMock:
    """Build a paginator mock yielding *pages*."""
    mock = MagicMock()
    mock.paginate.return_value = list(pages)
    return mock


def make_node(
    name: str,
    *,
    ip_addr: str = "10.0.0.1",
    host_name: str | None = None,
    ready: str | None = "True",
    labels: dict[str, str] | None = None,
    storage: str | None = "20Gi",
    uid: str = "uid-1",
) -> k8s_client.V1Node:
    """Build a V1Node as the API server would return it."""
    addresses = [k8s_client.V1NodeAddress(type="InternalIP", address=ip_addr)]
    if host_name is not None:
        addresses.append(k8s_client.V1NodeAddress(type="Hostname", address=host_name))
    conditions = []
    if ready is not None:
        conditions.append(k8s_client.V1NodeCondition(type="Ready", status=ready))
    return k8s_client.V1Node(
        metadata=k8s_client.V1ObjectMeta(name=name, uid=uid, labels=labels or {}),
        status=k8s_client.V1NodeStatus(
            addresses=addresses,
            conditions=conditions,
            capacity={"ephemeral-storage": storage} if storage else None,
        ),
    )
