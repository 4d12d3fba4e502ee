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

"""Spawner exceptions.

All exceptions inherit from SpawnerError. An exception raised by an
operation whose response has an ``error`` field carries that response,
already populated, in ``response``.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from spawner.constants import PROVIDERS

# Raised by boto3 calls: API errors and transport failures such as timeouts.
BOTO_ERRORS = (ClientError, BotoCoreError)


class SpawnerError(Exception):
    """Base exception for all spawner errors."""

    def __init__(self, message: str, *, response: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class ProviderNotFound(SpawnerError):
    """Provider identifier is not one of the supported providers."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"provider not found, must be one of {list(PROVIDERS)}, got {provider}"
        )
        self.provider = provider


class NodeGroupExists(SpawnerError):
    """A node group with the requested name already exists in the cluster."""

    def __init__(self, cluster_name: str, node_group: str) -> None:
        super().__init__(f"nodegroup '{node_group}' already exist in cluster '{cluster_name}'")
        self.cluster_name = cluster_name
        self.node_group = node_group


class NoNodeGroup(SpawnerError):
    """The cluster has no node group to use as a template."""

    def __init__(self, cluster_name: str) -> None:
        super().__init__(f"no nodegroup exist in cluster '{cluster_name}'")
        self.cluster_name = cluster_name


class ClusterUnreachable(SpawnerError):
    """The cluster control-plane endpoint is not available yet."""

    def __init__(self, cluster_name: str, reason: str = "control-plane endpoint not available") -> None:
        super().__init__(f"cluster '{cluster_name}' is unreachable: {reason}")
        self.cluster_name = cluster_name


class InvalidCredential(SpawnerError):
    """Credential payload does not match the provider, or is missing."""


class CredentialNotFound(SpawnerError):
    """No credential is stored for the (region, account, provider) key."""

    def __init__(self, region: str, account: str, provider: str) -> None:
        super().__init__(
            f"no {provider} credentials found for account '{account}' in region '{region}'"
        )
        self.region = region
        self.account = account
        self.provider = provider


class OperationNotSupported(SpawnerError):
    """The provider engine does not implement the operation."""

    def __init__(self, provider: str, operation: str) -> None:
        super().__init__(f"operation '{operation}' is not supported for provider '{provider}'")
        self.provider = provider
        self.operation = operation


class VendorError(SpawnerError):
    """A cloud vendor API call failed.

    Check code for the vendor error code and __cause__ for the original error.
    """

    def __init__(
        self, operation: str, message: str, *, code: str | None = None, response: Any = None
    ) -> None:
        super().__init__(f"{operation}: {message}", response=response)
        self.operation = operation
        self.code = code


def client_error_code(err: Exception) -> str | None:
    """Extract the vendor error code from a botocore ClientError.

    Transport failures carry no code.

    Args:
        err: Exception raised by a boto3 client call.

    Returns:
        The ``Error.Code`` value, or None when unavailable.
    """
    response = getattr(err, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code")
